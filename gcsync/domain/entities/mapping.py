"""
Entidad de dominio: Mapping (template de GatherContent -> tipo de record).

Ejemplo de documento de mapping:

    {
        "id": 42,
        "post_type": "post",
        "post_status": "draft",
        "post_author": 1,
        "gc_status": {"928": {"wp": "publish", "after": "929"}},
        "mapping": {
            "el1": {"type": "wp-type-post", "value": "post_title"},
            "el2": {"type": "wp-type-taxonomy", "value": "post_tag"},
            "el3": {"type": "wp-type-media", "value": "featured_image"}
        }
    }
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from gcsync.domain.entities.item import Item
from gcsync.shared.constants.sync_constants import SinkType


@dataclass(frozen=True)
class Destination:
    """Destino de un elemento: tipo de sink + identificador (campo, taxonomia, meta key...)."""

    type: SinkType
    value: str

    @classmethod
    def parse(cls, raw: Any) -> Optional["Destination"]:
        """Retorna None si el destino esta incompleto o su tipo no es conocido."""
        if not isinstance(raw, dict):
            return None
        sink = SinkType.parse(raw.get("type"))
        value = raw.get("value")
        if sink is None or not value or not isinstance(value, str):
            return None
        return cls(type=sink, value=value)


@dataclass(frozen=True)
class StatusRule:
    """Transicion de estado para un status remoto."""

    wp: Optional[str] = None
    after: Optional[str] = None


@dataclass
class Mapping:
    """
    Configuracion de sincronizacion de un template hacia un tipo de record.

    La tabla de destinos guarda los destinos crudos: un destino malformado no
    invalida el mapping, solo hace que ese elemento se omita.
    """

    id: Any
    post_type: str = "post"
    post_status: str = "draft"
    post_author: Any = 1
    destinations: Dict[str, Any] = field(default_factory=dict)
    status_rules: Dict[str, StatusRule] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Mapping":
        status_rules = {}
        for status_id, rule in (data.get("gc_status") or {}).items():
            if isinstance(rule, dict):
                status_rules[str(status_id)] = StatusRule(
                    wp=rule.get("wp") or None,
                    after=str(rule["after"]) if rule.get("after") else None,
                )
        destinations = data.get("mapping")
        return cls(
            id=data.get("id"),
            post_type=data.get("post_type") or "post",
            post_status=data.get("post_status") or "draft",
            post_author=data.get("post_author") or 1,
            destinations=destinations if isinstance(destinations, dict) else {},
            status_rules=status_rules,
        )

    def defaults(self) -> Dict[str, Any]:
        """Valores por defecto de los campos nativos controlados por el mapping."""
        return {
            "post_author": self.post_author,
            "post_status": self.post_status,
            "post_type": self.post_type,
        }

    def destination_for(self, element_name: str) -> Optional[Destination]:
        return Destination.parse(self.destinations.get(element_name))

    def get_local_status_for_item(self, item: Item) -> Optional[str]:
        """Estado local a aplicar segun el status actual del item."""
        rule = self.status_rules.get(str(item.status_id)) if item.status_id else None
        return rule.wp if rule else None

    def get_item_new_status(self, item: Item) -> Optional[str]:
        """Nuevo status remoto a asignar al item luego del pull."""
        rule = self.status_rules.get(str(item.status_id)) if item.status_id else None
        return rule.after if rule else None
