"""
Entidades de dominio: Item de GatherContent (snapshot inmutable).

Un Item se obtiene una vez por pull y no se modifica: los archivos del item
se agregan construyendo un nuevo snapshot con `with_files`.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple

from gcsync.shared.constants.sync_constants import ElementType
from gcsync.shared.utils.datetime_utils import gc_date_string


def _unwrap(payload: Any) -> Any:
    """La API v0.5 envuelve casi todo en {"data": ...}."""
    if isinstance(payload, dict) and "data" in payload and len(payload) <= 2:
        return payload["data"]
    return payload


@dataclass(frozen=True)
class MediaFile:
    """Archivo adjunto a un campo de un item (GET /items/{id}/files)."""

    id: Any
    field: str
    url: str
    filename: str
    size: int = 0
    user_id: Any = None
    item_id: Any = None
    type: str = "field"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "MediaFile":
        return cls(
            id=data.get("id"),
            field=str(data.get("field") or ""),
            url=str(data.get("url") or ""),
            filename=str(data.get("filename") or ""),
            size=int(data.get("size") or 0),
            user_id=data.get("user_id"),
            item_id=data.get("item_id"),
            type=str(data.get("type") or "field"),
            created_at=gc_date_string(data.get("created_at")),
            updated_at=gc_date_string(data.get("updated_at")),
        )


@dataclass(frozen=True)
class ChoiceOption:
    name: str
    label: str
    selected: bool = False


@dataclass(frozen=True)
class Element:
    """
    Campo de un tab de GatherContent.

    - name: identificador del campo (clave del mapping, ej: "el1468412112345")
    - type: text / files / choice_radio / choice_checkbox / section
    - value: valor crudo (texto para "text")
    """

    name: str
    type: str
    label: str = ""
    value: Any = None
    options: Tuple[ChoiceOption, ...] = ()
    subtitle: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Element":
        options = tuple(
            ChoiceOption(
                name=str(opt.get("name") or ""),
                label=str(opt.get("label") or ""),
                selected=bool(opt.get("selected")),
            )
            for opt in (data.get("options") or [])
            if isinstance(opt, dict)
        )
        return cls(
            name=str(data.get("name") or ""),
            type=str(data.get("type") or ""),
            label=str(data.get("label") or data.get("title") or ""),
            value=data.get("value"),
            options=options,
            subtitle=str(data.get("subtitle") or ""),
        )

    def selected_labels(self) -> list[str]:
        return [opt.label for opt in self.options if opt.selected]


@dataclass(frozen=True)
class Tab:
    name: str
    label: str = ""
    elements: Tuple[Element, ...] = ()


@dataclass(frozen=True)
class Item:
    """Snapshot de un item de GatherContent."""

    id: Any
    name: str
    config: Tuple[Tab, ...] = ()
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    status_id: Optional[str] = None
    status_name: Optional[str] = None
    files: Dict[str, Tuple[MediaFile, ...]] = field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Item":
        """
        Construye el snapshot desde la respuesta de GET /items/{id}.

        Acepta tanto el envelope {"data": {...}} como el dict del item.
        """
        data = _unwrap(payload) or {}
        status = _unwrap(data.get("status")) or {}
        tabs = []
        for raw_tab in data.get("config") or []:
            if not isinstance(raw_tab, dict):
                continue
            elements = tuple(
                Element.from_api(el)
                for el in (raw_tab.get("elements") or [])
                if isinstance(el, dict)
            )
            tabs.append(
                Tab(
                    name=str(raw_tab.get("name") or ""),
                    label=str(raw_tab.get("label") or ""),
                    elements=elements,
                )
            )
        return cls(
            id=data.get("id"),
            name=str(data.get("name") or ""),
            config=tuple(tabs),
            created_at=gc_date_string(data.get("created_at")),
            updated_at=gc_date_string(data.get("updated_at")),
            status_id=str(status["id"]) if isinstance(status, dict) and status.get("id") is not None else None,
            status_name=status.get("name") if isinstance(status, dict) else None,
        )

    def with_files(self, files: Iterable[MediaFile]) -> "Item":
        """Retorna un nuevo snapshot con los archivos agrupados por campo."""
        grouped: Dict[str, list[MediaFile]] = {}
        for media in files:
            grouped.setdefault(media.field, []).append(media)
        return replace(self, files={k: tuple(v) for k, v in grouped.items()})

    def iter_elements(self) -> Iterable[Element]:
        """Recorre los elementos de todos los tabs en el orden declarado."""
        for tab in self.config:
            yield from tab.elements

    def element_value(self, element: Element) -> Any:
        """
        Resuelve el valor efectivo de un elemento.

        - files: lista de MediaFile asociados al campo
        - choice_radio: label de la opcion seleccionada
        - choice_checkbox: lista de labels seleccionados
        - section: subtitulo
        - resto: valor crudo
        """
        if element.type == ElementType.FILES:
            return list(self.files.get(element.name, ()))
        if element.type == ElementType.CHOICE_RADIO:
            labels = element.selected_labels()
            return labels[0] if labels else ""
        if element.type == ElementType.CHOICE_CHECKBOX:
            return element.selected_labels()
        if element.type == ElementType.SECTION:
            return element.subtitle
        return element.value
