"""
Entidades de dominio: payload de record en construccion y referencias de media.

El RecordPayload pertenece a un unico pull: se construye durante el mapeo,
se persiste, y luego se actualiza con los reemplazos de adjuntos.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from gcsync.domain.entities.item import MediaFile
from gcsync.domain.entities.record import StoredRecord
from gcsync.shared.constants.sync_constants import APPEND_FIELDS, media_token


class _FreshValue:
    """Marca de campo "append" que todavia no recibio valores en este pull."""

    def __repr__(self) -> str:
        return "<fresh>"


FRESH = _FreshValue()


@dataclass(frozen=True)
class MediaReference:
    """Descriptor de un adjunto a sideloadear durante el pase de placement."""

    id: Any
    field: str
    destination: str
    url: str
    filename: str
    size: int = 0
    user_id: Any = None
    item_id: Any = None
    type: str = "field"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    position: int = 0

    @classmethod
    def from_file(cls, media: MediaFile, *, destination: str, position: int = 0) -> "MediaReference":
        return cls(
            id=media.id,
            field=media.field,
            destination=destination,
            url=media.url,
            filename=media.filename,
            size=media.size,
            user_id=media.user_id,
            item_id=media.item_id,
            type=media.type,
            created_at=media.created_at,
            updated_at=media.updated_at,
            position=position,
        )

    @property
    def token(self) -> str:
        return media_token(self.id)

    def item_meta(self) -> Dict[str, Any]:
        """Metadata de enlace que se guarda en el asset local."""
        return {
            "user_id": self.user_id,
            "item_id": self.item_id,
            "field": self.field,
            "type": self.type,
            "url": self.url,
            "filename": self.filename,
            "size": self.size,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class AttachmentGroup:
    """Adjuntos de un elemento, con su destino. `media` es None si el valor no era una lista."""

    destination: str
    media: Optional[Tuple[MediaReference, ...]]


@dataclass
class RecordPayload:
    """Payload del record destino, previo a persistir."""

    fields: Dict[str, Any] = field(default_factory=dict)
    tax_input: Dict[str, List[Any]] = field(default_factory=dict)
    meta_input: Dict[str, Any] = field(default_factory=dict)
    attachments: List[AttachmentGroup] = field(default_factory=list)
    _backup: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def fresh(cls) -> "RecordPayload":
        return cls(fields={"ID": 0})

    @classmethod
    def from_record(cls, record: StoredRecord) -> "RecordPayload":
        return cls(fields=record.as_payload_fields())

    @property
    def record_id(self) -> int:
        return int(self.fields.get("ID") or 0)

    @property
    def is_new(self) -> bool:
        return not self.record_id

    def get(self, name: str, default: Any = "") -> Any:
        value = self.fields.get(name, default)
        return default if value is FRESH else value

    def begin_append(self, names: Iterable[str] = APPEND_FIELDS) -> None:
        """Respaldar los campos "append" y marcarlos como frescos."""
        for name in names:
            self._backup[name] = self.fields.get(name, "")
            self.fields[name] = FRESH

    def restore_untouched(self) -> None:
        """Restaurar el valor previo de los campos "append" que nadie escribio."""
        for name, value in self._backup.items():
            if self.fields.get(name) is FRESH:
                self.fields[name] = value
        self._backup.clear()

    def maybe_append(self, name: str, value: Any, target: Optional[Dict[str, Any]] = None) -> None:
        """
        Si el campo admite append, concatena el valor; si no, lo sobreescribe.

        Args:
            name: Campo o meta key
            value: Valor a escribir
            target: Diccionario destino (por defecto los campos nativos)
        """
        target = self.fields if target is None else target
        if name in APPEND_FIELDS:
            current = target.get(name, "")
            if current is FRESH or current is None:
                current = ""
            target[name] = f"{current}{value if value is not None else ''}"
        else:
            target[name] = value

    def pop_attachments(self) -> List[AttachmentGroup]:
        attachments, self.attachments = self.attachments, []
        return attachments

    def to_record_data(self) -> Dict[str, Any]:
        """Datos planos para create_or_update_record."""
        data = {k: ("" if v is FRESH else v) for k, v in self.fields.items()}
        if self.tax_input:
            data["tax_input"] = {k: list(v) for k, v in self.tax_input.items()}
        if self.meta_input:
            data["meta_input"] = dict(self.meta_input)
        return data
