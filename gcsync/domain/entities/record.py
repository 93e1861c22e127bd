"""
Entidad de dominio: record persistido en el host store (post o attachment).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from gcsync.shared.utils.datetime_utils import DateTimeUtils


@dataclass
class StoredRecord:
    """Vista de un record del host store: id + campos nativos."""

    id: int
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def record_type(self) -> str:
        return self.fields.get("post_type") or ""

    @property
    def status(self) -> str:
        return self.fields.get("post_status") or ""

    @property
    def parent_id(self) -> int:
        return int(self.fields.get("post_parent") or 0)

    @property
    def created_at(self) -> Optional[datetime]:
        """Fecha de creacion (post_date) o None si falta o su año es cero."""
        return DateTimeUtils.from_mysql_string(self.fields.get("post_date") or "")

    def as_payload_fields(self) -> Dict[str, Any]:
        """Copia de los campos, incluyendo ID, para sembrar un payload."""
        data = dict(self.fields)
        data["ID"] = self.id
        return data
