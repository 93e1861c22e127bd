"""
Sanitizacion especifica de campos nativos del record.

Reglas por campo:
- ID: nunca se puede asignar desde contenido mapeado.
- Fechas: timestamp numerico o string parseable -> "YYYY-MM-DD HH:MM:SS"
  (UTC para las variantes _gmt, hora local para el resto).
- post_format: solo si el tipo de record soporta post-formats.
- post_title: se elimina el markup salvo un set chico de tags inline.
- Resto: sanitizacion generica del record store.
"""
from __future__ import annotations

from typing import Any, Dict

from dateutil import parser as date_parser

from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.shared.constants.sync_constants import DATE_FIELDS, TITLE_ALLOWED_TAGS
from gcsync.shared.exceptions.sync import FieldSanitizeError
from gcsync.shared.utils.datetime_utils import format_mysql_datetime
from gcsync.shared.utils.text_utils import is_numeric, strip_tags


class FieldSanitizer:
    """Valida y limpia valores destinados a campos nativos."""

    def __init__(self, record_store: IRecordStore) -> None:
        self._store = record_store

    def sanitize(self, field: str, value: Any, payload_fields: Dict[str, Any]) -> Any:
        """
        Sanitiza el valor de un campo nativo.

        Args:
            field: Nombre del campo nativo
            value: Valor mapeado
            payload_fields: Campos actuales del payload (ID, post_type...)

        Returns:
            Any: Valor sanitizado

        Raises:
            FieldSanitizeError: Si el valor no es valido para el campo
        """
        if field == "ID":
            raise FieldSanitizeError(field, "No se pueden sobreescribir IDs de records")

        if not value:
            return value

        record_id = int(payload_fields.get("ID") or 0)

        if field in DATE_FIELDS:
            return self._sanitize_date(field, value)

        if field == "post_format":
            record_type = payload_fields.get("post_type")
            if record_type and not self._store.type_supports(record_type, "post-formats"):
                raise FieldSanitizeError(
                    field, f"El tipo de record {record_type} no soporta post-formats."
                )
            value = strip_tags(value, TITLE_ALLOWED_TAGS)
        elif field == "post_title":
            value = strip_tags(value, TITLE_ALLOWED_TAGS)

        return self._store.sanitize_field(field, value, record_id)

    @staticmethod
    def _sanitize_date(field: str, value: Any) -> str:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise FieldSanitizeError(
                field, f"El campo {field} requiere un timestamp numerico o un string de fecha."
            )

        if is_numeric(value):
            timestamp = float(value)
        else:
            try:
                # Fechas sin zona se interpretan en hora local
                timestamp = date_parser.parse(value).timestamp()
            except (ValueError, OverflowError) as e:
                raise FieldSanitizeError(
                    field, f"No se pudo interpretar '{value}' como fecha para {field}."
                ) from e

        try:
            return format_mysql_datetime(timestamp, gmt="_gmt" in field)
        except (OverflowError, OSError, ValueError) as e:
            raise FieldSanitizeError(
                field, f"El timestamp '{value}' esta fuera de rango para {field}."
            ) from e
