"""
Preparacion de los datos de create_or_update_record, comun a todos los stores.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Tuple

from gcsync.shared.constants.sync_constants import ATTACHMENT_TYPE, CATEGORY_TAXONOMY, MYSQL_DATETIME_FORMAT
from gcsync.shared.exceptions.sync import RecordStoreError
from gcsync.shared.utils.text_utils import sanitize_record_field, slugify

RecordData = Tuple[int, Dict[str, Any], Dict[str, List[Any]], Dict[str, Any]]


def split_record_data(data: Dict[str, Any]) -> RecordData:
    """
    Separa los datos recibidos en (id, campos nativos, terminos, meta).

    post_category se trata como tax_input de la taxonomia "category".
    """
    fields = dict(data)
    tax_input = dict(fields.pop("tax_input", None) or {})
    meta_input = dict(fields.pop("meta_input", None) or {})
    categories = fields.pop("post_category", None)
    if categories:
        tax_input[CATEGORY_TAXONOMY] = list(categories)

    try:
        record_id = int(fields.pop("ID", 0) or 0)
    except (TypeError, ValueError):
        raise RecordStoreError("ID de record invalido", code="invalid_post", data={"ID": data.get("ID")})

    clean = {k: sanitize_record_field(k, v) for k, v in fields.items()}
    return record_id, clean, tax_input, meta_input


def check_content(fields: Dict[str, Any]) -> None:
    """Un record (no attachment) necesita titulo, contenido o extracto."""
    if fields.get("post_type") == ATTACHMENT_TYPE:
        return
    if not any(str(fields.get(k) or "").strip() for k in ("post_title", "post_content", "post_excerpt")):
        raise RecordStoreError(
            "El contenido, titulo y extracto estan vacios",
            code="empty_content",
        )


def complete_new_record(fields: Dict[str, Any], now: datetime, now_gmt: datetime) -> Dict[str, Any]:
    """Defaults de un record nuevo."""
    fields.setdefault("post_type", "post")
    fields.setdefault("post_status", "draft")
    fields.setdefault("post_parent", 0)
    fields.setdefault("post_title", "")
    fields.setdefault("post_content", "")
    fields.setdefault("post_excerpt", "")
    if not fields.get("post_date"):
        fields["post_date"] = now.strftime(MYSQL_DATETIME_FORMAT)
    if not fields.get("post_date_gmt"):
        fields["post_date_gmt"] = now_gmt.strftime(MYSQL_DATETIME_FORMAT)
    if not fields.get("post_name") and fields.get("post_title"):
        fields["post_name"] = slugify(fields["post_title"])
    return touch_modified(fields, now, now_gmt)


def touch_modified(fields: Dict[str, Any], now: datetime, now_gmt: datetime) -> Dict[str, Any]:
    fields["post_modified"] = now.strftime(MYSQL_DATETIME_FORMAT)
    fields["post_modified_gmt"] = now_gmt.strftime(MYSQL_DATETIME_FORMAT)
    return fields


def is_term_id(term: Any) -> bool:
    """Ids de termino: int (no bool) o string de digitos."""
    if isinstance(term, bool):
        return False
    if isinstance(term, int):
        return True
    return isinstance(term, str) and term.strip().isdigit()
