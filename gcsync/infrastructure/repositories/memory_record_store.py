"""
Record store en memoria.

Implementa el contrato completo de IRecordStore sobre diccionarios: sirve
para dry runs del CLI (--memory) y como store real en los tests.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Iterable, List, Optional

from gcsync.domain.entities.record import StoredRecord
from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.infrastructure.repositories.record_fields import (
    check_content,
    complete_new_record,
    is_term_id,
    split_record_data,
    touch_modified,
)
from gcsync.shared.constants.sync_constants import ATTACHMENT_TYPE, META_ITEM_ID
from gcsync.shared.exceptions.sync import RecordStoreError
from gcsync.shared.utils.datetime_utils import DateTimeUtils
from gcsync.shared.utils.text_utils import sanitize_record_field, slugify


class InMemoryRecordStore(IRecordStore):
    """Record store basado en dicts. No es thread-safe."""

    def __init__(
        self,
        *,
        hierarchical_taxonomies: Iterable[str] = ("category",),
        post_format_types: Iterable[str] = ("post",),
    ) -> None:
        self.records: Dict[int, Dict[str, Any]] = {}
        self.meta: Dict[int, Dict[str, Any]] = {}
        self.terms: Dict[int, Dict[str, Any]] = {}
        self.relationships: Dict[int, Dict[str, List[int]]] = {}
        self.revisions: Dict[int, List[Dict[str, Any]]] = {}
        self._hierarchical = set(hierarchical_taxonomies)
        self._post_format_types = set(post_format_types)
        self._next_record_id = 1
        self._next_term_id = 1

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def get_record(self, record_id: int) -> Optional[StoredRecord]:
        fields = self.records.get(int(record_id or 0))
        if fields is None:
            return None
        return StoredRecord(id=int(record_id), fields=copy.deepcopy(fields))

    def find_record_by_item_id(self, item_id: Any) -> Optional[StoredRecord]:
        return self._find_by_meta(META_ITEM_ID, item_id, attachment=False)

    def find_asset_by_media_id(self, media_id: Any) -> Optional[StoredRecord]:
        return self._find_by_meta(META_ITEM_ID, media_id, attachment=True)

    def create_or_update_record(self, data: Dict[str, Any], *, create_revision: bool = True) -> int:
        record_id, fields, tax_input, meta_input = split_record_data(data)
        now, now_gmt = DateTimeUtils.now_local(), DateTimeUtils.now_utc()

        if record_id:
            existing = self.records.get(record_id)
            if existing is None:
                raise RecordStoreError("ID de record invalido", code="invalid_post", data={"ID": record_id})
            merged = {**existing, **fields}
            check_content(merged)
            if create_revision and merged != existing:
                self.revisions.setdefault(record_id, []).append(copy.deepcopy(existing))
            self.records[record_id] = touch_modified(merged, now, now_gmt)
        else:
            fields = complete_new_record(fields, now, now_gmt)
            check_content(fields)
            record_id = self._next_record_id
            self._next_record_id += 1
            self.records[record_id] = fields

        for taxonomy, terms in tax_input.items():
            self._set_object_terms(record_id, taxonomy, terms)
        for key, value in meta_input.items():
            self.update_record_meta(record_id, key, value)
        return record_id

    # ------------------------------------------------------------------
    # Meta
    # ------------------------------------------------------------------

    def get_record_meta(self, record_id: int, key: str) -> Any:
        return copy.deepcopy(self.meta.get(int(record_id or 0), {}).get(key))

    def update_record_meta(self, record_id: int, key: str, value: Any) -> None:
        self.meta.setdefault(int(record_id), {})[key] = copy.deepcopy(value)

    # ------------------------------------------------------------------
    # Capacidades y sanitizacion
    # ------------------------------------------------------------------

    def sanitize_field(self, field: str, value: Any, record_id: int) -> Any:
        return sanitize_record_field(field, value)

    def type_supports(self, record_type: str, feature: str) -> bool:
        if feature == "post-formats":
            return record_type in self._post_format_types
        return False

    def is_taxonomy_hierarchical(self, taxonomy: str) -> bool:
        return taxonomy in self._hierarchical

    # ------------------------------------------------------------------
    # Terminos
    # ------------------------------------------------------------------

    def find_term(self, term: Any, taxonomy: str) -> Optional[int]:
        if isinstance(term, int) and not isinstance(term, bool):
            found = self.terms.get(term)
            return term if found and found["taxonomy"] == taxonomy else None

        name = str(term or "").strip()
        if not name:
            return None
        slug = slugify(name)
        for term_id, data in self.terms.items():
            if data["taxonomy"] != taxonomy:
                continue
            if data["name"].lower() == name.lower() or data["slug"] == slug:
                return term_id
        return None

    def insert_term(self, name: str, taxonomy: str) -> int:
        name = str(name or "").strip()
        if not name:
            raise RecordStoreError("Nombre de termino vacio", code="empty_term_name")
        existing = self.find_term(name, taxonomy)
        if existing is not None:
            raise RecordStoreError(
                "Ya existe un termino con ese nombre",
                code="term_exists",
                data={"term_id": existing},
            )
        term_id = self._next_term_id
        self._next_term_id += 1
        self.terms[term_id] = {"taxonomy": taxonomy, "name": name, "slug": slugify(name) or str(term_id)}
        return term_id

    def get_object_terms(self, record_id: int, taxonomy: str) -> List[int]:
        return list(self.relationships.get(record_id, {}).get(taxonomy, []))

    def get_object_term_names(self, record_id: int, taxonomy: str) -> List[str]:
        return [self.terms[t]["name"] for t in self.get_object_terms(record_id, taxonomy)]

    def _set_object_terms(self, record_id: int, taxonomy: str, terms: Iterable[Any]) -> None:
        """Reemplaza los terminos del record en la taxonomia (ids o nombres)."""
        hierarchical = self.is_taxonomy_hierarchical(taxonomy)
        term_ids: List[int] = []
        for term in terms:
            if hierarchical and is_term_id(term):
                term_id = self.find_term(int(term), taxonomy)
            else:
                term_id = self.find_term(term, taxonomy)
                if term_id is None and str(term or "").strip():
                    term_id = self.insert_term(str(term), taxonomy)
            if term_id is not None and term_id not in term_ids:
                term_ids.append(term_id)
        self.relationships.setdefault(record_id, {})[taxonomy] = term_ids

    def _find_by_meta(self, key: str, value: Any, *, attachment: bool) -> Optional[StoredRecord]:
        if value is None or value == "":
            return None
        for record_id in sorted(self.meta):
            if str(self.meta[record_id].get(key)) != str(value):
                continue
            fields = self.records.get(record_id)
            if fields is None:
                continue
            if (fields.get("post_type") == ATTACHMENT_TYPE) == attachment:
                return StoredRecord(id=record_id, fields=copy.deepcopy(fields))
        return None
