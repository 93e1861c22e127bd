"""
Record store Postgres (psycopg) para:
- records (post/attachment) con sus campos nativos en JSONB
- meta por record
- terminos y relaciones record <-> termino
- revisiones

Se usa psycopg (v3). El caller controla la conexion y los commits: un pull
completo se confirma (o descarta) como una unidad.
"""

from __future__ import annotations

from importlib import resources
from typing import Any, Dict, Iterable, List, Optional

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

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


def load_schema_sql() -> str:
    return resources.files("gcsync.infrastructure.repositories").joinpath("schema.sql").read_text(encoding="utf-8")


class PostgresRecordStore(IRecordStore):
    def __init__(
        self,
        conn: psycopg.Connection,
        *,
        hierarchical_taxonomies: Iterable[str] = ("category",),
        post_format_types: Iterable[str] = ("post",),
    ) -> None:
        self._conn = conn
        self._hierarchical = set(hierarchical_taxonomies)
        self._post_format_types = set(post_format_types)

    @staticmethod
    def connect(dsn: str) -> psycopg.Connection:
        """
        Abre conexión (autocommit False). El caller controla commits.
        """
        try:
            return psycopg.connect(dsn, row_factory=dict_row)
        except psycopg.OperationalError as e:
            raise psycopg.OperationalError(
                f"{e}\n"
                f"Sugerencia: verifica que DATABASE_URL sea accesible desde donde ejecutas el script."
            ) from e

    def ensure_schema(self) -> None:
        with self._conn.cursor() as cur:
            cur.execute(load_schema_sql())

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def get_record(self, record_id: int) -> Optional[StoredRecord]:
        with self._conn.cursor() as cur:
            cur.execute("SELECT id, fields FROM gc_records WHERE id = %s", (int(record_id or 0),))
            row = cur.fetchone()
        return _to_record(row)

    def find_record_by_item_id(self, item_id: Any) -> Optional[StoredRecord]:
        return self._find_by_meta(META_ITEM_ID, item_id, attachment=False)

    def find_asset_by_media_id(self, media_id: Any) -> Optional[StoredRecord]:
        return self._find_by_meta(META_ITEM_ID, media_id, attachment=True)

    def create_or_update_record(self, data: Dict[str, Any], *, create_revision: bool = True) -> int:
        record_id, fields, tax_input, meta_input = split_record_data(data)
        now, now_gmt = DateTimeUtils.now_local(), DateTimeUtils.now_utc()

        try:
            if record_id:
                record_id = self._update_record(record_id, fields, now, now_gmt, create_revision)
            else:
                record_id = self._insert_record(fields, now, now_gmt)

            for taxonomy, terms in tax_input.items():
                self._set_object_terms(record_id, taxonomy, terms)
            for key, value in meta_input.items():
                self.update_record_meta(record_id, key, value)
        except psycopg.Error as e:
            raise RecordStoreError(f"Error de base de datos: {e}", code="db_error", data={"ID": record_id}) from e
        return record_id

    def _insert_record(self, fields: Dict[str, Any], now, now_gmt) -> int:
        fields = complete_new_record(fields, now, now_gmt)
        check_content(fields)
        with self._conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO gc_records (post_type, post_status, post_parent, fields)
                VALUES (%s, %s, %s, %s)
                RETURNING id
                """,
                (fields["post_type"], fields["post_status"], int(fields.get("post_parent") or 0), Jsonb(fields)),
            )
            row = cur.fetchone()
        if not row:
            raise RecordStoreError("No se pudo insertar el record", code="db_insert_error")
        return int(row["id"])

    def _update_record(self, record_id: int, fields: Dict[str, Any], now, now_gmt, create_revision: bool) -> int:
        existing = self.get_record(record_id)
        if existing is None:
            raise RecordStoreError("ID de record invalido", code="invalid_post", data={"ID": record_id})

        merged = {**existing.fields, **fields}
        check_content(merged)
        with self._conn.cursor() as cur:
            if create_revision and merged != existing.fields:
                cur.execute(
                    "INSERT INTO gc_record_revisions (record_id, fields) VALUES (%s, %s)",
                    (record_id, Jsonb(existing.fields)),
                )
            merged = touch_modified(merged, now, now_gmt)
            cur.execute(
                """
                UPDATE gc_records
                SET post_type = %s,
                    post_status = %s,
                    post_parent = %s,
                    fields = %s,
                    updated_at = now()
                WHERE id = %s
                """,
                (
                    merged.get("post_type") or "post",
                    merged.get("post_status") or "draft",
                    int(merged.get("post_parent") or 0),
                    Jsonb(merged),
                    record_id,
                ),
            )
        return record_id

    # ------------------------------------------------------------------
    # Meta
    # ------------------------------------------------------------------

    def get_record_meta(self, record_id: int, key: str) -> Any:
        with self._conn.cursor() as cur:
            cur.execute(
                "SELECT meta_value FROM gc_record_meta WHERE record_id = %s AND meta_key = %s",
                (int(record_id or 0), key),
            )
            row = cur.fetchone()
        return row["meta_value"] if row else None

    def update_record_meta(self, record_id: int, key: str, value: Any) -> None:
        with self._conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO gc_record_meta (record_id, meta_key, meta_value)
                VALUES (%s, %s, %s)
                ON CONFLICT (record_id, meta_key)
                DO UPDATE SET meta_value = EXCLUDED.meta_value
                """,
                (int(record_id), key, Jsonb(value)),
            )

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
        with self._conn.cursor() as cur:
            if isinstance(term, int) and not isinstance(term, bool):
                cur.execute(
                    "SELECT id FROM gc_terms WHERE id = %s AND taxonomy = %s",
                    (term, taxonomy),
                )
            else:
                name = str(term or "").strip()
                if not name:
                    return None
                cur.execute(
                    """
                    SELECT id FROM gc_terms
                    WHERE taxonomy = %s
                      AND (lower(name) = lower(%s) OR slug = %s)
                    ORDER BY id
                    LIMIT 1
                    """,
                    (taxonomy, name, slugify(name)),
                )
            row = cur.fetchone()
        return int(row["id"]) if row else None

    def insert_term(self, name: str, taxonomy: str) -> int:
        name = str(name or "").strip()
        if not name:
            raise RecordStoreError("Nombre de termino vacio", code="empty_term_name")

        with self._conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO gc_terms (taxonomy, name, slug)
                VALUES (%s, %s, %s)
                ON CONFLICT (taxonomy, slug) DO NOTHING
                RETURNING id
                """,
                (taxonomy, name, slugify(name) or name.lower()),
            )
            row = cur.fetchone()
        if not row:
            raise RecordStoreError(
                "Ya existe un termino con ese nombre",
                code="term_exists",
                data={"term_id": self.find_term(name, taxonomy)},
            )
        return int(row["id"])

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

        with self._conn.cursor() as cur:
            cur.execute(
                "DELETE FROM gc_term_relationships WHERE record_id = %s AND taxonomy = %s",
                (record_id, taxonomy),
            )
            if term_ids:
                cur.executemany(
                    """
                    INSERT INTO gc_term_relationships (record_id, term_id, taxonomy, position)
                    VALUES (%s, %s, %s, %s)
                    """,
                    [(record_id, term_id, taxonomy, pos) for pos, term_id in enumerate(term_ids)],
                )

    def _find_by_meta(self, key: str, value: Any, *, attachment: bool) -> Optional[StoredRecord]:
        if value is None or value == "":
            return None
        type_filter = "r.post_type = %s" if attachment else "r.post_type <> %s"
        with self._conn.cursor() as cur:
            cur.execute(
                f"""
                SELECT r.id, r.fields
                FROM gc_records r
                JOIN gc_record_meta m ON m.record_id = r.id
                WHERE m.meta_key = %s
                  AND m.meta_value #>> '{{}}' = %s
                  AND {type_filter}
                ORDER BY r.id
                LIMIT 1
                """,
                (key, str(value), ATTACHMENT_TYPE),
            )
            row = cur.fetchone()
        return _to_record(row)


def _to_record(row: Optional[Dict[str, Any]]) -> Optional[StoredRecord]:
    if not row:
        return None
    return StoredRecord(id=int(row["id"]), fields=dict(row.get("fields") or {}))
