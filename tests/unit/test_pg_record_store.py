from __future__ import annotations

import pytest

pytest.importorskip("psycopg")

from psycopg.types.json import Jsonb

from gcsync.infrastructure.repositories.pg_record_store import PostgresRecordStore, load_schema_sql
from gcsync.shared.constants.sync_constants import META_ITEM_ID
from gcsync.shared.exceptions.sync import RecordStoreError


class _DummyCursor:
    def __init__(self, rows) -> None:
        self.executed: list[tuple[str, object]] = []
        self.executemany_values = None
        self._rows = list(rows)

    def execute(self, sql: str, params=None) -> None:
        self.executed.append((sql, params))

    def executemany(self, sql: str, values) -> None:
        self.executed.append((sql, None))
        self.executemany_values = values

    def fetchone(self):
        return self._rows.pop(0) if self._rows else None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class _DummyConn:
    def __init__(self, rows=()) -> None:
        self._cursor = _DummyCursor(rows)

    def cursor(self):
        return self._cursor


def _sqls(conn: _DummyConn) -> list[str]:
    return [" ".join(sql.split()) for sql, _ in conn._cursor.executed]


def test_insert_record_returns_id_and_writes_meta() -> None:
    conn = _DummyConn(rows=[{"id": 7}])
    store = PostgresRecordStore(conn)

    record_id = store.create_or_update_record(
        {"ID": 0, "post_title": "Hola", "meta_input": {"subtitulo": "s"}}
    )

    assert record_id == 7
    sqls = _sqls(conn)
    assert sqls[0].startswith("INSERT INTO gc_records (post_type, post_status, post_parent, fields)")
    assert "RETURNING id" in sqls[0]
    assert "ON CONFLICT (record_id, meta_key) DO UPDATE SET meta_value = EXCLUDED.meta_value" in sqls[1]
    params = conn._cursor.executed[0][1]
    assert params[:3] == ("post", "draft", 0)
    assert isinstance(params[3], Jsonb)


def test_update_creates_revision_only_when_requested() -> None:
    existing = {"id": 7, "fields": {"post_title": "v1", "post_type": "post", "post_status": "draft"}}

    conn = _DummyConn(rows=[existing])
    PostgresRecordStore(conn).create_or_update_record({"ID": 7, "post_title": "v2"})
    assert any("INSERT INTO gc_record_revisions" in s for s in _sqls(conn))
    assert any(s.startswith("UPDATE gc_records") for s in _sqls(conn))

    conn = _DummyConn(rows=[existing])
    PostgresRecordStore(conn).create_or_update_record({"ID": 7, "post_title": "v2"}, create_revision=False)
    assert not any("gc_record_revisions" in s for s in _sqls(conn))


def test_update_unknown_record_fails() -> None:
    conn = _DummyConn(rows=[])
    with pytest.raises(RecordStoreError) as exc:
        PostgresRecordStore(conn).create_or_update_record({"ID": 99, "post_title": "x"})
    assert exc.value.code == "invalid_post"


def test_find_by_item_id_filters_attachments() -> None:
    conn = _DummyConn(rows=[{"id": 3, "fields": {"post_type": "post"}}])
    record = PostgresRecordStore(conn).find_record_by_item_id(123)

    assert record.id == 3
    sql, params = conn._cursor.executed[0]
    assert "m.meta_value #>> '{}' = %s" in sql
    assert "r.post_type <> %s" in sql
    assert params == (META_ITEM_ID, "123", "attachment")


def test_hierarchical_terms_are_resolved_and_replaced() -> None:
    # find_term(5) -> existe; find_term("Nuevo") -> no existe; insert_term -> 8
    conn = _DummyConn(rows=[{"id": 7}, {"id": 5}, None, {"id": 8}])
    store = PostgresRecordStore(conn, hierarchical_taxonomies=("category",))

    store.create_or_update_record({"ID": 0, "post_title": "x", "post_category": [5, "Nuevo"]})

    sqls = _sqls(conn)
    assert any(s.startswith("INSERT INTO gc_terms") and "ON CONFLICT (taxonomy, slug) DO NOTHING" in s for s in sqls)
    assert "DELETE FROM gc_term_relationships WHERE record_id = %s AND taxonomy = %s" in sqls
    assert conn._cursor.executemany_values == [(7, 5, "category", 0), (7, 8, "category", 1)]


def test_duplicate_term_raises_term_exists() -> None:
    conn = _DummyConn(rows=[None, {"id": 4}])
    with pytest.raises(RecordStoreError) as exc:
        PostgresRecordStore(conn).insert_term("A", "post_tag")
    assert exc.value.code == "term_exists"
    assert exc.value.data == {"term_id": 4}


def test_schema_sql_is_packaged() -> None:
    sql = load_schema_sql()
    for table in ("gc_records", "gc_record_meta", "gc_terms", "gc_term_relationships", "gc_record_revisions"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in sql
