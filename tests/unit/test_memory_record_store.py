"""
Tests unitarios para InMemoryRecordStore.
"""
import pytest

from gcsync.shared.constants.sync_constants import META_ITEM_ID
from gcsync.shared.exceptions.sync import RecordStoreError


class TestRecords:
    """Create/update, revisiones y busquedas por meta."""

    def test_create_sets_defaults(self, record_store):
        record_id = record_store.create_or_update_record({"ID": 0, "post_title": "Hola Mundo"})

        record = record_store.get_record(record_id)
        assert record.record_type == "post"
        assert record.status == "draft"
        assert record.fields["post_name"] == "hola-mundo"
        assert record.created_at is not None

    def test_empty_content_is_rejected(self, record_store):
        with pytest.raises(RecordStoreError) as exc:
            record_store.create_or_update_record({"ID": 0, "post_title": "  "})
        assert exc.value.code == "empty_content"

    def test_unknown_id_is_rejected(self, record_store):
        with pytest.raises(RecordStoreError) as exc:
            record_store.create_or_update_record({"ID": 50, "post_title": "x"})
        assert exc.value.code == "invalid_post"

    def test_revisions_only_when_requested(self, record_store):
        """Verifica que solo se guarda revision si create_revision=True y hubo cambios."""
        record_id = record_store.create_or_update_record({"ID": 0, "post_title": "v1"})

        record_store.create_or_update_record({"ID": record_id, "post_title": "v2"}, create_revision=False)
        record_store.create_or_update_record({"ID": record_id, "post_title": "v3"})

        assert [r["post_title"] for r in record_store.revisions[record_id]] == ["v2"]

    def test_meta_and_terms_inputs(self, record_store):
        record_id = record_store.create_or_update_record(
            {
                "ID": 0,
                "post_title": "x",
                "meta_input": {"subtitulo": "s"},
                "tax_input": {"post_tag": ["A", "A", "B"]},
                "post_category": [record_store.insert_term("Noticias", "category"), 999],
            }
        )

        assert record_store.get_record_meta(record_id, "subtitulo") == "s"
        assert record_store.get_object_term_names(record_id, "post_tag") == ["A", "B"]
        assert record_store.get_object_term_names(record_id, "category") == ["Noticias"]

    def test_find_by_item_and_media_id(self, record_store):
        """Verifica que la busqueda por item excluye attachments y viceversa."""
        post_id = record_store.create_or_update_record({"ID": 0, "post_title": "x"})
        asset_id = record_store.create_or_update_record({"ID": 0, "post_type": "attachment", "post_status": "inherit"})
        record_store.update_record_meta(post_id, META_ITEM_ID, 10)
        record_store.update_record_meta(asset_id, META_ITEM_ID, "10")

        assert record_store.find_record_by_item_id(10).id == post_id
        assert record_store.find_asset_by_media_id(10).id == asset_id
        assert record_store.find_record_by_item_id(11) is None


class TestTerms:
    def test_insert_and_find(self, record_store):
        term_id = record_store.insert_term("Deportes Extremos", "category")

        assert record_store.find_term("deportes extremos", "category") == term_id
        assert record_store.find_term("deportes-extremos", "category") == term_id
        assert record_store.find_term(term_id, "category") == term_id
        assert record_store.find_term(term_id, "post_tag") is None

    def test_duplicate_and_empty_names(self, record_store):
        record_store.insert_term("A", "post_tag")
        with pytest.raises(RecordStoreError) as exc:
            record_store.insert_term("a", "post_tag")
        assert exc.value.code == "term_exists"
        with pytest.raises(RecordStoreError):
            record_store.insert_term("  ", "post_tag")

    def test_capabilities(self, record_store):
        assert record_store.is_taxonomy_hierarchical("category") is True
        assert record_store.is_taxonomy_hierarchical("post_tag") is False
        assert record_store.type_supports("post", "post-formats") is True
        assert record_store.type_supports("page", "post-formats") is False
