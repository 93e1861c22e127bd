"""
Tests unitarios para las entidades de dominio (item, mapping, payload, resultados).
"""
from conftest import make_file, make_item
from gcsync.domain.entities.item import Item, MediaFile
from gcsync.domain.entities.mapping import Destination, Mapping
from gcsync.domain.entities.payload import FRESH, RecordPayload
from gcsync.domain.entities.record import StoredRecord
from gcsync.domain.entities.results import PullOutcome, ResultKind
from gcsync.shared.constants.sync_constants import SinkType
from gcsync.shared.exceptions.sync import SkippedNotNewer


class TestItem:
    """Parseo del item de GatherContent."""

    def test_from_api_with_envelope(self):
        raw = make_item(
            elements=[
                {"name": "el1", "type": "text", "label": "Titulo", "value": "Hola"},
                {"name": "el2", "type": "section", "title": "Seccion", "subtitle": "<p>Sub</p>"},
                {
                    "name": "el3",
                    "type": "choice_radio",
                    "options": [{"name": "a", "label": "A"}, {"name": "b", "label": "B", "selected": True}],
                },
            ],
            status_id=928,
        )

        item = Item.from_api({"data": raw})

        assert item.id == 123
        assert item.updated_at == "2024-05-10 12:00:00"
        assert item.status_id == "928"
        values = [item.element_value(e) for e in item.iter_elements()]
        assert values == ["Hola", "<p>Sub</p>", "B"]

    def test_with_files_groups_by_field(self):
        item = Item.from_api(make_item(elements=[{"name": "el1", "type": "files"}]))
        files = [MediaFile.from_api(make_file(1, "el1")), MediaFile.from_api(make_file(2, "other"))]

        item_with_files = item.with_files(files)

        assert item.files == {}
        assert [f.id for f in item_with_files.element_value(next(item_with_files.iter_elements()))] == [1]


class TestMapping:
    """Documento de mapping y destinos."""

    def test_destination_parse(self):
        assert Destination.parse({"type": "wp-type-media", "value": "gallery"}) == Destination(SinkType.MEDIA, "gallery")
        assert Destination.parse({"type": "post", "value": ""}) is None
        assert Destination.parse({"type": "otro", "value": "x"}) is None
        assert Destination.parse("post_title") is None

    def test_status_rules(self):
        mapping = Mapping.from_dict(
            {"id": 1, "gc_status": {"5": {"wp": "publish", "after": 6}, "7": {"wp": ""}}, "mapping": {}}
        )
        item = Item.from_api(make_item(status_id=5))

        assert mapping.get_local_status_for_item(item) == "publish"
        assert mapping.get_item_new_status(item) == "6"
        assert mapping.get_item_new_status(Item.from_api(make_item(status_id=7))) is None
        assert mapping.get_local_status_for_item(Item.from_api(make_item())) is None

    def test_defaults(self):
        mapping = Mapping.from_dict({"id": 1})
        assert mapping.defaults() == {"post_author": 1, "post_status": "draft", "post_type": "post"}
        assert mapping.destinations == {}


class TestRecordPayload:
    """Campos "append" y serializacion."""

    def test_append_and_overwrite(self):
        payload = RecordPayload.fresh()
        payload.begin_append()

        payload.maybe_append("post_content", "a")
        payload.maybe_append("post_content", "b")
        payload.maybe_append("post_title", "x")
        payload.maybe_append("post_title", "y")
        payload.restore_untouched()

        assert payload.fields["post_content"] == "ab"
        assert payload.fields["post_title"] == "y"
        assert payload.fields["post_excerpt"] == ""

    def test_to_record_data_never_leaks_sentinel(self):
        payload = RecordPayload(fields={"ID": 3, "post_content": FRESH}, tax_input={"post_tag": ["a"]})

        data = payload.to_record_data()

        assert data == {"ID": 3, "post_content": "", "tax_input": {"post_tag": ["a"]}}

    def test_from_record(self):
        record = StoredRecord(id=9, fields={"post_title": "t", "post_date": "0000-00-00 00:00:00"})
        payload = RecordPayload.from_record(record)

        assert payload.record_id == 9
        assert payload.is_new is False
        assert record.created_at is None


class TestResults:
    def test_outcome_record_id_from_error(self):
        outcome = PullOutcome(kind=ResultKind.SKIPPED, item_id=1, error=SkippedNotNewer("Item", 1, 55))
        assert outcome.record_id == 55
        assert outcome.error.to_dict()["error"] == "ITEM_NOT_NEWER"
