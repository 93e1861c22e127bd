"""
Tests unitarios para MediaResolver (decision de sideload y protocolo).
"""
import os
from unittest.mock import Mock

import pytest

from gcsync.application.hooks import PullHooks
from gcsync.application.interfaces.media_storage import ImageMetadata
from gcsync.application.services.media_resolver import MediaResolver
from gcsync.domain.entities.payload import MediaReference
from gcsync.domain.entities.record import StoredRecord
from gcsync.shared.exceptions.sync import InvalidMediaURL, StorageError


def _ref(media_id=1, filename="foto.jpg", updated_at="2024-05-10 12:00:00", url=None):
    return MediaReference(
        id=media_id,
        field="el1",
        destination="featured_image",
        url=url if url is not None else f"https://files.example.com/{filename}",
        filename=filename,
        updated_at=updated_at,
    )


@pytest.fixture
def make_resolver(record_store, downloader, storage):
    def _factory(**kwargs):
        return MediaResolver(record_store, downloader, storage, **kwargs)
    return _factory


def _existing_asset(record_store, resolver, media, parent_id=1):
    asset_id = resolver.resolve(media, parent_id)
    record_store.bind_item_id(asset_id, media.id)
    record_store.set_record_item_metadata(asset_id, media.item_meta())
    return asset_id


class TestMediaResolverDecision:
    """Cuando se descarga, re-descarga o reusa un asset."""

    def test_new_media_is_sideloaded(self, make_resolver, downloader, record_store):
        """Verifica que un archivo sin asset enlazado se descarga y queda como hijo del record."""
        asset_id = make_resolver().resolve(_ref(), 77)

        assert downloader.urls == ["https://files.example.com/foto.jpg"]
        assert record_store.get_record(asset_id).parent_id == 77

    def test_same_timestamp_reuses_asset(self, make_resolver, downloader, record_store):
        """Verifica que con el mismo updated_at se reusa el asset sin descargar."""
        resolver = make_resolver()
        asset_id = _existing_asset(record_store, resolver, _ref())

        assert resolver.resolve(_ref(), 1) == asset_id
        assert len(downloader.urls) == 1

    def test_older_timestamp_reuses_asset(self, make_resolver, downloader, record_store):
        resolver = make_resolver()
        asset_id = _existing_asset(record_store, resolver, _ref())

        assert resolver.resolve(_ref(updated_at="2024-01-01 00:00:00"), 1) == asset_id
        assert len(downloader.urls) == 1

    def test_newer_timestamp_resideloads_same_asset(self, make_resolver, downloader, record_store, storage):
        """Verifica que un updated_at estrictamente mas nuevo reemplaza el archivo del mismo asset."""
        resolver = make_resolver()
        asset_id = _existing_asset(record_store, resolver, _ref())

        result = resolver.resolve(_ref(updated_at="2024-05-10 12:00:01"), 1)

        assert result == asset_id
        assert len(downloader.urls) == 2
        assert storage.regenerated == [asset_id]
        assert record_store.get_record(asset_id).fields["post_mime_type"] == "image/png"
        assert record_store.get_record(asset_id).parent_id == 1

    def test_missing_stored_timestamp_resideloads(self, make_resolver, downloader, record_store):
        """Verifica que si el asset no tiene updated_at guardado se re-descarga."""
        resolver = make_resolver()
        asset_id = resolver.resolve(_ref(), 1)
        record_store.bind_item_id(asset_id, 1)
        record_store.set_record_item_metadata(asset_id, {"field": "el1"})

        resolver.resolve(_ref(), 1)

        assert len(downloader.urls) == 2

    def test_replace_data_uses_embedded_metadata(self, make_resolver, record_store, storage):
        """Verifica que al reemplazar los datos se usa el titulo/caption de la imagen."""
        resolver = make_resolver(replace_data_on_update=True)
        asset_id = _existing_asset(record_store, resolver, _ref())
        storage.image_metadata = ImageMetadata(title="Atardecer", caption="En la costa")

        resolver.resolve(_ref(updated_at="2024-06-01 00:00:00"), 1)

        fields = record_store.get_record(asset_id).fields
        assert fields["post_title"] == "Atardecer"
        assert fields["post_content"] == "En la costa"

    def test_numeric_embedded_title_is_ignored(self, make_resolver, record_store, storage):
        """Verifica que un titulo embebido numerico no reemplaza al nombre del archivo."""
        hooks = PullHooks(replace_attachment_data_on_update=lambda default, asset: True)
        resolver = make_resolver(hooks=hooks)
        asset_id = _existing_asset(record_store, resolver, _ref())
        storage.image_metadata = ImageMetadata(title="2024", caption="")

        resolver.resolve(_ref(updated_at="2024-06-01 00:00:00"), 1)

        assert record_store.get_record(asset_id).fields["post_title"] == "foto"


class TestSideloadProtocol:
    """Validaciones y errores del sideload."""

    def test_empty_url_fails(self, make_resolver):
        with pytest.raises(InvalidMediaURL):
            make_resolver().sideload("", "foto.jpg", 1)

    def test_non_image_filename_fails_before_download(self, make_resolver, downloader):
        """Verifica que un archivo que no es imagen falla sin descargar."""
        with pytest.raises(InvalidMediaURL):
            make_resolver().resolve(_ref(filename="manual.pdf"), 1)
        assert downloader.urls == []

    def test_query_string_is_tolerated(self, make_resolver, storage):
        """Verifica que el nombre se toma antes del query string."""
        make_resolver().sideload("https://x/y.png?sig=1", "y.png?sig=1", 1)
        assert storage.stored[-1].name == "y.png"

    def test_storage_failure_removes_temp_file(self, record_store, downloader):
        """Verifica que si el almacenamiento falla se elimina el archivo temporal."""
        storage = Mock()
        storage.store_sideloaded.side_effect = StorageError("disco lleno")
        resolver = MediaResolver(record_store, downloader, storage)

        with pytest.raises(StorageError):
            resolver.sideload("https://x/foto.jpg", "foto.jpg", 1)

        assert not os.listdir(os.path.dirname(storage.store_sideloaded.call_args[0][0].tmp_path))

    def test_resideload_storage_failure_removes_temp_file(self, record_store, downloader):
        """Verifica que si el almacenamiento falla al reemplazar un asset se elimina el archivo temporal."""
        storage = Mock()
        storage.handle_sideload.side_effect = StorageError("imagen invalida")
        resolver = MediaResolver(record_store, downloader, storage)
        asset = StoredRecord(id=5, fields={"post_type": "attachment", "post_parent": 1, "post_date": "2024-01-01 10:00:00"})

        with pytest.raises(StorageError):
            resolver.resideload("https://x/foto.jpg", "foto.jpg", asset)

        tmp_path = storage.handle_sideload.call_args[0][0].tmp_path
        assert not os.path.exists(tmp_path)
        storage.insert_asset.assert_not_called()

    def test_asset_without_url_fails(self, record_store, downloader):
        """Verifica que un asset sin URL se considera un sideload fallido."""
        storage = Mock()
        storage.store_sideloaded.return_value = 9
        storage.asset_url.return_value = None
        resolver = MediaResolver(record_store, downloader, storage)

        with pytest.raises(StorageError) as exc:
            resolver.sideload("https://x/foto.jpg", "foto.jpg", 1)
        assert exc.value.message == "image_sideload_failed"
