"""
Configuración de fixtures para pytest.

Fakes de los colaboradores externos del pull (API de GatherContent,
descarga y almacenamiento de assets). El record store de los tests es el
InMemoryRecordStore real.
"""
from __future__ import annotations

import itertools
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from gcsync.application.interfaces.media_storage import ImageMetadata, StoredFile, TempUpload
from gcsync.domain.entities.item import Item, MediaFile
from gcsync.infrastructure.repositories.memory_record_store import InMemoryRecordStore
from gcsync.shared.constants.sync_constants import ATTACHMENT_STATUS, ATTACHMENT_TYPE, META_ATTACHED_FILE
from gcsync.shared.utils.text_utils import html_attributes


class FakeGatherContentApi:
    """API remoto en memoria: items crudos (formato v0.5) + archivos."""

    def __init__(self) -> None:
        self.items: Dict[Any, Dict[str, Any]] = {}
        self.files: Dict[Any, List[Dict[str, Any]]] = {}
        self.status_calls: List[tuple] = []
        self.fail_get_item: Optional[Exception] = None
        self.fail_status: Optional[Exception] = None

    def add_item(self, data: Dict[str, Any], files: Optional[List[Dict[str, Any]]] = None) -> None:
        self.items[data["id"]] = data
        self.files[data["id"]] = files or []

    def get_item(self, item_id: Any) -> Item:
        if self.fail_get_item is not None:
            raise self.fail_get_item
        if item_id not in self.items:
            raise RuntimeError(f"404 item {item_id}")
        return Item.from_api({"data": self.items[item_id]})

    def get_item_files(self, item_id: Any) -> List[MediaFile]:
        return [MediaFile.from_api(f) for f in self.files.get(item_id, [])]

    def set_item_status(self, item_id: Any, status_id: str) -> None:
        if self.fail_status is not None:
            raise self.fail_status
        self.status_calls.append((item_id, status_id))


class FakeDownloader:
    """Escribe bytes fijos en tmp_path y registra las URLs descargadas."""

    def __init__(self, tmp_dir: Path) -> None:
        self._tmp_dir = tmp_dir
        self._counter = itertools.count(1)
        self.urls: List[str] = []

    def download(self, url: str) -> str:
        self.urls.append(url)
        path = self._tmp_dir / f"download-{next(self._counter)}.tmp"
        path.write_bytes(b"fake-image")
        return str(path)


class FakeAssetStorage:
    """Almacenamiento de assets sobre el record store, sin filesystem real."""

    def __init__(self, store: InMemoryRecordStore) -> None:
        self.store = store
        self.stored: List[TempUpload] = []
        self.regenerated: List[int] = []
        self.image_metadata: Optional[ImageMetadata] = None

    def store_sideloaded(self, upload: TempUpload, parent_id: int) -> int:
        self.stored.append(upload)
        stored = StoredFile(path=f"/media/{upload.name}", url=f"/media/{upload.name}", mime_type="image/jpeg")
        return self.insert_asset({"ID": 0, "post_title": upload.name}, stored, parent_id)

    def handle_sideload(self, upload: TempUpload, time) -> StoredFile:
        self.stored.append(upload)
        return StoredFile(path=f"/media/{time:%Y/%m}/{upload.name}", url=f"/media/{upload.name}", mime_type="image/png")

    def insert_asset(self, data: Dict[str, Any], stored: StoredFile, parent_id: int) -> int:
        record = dict(data)
        record.update(
            {
                "post_type": ATTACHMENT_TYPE,
                "post_status": ATTACHMENT_STATUS,
                "post_parent": parent_id,
                "post_mime_type": stored.mime_type,
            }
        )
        asset_id = self.store.create_or_update_record(record)
        self.store.update_record_meta(asset_id, META_ATTACHED_FILE, stored.url)
        return asset_id

    def read_image_metadata(self, path: str) -> Optional[ImageMetadata]:
        return self.image_metadata

    def regenerate_metadata(self, asset_id: int, path: str) -> None:
        self.regenerated.append(asset_id)

    def asset_url(self, asset_id: int) -> Optional[str]:
        return self.store.get_record_meta(asset_id, META_ATTACHED_FILE)

    def render_image(self, asset_id: int, size: str = "full", attrs: Optional[Dict[str, Any]] = None) -> str:
        img_attrs = {"src": self.asset_url(asset_id), "data-size": size}
        img_attrs.update(attrs or {})
        return f"<img {html_attributes(img_attrs)} />"


def make_item(
    item_id: Any = 123,
    *,
    name: str = "Articulo de prueba",
    elements: Optional[List[Dict[str, Any]]] = None,
    updated_at: Any = "2024-05-10 12:00:00",
    created_at: Any = "2024-05-01 09:00:00",
    status_id: Any = None,
) -> Dict[str, Any]:
    """Item crudo de GatherContent con un unico tab."""
    data: Dict[str, Any] = {
        "id": item_id,
        "name": name,
        "created_at": {"date": created_at, "timezone": "UTC"},
        "updated_at": {"date": updated_at, "timezone": "UTC"},
        "config": [{"name": "tab1", "label": "Contenido", "elements": elements or []}],
    }
    if status_id is not None:
        data["status"] = {"data": {"id": status_id, "name": "Status"}}
    return data


def make_file(
    file_id: Any,
    field: str,
    *,
    filename: Optional[str] = None,
    updated_at: str = "2024-05-10 12:00:00",
) -> Dict[str, Any]:
    """Archivo crudo de GET /items/{id}/files."""
    filename = filename or f"imagen-{file_id}.jpg"
    return {
        "id": file_id,
        "field": field,
        "url": f"https://files.example.com/{filename}",
        "filename": filename,
        "size": 1024,
        "user_id": 7,
        "item_id": 123,
        "type": "field",
        "created_at": {"date": "2024-05-01 09:00:00"},
        "updated_at": {"date": updated_at},
    }


@pytest.fixture
def record_store() -> InMemoryRecordStore:
    return InMemoryRecordStore(hierarchical_taxonomies=("category", "region"), post_format_types=("post",))


@pytest.fixture
def api() -> FakeGatherContentApi:
    return FakeGatherContentApi()


@pytest.fixture
def downloader(tmp_path: Path) -> FakeDownloader:
    return FakeDownloader(tmp_path)


@pytest.fixture
def storage(record_store: InMemoryRecordStore) -> FakeAssetStorage:
    return FakeAssetStorage(record_store)
