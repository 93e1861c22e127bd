"""
Resolucion de adjuntos de GatherContent a assets locales.

Decide si un archivo remoto necesita descargarse (nuevo), re-descargarse
(cambio en GatherContent) o si el asset local existente sirve tal cual.
Tambien implementa el protocolo de sideload sobre Downloader + AssetStorage.
"""
from __future__ import annotations

import os
import re
from typing import Any, Dict

from loguru import logger

from gcsync.application.hooks import PullHooks
from gcsync.application.interfaces.media_storage import AssetStorage, Downloader, TempUpload
from gcsync.domain.entities.payload import MediaReference
from gcsync.domain.entities.record import StoredRecord
from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.shared.constants.sync_constants import IMAGE_FILENAME_PATTERN
from gcsync.shared.exceptions.sync import InvalidMediaURL, StorageError
from gcsync.shared.utils.datetime_utils import DateTimeUtils, parse_timestamp
from gcsync.shared.utils.text_utils import is_numeric, slugify

_IMAGE_FILENAME_RE = re.compile(IMAGE_FILENAME_PATTERN, re.IGNORECASE)


def _unlink_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except OSError:
        pass


class MediaResolver:
    """Obtiene el asset local para una referencia de media."""

    def __init__(
        self,
        record_store: IRecordStore,
        downloader: Downloader,
        storage: AssetStorage,
        hooks: PullHooks | None = None,
        replace_data_on_update: bool = False,
    ) -> None:
        self._store = record_store
        self._downloader = downloader
        self._storage = storage
        self._hooks = hooks or PullHooks()
        self._replace_data_on_update = replace_data_on_update

    def resolve(self, media: MediaReference, record_id: int) -> int:
        """
        Retorna el ID del asset local para el archivo remoto.

        - Sin asset enlazado: sideload nuevo.
        - Con asset enlazado: se re-descarga solo si el updated_at remoto es
          estrictamente mas nuevo que el guardado.

        Raises:
            MediaException: Si el sideload falla
        """
        asset = self._store.find_asset_by_media_id(media.id)
        if asset is None:
            return self.sideload(media.url, media.filename, record_id)

        meta = self._store.get_record_item_metadata(asset.id)
        if meta:
            new_updated = parse_timestamp(media.updated_at)
            old_updated = parse_timestamp(meta.get("updated_at"))
            if new_updated is not None and (old_updated is None or new_updated > old_updated):
                replace_data = self._hooks.replace_attachment_data_on_update(
                    self._replace_data_on_update, asset
                )
                logger.info(f"[gc-pull] Media {media.id} cambio en GatherContent, reemplazando asset {asset.id}")
                return self.resideload(media.url, media.filename, asset, replace_data)

        return asset.id

    def sideload(self, file_url: str, file_name: str, parent_id: int) -> int:
        """
        Descarga una imagen y la registra como asset nuevo del record.

        Raises:
            InvalidMediaURL: URL vacia o extension no soportada
            DownloadError: Falla de descarga
            StorageError: Falla del almacenamiento permanente
        """
        if not file_url:
            raise InvalidMediaURL(file_name, file_url)

        upload = self._tmp_file(file_url, file_name)
        try:
            asset_id = self._storage.store_sideloaded(upload, parent_id)
        except StorageError:
            _unlink_quietly(upload.tmp_path)
            raise

        if not self._storage.asset_url(asset_id):
            raise StorageError("image_sideload_failed", details={"asset": asset_id})
        return asset_id

    def resideload(self, file_url: str, file_name: str, asset: StoredRecord, replace_data: bool = False) -> int:
        """
        Re-descarga el archivo y reemplaza el asset existente (mismo ID y parent).

        Args:
            file_url: URL remota
            file_name: Nombre del archivo
            asset: Attachment existente
            replace_data: Regenerar titulo/descripcion desde la metadata de la imagen
        """
        if not file_url:
            raise InvalidMediaURL(file_name, file_url)

        time = asset.created_at or DateTimeUtils.now_local()
        upload = self._tmp_file(file_url, file_name)
        try:
            stored = self._storage.handle_sideload(upload, time)
        except StorageError:
            _unlink_quietly(upload.tmp_path)
            raise

        data: Dict[str, Any] = asset.as_payload_fields()
        data["post_mime_type"] = stored.mime_type

        if replace_data:
            title = os.path.splitext(os.path.basename(stored.path))[0]
            content = ""
            image_meta = self._storage.read_image_metadata(stored.path)
            if image_meta:
                if image_meta.title.strip() and not is_numeric(slugify(image_meta.title)):
                    title = image_meta.title
                if image_meta.caption.strip():
                    content = image_meta.caption
            data["post_title"] = title
            data["post_content"] = content

        try:
            asset_id = self._storage.insert_asset(data, stored, asset.parent_id)
        except StorageError:
            _unlink_quietly(upload.tmp_path)
            raise

        self._storage.regenerate_metadata(asset_id, stored.path)
        return asset_id

    def _tmp_file(self, file_url: str, file_name: str) -> TempUpload:
        """Valida el nombre de archivo y descarga a una ubicacion temporal."""
        match = _IMAGE_FILENAME_RE.search(file_name or "")
        if not match:
            raise InvalidMediaURL(file_name, file_url)

        name = os.path.basename(match.group(0))
        tmp_path = self._downloader.download(file_url)
        return TempUpload(name=name, tmp_path=tmp_path)
