"""
Biblioteca local de assets (filesystem + record store).

Estructura en disco:

    MEDIA_ROOT/
        2024/
            05/
                portada.jpg
                portada-1.jpg

Cada archivo se registra como un record "attachment" (status "inherit") cuyo
parent es el record que lo usa. La ruta relativa se guarda en el meta
_wp_attached_file y las dimensiones en _wp_attachment_metadata.

Pillow se usa para validar que el archivo descargado es una imagen y para
leer dimensiones, titulo (IPTC 2:05) y caption (IPTC 2:120 o EXIF
ImageDescription).
"""

from __future__ import annotations

import os
import shutil
from datetime import datetime
from typing import Any, Dict, Optional

from loguru import logger
from PIL import Image, IptcImagePlugin, UnidentifiedImageError

from gcsync.application.interfaces.media_storage import ImageMetadata, StoredFile, TempUpload
from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.shared.constants.sync_constants import (
    ATTACHMENT_STATUS,
    ATTACHMENT_TYPE,
    META_ATTACHED_FILE,
    META_ATTACHMENT_METADATA,
)
from gcsync.shared.exceptions.base import AppException
from gcsync.shared.exceptions.sync import StorageError
from gcsync.shared.utils.datetime_utils import DateTimeUtils
from gcsync.shared.utils.text_utils import html_attributes, is_numeric, slugify

IPTC_TITLE = (2, 5)
IPTC_CAPTION = (2, 120)
EXIF_IMAGE_DESCRIPTION = 0x010E


def _iptc_text(info: Dict[Any, Any], key: tuple) -> str:
    value = info.get(key)
    if isinstance(value, list):
        value = value[0] if value else b""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").strip()
    return str(value or "").strip()


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except OSError:
        pass


class LocalMediaLibrary:
    """Almacenamiento permanente de assets en el filesystem local."""

    def __init__(self, record_store: IRecordStore, media_root: str, base_url: str = "/media") -> None:
        self._store = record_store
        self._root = os.path.abspath(media_root)
        self._base_url = base_url.rstrip("/")

    def store_sideloaded(self, upload: TempUpload, parent_id: int) -> int:
        """Mueve el archivo a la biblioteca y crea el attachment."""
        stored = self.handle_sideload(upload, DateTimeUtils.now_local())

        title = os.path.splitext(os.path.basename(stored.path))[0]
        content = ""
        image_meta = self.read_image_metadata(stored.path)
        if image_meta:
            if image_meta.title.strip() and not is_numeric(slugify(image_meta.title)):
                title = image_meta.title
            if image_meta.caption.strip():
                content = image_meta.caption

        data = {
            "ID": 0,
            "post_title": title,
            "post_content": content,
        }
        try:
            asset_id = self.insert_asset(data, stored, parent_id)
        except StorageError:
            # El archivo ya no esta en tmp: se limpia desde la biblioteca
            _remove_quietly(stored.path)
            raise
        self.regenerate_metadata(asset_id, stored.path)
        logger.info(f"[gc-pull] Asset {asset_id} creado desde {upload.name} (parent {parent_id})")
        return asset_id

    def handle_sideload(self, upload: TempUpload, time: datetime) -> StoredFile:
        """
        Valida la imagen y la mueve a MEDIA_ROOT/YYYY/MM con un nombre unico.

        Raises:
            StorageError: Archivo inexistente, no es imagen o no se pudo mover
        """
        if not os.path.isfile(upload.tmp_path):
            raise StorageError("El archivo temporal no existe", details={"file": upload.tmp_path})

        mime_type = self._validate_image(upload)

        subdir = f"{time:%Y}/{time:%m}"
        target_dir = os.path.join(self._root, subdir)
        try:
            os.makedirs(target_dir, exist_ok=True)
            filename = self._unique_filename(target_dir, upload.name)
            path = os.path.join(target_dir, filename)
            shutil.move(upload.tmp_path, path)
        except OSError as e:
            raise StorageError(f"No se pudo mover el archivo a la biblioteca: {e}", details={"file": upload.name}) from e

        relative = f"{subdir}/{filename}"
        return StoredFile(path=path, url=f"{self._base_url}/{relative}", mime_type=mime_type)

    def insert_asset(self, data: Dict[str, Any], stored: StoredFile, parent_id: int) -> int:
        """Crea o actualiza el attachment y guarda la ruta relativa del archivo."""
        record = dict(data)
        record.update(
            {
                "post_type": ATTACHMENT_TYPE,
                "post_status": ATTACHMENT_STATUS,
                "post_parent": parent_id or 0,
                "post_mime_type": stored.mime_type,
                "guid": stored.url,
            }
        )
        record.setdefault("ID", 0)

        try:
            asset_id = self._store.create_or_update_record(record)
        except AppException as e:
            raise StorageError(f"No se pudo registrar el asset: {e.message}", details={"file": stored.path}) from e

        self._store.update_record_meta(asset_id, META_ATTACHED_FILE, self._relative_path(stored.path))
        return asset_id

    def read_image_metadata(self, path: str) -> Optional[ImageMetadata]:
        """Lee titulo/caption embebidos (IPTC, con fallback EXIF para el caption)."""
        try:
            with Image.open(path) as image:
                info = IptcImagePlugin.getiptcinfo(image) or {}
                title = _iptc_text(info, IPTC_TITLE)
                caption = _iptc_text(info, IPTC_CAPTION)
                if not caption:
                    description = image.getexif().get(EXIF_IMAGE_DESCRIPTION)
                    if isinstance(description, bytes):
                        description = description.decode("utf-8", errors="replace")
                    caption = str(description or "").strip()
        except (OSError, SyntaxError, ValueError) as e:
            logger.debug(f"[gc-pull] Sin metadata legible en {path}: {e}")
            return None
        return ImageMetadata(title=title, caption=caption)

    def regenerate_metadata(self, asset_id: int, path: str) -> None:
        """Recalcula dimensiones y tamaño del archivo del asset."""
        try:
            with Image.open(path) as image:
                width, height = image.size
            filesize = os.path.getsize(path)
        except (OSError, SyntaxError, ValueError) as e:
            logger.warning(f"[gc-pull] No se pudo leer la imagen del asset {asset_id}: {e}")
            return

        relative = self._relative_path(path)
        self._store.update_record_meta(asset_id, META_ATTACHED_FILE, relative)
        self._store.update_record_meta(
            asset_id,
            META_ATTACHMENT_METADATA,
            {"width": width, "height": height, "file": relative, "filesize": filesize},
        )

    def asset_url(self, asset_id: int) -> Optional[str]:
        relative = self._store.get_record_meta(asset_id, META_ATTACHED_FILE)
        if not relative:
            return None
        return f"{self._base_url}/{relative}"

    def render_image(self, asset_id: int, size: str = "full", attrs: Optional[Dict[str, Any]] = None) -> str:
        """Markup <img> del asset, con los atributos escapados. Vacio si no hay archivo."""
        url = self.asset_url(asset_id)
        if not url:
            return ""

        img_attrs: Dict[str, Any] = {"src": url}
        meta = self._store.get_record_meta(asset_id, META_ATTACHMENT_METADATA)
        if isinstance(meta, dict) and meta.get("width") and meta.get("height"):
            img_attrs["width"] = meta["width"]
            img_attrs["height"] = meta["height"]

        record = self._store.get_record(asset_id)
        img_attrs["alt"] = ""
        img_attrs["class"] = f"attachment-{size} size-{size}"
        if record is not None and record.fields.get("post_excerpt"):
            img_attrs["alt"] = record.fields["post_excerpt"]
        img_attrs.update(attrs or {})

        return f"<img {html_attributes(img_attrs)} />"

    def _validate_image(self, upload: TempUpload) -> str:
        try:
            with Image.open(upload.tmp_path) as image:
                image_format = image.format
                image.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            raise StorageError(
                "El archivo descargado no es una imagen valida",
                details={"file": upload.name},
            ) from e
        return Image.MIME.get(image_format or "", "application/octet-stream")

    def _unique_filename(self, directory: str, name: str) -> str:
        stem, ext = os.path.splitext(os.path.basename(name))
        stem = slugify(stem) or "image"
        ext = ext.lower()
        candidate = f"{stem}{ext}"
        counter = 1
        while os.path.exists(os.path.join(directory, candidate)):
            candidate = f"{stem}-{counter}{ext}"
            counter += 1
        return candidate

    def _relative_path(self, path: str) -> str:
        return os.path.relpath(os.path.abspath(path), self._root).replace(os.sep, "/")
