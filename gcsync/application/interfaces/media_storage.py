"""
Interfaces de descarga temporal y almacenamiento permanente de assets.

El MediaResolver orquesta el protocolo de sideload sobre estos contratos:
descarga -> almacenamiento permanente -> registro del attachment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol


@dataclass(frozen=True)
class TempUpload:
    """Archivo descargado a una ubicacion temporal."""

    name: str
    tmp_path: str


@dataclass(frozen=True)
class StoredFile:
    """Archivo ya movido al almacenamiento permanente."""

    path: str
    url: str
    mime_type: str


@dataclass(frozen=True)
class ImageMetadata:
    """Metadata embebida (IPTC/EXIF) de una imagen."""

    title: str = ""
    caption: str = ""


class Downloader(Protocol):
    """Descarga un archivo remoto a un archivo temporal."""

    def download(self, url: str) -> str:
        """
        Returns:
            str: Ruta del archivo temporal

        Raises:
            DownloadError: Si la descarga falla
        """


class AssetStorage(Protocol):
    """
    Almacenamiento permanente de assets.

    Implementaciones:
    - LocalMediaLibrary (filesystem + record store).
    - Fake/stub para tests.
    """

    def store_sideloaded(self, upload: TempUpload, parent_id: int) -> int:
        """Mueve el archivo al almacenamiento y crea el attachment. Retorna su ID."""

    def handle_sideload(self, upload: TempUpload, time: datetime) -> StoredFile:
        """Mueve el archivo al almacenamiento (carpeta segun `time`) sin crear attachment."""

    def insert_asset(self, data: Dict[str, Any], stored: StoredFile, parent_id: int) -> int:
        """Crea o actualiza (si data["ID"]) el attachment para un archivo almacenado."""

    def read_image_metadata(self, path: str) -> Optional[ImageMetadata]:
        """Lee titulo/caption embebidos en la imagen."""

    def regenerate_metadata(self, asset_id: int, path: str) -> None:
        """Recalcula la metadata derivada del asset (dimensiones, tamaño...)."""

    def asset_url(self, asset_id: int) -> Optional[str]:
        """URL publica del asset o None si no tiene archivo."""

    def render_image(self, asset_id: int, size: str = "full", attrs: Optional[Dict[str, Any]] = None) -> str:
        """Markup <img> del asset."""
