"""
Interfaz del API remoto de GatherContent.

Este contrato existe para:
- Mantener los servicios de pull independientes del cliente HTTP.
- Facilitar tests unitarios sin red.
"""

from __future__ import annotations

from typing import Any, List, Protocol

from gcsync.domain.entities.item import Item, MediaFile


class GatherContentApi(Protocol):
    """
    Operaciones del API remoto que consume el pull.

    Implementaciones:
    - GatherContentClient (requests).
    - Fake/stub para tests.
    """

    def get_item(self, item_id: Any) -> Item:
        """Obtiene el snapshot del item. Lanza excepcion si no esta disponible."""

    def get_item_files(self, item_id: Any) -> List[MediaFile]:
        """Obtiene los archivos del item, sin cache."""

    def set_item_status(self, item_id: Any, status_id: str) -> None:
        """Cambia el status del item remoto."""
