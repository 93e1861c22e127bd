"""
Interfaz del record store (host store).
Define el contrato que debe cumplir cualquier implementación.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from gcsync.domain.entities.record import StoredRecord
from gcsync.shared.constants.sync_constants import (
    META_ITEM_ID,
    META_ITEM_META,
    META_MAPPING_ID,
    META_THUMBNAIL_ID,
)


class IRecordStore(ABC):
    """
    Interfaz del record store.
    Define las operaciones de persistencia de records, metadata y terminos.

    Las operaciones de enlace con GatherContent (bind_item_id, metadata del
    item, imagen destacada) se implementan sobre get/update_record_meta.
    """

    @abstractmethod
    def get_record(self, record_id: int) -> Optional[StoredRecord]:
        """
        Obtiene un record por su ID.

        Args:
            record_id: ID del record

        Returns:
            Optional[StoredRecord]: Record encontrado o None
        """
        pass

    @abstractmethod
    def find_record_by_item_id(self, item_id: Any) -> Optional[StoredRecord]:
        """
        Busca el record (no attachment) enlazado a un item de GatherContent.

        Args:
            item_id: ID del item remoto

        Returns:
            Optional[StoredRecord]: Record encontrado o None
        """
        pass

    @abstractmethod
    def find_asset_by_media_id(self, media_id: Any) -> Optional[StoredRecord]:
        """
        Busca el attachment enlazado a un archivo de GatherContent.

        Args:
            media_id: ID del archivo remoto

        Returns:
            Optional[StoredRecord]: Attachment encontrado o None
        """
        pass

    @abstractmethod
    def create_or_update_record(self, data: Dict[str, Any], *, create_revision: bool = True) -> int:
        """
        Crea el record si data["ID"] es vacio, o lo actualiza.

        Args:
            data: Campos nativos + tax_input/meta_input/post_category opcionales
            create_revision: Si False, la actualizacion no genera revision

        Returns:
            int: ID del record

        Raises:
            RecordStoreError: Si el store rechaza los datos
        """
        pass

    @abstractmethod
    def get_record_meta(self, record_id: int, key: str) -> Any:
        """Retorna el valor de un meta key o None."""
        pass

    @abstractmethod
    def update_record_meta(self, record_id: int, key: str, value: Any) -> None:
        """Crea o actualiza un meta key."""
        pass

    @abstractmethod
    def sanitize_field(self, field: str, value: Any, record_id: int) -> Any:
        """Sanitizacion generica de un campo nativo."""
        pass

    @abstractmethod
    def type_supports(self, record_type: str, feature: str) -> bool:
        """Indica si un tipo de record soporta una caracteristica (ej: post-formats)."""
        pass

    @abstractmethod
    def is_taxonomy_hierarchical(self, taxonomy: str) -> bool:
        pass

    @abstractmethod
    def find_term(self, term: Any, taxonomy: str) -> Optional[int]:
        """
        Busca un termino por ID (int) o por nombre.

        Returns:
            Optional[int]: term_id o None si no existe
        """
        pass

    @abstractmethod
    def insert_term(self, name: str, taxonomy: str) -> int:
        """
        Crea un termino.

        Raises:
            RecordStoreError: Si el termino no se puede crear
        """
        pass

    # ------------------------------------------------------------------
    # Enlace con GatherContent (implementado sobre la metadata)
    # ------------------------------------------------------------------

    def get_record_item_metadata(self, record_id: int) -> Dict[str, Any]:
        meta = self.get_record_meta(record_id, META_ITEM_META)
        return dict(meta) if isinstance(meta, dict) else {}

    def set_record_item_metadata(self, record_id: int, meta: Dict[str, Any]) -> None:
        self.update_record_meta(record_id, META_ITEM_META, dict(meta))

    def bind_item_id(self, record_id: int, item_id: Any) -> None:
        self.update_record_meta(record_id, META_ITEM_ID, item_id)

    def bind_mapping_id(self, record_id: int, mapping_id: Any) -> None:
        self.update_record_meta(record_id, META_MAPPING_ID, mapping_id)

    def set_primary_visual(self, record_id: int, asset_id: int) -> None:
        self.update_record_meta(record_id, META_THUMBNAIL_ID, asset_id)
