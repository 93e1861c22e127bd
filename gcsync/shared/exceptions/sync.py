"""
Excepciones del pipeline de pull (GatherContent -> record store).

Dos familias:
- Errores de pipeline (ConfigError, FetchError, PersistError): fatales,
  abortan el pull y llegan al caller.
- Errores por elemento/adjunto (FieldSanitizeError, MediaException): no
  fatales, se registran como "skipped" y el pull continua.

SkippedNotNewer no es un error: es la señal de no-op cuando el record local
ya tiene los cambios mas recientes.
"""
from typing import Any, Dict, Optional

from gcsync.shared.exceptions.base import AppException


class SyncException(AppException):
    """Excepción base para errores a nivel de pipeline."""

    def __init__(self, message: str, error_code: str = "SYNC_ERROR", details=None):
        super().__init__(message=message, error_code=error_code, details=details)


class ConfigError(SyncException):
    """El mapping no es utilizable (sin id o sin tabla de destinos)."""

    def __init__(self, message: str, mapping_id: Any = None):
        super().__init__(
            message=message,
            error_code="MAPPING_CONFIG_ERROR",
            details={"mapping": mapping_id} if mapping_id is not None else None,
        )


class FetchError(SyncException):
    """El item remoto (o sus archivos) no esta disponible."""

    def __init__(self, item_id: Any, reason: str):
        super().__init__(
            message=f"No se pudo obtener el item {item_id} de GatherContent: {reason}",
            error_code="ITEM_FETCH_ERROR",
            details={"item": item_id},
        )
        self.item_id = item_id


class SkippedNotNewer(SyncException):
    """
    El record local tiene los cambios mas recientes del item.

    No representa una falla: el caller debe tratarlo como no-op.
    """

    def __init__(self, item_name: str, item_id: Any, record_id: int):
        super().__init__(
            message=(
                f"El record local tiene los cambios mas recientes de {item_name} "
                f"(Item ID: {item_id})"
            ),
            error_code="ITEM_NOT_NEWER",
            details={"post": record_id, "item": item_id},
        )
        self.item_id = item_id
        self.record_id = record_id


class PersistError(SyncException):
    """El record store rechazo el payload."""

    def __init__(
        self,
        message: str,
        item_id: Any,
        record_id: Optional[int] = None,
        host_code: Optional[str] = None,
        host_data: Optional[Dict[str, Any]] = None,
    ):
        details: Dict[str, Any] = {"item": item_id, "host_code": host_code}
        if record_id:
            details["post"] = record_id
        if host_data:
            details["host_data"] = host_data
        super().__init__(message=message, error_code="RECORD_PERSIST_ERROR", details=details)
        self.item_id = item_id
        self.record_id = record_id
        self.host_code = host_code


class FieldSanitizeError(AppException):
    """Un valor mapeado no es valido para el campo nativo destino."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=message,
            error_code="FIELD_SANITIZE_ERROR",
            details={"field": field},
        )
        self.field = field


class MediaException(AppException):
    """Excepción base para errores de sideload de un adjunto."""

    def __init__(self, message: str, error_code: str = "MEDIA_ERROR", details=None):
        super().__init__(message=message, error_code=error_code, details=details)


class InvalidMediaURL(MediaException):
    """El nombre/URL del archivo no corresponde a una imagen soportada."""

    def __init__(self, filename: str, url: str = ""):
        super().__init__(
            message="URL de imagen invalida",
            error_code="INVALID_MEDIA_URL",
            details={"filename": filename, "url": url},
        )


class DownloadError(MediaException):
    """No se pudo descargar el archivo a una ubicacion temporal."""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message=f"Error descargando {url}: {reason}",
            error_code="MEDIA_DOWNLOAD_ERROR",
            details={"url": url},
        )


class StorageError(MediaException):
    """El almacenamiento permanente del asset fallo."""

    def __init__(self, message: str, details=None):
        super().__init__(message=message, error_code="MEDIA_STORAGE_ERROR", details=details)


class RecordStoreError(AppException):
    """
    Error reportado por una implementacion del record store.

    El orquestador lo traduce a PersistError conservando code/message/data.
    """

    def __init__(self, message: str, code: str = "record_store_error", data=None):
        super().__init__(message=message, error_code=code, details=data)
        self.code = code
        self.data = data or {}
