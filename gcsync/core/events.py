"""
Manejadores de inicio y cierre de los procesos de sincronizacion.
"""
from loguru import logger

from gcsync.core.config import settings


def startup() -> None:
    """Valida configuracion y agrega el sink de archivo de loguru."""
    logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Entorno: {settings.ENVIRONMENT}")

    # Validar configuracion critica
    _validate_config()

    # Configurar logging adicional
    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="500 MB",
            retention="10 days",
            level=settings.LOG_LEVEL,
        )


def _validate_config() -> list[str]:
    """Valida que la configuracion critica este presente."""
    warnings = []

    if not settings.GC_API_USER or not settings.GC_API_KEY:
        warnings.append("GC_API_USER/GC_API_KEY no configuradas - el pull no podra leer items")

    if not settings.DATABASE_URL:
        warnings.append("DATABASE_URL no configurada - solo se podra usar el store en memoria")

    if settings.MEDIA_DOWNLOAD_TIMEOUT_S <= 0:
        warnings.append("MEDIA_DOWNLOAD_TIMEOUT_S debe ser positivo")

    # Mostrar advertencias
    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")
    return warnings


def shutdown() -> None:
    """Espera a que los sinks de loguru terminen de escribir."""
    logger.info("Cerrando sincronizador...")
    logger.complete()
