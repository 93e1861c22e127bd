"""
Configuracion central del sincronizador.
Gestiona variables de entorno y configuraciones globales.

Las variables se leen del entorno o de un archivo .env en el directorio de
trabajo (ver .env.example).
"""
import json
from typing import List
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field


class Settings(BaseSettings):
    """
    Clase de configuracion del sincronizador.
    Lee variables de entorno y proporciona valores por defecto.

    - GC_API_USER / GC_API_KEY: credenciales Basic de GatherContent
    - DATABASE_URL: si esta vacia, los scripts pueden usar el store en memoria
    - MEDIA_ROOT / MEDIA_BASE_URL: biblioteca local de assets
    """

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="GatherContent Pull Sync")
    APP_VERSION: str = Field(default="1.0.0")
    ENVIRONMENT: str = Field(default="production")

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/gcsync.log")

    # GatherContent
    GC_API_BASE_URL: str = Field(default="https://api.gathercontent.com")
    GC_API_USER: str = Field(default="")
    GC_API_KEY: str = Field(default="")
    GC_API_TIMEOUT_S: int = Field(default=30)
    GC_API_MAX_RETRIES: int = Field(default=6)

    # Base de datos (record store)
    DATABASE_URL: str = Field(default="")

    # Biblioteca de media
    MEDIA_ROOT: str = Field(default="media")
    MEDIA_BASE_URL: str = Field(default="/media")
    # Las descargas son bloqueantes: timeout amplio (15 minutos)
    MEDIA_DOWNLOAD_TIMEOUT_S: int = Field(default=900)

    # Politicas de pull
    PULL_ONLY_UPDATE_IF_NEWER: bool = Field(default=True)
    PULL_REPLACE_ATTACHMENT_DATA_ON_UPDATE: bool = Field(default=False)

    # Capacidades del record store (lista JSON o separada por comas)
    HIERARCHICAL_TAXONOMIES: str = Field(default='["category"]')
    POST_FORMAT_TYPES: str = Field(default='["post"]')

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    @computed_field
    @property
    def hierarchical_taxonomies(self) -> List[str]:
        return parse_list_setting(self.HIERARCHICAL_TAXONOMIES)

    @computed_field
    @property
    def post_format_types(self) -> List[str]:
        return parse_list_setting(self.POST_FORMAT_TYPES)

    class Config:
        """Configuracion de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


def parse_list_setting(raw: str) -> List[str]:
    """
    Parsea una lista configurada por entorno.
    Acepta una lista JSON o valores separados por comas.
    """
    if not raw or not raw.strip():
        return []
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        # Si no es JSON valido, retornar como lista simple
        return [v.strip() for v in raw.split(",") if v.strip()]
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    return [str(value)]


# Instancia global de configuracion
settings = Settings()
