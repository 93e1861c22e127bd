"""
Constantes del pipeline de pull GatherContent -> record store.
"""
from enum import Enum
from typing import Optional


class SinkType(str, Enum):
    """Destinos posibles para el valor de un elemento mapeado."""
    POST = "post"
    TAXONOMY = "taxonomy"
    META = "meta"
    MEDIA = "media"

    @classmethod
    def parse(cls, raw: object) -> Optional["SinkType"]:
        """
        Convierte el tipo guardado en el mapping a SinkType.

        Acepta tanto "post" como el formato historico "wp-type-post".
        Retorna None si el tipo no es conocido.
        """
        if not isinstance(raw, str):
            return None
        value = raw.strip().lower()
        if value.startswith("wp-type-"):
            value = value[len("wp-type-"):]
        try:
            return cls(value)
        except ValueError:
            return None


class MediaDestination:
    """Destinos conocidos para adjuntos. Cualquier otro valor es un meta key."""
    FEATURED_IMAGE = "featured_image"
    CONTENT_IMAGE = "content_image"
    EXCERPT_IMAGE = "excerpt_image"
    GALLERY = "gallery"

    # Destinos que reservan un token en el texto del record
    INLINE = (GALLERY, CONTENT_IMAGE, EXCERPT_IMAGE)


class ElementType:
    """Tipos de elemento de GatherContent."""
    TEXT = "text"
    FILES = "files"
    CHOICE_RADIO = "choice_radio"
    CHOICE_CHECKBOX = "choice_checkbox"
    SECTION = "section"


# Campos nativos que concatenan valores en vez de sobreescribir
APPEND_FIELDS = ("post_content", "post_excerpt")


DATE_FIELDS = ("post_date", "post_date_gmt", "post_modified", "post_modified_gmt")

# Tags permitidos en titulos
TITLE_ALLOWED_TAGS = ("strong", "em", "del", "ins", "code")

CATEGORY_TAXONOMY = "category"
ATTACHMENT_TYPE = "attachment"
ATTACHMENT_STATUS = "inherit"

# Meta keys de enlace record <-> GatherContent
META_ITEM_ID = "_gc_mapped_item_id"
META_MAPPING_ID = "_gc_mapping_id"
META_ITEM_META = "_gc_mapped_meta"
META_THUMBNAIL_ID = "_thumbnail_id"
META_ATTACHED_FILE = "_wp_attached_file"
META_ATTACHMENT_METADATA = "_wp_attachment_metadata"

MYSQL_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Extensiones de imagen aceptadas para sideload (tolerante a query strings)
IMAGE_FILENAME_PATTERN = r"[^\?]+\.(jpe?g|jpe|gif|png)\b"


def media_token(media_id: object) -> str:
    """Token reservado en el contenido para un adjunto de GatherContent."""
    return f"#_gc_media_id_{media_id}#"
