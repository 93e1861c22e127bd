"""
Servicios de aplicacion.

Componentes del pipeline de pull, de las hojas hacia arriba:
sanitizacion de campos, terminos, media, mapeo y placement de adjuntos.
"""
from gcsync.application.services.field_sanitizer import FieldSanitizer
from gcsync.application.services.term_resolver import TermResolver
from gcsync.application.services.media_resolver import MediaResolver
from gcsync.application.services.field_mapper import FieldMapper
from gcsync.application.services.attachment_placement import (
    AttachmentPlacementEngine,
    gallery_shortcode,
)

__all__ = [
    # Campos y terminos
    "FieldSanitizer",
    "TermResolver",
    # Media
    "MediaResolver",
    "AttachmentPlacementEngine",
    "gallery_shortcode",
    # Mapeo
    "FieldMapper",
]
