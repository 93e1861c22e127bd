"""
Puntos de extension del pull.

Cada hook es un callable que recibe el valor a filtrar como primer argumento
(mas contexto) y retorna el valor final. Por defecto todos retornan el valor
sin cambios.

Ejemplo:

    hooks = PullHooks(
        element_terms=lambda terms, element, item: [t.upper() for t in terms],
        only_update_if_newer=lambda default, record, item: False,
    )
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


def keep_value(value: Any, *context: Any) -> Any:
    """Hook identidad: retorna el primer argumento."""
    return value


Hook = Callable[..., Any]


@dataclass
class PullHooks:
    """
    Hooks disponibles.

    - only_update_if_newer(default, record, item) -> bool
    - new_record_data(payload, item, mapping) -> RecordPayload
    - update_record_data(payload, item, mapping) -> RecordPayload
    - element_terms(terms, element, item) -> list
    - sanitize_meta_field(value, element, item) -> Any
    - sanitize_media_field(value, element, item) -> Any
    - media_objects(groups, payload) -> list[AttachmentGroup]
    - content_image(markup, media, asset_id, payload) -> str
    - gallery_shortcode(markup, asset_ids, payload) -> str
    - media_replacements(replacements, groups, payload) -> dict
    - replace_attachment_data_on_update(default, asset) -> bool
    """

    only_update_if_newer: Hook = keep_value
    new_record_data: Hook = keep_value
    update_record_data: Hook = keep_value
    element_terms: Hook = keep_value
    sanitize_meta_field: Hook = keep_value
    sanitize_media_field: Hook = keep_value
    media_objects: Hook = keep_value
    content_image: Hook = keep_value
    gallery_shortcode: Hook = keep_value
    media_replacements: Hook = keep_value
    replace_attachment_data_on_update: Hook = keep_value
