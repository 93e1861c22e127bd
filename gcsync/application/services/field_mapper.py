"""
Mapeo de los elementos de un item de GatherContent hacia el payload del record.

Cada elemento se envia a uno de cuatro sinks segun la tabla de destinos del
mapping: campo nativo, taxonomia, metadata o media. Los errores dentro de un
elemento no abortan el mapeo: el elemento se omite y queda registrado.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Dict, List

from loguru import logger

from gcsync.application.hooks import PullHooks
from gcsync.application.services.field_sanitizer import FieldSanitizer
from gcsync.application.services.term_resolver import TermResolver
from gcsync.domain.entities.item import Element, Item, MediaFile
from gcsync.domain.entities.mapping import Destination, Mapping
from gcsync.domain.entities.payload import AttachmentGroup, MediaReference, RecordPayload
from gcsync.domain.entities.results import StepResult
from gcsync.shared.constants.sync_constants import (
    CATEGORY_TAXONOMY,
    ElementType,
    MediaDestination,
    SinkType,
)
from gcsync.shared.exceptions.base import AppException
from gcsync.shared.utils.text_utils import join_list_value

SinkHandler = Callable[[str, Element, Any, Item, RecordPayload], None]


def _meta_value(value: Any) -> Any:
    """Los archivos se guardan en metadata como dicts planos."""
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, MediaFile) for v in value):
        return [asdict(v) for v in value]
    return value


class FieldMapper:
    """Construye el RecordPayload a partir de la configuracion del item."""

    def __init__(
        self,
        sanitizer: FieldSanitizer,
        term_resolver: TermResolver,
        hooks: PullHooks | None = None,
    ) -> None:
        self._sanitizer = sanitizer
        self._terms = term_resolver
        self._hooks = hooks or PullHooks()
        self._handlers: Dict[SinkType, SinkHandler] = {
            SinkType.POST: self._set_post_field_value,
            SinkType.TAXONOMY: self._set_taxonomy_field_value,
            SinkType.META: self._set_meta_field_value,
            SinkType.MEDIA: self._set_media_field_value,
        }

    def map(
        self,
        item: Item,
        mapping: Mapping,
        payload: RecordPayload,
        skipped: List[StepResult] | None = None,
    ) -> RecordPayload:
        """
        Aplica defaults del mapping y mapea todos los elementos del item.

        Args:
            item: Snapshot del item (con archivos)
            mapping: Mapping de destinos
            payload: Payload sembrado (record existente o nuevo)
            skipped: Lista donde se agregan los elementos omitidos

        Returns:
            RecordPayload: El mismo payload, completado
        """
        payload.fields.update(mapping.defaults())

        status = mapping.get_local_status_for_item(item)
        if status:
            payload.fields["post_status"] = status

        payload.begin_append()
        for element in item.iter_elements():
            destination = mapping.destination_for(element.name)
            if destination is None:
                continue

            result = self.set_values(destination, element, item, payload)
            if result.is_skipped and skipped is not None:
                skipped.append(result)
        payload.restore_untouched()

        return payload

    def set_values(self, destination: Destination, element: Element, item: Item, payload: RecordPayload) -> StepResult:
        """Despacha el elemento al handler de su sink."""
        handler = self._handlers[destination.type]
        try:
            value = item.element_value(element)
            handler(destination.value, element, value, item, payload)
        except AppException as e:
            logger.warning(f"[gc-pull] Elemento '{element.name}' omitido ({destination.type.value}): {e.message}")
            return StepResult.skipped("map_element", element.name, e.message, e)
        except Exception as e:
            logger.warning(f"[gc-pull] Elemento '{element.name}' omitido ({destination.type.value}): {e}")
            return StepResult.skipped("map_element", element.name, str(e), e)
        return StepResult.ok("map_element", element.name)

    def _set_post_field_value(self, field: str, element: Element, value: Any, item: Item, payload: RecordPayload) -> None:
        value = join_list_value(value)
        value = self._sanitizer.sanitize(field, value, payload.fields)
        payload.maybe_append(field, value)

    def _set_taxonomy_field_value(self, taxonomy: str, element: Element, value: Any, item: Item, payload: RecordPayload) -> None:
        terms = [t for t in self._terms.resolve_terms(taxonomy, element, value, item) if t]
        if not terms:
            return
        if taxonomy == CATEGORY_TAXONOMY:
            payload.fields["post_category"] = terms
        else:
            payload.tax_input[taxonomy] = terms

    def _set_meta_field_value(self, meta_key: str, element: Element, value: Any, item: Item, payload: RecordPayload) -> None:
        meta_value = self._hooks.sanitize_meta_field(_meta_value(value), element, item)
        payload.maybe_append(meta_key, meta_value, target=payload.meta_input)

        if element.type == ElementType.FILES:
            self._set_media_field_value(meta_key, element, value, item, payload)

    def _set_media_field_value(self, destination: str, element: Element, value: Any, item: Item, payload: RecordPayload) -> None:
        media_items = self._hooks.sanitize_media_field(value, element, item)

        if not isinstance(media_items, (list, tuple)):
            payload.attachments.append(AttachmentGroup(destination=destination, media=None))
            return

        inline = destination in MediaDestination.INLINE
        text_field = "post_excerpt" if destination == MediaDestination.EXCERPT_IMAGE else "post_content"

        references = []
        for position, media in enumerate(media_items, start=1):
            if isinstance(media, dict):
                media = MediaFile.from_api(media)
            reference = MediaReference.from_file(media, destination=destination, position=position)
            references.append(reference)
            if inline:
                payload.maybe_append(text_field, reference.token)

        payload.attachments.append(AttachmentGroup(destination=destination, media=tuple(references)))
