"""
Placement de adjuntos luego de persistir el record.

Por cada referencia de media recolectada durante el mapeo:
1. Sideload (o reuso) del asset local via MediaResolver.
2. Ubicacion segun destino: imagen destacada, imagen inline en contenido o
   extracto, galeria, o meta key arbitrario.
3. Metadata de enlace asset <-> archivo de GatherContent.

El resultado es un mapa de reemplazos que el orquestador aplica una sola vez
sobre el payload:

    {
        "post_content": {"#_gc_media_id_12#": "<img ...>"},
        "post_excerpt": {...},
        "meta_input": {...},   # meta_input completo, solo si hubo cambios
    }

Las fallas de sideload se omiten: no hay rollback del pull.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from gcsync.application.hooks import PullHooks
from gcsync.application.interfaces.media_storage import AssetStorage
from gcsync.application.services.media_resolver import MediaResolver
from gcsync.application.services.media_shortcodes import (
    get_media_shortcode_attributes,
    get_requested_media,
)
from gcsync.domain.entities.payload import AttachmentGroup, MediaReference, RecordPayload
from gcsync.domain.entities.results import StepResult
from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.shared.constants.sync_constants import MediaDestination
from gcsync.shared.exceptions.base import AppException

INLINE_IMAGE_CLASS = "attachment-full size-full gathercontent-image"


def gallery_shortcode(asset_ids: Sequence[int]) -> str:
    """Bloque de galeria con los assets en orden de insercion."""
    ids = ",".join(str(i) for i in asset_ids)
    return f'[gallery link="file" size="full" ids="{ids}"]'


class AttachmentPlacementEngine:
    """Descarga y ubica los adjuntos de un record."""

    def __init__(
        self,
        record_store: IRecordStore,
        media_resolver: MediaResolver,
        storage: AssetStorage,
        hooks: PullHooks | None = None,
    ) -> None:
        self._store = record_store
        self._media = media_resolver
        self._storage = storage
        self._hooks = hooks or PullHooks()

    def place(
        self,
        groups: List[AttachmentGroup],
        payload: RecordPayload,
        mapping_id: Any,
        skipped: List[StepResult] | None = None,
    ) -> Dict[str, Any]:
        """
        Sideload + placement de todos los adjuntos.

        Args:
            groups: Adjuntos recolectados por el FieldMapper
            payload: Payload ya persistido (con ID)
            mapping_id: ID del mapping dueño del pull
            skipped: Lista donde se agregan los adjuntos omitidos

        Returns:
            Dict[str, Any]: Mapa de reemplazos
        """
        skipped = skipped if skipped is not None else []
        record_id = payload.record_id

        replacements: Dict[str, Any] = {}
        featured_id: Optional[int] = None
        gallery_ids: List[int] = []
        gallery_token: Optional[str] = None
        meta_input: Optional[Dict[str, Any]] = None
        reset_meta_keys: set = set()

        for group in groups:
            if not isinstance(group.media, (list, tuple)):
                skipped.append(StepResult.skipped("place_media", group.destination, "El valor de media no es una lista"))
                continue

            for media in group.media:
                asset_id = self._sideload(media, record_id, skipped)
                if not asset_id:
                    continue

                destination = group.destination
                if destination == MediaDestination.FEATURED_IMAGE:
                    # Si hay varias, gana la ultima
                    featured_id = asset_id

                elif destination in (MediaDestination.CONTENT_IMAGE, MediaDestination.EXCERPT_IMAGE):
                    self._place_inline(destination, media, asset_id, payload, replacements)

                elif destination == MediaDestination.GALLERY:
                    gallery_ids.append(asset_id)
                    gallery_token = media.token
                    replacements.setdefault("post_content", {})[media.token] = ""

                else:
                    if meta_input is None:
                        meta_input = dict(payload.meta_input)
                    if destination not in reset_meta_keys:
                        meta_input[destination] = []
                        reset_meta_keys.add(destination)
                    meta_input[destination].append(asset_id)

                self._link_asset(asset_id, media, mapping_id)

        if meta_input is not None:
            replacements["meta_input"] = meta_input

        if featured_id:
            self._store.set_primary_visual(record_id, featured_id)

        if gallery_ids and gallery_token:
            shortcode = self._hooks.gallery_shortcode(gallery_shortcode(gallery_ids), gallery_ids, payload)
            replacements.setdefault("post_content", {})[gallery_token] = shortcode

        return self._hooks.media_replacements(replacements, groups, payload)

    def _sideload(self, media: MediaReference, record_id: int, skipped: List[StepResult]) -> Optional[int]:
        try:
            asset_id = self._media.resolve(media, record_id)
        except AppException as e:
            logger.warning(f"[gc-pull] Media {media.id} ({media.filename}) omitida: {e.message}")
            skipped.append(StepResult.skipped("place_media", media.id, e.message, e))
            return None
        except OSError as e:
            logger.warning(f"[gc-pull] Media {media.id} ({media.filename}) omitida: {e}")
            skipped.append(StepResult.skipped("place_media", media.id, str(e), e))
            return None

        if not asset_id:
            skipped.append(StepResult.skipped("place_media", media.id, "El sideload no retorno un asset"))
            return None
        return asset_id

    def _place_inline(
        self,
        destination: str,
        media: MediaReference,
        asset_id: int,
        payload: RecordPayload,
        replacements: Dict[str, Any],
    ) -> None:
        field = "post_excerpt" if destination == MediaDestination.EXCERPT_IMAGE else "post_content"
        field_replacements = replacements.setdefault(field, {})

        image = self._storage.render_image(
            asset_id,
            "full",
            {"data-gcid": media.id, "class": INLINE_IMAGE_CLASS},
        )

        shortcodes = get_media_shortcode_attributes(payload.get(field) or "", media.position)
        if shortcodes:
            for replace_val, atts in shortcodes.items():
                requested = get_requested_media(self._storage, atts, media.id, asset_id) if atts else None
                field_replacements[replace_val] = self._hooks.content_image(
                    requested or image, media, asset_id, payload
                )
            # El shortcode ubica la imagen: el token se elimina
            field_replacements[media.token] = ""
        else:
            field_replacements[media.token] = self._hooks.content_image(image, media, asset_id, payload)

    def _link_asset(self, asset_id: int, media: MediaReference, mapping_id: Any) -> None:
        self._store.bind_item_id(asset_id, media.id)
        self._store.bind_mapping_id(asset_id, mapping_id)
        self._store.set_record_item_metadata(asset_id, media.item_meta())
