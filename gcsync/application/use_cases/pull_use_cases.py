"""
Caso de uso: pull de un item de GatherContent hacia el record store.

Flujo (un item, sincrono, sin paralelismo interno):
1. Validar mapping
2. Obtener snapshot del item (+ archivos)
3. Chequeo de frescura contra el record enlazado (si existe)
4. Mapear elementos -> payload
5. Persistir record (create/update)
6. Guardar metadata de enlace item <-> record
7. Sideload y placement de adjuntos, reemplazos, update sin revision
8. Cambio de status remoto (best-effort)

El job dispatcher externo se encarga de reintentos y de no correr dos pulls
del mismo item en paralelo.
"""

from __future__ import annotations

from typing import Any, List, Optional

from loguru import logger

from gcsync.application.hooks import PullHooks
from gcsync.application.interfaces.media_storage import AssetStorage, Downloader
from gcsync.application.interfaces.remote_api import GatherContentApi
from gcsync.application.services.attachment_placement import AttachmentPlacementEngine
from gcsync.application.services.field_mapper import FieldMapper
from gcsync.application.services.field_sanitizer import FieldSanitizer
from gcsync.application.services.media_resolver import MediaResolver
from gcsync.application.services.term_resolver import TermResolver
from gcsync.domain.entities.item import Item
from gcsync.domain.entities.mapping import Mapping
from gcsync.domain.entities.payload import RecordPayload
from gcsync.domain.entities.record import StoredRecord
from gcsync.domain.entities.results import PullOutcome, PullResult, ResultKind, StepResult
from gcsync.domain.repositories.record_store import IRecordStore
from gcsync.shared.exceptions.base import AppException
from gcsync.shared.exceptions.sync import (
    ConfigError,
    FetchError,
    PersistError,
    SkippedNotNewer,
)
from gcsync.shared.utils.datetime_utils import parse_timestamp
from gcsync.shared.utils.text_utils import sanitize_text_field, strtr


class PullItemUseCase:
    """
    Orquestador del pull de un item.

    Cada llamada a pull() es independiente: el payload y el mapa de
    reemplazos viven solo durante esa llamada.
    """

    def __init__(
        self,
        *,
        api: GatherContentApi,
        record_store: IRecordStore,
        field_mapper: FieldMapper,
        placement: AttachmentPlacementEngine,
        hooks: Optional[PullHooks] = None,
        only_update_if_newer: bool = True,
    ) -> None:
        self._api = api
        self._store = record_store
        self._mapper = field_mapper
        self._placement = placement
        self._hooks = hooks or PullHooks()
        self._only_update_if_newer = only_update_if_newer

    @classmethod
    def create(
        cls,
        *,
        api: GatherContentApi,
        record_store: IRecordStore,
        downloader: Downloader,
        storage: AssetStorage,
        hooks: Optional[PullHooks] = None,
        only_update_if_newer: bool = True,
        replace_attachment_data_on_update: bool = False,
    ) -> "PullItemUseCase":
        """Construye el orquestador con todos sus servicios."""
        hooks = hooks or PullHooks()
        mapper = FieldMapper(
            FieldSanitizer(record_store),
            TermResolver(record_store, hooks),
            hooks,
        )
        media_resolver = MediaResolver(
            record_store,
            downloader,
            storage,
            hooks,
            replace_data_on_update=replace_attachment_data_on_update,
        )
        placement = AttachmentPlacementEngine(record_store, media_resolver, storage, hooks)
        return cls(
            api=api,
            record_store=record_store,
            field_mapper=mapper,
            placement=placement,
            hooks=hooks,
            only_update_if_newer=only_update_if_newer,
        )

    def maybe_pull_item(self, mapping: Mapping, item_id: Any) -> PullOutcome:
        """
        Ejecuta el pull sin lanzar errores de aplicacion.

        Returns:
            PullOutcome: OK, SKIPPED (record ya actualizado) o FATAL
        """
        try:
            result = self.pull(mapping, item_id)
        except SkippedNotNewer as e:
            logger.info(f"[gc-pull] {e.message}")
            return PullOutcome(kind=ResultKind.SKIPPED, item_id=item_id, error=e)
        except AppException as e:
            logger.error(f"[gc-pull] Pull del item {item_id} fallo: {e.error_code} - {e.message}")
            return PullOutcome(kind=ResultKind.FATAL, item_id=item_id, error=e)
        return PullOutcome(kind=ResultKind.OK, item_id=item_id, result=result)

    def pull(self, mapping: Mapping, item_id: Any) -> PullResult:
        """
        Pull de un item hacia su record.

        Args:
            mapping: Mapping a aplicar
            item_id: ID del item de GatherContent

        Returns:
            PullResult: ID del record y diagnostico de elementos/adjuntos omitidos

        Raises:
            ConfigError: Mapping no utilizable
            FetchError: Item no disponible
            SkippedNotNewer: El record local ya tiene los cambios mas recientes
            PersistError: El record store rechazo el payload
        """
        self._check_mapping(mapping)
        item = self._fetch_item(item_id)
        skipped: List[StepResult] = []

        existing = self._store.find_record_by_item_id(item_id)
        if existing is not None:
            self._check_freshness(existing, item)
            payload = RecordPayload.from_record(existing)
        else:
            payload = RecordPayload.fresh()

        logger.info(
            f"[gc-pull] Pull item {item_id} ('{item.name}') -> "
            f"{'record ' + str(existing.id) if existing else 'nuevo record'} (mapping {mapping.id})"
        )

        payload = self._map_item(item, mapping, payload, skipped)
        attachments = payload.pop_attachments()

        if not payload.get("post_title") and item.name:
            payload.fields["post_title"] = sanitize_text_field(item.name)

        record_id = self._persist(payload, item_id, create_revision=True)
        payload.fields["ID"] = record_id

        self._store.bind_item_id(record_id, item.id)
        self._store.bind_mapping_id(record_id, mapping.id)
        self._store.set_record_item_metadata(
            record_id,
            {"created_at": item.created_at, "updated_at": item.updated_at},
        )

        if attachments:
            self._place_attachments(attachments, payload, mapping, item_id, skipped)

        status_updated = self._update_remote_status(mapping, item)

        for step in skipped:
            logger.warning(f"[gc-pull] Omitido {step.step} '{step.target}': {step.reason}")
        logger.success(
            f"[gc-pull] Item {item_id} sincronizado en record {record_id} "
            f"(omitidos={len(skipped)})"
        )
        return PullResult(
            record_id=record_id,
            item_id=item_id,
            created=existing is None,
            skipped=skipped,
            status_updated=status_updated,
        )

    def _check_mapping(self, mapping: Optional[Mapping]) -> None:
        if mapping is None or not mapping.id:
            raise ConfigError("El mapping no existe o no tiene ID")
        if not isinstance(mapping.destinations, dict) or not mapping.destinations:
            raise ConfigError(f"El mapping {mapping.id} no tiene destinos configurados", mapping.id)

    def _fetch_item(self, item_id: Any) -> Item:
        try:
            item = self._api.get_item(item_id)
            files = self._api.get_item_files(item_id)
        except AppException as e:
            raise FetchError(item_id, e.message) from e
        except (RuntimeError, OSError, ValueError) as e:
            raise FetchError(item_id, str(e)) from e

        if item is None or item.id is None:
            raise FetchError(item_id, "respuesta vacia")
        return item.with_files(files or [])

    def _check_freshness(self, existing: StoredRecord, item: Item) -> None:
        """Lanza SkippedNotNewer si el item remoto no es mas nuevo que el record."""
        meta = self._store.get_record_item_metadata(existing.id)
        local_updated = parse_timestamp(meta.get("updated_at"))
        remote_updated = parse_timestamp(item.updated_at)

        if remote_updated is None or local_updated is None:
            return
        if remote_updated > local_updated:
            return
        if self._hooks.only_update_if_newer(self._only_update_if_newer, existing, item):
            raise SkippedNotNewer(item.name, item.id, existing.id)

    def _map_item(self, item: Item, mapping: Mapping, payload: RecordPayload, skipped: List[StepResult]) -> RecordPayload:
        payload = self._mapper.map(item, mapping, payload, skipped)
        if payload.record_id:
            return self._hooks.update_record_data(payload, item, mapping)
        return self._hooks.new_record_data(payload, item, mapping)

    def _persist(self, payload: RecordPayload, item_id: Any, *, create_revision: bool) -> int:
        try:
            return self._store.create_or_update_record(payload.to_record_data(), create_revision=create_revision)
        except AppException as e:
            raise PersistError(
                e.message,
                item_id=item_id,
                record_id=payload.record_id or None,
                host_code=e.error_code,
                host_data=e.details,
            ) from e

    def _place_attachments(
        self,
        attachments: list,
        payload: RecordPayload,
        mapping: Mapping,
        item_id: Any,
        skipped: List[StepResult],
    ) -> None:
        attachments = self._hooks.media_objects(attachments, payload)
        replacements = self._placement.place(attachments, payload, mapping.id, skipped)
        if not replacements:
            return

        for field in ("post_content", "post_excerpt"):
            if replacements.get(field):
                payload.fields[field] = strtr(payload.get(field) or "", replacements[field])

        if replacements.get("meta_input"):
            payload.meta_input = dict(replacements["meta_input"])

        # Actualizacion con los adjuntos ubicados: sin generar revision
        self._persist(payload, item_id, create_revision=False)

    def _update_remote_status(self, mapping: Mapping, item: Item) -> bool:
        status = mapping.get_item_new_status(item)
        if not status:
            return False
        try:
            self._api.set_item_status(item.id, status)
        except (AppException, RuntimeError, OSError) as e:
            logger.warning(f"[gc-pull] No se pudo actualizar el status del item {item.id} a {status}: {e}")
            return False
        return True
