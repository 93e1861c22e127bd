"""
Entidades del dominio.
"""
from gcsync.domain.entities.item import ChoiceOption, Element, Item, MediaFile, Tab
from gcsync.domain.entities.mapping import Destination, Mapping, StatusRule
from gcsync.domain.entities.payload import AttachmentGroup, MediaReference, RecordPayload
from gcsync.domain.entities.record import StoredRecord
from gcsync.domain.entities.results import PullOutcome, PullResult, ResultKind, StepResult

__all__ = [
    # Item remoto
    "Item",
    "Tab",
    "Element",
    "ChoiceOption",
    "MediaFile",
    # Mapping
    "Mapping",
    "Destination",
    "StatusRule",
    # Record destino
    "RecordPayload",
    "AttachmentGroup",
    "MediaReference",
    "StoredRecord",
    # Resultados
    "ResultKind",
    "StepResult",
    "PullResult",
    "PullOutcome",
]
