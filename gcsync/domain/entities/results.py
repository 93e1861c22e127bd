"""
Resultados tipados del pipeline de pull.

Los errores por elemento y por adjunto no abortan el pull: se registran como
StepResult SKIPPED y se agregan en el PullResult para diagnostico.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from gcsync.shared.exceptions.base import AppException


class ResultKind(str, Enum):
    """Tipo de resultado de un paso o de un pull completo."""
    OK = "ok"
    SKIPPED = "skipped"
    FATAL = "fatal"


@dataclass(frozen=True)
class StepResult:
    """Resultado de mapear un elemento o sideloadear un adjunto."""

    kind: ResultKind
    step: str
    target: Any = None
    reason: str = ""
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, step: str, target: Any = None) -> "StepResult":
        return cls(kind=ResultKind.OK, step=step, target=target)

    @classmethod
    def skipped(cls, step: str, target: Any, reason: str, error: Optional[BaseException] = None) -> "StepResult":
        return cls(kind=ResultKind.SKIPPED, step=step, target=target, reason=reason, error=error)

    @property
    def is_skipped(self) -> bool:
        return self.kind == ResultKind.SKIPPED


@dataclass
class PullResult:
    """Resultado de un pull exitoso."""

    record_id: int
    item_id: Any
    created: bool
    skipped: List[StepResult] = field(default_factory=list)
    status_updated: bool = False

    def summary(self) -> Dict[str, Any]:
        return {
            "record_id": self.record_id,
            "item_id": self.item_id,
            "created": self.created,
            "skipped": [{"step": s.step, "target": s.target, "reason": s.reason} for s in self.skipped],
            "status_updated": self.status_updated,
        }


@dataclass(frozen=True)
class PullOutcome:
    """
    Resultado de maybe_pull_item: nunca lanza errores de aplicacion.

    - OK: result contiene el PullResult
    - SKIPPED: el record local ya estaba actualizado (error = SkippedNotNewer)
    - FATAL: error contiene la excepcion tipada
    """

    kind: ResultKind
    item_id: Any
    result: Optional[PullResult] = None
    error: Optional[AppException] = None

    @property
    def record_id(self) -> Optional[int]:
        if self.result:
            return self.result.record_id
        if self.error is not None:
            return self.error.details.get("post")
        return None
