"""bharat_osint.state
===================

Values describing orchestration progress.

:class:`OrchestrationState` is an immutable snapshot; the orchestrator swaps in
a new snapshot on every transition and hands it to subscribers.
:class:`SingleRun` and :class:`BatchRun` describe what one operator-triggered
run did.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .report import AnalysisReport
from .validators import ValidationOutcome

__all__ = [
    "RunStatus",
    "ItemOutcome",
    "OrchestrationState",
    "SingleRun",
    "BatchItem",
    "BatchRun",
]


class RunStatus(str, Enum):
    COMPLETED = "completed"
    INVALID = "invalid"  # single mode only
    FAILED = "failed"  # single mode only
    SKIPPED = "skipped"  # nothing to do (blank input)
    BUSY = "busy"  # another run is in flight


class ItemOutcome(str, Enum):
    COMPLETED = "completed"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass(frozen=True)
class OrchestrationState:
    """Session-scoped state; at most one of *result* / *batch_results* is set.

    ``batch_results`` is ``None`` until a batch is published; an empty tuple is
    a published batch where nothing succeeded.
    """

    in_flight: bool = False
    result: Optional[AnalysisReport] = None
    batch_results: Optional[Tuple[AnalysisReport, ...]] = None
    error: Optional[str] = None
    batch_progress: int = 0
    current_page: int = 1


@dataclass
class SingleRun:
    raw: str
    status: RunStatus
    outcome: Optional[ValidationOutcome] = None
    report: Optional[AnalysisReport] = None
    error: Optional[str] = None


@dataclass
class BatchItem:
    position: int
    raw: str
    outcome: ItemOutcome
    identifier: Optional[str] = None
    report: Optional[AnalysisReport] = None


@dataclass
class BatchRun:
    """Per-candidate record of a batch invocation."""

    raw: str
    status: RunStatus
    items: List[BatchItem] = field(default_factory=list)
    progress: int = 0

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def results(self) -> List[AnalysisReport]:
        """Completed reports in input order."""
        return [item.report for item in self.items if item.report is not None]

    @property
    def invalid_count(self) -> int:
        return sum(1 for item in self.items if item.outcome is ItemOutcome.INVALID)

    @property
    def failed_count(self) -> int:
        return sum(1 for item in self.items if item.outcome is ItemOutcome.FAILED)
