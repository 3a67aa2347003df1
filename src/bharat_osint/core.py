"""bharat_osint.core
==================

High-level orchestration for the analysis console.

:class:`Orchestrator` owns the session's :class:`~bharat_osint.state.OrchestrationState`
and drives the two run modes:

* :meth:`Orchestrator.run_single` validates one identifier, fetches its report
  and either publishes it or a blocking error.
* :meth:`Orchestrator.run_batch` walks a pasted list strictly in input order,
  dropping invalid candidates and failed fetches, publishing progress after
  every item and the surviving reports at the end.

Batch items are never fetched concurrently: progress and the recently-used
list must change in input order.  The ``in_flight`` flag is the only guard
against overlapping runs; a second trigger while a run is active is a no-op.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Callable, List, Optional

from .exporter import ExportArtifact, build_csv_artifact, build_json_artifact
from .history import ActivityLog, RecentStore
from .model_client import ReportFetcher
from .report import AnalysisReport, ProviderUnreachable
from .state import (
    BatchItem,
    BatchRun,
    ItemOutcome,
    OrchestrationState,
    RunStatus,
    SingleRun,
)
from .validators import Valid, split_batch_input, validate_identifier

__all__ = ["PROVIDER_UNREACHABLE_MESSAGE", "Orchestrator", "progress_percent"]

LOGGER = logging.getLogger(__name__)

PROVIDER_UNREACHABLE_MESSAGE = (
    "Unable to reach OSINT intelligence servers. Check your connection."
)

StateListener = Callable[[OrchestrationState], None]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def progress_percent(done: int, total: int) -> int:
    """Return ``round(100 * done / total)`` with halves rounded up."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

class Orchestrator:
    """Single/batch run controller and sole mutator of the session state."""

    def __init__(
        self,
        fetcher: ReportFetcher,
        *,
        recent: Optional[RecentStore] = None,
        activity: Optional[ActivityLog] = None,
        items_per_page: int = 5,
    ) -> None:
        self._fetcher = fetcher
        self.recent: RecentStore = recent if recent is not None else RecentStore()
        self.activity: ActivityLog = activity if activity is not None else ActivityLog()
        self._items_per_page = max(1, items_per_page)
        self._state = OrchestrationState()
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------
    # State publication
    # ------------------------------------------------------------------

    @property
    def state(self) -> OrchestrationState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call *listener* with every new state; returns an unsubscribe hook."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _publish(self, **changes) -> OrchestrationState:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------

    async def run_single(self, raw: str) -> SingleRun:
        """Validate and analyse one identifier."""
        if not (raw or "").strip():
            return SingleRun(raw=raw, status=RunStatus.SKIPPED)
        if self._state.in_flight:
            LOGGER.debug("Ignoring single run for %r: a run is in flight", raw)
            return SingleRun(raw=raw, status=RunStatus.BUSY)

        outcome = validate_identifier(raw)
        if not isinstance(outcome, Valid):
            self._publish(result=None, batch_results=None, error=outcome.reason)
            self.activity.add("ERROR: Validation failed.")
            return SingleRun(raw=raw, status=RunStatus.INVALID, outcome=outcome, error=outcome.reason)

        identifier = outcome.normalized
        self._publish(in_flight=True, result=None, batch_results=None, error=None)
        self.activity.add(f"INITIATING TARGET SCAN: {identifier}")

        try:
            report = await self._fetcher.fetch(identifier)
        except ProviderUnreachable as exc:
            LOGGER.warning("Analysis of %s failed: %s", identifier, exc)
            self._publish(in_flight=False, error=PROVIDER_UNREACHABLE_MESSAGE)
            self.activity.add("SCAN ABORTED: SYSTEM TIMEOUT.")
            return SingleRun(
                raw=raw,
                status=RunStatus.FAILED,
                outcome=outcome,
                error=PROVIDER_UNREACHABLE_MESSAGE,
            )
        except BaseException:
            self._publish(in_flight=False)
            raise

        self._publish(in_flight=False, result=report)
        self.activity.add("SCAN COMPLETE. DECRYPTED DATA AVAILABLE.")
        self.recent.add(identifier)
        return SingleRun(raw=raw, status=RunStatus.COMPLETED, outcome=outcome, report=report)

    async def run_batch(self, raw: str) -> BatchRun:
        """Analyse every candidate in *raw*, one at a time, in input order."""
        candidates = split_batch_input(raw)
        if not candidates:
            return BatchRun(raw=raw, status=RunStatus.SKIPPED)
        if self._state.in_flight:
            LOGGER.debug("Ignoring batch run: a run is in flight")
            return BatchRun(raw=raw, status=RunStatus.BUSY)

        total = len(candidates)
        run = BatchRun(raw=raw, status=RunStatus.COMPLETED)
        self._publish(
            in_flight=True,
            result=None,
            batch_results=None,
            error=None,
            batch_progress=0,
        )
        self.activity.add(f"INITIATING BATCH EXTRACTION: {total} TARGETS")

        for index, candidate in enumerate(candidates):
            step = f"[{index + 1}/{total}]"
            outcome = validate_identifier(candidate)
            if not isinstance(outcome, Valid):
                self.activity.add(f"SKIPPING INVALID {step}: {candidate}")
                run.items.append(BatchItem(index, candidate, ItemOutcome.INVALID))
            else:
                identifier = outcome.normalized
                self.activity.add(f"SCANNING {step}: {identifier}")
                try:
                    report = await self._fetcher.fetch(identifier)
                except ProviderUnreachable as exc:
                    LOGGER.warning("Batch item %s (%s) failed: %s", step, identifier, exc)
                    self.activity.add(f"FAILED {step}: {candidate}")
                    run.items.append(BatchItem(index, candidate, ItemOutcome.FAILED, identifier))
                except BaseException:
                    self._publish(in_flight=False)
                    raise
                else:
                    run.items.append(
                        BatchItem(index, candidate, ItemOutcome.COMPLETED, identifier, report)
                    )
                    self.recent.add(identifier)

            run.progress = progress_percent(index + 1, total)
            self._publish(batch_progress=run.progress)

        self._publish(in_flight=False, batch_results=tuple(run.results), current_page=1)
        self.activity.add("BATCH EXTRACTION COMPLETE.")
        return run

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    def reset(self) -> OrchestrationState:
        """Clear results, error and progress (an active run keeps its flag)."""
        return self._publish(
            result=None,
            batch_results=None,
            error=None,
            batch_progress=0,
            current_page=1,
        )

    async def select_recent(self, index: int) -> SingleRun:
        """Re-run single mode with the *index*-th recently-used identifier."""
        entries = self.recent.entries
        if not 0 <= index < len(entries):
            raise IndexError(f"No recent search at position {index}")
        return await self.run_single(entries[index])

    def clear_recent(self) -> None:
        self.recent.clear()

    def select_batch_result(self, index: int) -> AnalysisReport:
        """Switch the view from the batch to one of its reports."""
        batch = self._state.batch_results or ()
        if not 0 <= index < len(batch):
            raise IndexError(f"No batch result at position {index}")
        report = batch[index]
        self._publish(result=report, batch_results=None)
        self.activity.add(f"SWITCHED VIEW TO TARGET: {report.identifier}")
        return report

    # ------------------------------------------------------------------
    # Pagination over batch results
    # ------------------------------------------------------------------

    @property
    def total_pages(self) -> int:
        return math.ceil(len(self._state.batch_results or ()) / self._items_per_page)

    def page_results(self) -> List[AnalysisReport]:
        start = (self._state.current_page - 1) * self._items_per_page
        return list((self._state.batch_results or ())[start : start + self._items_per_page])

    def go_to_page(self, page: int) -> int:
        page = min(max(1, page), max(1, self.total_pages))
        if page != self._state.current_page:
            self._publish(current_page=page)
        return page

    def next_page(self) -> int:
        return self.go_to_page(self._state.current_page + 1)

    def previous_page(self) -> int:
        return self.go_to_page(self._state.current_page - 1)

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def export_json(self, now_ms: Optional[int] = None) -> Optional[ExportArtifact]:
        artifact = build_json_artifact(self._state, now_ms)
        if artifact is not None:
            self.activity.add("REPORT EXPORTED: JSON PACKET GENERATED.")
        return artifact

    def export_csv(self, now_ms: Optional[int] = None) -> Optional[ExportArtifact]:
        artifact = build_csv_artifact(self._state, now_ms)
        if artifact is not None:
            self.activity.add(f"REPORT EXPORTED: CSV FILE [{artifact.filename}] GENERATED.")
        return artifact
