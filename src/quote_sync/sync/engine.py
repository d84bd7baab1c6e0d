"""Sync engine orchestrator for the local quote collection.

Runs one reconciliation cycle at a time: fetch the remote snapshot, merge
it into the local collection and persist it, push local-only quotes back
and keep the ids the remote acknowledged, reporting progress through a
status callback.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol

from pydantic import BaseModel

from quote_sync.sync.conflict import merge_records
from quote_sync.sync.state import Record

if TYPE_CHECKING:
    from quote_sync.collection import QuoteCollection
    from quote_sync.remote.client import FetchResult

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------
# Result / Status models
# ------------------------------------------------------------------


class SyncPhase(StrEnum):
    """Where the engine is within a reconciliation cycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    MERGING = "merging"
    PUSHING = "pushing"
    DONE = "done"


class SyncOutcome(StrEnum):
    """How a reconciliation cycle ended."""

    SKIPPED = "skipped"
    UNREACHABLE = "unreachable"
    NO_DATA = "no_data"
    NEW_DATA = "new_data"
    UP_TO_DATE = "up_to_date"


class SyncStatusLabel(StrEnum):
    """Status reported to the presentation layer."""

    SYNCING = "syncing"
    OFFLINE = "offline"
    SYNC_FAILED = "sync_failed"
    NEW_DATA = "new_data"
    UP_TO_DATE = "up_to_date"
    ALREADY_UP_TO_DATE = "already_up_to_date"


STATUS_MESSAGES: dict[SyncStatusLabel, str] = {
    SyncStatusLabel.SYNCING: "Syncing with server...",
    SyncStatusLabel.OFFLINE: "Offline: server unreachable",
    SyncStatusLabel.SYNC_FAILED: "Sync failed - no data",
    SyncStatusLabel.NEW_DATA: "Synced - new data",
    SyncStatusLabel.UP_TO_DATE: "Up to date",
    SyncStatusLabel.ALREADY_UP_TO_DATE: "Already up to date",
}

_BUSY_PHASES = frozenset({SyncPhase.FETCHING, SyncPhase.MERGING, SyncPhase.PUSHING})


class SyncResult(BaseModel):
    """Outcome of a single reconciliation cycle."""

    outcome: SyncOutcome
    message: str
    changed: bool = False
    fetched: int = 0
    pushed: int = 0
    push_failures: int = 0


class RemoteGateway(Protocol):
    async def fetch_remote(self) -> FetchResult: ...

    async def push_record(self, record: Record) -> int | str | None: ...


StatusCallback = Callable[[SyncStatusLabel, str], None]


# ------------------------------------------------------------------
# Engine
# ------------------------------------------------------------------


class SyncEngine:
    """Keeps a ``QuoteCollection`` consistent with the remote collection.

    Only one cycle runs at a time: :meth:`run_cycle` returns a ``skipped``
    result immediately while another cycle is in flight.

    Args:
        collection: The local collection, already initialized.
        gateway: Client for the remote collection.
        on_status: Called with each status label and its message.
        on_categories_changed: Called after a merged collection is persisted.
        status_reset_delay: Seconds before "new data" is downgraded to
            "up to date".
    """

    def __init__(
        self,
        collection: QuoteCollection,
        gateway: RemoteGateway,
        *,
        on_status: StatusCallback | None = None,
        on_categories_changed: Callable[[], None] | None = None,
        status_reset_delay: float = 3.0,
    ) -> None:
        self._collection = collection
        self._gateway = gateway
        self._on_status = on_status
        self._on_categories_changed = on_categories_changed
        self._status_reset_delay = status_reset_delay
        self._phase = SyncPhase.IDLE
        self._last_result: SyncResult | None = None
        self._status: SyncStatusLabel | None = None
        self._reset_task: asyncio.Task[None] | None = None

    @property
    def phase(self) -> SyncPhase:
        return self._phase

    @property
    def busy(self) -> bool:
        return self._phase in _BUSY_PHASES

    @property
    def last_result(self) -> SyncResult | None:
        return self._last_result

    @property
    def status(self) -> SyncStatusLabel | None:
        """The most recently reported status label."""
        return self._status

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    async def run_cycle(self) -> SyncResult:
        """Run one fetch -> merge -> persist -> push cycle.

        Returns:
            A ``SyncResult`` describing the cycle.  If a cycle is already in
            flight nothing is done and the outcome is ``skipped``.
        """
        if self.busy:
            logger.debug("Sync cycle already in progress (%s), skipping", self._phase)
            return SyncResult(outcome=SyncOutcome.SKIPPED, message="Sync already in progress")

        self._phase = SyncPhase.FETCHING
        try:
            result = await self._run_phases()
        finally:
            self._phase = SyncPhase.IDLE

        self._last_result = result
        return result

    async def _run_phases(self) -> SyncResult:
        self._cancel_pending_reset()
        self._report(SyncStatusLabel.SYNCING)

        fetched = await self._gateway.fetch_remote()
        if not fetched.reachable:
            self._phase = SyncPhase.DONE
            self._report(SyncStatusLabel.OFFLINE)
            return SyncResult(
                outcome=SyncOutcome.UNREACHABLE,
                message=STATUS_MESSAGES[SyncStatusLabel.OFFLINE],
            )
        if not fetched.records:
            self._phase = SyncPhase.DONE
            self._report(SyncStatusLabel.SYNC_FAILED)
            return SyncResult(
                outcome=SyncOutcome.NO_DATA,
                message=STATUS_MESSAGES[SyncStatusLabel.SYNC_FAILED],
            )

        self._phase = SyncPhase.MERGING
        merge = merge_records(self._collection.records, fetched.records)
        logger.info(
            "Merged %d remote record(s): %d appended, %d replaced, %d local kept",
            len(fetched.records), merge.appended, merge.replaced, merge.protected,
        )

        self._collection.replace(merge.records)
        if self._on_categories_changed is not None:
            self._on_categories_changed()

        self._phase = SyncPhase.PUSHING
        pending = [r for r in merge.records if not r.synced]
        outcomes = await asyncio.gather(
            *(self._gateway.push_record(r) for r in pending),
            return_exceptions=True,
        )
        acknowledged: dict[str, int | str] = {}
        for record, ack in zip(pending, outcomes):
            if isinstance(ack, BaseException):
                logger.warning("Push of %r raised: %s", record.text, ack)
            elif ack is not None:
                acknowledged[record.text] = ack
        pushed = len(acknowledged)
        if acknowledged:
            self._collection.mark_synced(acknowledged)

        self._phase = SyncPhase.DONE
        if merge.changed:
            self._report(SyncStatusLabel.NEW_DATA)
            self._schedule_reset()
            outcome, label = SyncOutcome.NEW_DATA, SyncStatusLabel.NEW_DATA
        else:
            self._report(SyncStatusLabel.ALREADY_UP_TO_DATE)
            outcome, label = SyncOutcome.UP_TO_DATE, SyncStatusLabel.ALREADY_UP_TO_DATE

        return SyncResult(
            outcome=outcome,
            message=STATUS_MESSAGES[label],
            changed=merge.changed,
            fetched=len(fetched.records),
            pushed=pushed,
            push_failures=len(pending) - pushed,
        )

    # ------------------------------------------------------------------
    # Status helpers
    # ------------------------------------------------------------------

    def _report(self, label: SyncStatusLabel) -> None:
        self._status = label
        if self._on_status is not None:
            self._on_status(label, STATUS_MESSAGES[label])

    def _schedule_reset(self) -> None:
        self._reset_task = asyncio.create_task(self._downgrade_status())

    async def _downgrade_status(self) -> None:
        await asyncio.sleep(self._status_reset_delay)
        self._report(SyncStatusLabel.UP_TO_DATE)

    def _cancel_pending_reset(self) -> None:
        if self._reset_task is not None and not self._reset_task.done():
            self._reset_task.cancel()
        self._reset_task = None

    async def aclose(self) -> None:
        """Cancel a pending status downgrade, if any."""
        task = self._reset_task
        self._cancel_pending_reset()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    async def wait_for_status_reset(self) -> None:
        """Wait until a scheduled "up to date" downgrade has been reported."""
        if self._reset_task is not None:
            await self._reset_task
