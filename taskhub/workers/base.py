"""Polling worker skeleton.

A worker owns one kind of work item and drives every item through the
same steps: claim it, process it, then record success or failure. Each
item is committed on its own so a failing item never undoes the work of
another one processed in the same cycle.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from sqlmodel import Session

T = TypeVar("T")


class WorkerStatus(str, Enum):
    """Outcome of one processing cycle."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    NO_WORK = "no_work"

    @classmethod
    def from_counts(cls, processed: int, failed: int) -> "WorkerStatus":
        if failed and processed:
            return cls.PARTIAL
        if failed:
            return cls.FAILED
        if processed:
            return cls.SUCCESS
        return cls.NO_WORK


class ItemOutcome(str, Enum):
    PROCESSED = "processed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class WorkerResult:
    """Counters for one cycle; `errors` holds one entry per failed item."""

    status: WorkerStatus
    processed_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0
    duration_ms: float = 0.0
    errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


class WorkerBase(ABC, Generic[T]):
    """Base for workers that poll the database for due items.

    Args:
        batch_size: Upper bound on items fetched per cycle
    """

    def __init__(self, batch_size: int = 50) -> None:
        self.batch_size = batch_size
        self._logger = logging.getLogger(self.__class__.__name__)

    @property
    @abstractmethod
    def worker_name(self) -> str:
        pass

    @abstractmethod
    def fetch_pending(self, session: Session) -> list[T]:
        """Items that are due, oldest first, at most batch_size of them."""
        pass

    @abstractmethod
    def mark_processing(self, session: Session, item: T) -> bool:
        """Claim `item`; False means someone else already has it."""
        pass

    @abstractmethod
    def process_item(self, session: Session, item: T) -> None:
        pass

    @abstractmethod
    def mark_completed(self, session: Session, item: T) -> None:
        pass

    @abstractmethod
    def mark_failed(
        self, session: Session, item: T, error: str, can_retry: bool
    ) -> None:
        """Record a failed attempt; `can_retry` says whether another one follows."""
        pass

    @abstractmethod
    def get_item_id(self, item: T) -> int:
        pass

    @abstractmethod
    def should_retry(self, item: T) -> bool:
        pass

    def _handle(self, session: Session, item: T, errors: list[dict[str, Any]]) -> ItemOutcome:
        item_id = self.get_item_id(item)
        try:
            if not self.mark_processing(session, item):
                return ItemOutcome.SKIPPED
            self.process_item(session, item)
            self.mark_completed(session, item)
            session.commit()
        except Exception as e:
            # Nothing the attempt wrote survives, only the failure record
            session.rollback()
            error = f"{e.__class__.__name__}: {e}"[:500]
            can_retry = self.should_retry(item)
            self.mark_failed(session, item, error, can_retry)
            session.commit()

            errors.append({"item_id": item_id, "error": error, "can_retry": can_retry})
            self._logger.error(
                f"[{self.worker_name}] Item {item_id} failed",
                extra={"item_id": item_id, "error": error, "can_retry": can_retry},
                exc_info=True,
            )
            return ItemOutcome.FAILED

        self._logger.debug(f"[{self.worker_name}] Item {item_id} done")
        return ItemOutcome.PROCESSED

    def run(self, session: Session) -> WorkerResult:
        """Process one batch of due items."""
        started = time.monotonic()
        counts = {outcome: 0 for outcome in ItemOutcome}
        errors: list[dict[str, Any]] = []

        try:
            items = self.fetch_pending(session)
        except Exception as e:
            self._logger.error(
                f"[{self.worker_name}] Could not fetch work",
                extra={"error": str(e)},
                exc_info=True,
            )
            return WorkerResult(
                status=WorkerStatus.FAILED,
                duration_ms=(time.monotonic() - started) * 1000,
                errors=[{"error": str(e)}],
            )

        for item in items:
            counts[self._handle(session, item, errors)] += 1

        processed = counts[ItemOutcome.PROCESSED]
        failed = counts[ItemOutcome.FAILED]
        result = WorkerResult(
            status=WorkerStatus.from_counts(processed, failed),
            processed_count=processed,
            failed_count=failed,
            skipped_count=counts[ItemOutcome.SKIPPED],
            duration_ms=(time.monotonic() - started) * 1000,
            errors=errors,
        )
        if items:
            self._logger.info(f"[{self.worker_name}] Cycle finished", extra=result.to_dict())
        return result

    def drain(self, session: Session, max_cycles: int = 100) -> list[WorkerResult]:
        """Run cycles until one finds nothing to do, at most `max_cycles`.

        Items queued while draining (such as the jobs a listener pushes)
        are picked up by a later cycle of the same call.
        """
        results: list[WorkerResult] = []
        for _ in range(max_cycles):
            result = self.run(session)
            results.append(result)
            if not result.processed_count and not result.failed_count:
                break
        return results
