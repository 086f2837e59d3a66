"""
Batch matching service: match every payload (or a selection) against the catalog.

The run is a payload x container cross product, so payloads are fanned out
over a bounded thread pool. Each worker owns its own session and runs one
payload's search and upsert batch sequentially, then commits. A failing
payload is rolled back and counted; the other payloads carry on.

The run stops scheduling new payloads when the timeout elapses or the
cancel event is set. Payloads already in flight are allowed to finish, and
the partial result is returned with ``cancelled`` set.
"""

import logging
import threading
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.orm import Session, sessionmaker

from casefit.config import get_settings
from casefit.matching.engine import CatalogMatcher, MatchingOptions
from casefit.repositories.cache import CachedContainerRepository, ContainerQueryCache
from casefit.repositories.ports import MatchRepository
from casefit.repositories.sql_repositories import (
    SqlContainerRepository,
    SqlMatchRepository,
    SqlPayloadRepository,
)

logger = logging.getLogger(__name__)

# How often the coordinator re-checks the cancel event while waiting
POLL_INTERVAL_SECONDS = 0.1

SCORE_BUCKETS = [(0, 20), (20, 40), (40, 60), (60, 80), (80, 100)]


def build_catalog_matcher(
    db: Session,
    cache: ContainerQueryCache | None = None,
    settings=None,
) -> CatalogMatcher:
    """Wire SQL repositories (optionally cached) into a CatalogMatcher."""
    containers = SqlContainerRepository(db)
    if cache is not None:
        containers = CachedContainerRepository(containers, cache)
    return CatalogMatcher(
        payloads=SqlPayloadRepository(db),
        containers=containers,
        matches=SqlMatchRepository(db),
        settings=settings,
    )


@dataclass
class BatchMatchingResult:
    total_payloads: int = 0
    processed: int = 0
    failed: int = 0
    not_started: int = 0
    candidates: int = 0
    matches_upserted: int = 0
    skipped_candidates: int = 0
    cancelled: bool = False
    timed_out: bool = False
    started_at: datetime = field(default_factory=datetime.utcnow)
    completed_at: datetime | None = None
    errors: list = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_payloads": self.total_payloads,
            "processed": self.processed,
            "failed": self.failed,
            "not_started": self.not_started,
            "candidates": self.candidates,
            "matches_upserted": self.matches_upserted,
            "skipped_candidates": self.skipped_candidates,
            "cancelled": self.cancelled,
            "timed_out": self.timed_out,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "errors": self.errors,
        }


def _match_payload(
    session_factory: sessionmaker,
    payload_id,
    options: MatchingOptions | None,
    cache: ContainerQueryCache | None,
    settings,
) -> dict:
    db = session_factory()
    try:
        matcher = build_catalog_matcher(db, cache=cache, settings=settings)
        result = matcher.find_compatible_containers(payload_id, options)
        db.commit()
        return result.to_dict()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _collect(future, payload_id, result: BatchMatchingResult) -> None:
    try:
        summary = future.result()
    except Exception as e:
        logger.error("Batch matching failed for payload %s: %s", payload_id, str(e))
        result.failed += 1
        result.errors.append(f"Payload {payload_id}: {str(e)}")
        return

    result.processed += 1
    result.candidates += summary["candidates"]
    result.matches_upserted += summary["matches_upserted"]
    result.skipped_candidates += summary["skipped"]
    result.errors.extend(summary["errors"])


def _list_payload_ids(session_factory: sessionmaker) -> list:
    db = session_factory()
    try:
        return SqlPayloadRepository(db).list_ids()
    finally:
        db.close()


def run_batch_matching(
    session_factory: sessionmaker,
    payload_ids: list | None = None,
    options: MatchingOptions | None = None,
    max_workers: int | None = None,
    timeout_seconds: float | None = None,
    cancel_event: threading.Event | None = None,
    cache: ContainerQueryCache | None = None,
) -> BatchMatchingResult:
    """
    Run the catalog matcher for many payloads in parallel.

    Args:
        session_factory: creates one session per worker task
        payload_ids: payloads to match (default: all, most popular first)
        options: MatchingOptions applied to every payload
        max_workers: pool size (default from settings)
        timeout_seconds: overall deadline (default from settings)
        cancel_event: set it to stop scheduling further payloads
        cache: shared container query cache

    Returns:
        BatchMatchingResult with per-run counts and any errors.
    """
    settings = get_settings()
    max_workers = max_workers or settings.batch_max_workers
    if timeout_seconds is None:
        timeout_seconds = settings.batch_timeout_seconds
    cancel_event = cancel_event or threading.Event()

    result = BatchMatchingResult()

    if payload_ids is None:
        payload_ids = _list_payload_ids(session_factory)
    result.total_payloads = len(payload_ids)

    logger.info(
        "Starting batch matching: %d payloads, %d workers, timeout %.0fs",
        len(payload_ids),
        max_workers,
        timeout_seconds,
    )

    deadline = time.monotonic() + timeout_seconds
    executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="casefit-match")
    try:
        pending = {
            executor.submit(_match_payload, session_factory, payload_id, options, cache, settings): payload_id
            for payload_id in payload_ids
        }

        while pending:
            if cancel_event.is_set():
                result.cancelled = True
                break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                result.cancelled = True
                result.timed_out = True
                break

            done, _ = wait(pending, timeout=min(remaining, POLL_INTERVAL_SECONDS), return_when=FIRST_COMPLETED)
            for future in done:
                _collect(future, pending.pop(future), result)

        in_flight = {}
        for future, payload_id in pending.items():
            if future.cancel():
                result.not_started += 1
            else:
                in_flight[future] = payload_id
        if pending:
            logger.warning(
                "Batch matching %s: %d payloads not started",
                "timed out" if result.timed_out else "cancelled",
                result.not_started,
            )
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    # Payloads already running when the run stopped have finished by now
    for future, payload_id in in_flight.items():
        _collect(future, payload_id, result)

    result.completed_at = datetime.utcnow()

    logger.info(
        "Batch matching complete: %d processed, %d failed, %d not started, %d matches upserted",
        result.processed,
        result.failed,
        result.not_started,
        result.matches_upserted,
    )

    return result


def get_match_statistics(matches: MatchRepository) -> dict:
    """Total, average score and 20-point score buckets over all matches."""
    scores = matches.scores()
    total = len(scores)

    distribution = []
    for low, high in SCORE_BUCKETS:
        # The top bucket includes 100
        if high == 100:
            count = sum(1 for s in scores if low <= s <= high)
        else:
            count = sum(1 for s in scores if low <= s < high)
        distribution.append({
            "range": f"{low}-{high}",
            "count": count,
            "percentage": count / total * 100 if total else 0.0,
        })

    return {
        "total_matches": total,
        "average_score": sum(scores) / total if total else 0.0,
        "score_distribution": distribution,
    }
