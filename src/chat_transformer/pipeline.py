"""Bounded-concurrency conversion of a batch of raw conversation records."""

import concurrent.futures
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from chat_transformer.config import DEFAULT_PROGRESS_EVERY, DEFAULT_WORKERS
from chat_transformer.converters import Conversion, Converter
from chat_transformer.logging import get_logger
from chat_transformer.models import ConversationRecord

logger = get_logger("pipeline")

# Number of errors echoed in the batch summary
MAX_REPORTED_ERRORS = 5

RecordCallback = Callable[[ConversationRecord], Any]


@dataclass
class BatchError:
    """A record that failed to convert, or whose callback failed."""

    index: int
    stage: str  # convert, callback
    error: Exception
    conversation_id: str | None = None


@dataclass
class BatchResult:
    """Aggregate outcome of one batch."""

    total: int = 0
    success_count: int = 0  # Converted and handed off without error
    converted_count: int = 0  # Converted, regardless of callback outcome
    errors: list[BatchError] = field(default_factory=list)
    warnings: int = 0
    message_count: int = 0

    @property
    def failed_count(self) -> int:
        return len(self.errors)


@dataclass
class _ItemOutcome:
    index: int
    conversion: Conversion | None = None
    error: BatchError | None = None


def _process_item(
    index: int,
    raw: Any,
    converter: Converter,
    on_record: RecordCallback | None,
) -> _ItemOutcome:
    """Convert one record and hand it to the callback.

    Runs on a worker thread; every exception is captured in the outcome so
    one bad record never reaches the other workers.
    """
    try:
        conversion = converter.convert(raw)
    except Exception as e:
        return _ItemOutcome(index, error=BatchError(index, "convert", e))

    outcome = _ItemOutcome(index, conversion=conversion)
    if on_record is not None:
        try:
            on_record(conversion.record)
        except Exception as e:
            outcome.error = BatchError(index, "callback", e, conversion.record.id)
    return outcome


def process_batch(
    raw_records: list[Any],
    converter: Converter,
    on_record: RecordCallback | None = None,
    workers: int = DEFAULT_WORKERS,
    progress_every: int = DEFAULT_PROGRESS_EVERY,
) -> BatchResult:
    """Convert a batch of raw records on a fixed-size thread pool.

    Records complete in no particular order. Each record is isolated: a
    decode error or a failing callback is recorded against its index and
    the rest of the batch carries on.

    Args:
        raw_records: Decoded conversation array from an export
        converter: Converter for the export's platform
        on_record: Called with each converted record (persist + index)
        workers: Maximum number of worker threads
        progress_every: Log progress every N completed records

    Returns:
        BatchResult with counts and per-record errors
    """
    result = BatchResult(total=len(raw_records))
    if not raw_records:
        return result

    num_workers = max(1, min(workers, len(raw_records)))
    logger.info(
        "Processing batch: platform=%s records=%d workers=%d",
        converter.platform,
        len(raw_records),
        num_workers,
    )

    completed = 0
    with concurrent.futures.ThreadPoolExecutor(max_workers=num_workers) as executor:
        futures = [
            executor.submit(_process_item, idx, raw, converter, on_record)
            for idx, raw in enumerate(raw_records)
        ]
        for future in concurrent.futures.as_completed(futures):
            outcome = future.result()
            completed += 1

            if outcome.conversion is not None:
                result.converted_count += 1
                result.message_count += len(outcome.conversion.record.messages)
                for warning in outcome.conversion.warnings:
                    logger.warning("Structural anomaly: %s", warning)
                result.warnings += len(outcome.conversion.warnings)

            if outcome.error is not None:
                result.errors.append(outcome.error)
                logger.error(
                    "Record failed: index=%d stage=%s conversation=%s error=%s",
                    outcome.error.index,
                    outcome.error.stage,
                    outcome.error.conversation_id or "-",
                    outcome.error.error,
                )
            else:
                result.success_count += 1

            if progress_every > 0 and (completed % progress_every == 0 or completed == result.total):
                logger.info("Processed %d/%d conversations", completed, result.total)

    result.errors.sort(key=lambda e: e.index)

    logger.info(
        "Batch complete: platform=%s success=%d converted=%d failed=%d warnings=%d",
        converter.platform,
        result.success_count,
        result.converted_count,
        result.failed_count,
        result.warnings,
    )
    for error in result.errors[:MAX_REPORTED_ERRORS]:
        logger.warning("  - index=%d stage=%s: %s", error.index, error.stage, error.error)
    if result.failed_count > MAX_REPORTED_ERRORS:
        logger.warning("  ... and %d more errors", result.failed_count - MAX_REPORTED_ERRORS)

    return result
