"""One transformation run: discover exports, convert, persist, index, report."""

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from chat_transformer.aggregate import AggregateIndex
from chat_transformer.config import Config
from chat_transformer.converters import ChatGPTConverter, ClaudeConverter, Converter
from chat_transformer.logging import get_logger
from chat_transformer.models import ConversationRecord
from chat_transformer.pipeline import BatchResult, process_batch
from chat_transformer.search_index import TypesenseIndexer
from chat_transformer.sources import CONVERSATIONS_FILE, PROJECTS_FILE, discover_exports, load_batch, load_projects
from chat_transformer.store import ConversationStore

logger = get_logger("transformer")

REPORT_FILE = "transformation_report.json"


@dataclass
class RunReport:
    """Per-platform batch results for a run."""

    results: dict[str, BatchResult] = field(default_factory=dict)
    started_at: float = 0.0
    finished_at: float = 0.0

    @property
    def processed(self) -> int:
        return sum(r.success_count for r in self.results.values())

    @property
    def failed(self) -> int:
        return sum(r.failed_count for r in self.results.values())

    @property
    def warnings(self) -> int:
        return sum(r.warnings for r in self.results.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "transformation_completed": datetime.fromtimestamp(self.finished_at, tz=timezone.utc).isoformat(),
            "duration_seconds": round(self.finished_at - self.started_at, 3),
            "statistics": {
                platform: {
                    "conversations_total": r.total,
                    "conversations_converted": r.converted_count,
                    "conversations_stored": r.success_count,
                    "conversations_failed": r.failed_count,
                    "warnings": r.warnings,
                    "messages_processed": r.message_count,
                }
                for platform, r in self.results.items()
            },
            "errors": [
                {
                    "platform": platform,
                    "index": e.index,
                    "stage": e.stage,
                    "conversation_id": e.conversation_id,
                    "error": str(e.error),
                }
                for platform, r in self.results.items()
                for e in r.errors
            ],
        }


def build_converter(platform: str, export_path: Path, config: Config) -> Converter:
    """Create the converter for a platform's export folder."""
    keywords = config.topics.keywords
    if platform == "claude":
        return ClaudeConverter(keywords, projects=load_projects(export_path / PROJECTS_FILE))
    if platform == "chatgpt":
        return ChatGPTConverter(keywords)
    raise ValueError(f"Unsupported platform: {platform}")


def connect_search_index(config: Config) -> TypesenseIndexer | None:
    """Connect to Typesense when enabled; indexing is skipped if unreachable."""
    if not config.typesense.enabled:
        return None
    try:
        indexer = TypesenseIndexer(config.typesense)
        indexer.ensure_collections()
    except Exception:
        logger.warning("Could not connect to Typesense, search indexing disabled", exc_info=True)
        return None
    logger.info("Connected to Typesense: host=%s port=%d", config.typesense.host, config.typesense.port)
    return indexer


def run_transformation(
    config: Config,
    platforms: list[str] | None = None,
    search_index: TypesenseIndexer | None = None,
) -> RunReport:
    """Transform every selected export under config.input_path.

    Each platform's batch is converted on the worker pool. For every
    converted record the callback persists it, adds it to the aggregate
    index and, when a search index is given, upserts it there. Indexes
    and a report are written to config.output_path at the end.

    Args:
        config: Application configuration
        platforms: Platforms to process (defaults to all discovered)
        search_index: Optional Typesense indexer

    Returns:
        RunReport with one BatchResult per processed platform

    Raises:
        BatchReadError: If the input folder or an export batch cannot be read
    """
    report = RunReport(started_at=time.time())
    output_path = config.output_path
    output_path.mkdir(parents=True, exist_ok=True)

    exports = discover_exports(config.input_path)
    selected = platforms if platforms is not None else sorted(exports)

    store = ConversationStore(output_path)
    index = AggregateIndex()

    def on_record(record: ConversationRecord) -> None:
        stored = store.save(record)
        index.record(stored.metadata)
        if search_index is not None:
            search_index.index_record(stored)

    for platform in selected:
        export_path = exports.get(platform)
        if export_path is None:
            logger.warning("No export found: platform=%s input=%s", platform, config.input_path)
            continue

        records = load_batch(export_path / CONVERSATIONS_FILE)
        converter = build_converter(platform, export_path, config)
        report.results[platform] = process_batch(
            records,
            converter,
            on_record,
            workers=config.pipeline.workers,
            progress_every=config.pipeline.progress_every,
        )

    index.write(output_path)

    report.finished_at = time.time()
    with open(output_path / REPORT_FILE, "w", encoding="utf-8") as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)

    logger.info(
        "Transformation complete: processed=%d failed=%d warnings=%d",
        report.processed,
        report.failed,
        report.warnings,
    )
    return report
