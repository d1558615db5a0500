"""Typesense indexer for converted conversations and their messages."""

from typing import Any

import typesense
from typesense.exceptions import ObjectNotFound

from chat_transformer.config import TypesenseConfig
from chat_transformer.logging import get_logger
from chat_transformer.models import ConversationRecord

logger = get_logger("search_index")

MESSAGES_SCHEMA: dict[str, Any] = {
    "name": "messages",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "conversation_id", "type": "string", "facet": True},
        {"name": "platform", "type": "string", "facet": True},
        {"name": "project", "type": "string", "facet": True},
        {"name": "author", "type": "string", "facet": True},
        {"name": "content", "type": "string"},
        {"name": "ts", "type": "int64", "sort": True},
        {"name": "position", "type": "int32"},
    ],
    "default_sorting_field": "ts",
}

CONVERSATIONS_SCHEMA: dict[str, Any] = {
    "name": "conversations",
    "fields": [
        {"name": "id", "type": "string"},
        {"name": "title", "type": "string"},
        {"name": "platform", "type": "string", "facet": True},
        {"name": "project", "type": "string", "facet": True},
        {"name": "created_ts", "type": "int64", "sort": True},
        {"name": "updated_ts", "type": "int64", "sort": True},
        {"name": "message_count", "type": "int32"},
        {"name": "participants", "type": "string[]", "facet": True},
        {"name": "topics", "type": "string[]", "facet": True},
        {"name": "has_code", "type": "bool", "facet": True},
        {"name": "has_media", "type": "bool", "facet": True},
        {"name": "file_path", "type": "string"},
    ],
    "default_sorting_field": "updated_ts",
}


def conversation_document(record: ConversationRecord) -> dict[str, Any]:
    """Convert a record's metadata to a Typesense conversation document."""
    doc = record.metadata.to_dict()
    doc["created_ts"] = int(doc["created_ts"])
    doc["updated_ts"] = int(doc["updated_ts"])
    return doc


def message_documents(record: ConversationRecord) -> list[dict[str, Any]]:
    """Convert a record's messages to Typesense message documents."""
    meta = record.metadata
    return [
        {
            "id": f"{meta.id}:{msg.id}",
            "conversation_id": meta.id,
            "platform": meta.platform,
            "project": meta.project,
            "author": msg.author,
            "content": msg.content,
            "ts": int(msg.ts),
            "position": position,
        }
        for position, msg in enumerate(record.messages)
    ]


class TypesenseIndexer:
    """Indexes conversations and messages in Typesense.

    Handles collection creation/verification and document upserts.
    """

    def __init__(self, config: TypesenseConfig) -> None:
        """Initialize indexer with Typesense configuration.

        Args:
            config: TypesenseConfig with connection details
        """
        self._config = config
        self._client = typesense.Client({
            "nodes": [{
                "host": config.host,
                "port": str(config.port),
                "protocol": config.protocol,
            }],
            "api_key": config.api_key,
            "connection_timeout_seconds": 5,
        })

    @property
    def client(self) -> typesense.Client:
        """Access the underlying Typesense client."""
        return self._client

    def ensure_collections(self) -> None:
        """Create the 'conversations' and 'messages' collections if missing."""
        self._ensure_collection(MESSAGES_SCHEMA)
        self._ensure_collection(CONVERSATIONS_SCHEMA)

    def _ensure_collection(self, schema: dict[str, Any]) -> None:
        name = schema["name"]
        try:
            self._client.collections[name].retrieve()
            logger.debug("Collection already exists: collection=%s", name)
        except ObjectNotFound:
            self._client.collections.create(schema)
            logger.info("Created collection: collection=%s", name)

    def index_record(self, record: ConversationRecord) -> dict[str, int]:
        """Upsert one conversation and all of its messages.

        Failures are logged, never raised, so a search outage cannot fail
        a conversion run.

        Args:
            record: Persisted conversation record

        Returns:
            Dict with counts: {"success": N, "failed": M} for messages
        """
        try:
            self._client.collections["conversations"].documents.upsert(conversation_document(record))
        except Exception:
            logger.exception("Failed to index conversation: id=%s", record.id)
            return {"success": 0, "failed": len(record.messages)}

        documents = message_documents(record)
        if not documents:
            return {"success": 0, "failed": 0}

        try:
            results = self._client.collections["messages"].documents.import_(
                documents,
                {"action": "upsert"},
            )
        except Exception:
            logger.exception("Failed to index messages: conversation=%s", record.id)
            return {"success": 0, "failed": len(documents)}

        success = 0
        failed = 0
        for result in results:
            if result.get("success", False):
                success += 1
            else:
                failed += 1
                logger.debug("Failed to index message: error=%s", result.get("error", "unknown"))

        if failed > 0:
            logger.warning(
                "Some messages failed to index: conversation=%s success=%d failed=%d",
                record.id,
                success,
                failed,
            )

        return {"success": success, "failed": failed}

    def search_conversations(
        self,
        query: str,
        page: int = 1,
        per_page: int = 10,
        filters: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Search conversations by title.

        Args:
            query: Search query string (use "*" for all)
            page: Page number (1-based)
            per_page: Number of results per page
            filters: dictionary of filters (platform, project, topic)

        Returns:
            Search results from Typesense
        """
        search_params: dict[str, Any] = {
            "q": query,
            "query_by": "title",
            "page": page,
            "per_page": per_page,
            "sort_by": "updated_ts:desc",
        }

        if filters:
            filter_parts = []
            if "platform" in filters:
                filter_parts.append(f"platform:={filters['platform']}")
            if "project" in filters:
                filter_parts.append(f"project:={filters['project']}")
            if "topic" in filters:
                filter_parts.append(f"topics:={filters['topic']}")

            if filter_parts:
                search_params["filter_by"] = " && ".join(filter_parts)

        return self._client.collections["conversations"].documents.search(search_params)
