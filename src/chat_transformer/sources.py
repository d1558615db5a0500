"""Discovery and loading of conversation export batches.

An input folder holds one unpacked export per platform, for example:
    raw/chat-gpt-2025-06-13/conversations.json
    raw/claude-2025-06-13/conversations.json
    raw/claude-2025-06-13/projects.json
"""

import json
from pathlib import Path
from typing import Any

from chat_transformer.logging import get_logger

logger = get_logger("sources")

CONVERSATIONS_FILE = "conversations.json"
PROJECTS_FILE = "projects.json"

# Export folder name prefixes per platform
PLATFORM_PREFIXES: dict[str, tuple[str, ...]] = {
    "chatgpt": ("chat-gpt", "chatgpt", "openai"),
    "claude": ("claude", "anthropic"),
}


class BatchReadError(OSError):
    """An export batch could not be read or is not a conversation array."""


def detect_platform(records: list[Any]) -> str | None:
    """Guess the platform of a decoded batch from its first object.

    ChatGPT conversations carry a node 'mapping'; Claude conversations carry
    a 'chat_messages' list.
    """
    for record in records:
        if not isinstance(record, dict):
            continue
        if "mapping" in record:
            return "chatgpt"
        if "chat_messages" in record:
            return "claude"
    return None


def _platform_from_name(name: str) -> str | None:
    lowered = name.lower()
    for platform, prefixes in PLATFORM_PREFIXES.items():
        if lowered.startswith(prefixes):
            return platform
    return None


def discover_exports(input_path: Path) -> dict[str, Path]:
    """Find the export folder for each platform under input_path.

    A folder counts as an export if it contains conversations.json. Its
    platform comes from the folder name, or from the file's content when the
    name is not recognized. The input folder itself may be an export.
    When several exports match a platform, the last one by name wins.

    Returns:
        Mapping of platform name to export folder
    """
    if not input_path.is_dir():
        raise BatchReadError(f"Input folder does not exist: {input_path}")

    candidates = sorted(p.parent for p in input_path.glob(f"*/{CONVERSATIONS_FILE}"))
    if (input_path / CONVERSATIONS_FILE).exists():
        candidates.insert(0, input_path)

    exports: dict[str, Path] = {}
    for folder in candidates:
        platform = _platform_from_name(folder.name)
        if platform is None:
            try:
                platform = detect_platform(load_batch(folder / CONVERSATIONS_FILE)[:50])
            except BatchReadError:
                logger.warning("Skipping unreadable export: path=%s", folder)
                continue
        if platform is None:
            logger.warning("Cannot detect platform for export: path=%s", folder)
            continue
        exports[platform] = folder

    for platform, folder in exports.items():
        logger.info("Found export: platform=%s path=%s", platform, folder)
    return exports


def load_batch(path: Path) -> list[Any]:
    """Load a conversations.json array into memory.

    Raises:
        BatchReadError: If the file cannot be read, is not valid JSON, or
            is not a JSON array
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise BatchReadError(f"Cannot read export batch {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise BatchReadError(f"Export batch {path} is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise BatchReadError(f"Export batch {path} is not a JSON array")

    logger.info(
        "Loaded export batch: path=%s conversations=%d size_mb=%.2f",
        path,
        len(data),
        path.stat().st_size / (1024 * 1024),
    )
    return data


def load_projects(path: Path) -> dict[str, str]:
    """Load a Claude projects.json file into a uuid -> name lookup.

    A missing or malformed file yields an empty lookup; conversations then
    carry no project association.
    """
    if not path.exists():
        logger.info("No projects file: path=%s", path)
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError):
        logger.warning("Could not load projects file: path=%s", path, exc_info=True)
        return {}

    projects: dict[str, str] = {}
    if not isinstance(data, list):
        logger.warning("Projects file is not a JSON array: path=%s", path)
        return projects

    for project in data:
        if not isinstance(project, dict):
            continue
        uuid = project.get("uuid")
        name = project.get("name")
        if isinstance(uuid, str) and uuid and isinstance(name, str):
            projects[uuid] = name
    return projects
