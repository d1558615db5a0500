"""Linearization of conversation trees into chronological message sequences.

A ChatGPT conversation is a mapping of node id -> node, where each node
names its parent and children by id and optionally carries a message.
Edits and regenerations create branches, and real exports contain nodes
with no root, dangling references and occasional cycles. Linearization
walks every reachable node once and returns the messages sorted by time.
"""

import math
import re
from dataclasses import dataclass, field

from chat_transformer.converters.content import has_media_parts, join_fragments, normalize_parts
from chat_transformer.models import EMPTY_MESSAGE, NormalizedMessage, RawMessage, RawNode

FENCED_CODE_PATTERN = re.compile(r"```[\s\S]*?```")
INLINE_CODE_PATTERN = re.compile(r"`[^`]+`")


@dataclass
class Linearization:
    """Result of linearizing one conversation tree."""

    messages: list[NormalizedMessage] = field(default_factory=list)
    participants: list[str] = field(default_factory=list)
    has_code: bool = False
    has_media: bool = False
    warnings: list[str] = field(default_factory=list)


def contains_code(text: str) -> bool:
    """Detect fenced or inline code in message text."""
    return bool(FENCED_CODE_PATTERN.search(text) or INLINE_CODE_PATTERN.search(text))


def canonical_author(role: str, assistant_label: str = "Assistant") -> str:
    """Map a raw author role onto the fixed label set.

    Args:
        role: Raw role string (user, human, assistant, system, tool, ...)
        assistant_label: Label used for the assistant, e.g. 'ChatGPT'

    Returns:
        One of User, System, Tool, Other, or assistant_label
    """
    role = (role or "").strip().lower()
    if role in ("user", "human"):
        return "User"
    if role == "assistant":
        return assistant_label
    if role == "system":
        return "System"
    if role == "tool":
        return "Tool"
    return "Other"


class _Walker:
    """Children-first traversal state shared across all starting points."""

    def __init__(self, nodes: dict[str, RawNode], assistant_label: str) -> None:
        self.nodes = nodes
        self.assistant_label = assistant_label
        self.visited: set[str] = set()
        self.messages: list[NormalizedMessage] = []
        self.participants: set[str] = set()
        self.has_code = False
        self.has_media = False
        self.warnings: list[str] = []

    def walk(self, start_id: str) -> None:
        """Visit start_id and everything below it, children before parents.

        Uses an explicit stack so deep or malformed trees cannot hit the
        recursion limit. A node is marked visited when it is first popped,
        which matches the order of the equivalent recursive walk.
        """
        stack: list[tuple[str, bool]] = [(start_id, False)]

        while stack:
            node_id, children_done = stack.pop()

            if children_done:
                self._emit(self.nodes[node_id])
                continue

            if not node_id:
                continue
            if node_id in self.visited:
                self.warnings.append(f"node {node_id} reached more than once (cycle or shared child)")
                continue
            self.visited.add(node_id)

            node = self.nodes.get(node_id)
            if node is None:
                self.warnings.append(f"node {node_id} is referenced but missing from mapping")
                continue

            stack.append((node_id, True))
            for child_id in reversed(node.children):
                stack.append((child_id, False))

    def _emit(self, node: RawNode) -> None:
        # Placeholder nodes only anchor their children
        if node.message is None:
            return

        message: RawMessage = node.message
        content = join_fragments(normalize_parts(message.parts))
        if not content:
            content = EMPTY_MESSAGE

        if contains_code(content):
            self.has_code = True
        if has_media_parts(message.parts):
            self.has_media = True

        author = canonical_author(message.role, self.assistant_label)
        self.participants.add(author)

        self.messages.append(
            NormalizedMessage(
                id=message.id or node.id,
                author=author,
                content=content,
                # NaN would break the ordering of the final sort
                ts=message.ts if math.isfinite(message.ts) else 0.0,
                metadata=message.metadata,
            )
        )


def linearize(
    nodes: dict[str, RawNode],
    current_node: str | None = None,
    assistant_label: str = "Assistant",
) -> Linearization:
    """Flatten a conversation tree into a chronological message sequence.

    Traversal starts from every node without a parent. When there is none,
    it starts from current_node if that node exists and was not yet
    visited, otherwise from the first unvisited node carrying a message.
    Messages are then sorted by timestamp; the sort is stable, so equal
    timestamps keep traversal order.

    Structural anomalies never raise; they are reported in the returned
    warnings.

    Args:
        nodes: Mapping of node id to RawNode
        current_node: Id of the conversation's current (latest) node, if any
        assistant_label: Canonical label for assistant messages

    Returns:
        Linearization with messages, participants, flags and warnings
    """
    walker = _Walker(nodes, assistant_label)

    roots = [node_id for node_id, node in nodes.items() if not node.parent]
    for root_id in roots:
        walker.walk(root_id)

    if nodes and not roots:
        walker.warnings.append("no root node found")
        if current_node and current_node in nodes and current_node not in walker.visited:
            walker.walk(current_node)
        else:
            walker.warnings.append("current node unusable, starting from first message node")
            for node_id, node in nodes.items():
                if node.message is not None and node_id not in walker.visited:
                    walker.walk(node_id)
                    break

    for node_id, node in nodes.items():
        if node.parent and node.parent not in nodes:
            walker.warnings.append(f"node {node_id} has dangling parent {node.parent}")

    unreachable = sum(
        1 for node_id, node in nodes.items() if node.message is not None and node_id not in walker.visited
    )
    if unreachable:
        walker.warnings.append(f"{unreachable} message node(s) unreachable from traversal start")

    return Linearization(
        messages=sorted(walker.messages, key=lambda m: m.ts),
        participants=sorted(walker.participants),
        has_code=walker.has_code,
        has_media=walker.has_media,
        warnings=walker.warnings,
    )
