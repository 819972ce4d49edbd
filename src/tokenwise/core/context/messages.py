"""Conversation message model used by the token engine.

Message content is either plain text or an ordered list of typed content
blocks. The engine never interprets what a message means; it only sizes
messages and, during compaction, strips or merges their content.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Union

from tokenwise.core.context.token_counter import estimate_tokens

# Flat token cost charged for an image block, whatever its resolution
IMAGE_TOKEN_ESTIMATE = 200


@dataclass(frozen=True)
class TextBlock:
    """A plain text content block."""

    text: str
    type: str = field(default="text", init=False)

    def estimate_size(self) -> int:
        return estimate_tokens(self.text)

    def as_text(self) -> str:
        return self.text

    def to_dict(self) -> dict[str, Any]:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImageBlock:
    """An image content block; the payload is carried through untouched."""

    source: dict[str, Any] = field(default_factory=dict)
    type: str = field(default="image", init=False)

    def estimate_size(self) -> int:
        return IMAGE_TOKEN_ESTIMATE

    def as_text(self) -> str:
        return ""

    def to_dict(self) -> dict[str, Any]:
        return {"type": "image", "source": dict(self.source)}


@dataclass(frozen=True)
class ToolUseBlock:
    """A tool invocation requested by the assistant."""

    id: str
    name: str
    input: dict[str, Any] = field(default_factory=dict)
    type: str = field(default="tool_use", init=False)

    def estimate_size(self) -> int:
        return estimate_tokens(self.name) + estimate_tokens(
            json.dumps(self.input, separators=(",", ":"), default=str)
        )

    def as_text(self) -> str:
        return f"[tool_use {self.name}]"

    def to_dict(self) -> dict[str, Any]:
        return {"type": "tool_use", "id": self.id, "name": self.name, "input": dict(self.input)}


@dataclass(frozen=True)
class ToolResultBlock:
    """The result of a tool invocation."""

    tool_use_id: str
    content: str = ""
    is_error: bool = False
    type: str = field(default="tool_result", init=False)

    def estimate_size(self) -> int:
        return estimate_tokens(self.content)

    def as_text(self) -> str:
        return self.content

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": "tool_result",
            "tool_use_id": self.tool_use_id,
            "content": self.content,
        }
        if self.is_error:
            data["is_error"] = True
        return data


ContentBlock = Union[TextBlock, ImageBlock, ToolUseBlock, ToolResultBlock]


@dataclass(frozen=True)
class PlainText:
    """Message content that is a single string."""

    text: str

    def estimate_size(self) -> int:
        return estimate_tokens(self.text)

    def as_text(self) -> str:
        return self.text

    def to_wire(self) -> str:
        return self.text


@dataclass(frozen=True)
class Blocks:
    """Message content that is an ordered sequence of content blocks."""

    blocks: tuple[ContentBlock, ...] = ()

    def estimate_size(self) -> int:
        return sum(block.estimate_size() for block in self.blocks)

    def as_text(self) -> str:
        return "\n".join(text for text in (b.as_text() for b in self.blocks) if text)

    def to_wire(self) -> list[dict[str, Any]]:
        return [block.to_dict() for block in self.blocks]

    @property
    def image_count(self) -> int:
        return sum(1 for block in self.blocks if isinstance(block, ImageBlock))


MessageContent = Union[PlainText, Blocks]


def block_from_dict(data: dict[str, Any]) -> ContentBlock:
    """
    Build a content block from its provider-style dictionary.

    Unknown block types are kept as text so nothing is silently lost.

    Args:
        data: Block dictionary with a 'type' key

    Returns:
        The matching content block
    """
    block_type = data.get("type", "text")
    if block_type == "image":
        return ImageBlock(source=dict(data.get("source", {})))
    if block_type == "tool_use":
        return ToolUseBlock(
            id=str(data.get("id", "")),
            name=str(data.get("name", "")),
            input=dict(data.get("input", {})),
        )
    if block_type == "tool_result":
        content = data.get("content", "")
        if isinstance(content, list):
            content = "\n".join(
                part.get("text", "") for part in content if isinstance(part, dict)
            )
        return ToolResultBlock(
            tool_use_id=str(data.get("tool_use_id", "")),
            content=str(content),
            is_error=bool(data.get("is_error", False)),
        )
    if block_type == "text":
        return TextBlock(text=str(data.get("text", "")))
    return TextBlock(text=json.dumps(data, default=str))


@dataclass(frozen=True)
class Message:
    """A single conversation turn as seen by the token engine."""

    role: str
    content: MessageContent

    @classmethod
    def text(cls, role: str, text: str) -> "Message":
        """Shorthand for a plain-text message."""
        return cls(role=role, content=PlainText(text))

    @classmethod
    def from_blocks(cls, role: str, blocks: list[ContentBlock]) -> "Message":
        """Shorthand for a block-content message."""
        return cls(role=role, content=Blocks(tuple(blocks)))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """
        Convert a provider-style message dict.

        A string 'content' becomes PlainText, a list becomes Blocks.

        Args:
            data: Dict with 'role' and 'content'

        Returns:
            Message instance
        """
        role = str(data.get("role", ""))
        content = data.get("content", "")
        if isinstance(content, list):
            blocks = tuple(block_from_dict(part) for part in content if isinstance(part, dict))
            return cls(role=role, content=Blocks(blocks))
        if content is None:
            content = ""
        return cls(role=role, content=PlainText(str(content)))

    def to_dict(self) -> dict[str, Any]:
        """Convert back to a provider-style message dict."""
        return {"role": self.role, "content": self.content.to_wire()}

    def estimate_size(self) -> int:
        """Heuristic token size of the content (no per-message overhead)."""
        return self.content.estimate_size()

    @property
    def is_plain_text(self) -> bool:
        return isinstance(self.content, PlainText)

    def with_content(self, content: MessageContent) -> "Message":
        """Return a copy of this message carrying different content."""
        return replace(self, content=content)


def to_messages(items: list[Message | dict[str, Any]]) -> list[Message]:
    """Normalize a mixed list of Message objects and message dicts."""
    return [item if isinstance(item, Message) else Message.from_dict(item) for item in items]
