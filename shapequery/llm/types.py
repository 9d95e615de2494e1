"""Types for message API interactions."""
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union


@dataclass(frozen=True)
class Message:
    """A single conversation turn sent to the API."""
    content: str
    role: str = "user"


@dataclass(frozen=True)
class Usage:
    """Token accounting reported by the API."""
    input_tokens: int
    output_tokens: int


@dataclass(frozen=True)
class TextContent:
    """Plain text content block."""
    text: str


@dataclass(frozen=True)
class UnknownContent:
    """
    Any content block that is not plain text.

    Fields are carried over from the raw block unchanged, so tool-use style
    payloads can still be inspected by callers. A block whose fields have
    unexpected JSON types keeps those values as they arrived.
    """
    id: Optional[Any] = None
    type: Optional[Any] = None
    name: Optional[Any] = None
    input: Optional[Any] = None
    text: Optional[Any] = None

    def __hash__(self) -> int:
        # raw values may be unhashable, hash strings and the type of anything else
        return hash(tuple(
            v if isinstance(v, str) or v is None else type(v).__name__
            for v in (self.id, self.type, self.name, self.text)
        ))


Content = Union[TextContent, UnknownContent]


@dataclass(frozen=True)
class MessageResponse:
    """Response from a single message exchange."""
    id: str
    type: str
    role: str
    content: Tuple[Content, ...]
    model: str
    stop_reason: str
    usage: Usage
    stop_sequence: Optional[str] = None

    @property
    def text(self) -> str:
        """Concatenated text of all text content blocks."""
        return "".join(c.text for c in self.content if isinstance(c, TextContent))
