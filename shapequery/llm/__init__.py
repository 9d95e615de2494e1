# shapequery/llm/__init__.py
"""Message API client, content types and structured extraction."""

from .client import MessageAPI
from .content import normalize_content
from .errors import APIError, InputError, MessageError, ResponseError, SchemaError
from .schema import derive_schema
from .types import Content, Message, MessageResponse, TextContent, UnknownContent, Usage

__all__ = [
    "MessageAPI",
    "normalize_content",
    "derive_schema",
    "Message",
    "MessageResponse",
    "Content",
    "TextContent",
    "UnknownContent",
    "Usage",
    "MessageError",
    "InputError",
    "APIError",
    "ResponseError",
    "SchemaError",
]
