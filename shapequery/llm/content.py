"""Classification of raw content blocks into typed content."""
import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from .types import Content, TextContent, UnknownContent
from .wire import ContentResponse

logger = logging.getLogger(__name__)

_FIELDS = ("id", "type", "name", "input", "text")


def _classify(fields: Mapping[str, Any]) -> Content:
    if fields.get("type") == "text" and isinstance(fields.get("text"), str):
        return TextContent(fields["text"])
    logger.debug(f"Unrecognized content block type: {fields.get('type')!r}")
    return UnknownContent(**{key: fields.get(key) for key in _FIELDS})


def normalize_content(raw: Union[ContentResponse, Mapping[str, Any]]) -> Content:
    """
    Map a raw content block onto TextContent or UnknownContent.

    A block is text only when its type is "text" and it carries a text value;
    every other block becomes UnknownContent with its fields preserved.
    A mapping whose fields have unexpected types keeps those values verbatim.
    This never raises.
    """
    if isinstance(raw, ContentResponse):
        return _classify(raw.model_dump(include=set(_FIELDS)))
    if not isinstance(raw, Mapping):
        logger.debug(f"Content block of type {type(raw).__name__} is not a mapping")
        return UnknownContent()
    try:
        block = ContentResponse.model_validate(raw)
    except ValidationError:
        logger.debug("Content block has mistyped fields, keeping raw values")
        return _classify(raw)
    return _classify(block.model_dump(include=set(_FIELDS)))
