"""Prompt construction and decoding for structured extraction."""
import logging
from typing import List, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from .errors import InputError, ResponseError
from .schema import derive_schema
from .types import Message, MessageResponse, TextContent

logger = logging.getLogger(__name__)

T = TypeVar("T")

SCHEMA_PREAMBLE = "here is a protobuf schema:\n"
ACKNOWLEDGEMENT = "OK"
JSON_INSTRUCTION = "RETURN ONLY JSON DATA THAT IS VALIDATED AGAINST THE SCHEMA! "


def build_structured_messages(shape: type, prompt: str) -> List[Message]:
    """
    Build the three turn exchange used for structured extraction.

    The assistant turn is synthetic: it primes the model to treat the schema
    as context without an extra round trip.
    """
    schema = derive_schema(shape)
    return [
        Message(SCHEMA_PREAMBLE + schema),
        Message(ACKNOWLEDGEMENT, "assistant"),
        Message(JSON_INSTRUCTION + prompt),
    ]


def decode_text(shape: Type[T], text: str) -> T:
    """Validate JSON text against shape, raising InputError with the raw text."""
    try:
        # no coercion: true is not an int64, "42" is not a number
        return TypeAdapter(shape).validate_json(text, strict=True)
    except ValidationError as e:
        logger.debug(f"Model output did not match {shape.__name__}: {e.error_count()} errors")
        raise InputError(text) from e


def decode_response(shape: Type[T], response: MessageResponse) -> T:
    """Decode the first content block of a response into shape."""
    if not response.content:
        raise ResponseError(response)
    first = response.content[0]
    if not isinstance(first, TextContent):
        raise ResponseError(response)
    return decode_text(shape, first.text)
