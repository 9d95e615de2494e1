"""Exceptions raised by the message API client."""
from typing import Any, Optional

from .types import MessageResponse


class MessageError(Exception):
    """Base exception for message API errors."""
    pass


class InputError(MessageError):
    """
    Caller or model supplied data is invalid.

    ``value`` holds the offending literal: an out of range temperature, or the
    model text that could not be decoded into the requested shape.
    """

    def __init__(self, value: Any, message: Optional[str] = None):
        self.value = value
        super().__init__(message if message is not None else str(value))


class APIError(MessageError):
    """The API answered with a status that is not a usable success."""

    def __init__(self, status_code: int, reason: str, body: str):
        self.status_code = status_code
        self.reason = reason
        self.body = body
        super().__init__(f"{reason} : {body}")


class ResponseError(MessageError):
    """The response arrived but cannot be used for structured extraction."""

    def __init__(self, response: MessageResponse):
        self.response = response
        super().__init__(repr(response))


class SchemaError(MessageError):
    """A target shape cannot be described as schema text."""

    def __init__(self, shape: Any, detail: str):
        self.shape = shape
        self.detail = detail
        name = getattr(shape, "__name__", repr(shape))
        super().__init__(f"Cannot derive schema for {name}: {detail}")
