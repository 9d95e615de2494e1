# shapequery/llm/client.py
"""Client for the Anthropic Messages API with structured extraction."""

import logging
from typing import Optional, Sequence, Tuple, Type, TypeVar, Union

import httpx
from pydantic import ValidationError

from .content import normalize_content
from .errors import APIError, InputError
from .structured import build_structured_messages, decode_response
from .types import Message, MessageResponse, Usage
from .wire import MessageRequestBody, MessageResponseBody, WireMessage

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BASE_URL = "https://api.anthropic.com"
MESSAGES_PATH = "/v1/messages"
DEFAULT_ANTHROPIC_VERSION = "2023-06-01"
DEFAULT_MODEL = "claude-3-5-sonnet-20240620"
DEFAULT_MAX_TOKENS = 1024
# Anthropic's default temperature
DEFAULT_TEMPERATURE = 1.0
DEFAULT_TEMPERATURE_RANGE = (0.0, 1.0)

_UNSET = object()


class MessageAPI:
    """
    Async client owning one pooled HTTP session.

    The session is opened at construction and released by ``aclose()``.
    Use the client as an async context manager to guarantee release:

        async with MessageAPI(api_key) as api:
            person = await api.ask(Person, "return a random person")
    """

    def __init__(
        self,
        api_key: str,
        anthropic_version: str = DEFAULT_ANTHROPIC_VERSION,
        *,
        base_url: str = DEFAULT_BASE_URL,
        model: str = DEFAULT_MODEL,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: Optional[float] = DEFAULT_TEMPERATURE,
        temperature_range: Tuple[float, float] = DEFAULT_TEMPERATURE_RANGE,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: Credential sent in the x-api-key header
            anthropic_version: Value of the anthropic-version header
            base_url: API root, the messages path is appended to it
            model: Default model for create() and ask()
            max_tokens: Default completion token limit
            temperature: Default sampling temperature, None lets the API decide
            temperature_range: Inclusive bounds accepted for temperature
            timeout: Total request timeout in seconds
            transport: Optional httpx transport, used to replay responses in tests
        """
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.temperature_range = temperature_range

        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=30.0),
            limits=httpx.Limits(
                max_connections=100,
                max_keepalive_connections=20,
                keepalive_expiry=30.0,
            ),
            headers={
                "x-api-key": api_key,
                "anthropic-version": anthropic_version,
                "User-Agent": "shapequery/1.0",
            },
            transport=transport,
        )
        logger.debug(f"Created HTTP session: {id(self._client)}")

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.AsyncBaseTransport] = None) -> "MessageAPI":
        """Build a client from a ClientConfig."""
        return cls(
            config.api_key,
            config.anthropic_version,
            base_url=config.base_url,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            temperature_range=config.temperature_range,
            timeout=config.timeout,
            transport=transport,
        )

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def __aenter__(self) -> "MessageAPI":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the HTTP session. Safe to call more than once."""
        if not self._client.is_closed:
            logger.debug(f"Closing HTTP session: {id(self._client)}")
            await self._client.aclose()

    def _check_temperature(self, temperature: Optional[float]) -> None:
        if temperature is None:
            return
        low, high = self.temperature_range
        if not low <= temperature <= high:
            raise InputError(
                temperature,
                f"temperature must be between {low} and {high}, got {temperature}",
            )

    async def create(
        self,
        messages: Sequence[Message],
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Union[float, None, object] = _UNSET,
    ) -> MessageResponse:
        """
        Send one message exchange.

        Args:
            messages: Conversation turns, oldest first
            model: Model name, defaults to the client's model
            max_tokens: Completion token limit, defaults to the client's limit
            temperature: Sampling temperature; omitted means the client default,
                None means the field is left out of the request

        Returns:
            MessageResponse: The parsed response with normalized content

        Raises:
            InputError: If temperature is outside the accepted range
            APIError: If the API does not answer with a usable 200 response
        """
        if temperature is _UNSET:
            temperature = self.temperature
        self._check_temperature(temperature)

        body = MessageRequestBody(
            messages=[WireMessage(content=m.content, role=m.role) for m in messages],
            model=model or self.model,
            max_tokens=max_tokens if max_tokens is not None else self.max_tokens,
            temperature=temperature,
        )

        logger.debug(f"Sending {len(messages)} messages to {body.model}")
        resp = await self._client.post(
            MESSAGES_PATH,
            json=body.model_dump(exclude_none=True),
        )

        if resp.status_code != httpx.codes.OK:
            # read the whole body before raising, the connection is released after
            await resp.aread()
            logger.warning(f"API request failed: {resp.status_code} {resp.reason_phrase}")
            raise APIError(resp.status_code, resp.reason_phrase, resp.text)

        try:
            response_body = MessageResponseBody.model_validate_json(resp.content)
        except ValidationError as e:
            logger.warning(f"Unreadable response body: {e.error_count()} errors")
            raise APIError(resp.status_code, resp.reason_phrase, resp.text) from e

        logger.debug(f"Response {response_body.id}: {len(response_body.content)} content blocks")
        return MessageResponse(
            id=response_body.id,
            type=response_body.type,
            role=response_body.role,
            content=tuple(normalize_content(c) for c in response_body.content),
            model=response_body.model,
            stop_reason=response_body.stop_reason,
            stop_sequence=response_body.stop_sequence,
            usage=Usage(
                input_tokens=response_body.usage.input_tokens,
                output_tokens=response_body.usage.output_tokens,
            ),
        )

    async def ask(self, shape: Type[T], prompt: str, **create_kwargs) -> T:
        """
        Ask the model for data matching shape.

        Args:
            shape: A pydantic model or dataclass describing the expected data
            prompt: What to extract or generate
            **create_kwargs: Overrides passed on to create()

        Returns:
            An instance of shape decoded from the model's JSON reply

        Raises:
            SchemaError: If shape cannot be described as a schema
            InputError: If the reply text does not decode into shape
            ResponseError: If the reply has no text to decode
            APIError: If the exchange itself fails
        """
        messages = build_structured_messages(shape, prompt)
        response = await self.create(messages, **create_kwargs)
        return decode_response(shape, response)
