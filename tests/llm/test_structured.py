"""Tests for structured prompt building and decoding."""
from dataclasses import dataclass
from unittest.mock import patch

import pytest
from pydantic import BaseModel

from shapequery.llm.errors import InputError, ResponseError
from shapequery.llm.schema import derive_schema
from shapequery.llm.structured import (
    build_structured_messages, decode_response, decode_text,
)
from shapequery.llm.types import Message, MessageResponse, TextContent, UnknownContent, Usage
from shapequery.shapes import People, Person


class Random(BaseModel):
    num: int


@dataclass
class Pair:
    left: int
    right: int


def make_response(*content) -> MessageResponse:
    return MessageResponse(
        id="msg_test",
        type="message",
        role="assistant",
        content=tuple(content),
        model="claude-3-5-sonnet-20240620",
        stop_reason="end_turn",
        usage=Usage(input_tokens=1, output_tokens=1),
    )


class TestBuildStructuredMessages:
    def test_three_turns_in_order(self):
        messages = build_structured_messages(Random, "num = 42")

        assert messages == [
            Message("here is a protobuf schema:\n" + derive_schema(Random)),
            Message("OK", "assistant"),
            Message("RETURN ONLY JSON DATA THAT IS VALIDATED AGAINST THE SCHEMA! num = 42"),
        ]

    def test_user_roles_default(self):
        roles = [m.role for m in build_structured_messages(Person, "anyone")]
        assert roles == ["user", "assistant", "user"]


class TestDecode:
    def test_round_trip_of_serialized_value(self):
        value = People(people=[Person(name="Ada"), Person(name="Grace")])
        assert decode_text(People, value.model_dump_json()) == value

    def test_dataclass_shape(self):
        assert decode_text(Pair, '{"left": 1, "right": 2}') == Pair(1, 2)

    @pytest.mark.parametrize("text", [
        '{"num": "adsf"}',
        '{"num": "42"}',
        '{"num": true}',
        '{"num": 42.5}',
        '{"number": 42}',
        "num is 42",
        "",
        '```json\n{"num": 42}\n```',
    ])
    def test_mismatch_raises_input_error_with_raw_text(self, text):
        with pytest.raises(InputError) as exc_info:
            decode_text(Random, text)
        assert exc_info.value.value == text
        assert exc_info.value.__cause__ is not None

    def test_decode_response_uses_first_text_block(self):
        response = make_response(TextContent('{"num": 7}'), TextContent('{"num": 8}'))
        assert decode_response(Random, response) == Random(num=7)

    def test_unknown_first_block_is_response_error(self):
        response = make_response(UnknownContent(type="tool_use", id="t1"), TextContent('{"num": 7}'))

        with patch("shapequery.llm.structured.decode_text") as mock_decode:
            with pytest.raises(ResponseError) as exc_info:
                decode_response(Random, response)

        mock_decode.assert_not_called()
        assert exc_info.value.response is response

    def test_empty_content_is_response_error(self):
        response = make_response()
        with pytest.raises(ResponseError) as exc_info:
            decode_response(Random, response)
        assert exc_info.value.response is response
