"""Request and response bodies as they appear on the wire."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class WireMessage(BaseModel):
    content: str
    role: str


class MessageRequestBody(BaseModel):
    messages: List[WireMessage]
    model: str
    max_tokens: int
    temperature: Optional[float] = None


class WireUsage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    input_tokens: int
    output_tokens: int


# The documented set of content block shapes is open ended, so every field is
# optional here and classification happens in content.py.
class ContentResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None
    input: Optional[Dict[str, Any]] = None
    text: Optional[str] = None


class MessageResponseBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    type: str
    role: str
    # raw blocks, classified by normalize_content
    content: List[Any]
    model: str
    stop_reason: str
    stop_sequence: Optional[str] = None
    usage: WireUsage
