"""Best-effort JSON extraction from free-form provider output.

Provider replies arrive as prose, fenced blocks, bare JSON, lists of parts or
wrapper objects. ``to_raw_response`` classifies a value into one variant of
``RawResponse`` and each variant has its own extraction function. Nothing here
raises; callers still parse the result and treat failure as "no data".
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


@dataclass(frozen=True)
class TextResponse:
    text: str


@dataclass(frozen=True)
class ListResponse:
    items: Tuple[Optional["RawResponse"], ...]


@dataclass(frozen=True)
class WrapperResponse:
    text: Optional[str] = None
    content: Optional[str] = None
    message: Optional["RawResponse"] = None


RawResponse = Union[TextResponse, ListResponse, WrapperResponse]


def to_raw_response(value: Any) -> Optional[RawResponse]:
    if isinstance(value, str):
        return TextResponse(value)
    if isinstance(value, (list, tuple)):
        return ListResponse(tuple(to_raw_response(item) for item in value))
    if isinstance(value, dict):
        text = value.get("text")
        content = value.get("content")
        message = value.get("message")
        return WrapperResponse(
            text=text if isinstance(text, str) else None,
            content=content if isinstance(content, str) else None,
            message=to_raw_response(message) if message else None,
        )
    return None


def extract_from_text(raw: TextResponse) -> str:
    trimmed = raw.text.strip()
    if not trimmed:
        return ""

    fenced = _FENCED_BLOCK.search(trimmed)
    if fenced and fenced.group(1):
        return fenced.group(1).strip()

    if trimmed.startswith("{") or trimmed.startswith("["):
        return trimmed

    first_brace = trimmed.find("{")
    last_brace = trimmed.rfind("}")
    if first_brace >= 0 and last_brace > first_brace:
        return trimmed[first_brace : last_brace + 1]
    return ""


def extract_from_list(raw: ListResponse) -> str:
    return "\n".join(extract_from_raw(item) for item in raw.items).strip()


def extract_from_wrapper(raw: WrapperResponse) -> str:
    if raw.text is not None:
        return extract_from_text(TextResponse(raw.text))
    if raw.content is not None:
        return extract_from_text(TextResponse(raw.content))
    if raw.message is not None:
        return extract_from_raw(raw.message)
    return ""


def extract_from_raw(raw: Optional[RawResponse]) -> str:
    if isinstance(raw, TextResponse):
        return extract_from_text(raw)
    if isinstance(raw, ListResponse):
        return extract_from_list(raw)
    if isinstance(raw, WrapperResponse):
        return extract_from_wrapper(raw)
    return ""


def extract_json_string(value: Any) -> str:
    """Return the JSON-looking part of ``value`` or an empty string."""
    return extract_from_raw(to_raw_response(value))
