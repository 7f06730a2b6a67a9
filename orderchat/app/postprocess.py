#!/usr/bin/env python3
"""
Postprocessing module for model replies.

A reply may end with a structured order block: a fixed marker followed by one
JSON object. This module splits the reply into the text shown to the customer
and the parsed ``OrderIntent``; it never talks to the model itself.
"""

import json
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import ValidationError

from .config import Config
from ..schemas.order_models import OrderIntent
from ..utils.logger import get_logger

logger = get_logger(__name__)

_EMPTY_FENCE = re.compile(r"```[a-zA-Z]*\s*```")


@dataclass(frozen=True)
class ParsedTurn:
    """Reply text for the user plus the order payload, if one parsed cleanly."""
    reply: str
    payload: Optional[OrderIntent] = None
    marker_found: bool = False
    error: Optional[str] = None
    invalid_fields: Tuple[str, ...] = ()

    @property
    def has_payload(self) -> bool:
        return self.payload is not None


def find_balanced_object(text: str, start: int = 0) -> Optional[Tuple[int, int]]:
    """Span ``(begin, end)`` of the first balanced ``{...}`` at or after ``start``.

    Braces inside JSON string literals are ignored. Returns None when there is
    no opening brace or the object is never closed.
    """
    begin = text.find("{", start)
    if begin < 0:
        return None
    depth = 0
    in_string = False
    escaped = False
    for idx in range(begin, len(text)):
        ch = text[idx]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return begin, idx + 1
    return None


def clean_reply(text: str) -> str:
    text = _EMPTY_FENCE.sub("", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


class Postprocessor:
    """Splits model replies into user text and structured order intent."""

    def __init__(self, marker: str = None):
        self.marker = marker or Config.ORDER_MARKER

    def parse(self, text: str) -> ParsedTurn:
        text = text or ""
        marker_at = text.find(self.marker)
        if marker_at < 0:
            return ParsedTurn(reply=clean_reply(text))

        after_marker = marker_at + len(self.marker)
        span = find_balanced_object(text, after_marker)
        if span is None:
            logger.warning("Order marker present but no complete JSON object followed it")
            return ParsedTurn(reply=clean_reply(text[:marker_at]), marker_found=True,
                              error="unterminated payload")

        begin, end = span
        visible = text[:marker_at] + text[end:]
        raw = text[begin:end]
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Order payload is not valid JSON: %s", e)
            return ParsedTurn(reply=clean_reply(visible), marker_found=True, error="invalid json")

        try:
            intent = OrderIntent.model_validate(data)
        except ValidationError as e:
            locs = [err["loc"] for err in e.errors()]
            logger.warning("Order payload failed validation at %s", locs)
            fields = tuple(dict.fromkeys(str(loc[0]) for loc in locs if loc))
            return ParsedTurn(reply=clean_reply(visible), marker_found=True, error="invalid payload",
                              invalid_fields=fields)

        return ParsedTurn(reply=clean_reply(visible), payload=intent, marker_found=True)
