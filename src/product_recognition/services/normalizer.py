"""Extract and canonicalize product items from freeform model output."""

import json
import logging
import math
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

from product_recognition.domain.errors import UpstreamFormatError
from product_recognition.domain.recognition import NormalizedResponse, RecognitionItem
from product_recognition.services.prompts import PromptTemplate, template_for

DEFAULT_CONFIDENCE = 0.85

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")
_DATE = re.compile(r"(\d{4})\s*[-/.年]\s*(\d{1,2})\s*[-/.月]\s*(\d{1,2})")
_NULL_TEXT = {"", "null", "none", "n/a"}

_logger = logging.getLogger(__name__)


def _utc_today() -> date:
    return datetime.now(tz=UTC).date()


@dataclass
class ResponseNormalizer:
    """Turns untrusted assistant text into canonical recognition items."""

    confidence: float = DEFAULT_CONFIDENCE
    today: Callable[[], date] = field(default=_utc_today)

    def normalize(
        self, content: str | None, locale: str | None = None
    ) -> NormalizedResponse:
        """Parse assistant content and apply field defaults.

        Raises UpstreamFormatError when no JSON object can be recovered or the
        object matches neither the ``{"items": [...]}`` nor the flat item shape.
        """
        payload = extract_json_object(content or "")
        template = template_for(locale)
        items = [self._normalize_item(raw, template) for raw in _raw_items(payload)]
        return NormalizedResponse(items=items, confidence=self.confidence)

    def _normalize_item(
        self, raw: dict[str, object], template: PromptTemplate
    ) -> RecognitionItem:
        shelf_life_days = _parse_int(_field(raw, "shelfLifeDays", "shelf_life_days"))
        if shelf_life_days is not None and shelf_life_days < 0:
            shelf_life_days = None
        raw_expiry = _field(raw, "expiryDate", "expiry_date")
        expiry_date = _parse_date(raw_expiry)
        if _text(raw_expiry) is None and shelf_life_days is not None:
            expiry_date = self.today() + timedelta(days=shelf_life_days)
        quantity = _parse_int(raw.get("quantity"))
        return RecognitionItem(
            name=_text(raw.get("name")) or template.unknown_name,
            category=_text(raw.get("category")) or template.other_category,
            expiry_date=expiry_date,
            production_date=_parse_date(
                _field(raw, "productionDate", "production_date")
            ),
            shelf_life_days=shelf_life_days,
            quantity=quantity if quantity is not None and quantity >= 1 else 1,
        )


def extract_json_object(text: str) -> dict[str, object]:
    """Return the first balanced ``{...}`` substring that parses as an object."""
    for candidate in _balanced_objects(text):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            _logger.debug("Skipping unparsable JSON candidate")
            continue
        if isinstance(parsed, dict):
            return parsed
    raise UpstreamFormatError("Could not parse AI response as valid JSON")


def _balanced_objects(text: str) -> Iterator[str]:
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is None:
            start = text.find("{", start + 1)
            continue
        yield text[start : end + 1]
        start = text.find("{", end + 1)


def _matching_brace(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def _raw_items(payload: dict[str, object]) -> list[dict[str, object]]:
    items = payload.get("items")
    if isinstance(items, list):
        return [item for item in items if isinstance(item, dict)]
    if payload.get("name"):
        return [payload]
    raise UpstreamFormatError("AI response JSON contains no items")


def _field(raw: dict[str, object], *keys: str) -> object | None:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _text(value: object | None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _NULL_TEXT:
        return None
    return text


def _parse_int(value: object | None) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _parse_date(value: object | None) -> date | None:
    if not isinstance(value, str):
        return None
    match = _DATE.match(value.strip())
    if match is None:
        return None
    try:
        return date(*(int(part) for part in match.groups()))
    except ValueError:
        return None
