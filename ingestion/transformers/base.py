"""
Shared parsing helpers for per-jurisdiction transformers.

A transformer is a plain function (RawPayload, SourceConfig) -> CanonicalRecord.
It raises MalformedRecordError when a mandatory field is missing or
unparseable; the runner counts that record as failed and moves on.
"""

import math
import re
from typing import Any, Callable, Dict, Iterable, Optional
from datetime import date, datetime, timezone
from pydantic import ValidationError
from core.exceptions import MalformedRecordError
from schemas.ingestion import (
    CanonicalFacility,
    CanonicalInspection,
    CanonicalRecord,
    RawPayload,
)
from schemas.source import SourceConfig

Transformer = Callable[[RawPayload, SourceConfig], CanonicalRecord]

US_DATE_RE = re.compile(r"(\d{1,2})[/-](\d{1,2})[/-](\d{4})")
_COMPACT_DATE_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})$")
_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))")

# Epoch values above this are milliseconds
_EPOCH_MS_THRESHOLD = 1e12


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_epoch(value: float) -> Optional[datetime]:
    seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)
    except (OverflowError, OSError, ValueError):
        return None


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parse the date encodings seen across sources into a naive UTC datetime.

    Handles datetime/date objects, ISO 8601 strings, epoch seconds or
    milliseconds (numbers or digit strings), YYYYMMDD, and MM/DD/YYYY or
    MM-DD-YYYY anywhere inside a string. Returns None when nothing parses.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return _to_naive_utc(value)

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return _from_epoch(value)

    text = str(value).strip()
    if not text:
        return None

    compact = _COMPACT_DATE_RE.match(text)
    if compact:
        year, month, day = (int(part) for part in compact.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            return None

    if text.isdigit():
        return _from_epoch(int(text))

    try:
        return _to_naive_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        pass

    us_date = US_DATE_RE.search(text)
    if us_date:
        month, day, year = (int(part) for part in us_date.groups())
        try:
            return datetime(year, month, day)
        except ValueError:
            return None

    return None


def parse_number(value: Any) -> Optional[float]:
    """Leading numeric value of a number or string, else None."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else float(value)

    match = _NUMBER_RE.match(str(value).replace(",", ""))
    return float(match.group(1)) if match else None


def first_present(data: Dict[str, Any], *keys: str) -> Any:
    """Value of the first key that is present and not blank."""
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def first_number(*values: Any) -> Optional[float]:
    for value in values:
        number = parse_number(value)
        if number is not None:
            return number
    return None


def text_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def join_address(parts: Iterable[Any]) -> str:
    """Join discrete street components, skipping blanks."""
    return " ".join(str(part).strip() for part in parts if part is not None and str(part).strip())


def require_date(raw: RawPayload, field_name: str, value: Any = None) -> datetime:
    """parse_date or raise MalformedRecordError naming the field."""
    if value is None:
        value = raw.data.get(field_name)

    parsed = parse_date(value)
    if parsed is None:
        raise MalformedRecordError(
            f"Invalid {field_name}: {value!r}",
            context={"external_id": raw.external_id, "field_name": field_name, "field_value": value},
        )
    return parsed


def build_record(raw: RawPayload, facility: Dict[str, Any], inspection: Dict[str, Any]) -> CanonicalRecord:
    """Validate into a CanonicalRecord, reporting failures as malformed input."""
    try:
        return CanonicalRecord(
            external_id=raw.external_id,
            facility=CanonicalFacility(**facility),
            inspection=CanonicalInspection(**inspection),
            raw_payload=raw.data,
        )
    except ValidationError as e:
        raise MalformedRecordError(
            f"Record {raw.external_id} failed validation",
            context={"external_id": raw.external_id, "errors": e.errors()},
            original_exception=e,
        )
