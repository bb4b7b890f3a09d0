"""Helpers for reading loosely-typed terminal payloads.

Terminal firmware versions disagree on field names and on whether a batch
arrives as one object or a list, so handlers resolve fields through ordered
alias lists and normalize batches before touching them.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

_MISSING = object()


def iso_now() -> str:
    """
    Current UTC time as ISO-8601 with millisecond precision.

    Example:
        >>> iso_now()
        '2025-01-09T08:30:00.123Z'
    """
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


def _lookup(payload: Dict[str, Any], name: str) -> Any:
    """Resolve a plain or dotted field name ('devinfo.modelname')."""
    current: Any = payload
    for part in name.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def pick_field(
    payload: Dict[str, Any], aliases: Iterable[str], default: Any = None
) -> Any:
    """
    Return the value of the first alias present in payload.

    A field counts as present when it exists and is neither None nor an
    empty string. Falsy values such as 0 are kept.

    Args:
        payload: Parsed request object
        aliases: Candidate field names, in priority order
        default: Returned when no alias is present

    Example:
        >>> pick_field({'sn': 'A1'}, ('SN', 'sn'))
        'A1'
    """
    if not isinstance(payload, dict):
        return default

    for name in aliases:
        value = _lookup(payload, name)
        if value is _MISSING or value is None:
            continue
        if isinstance(value, str) and value.strip() == "":
            continue
        return value

    return default


def normalize_entries(value: Any) -> List[Dict[str, Any]]:
    """
    Normalize a batch container into a list of entries.

    A single object becomes a one-element list, a list keeps its order, and
    anything else (None, strings, numbers) yields an empty list. Non-object
    items inside a list are kept so callers can log and skip them.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return list(value)
    return []


def pick_entries(
    payload: Dict[str, Any], aliases: Iterable[str]
) -> Tuple[List[Dict[str, Any]], Optional[str]]:
    """
    Find the first alias holding an object or a list and normalize it.

    Returns:
        Tuple of (entries, container_name); container_name is None when no
        alias held a usable container.
    """
    if not isinstance(payload, dict):
        return [], None

    for name in aliases:
        value = payload.get(name)
        if isinstance(value, (dict, list)):
            return normalize_entries(value), name

    return [], None


def to_number(value: Any) -> Optional[float]:
    """
    Parse a numeric reading; returns None for anything non-numeric.

    Booleans are rejected even though they are ints in Python. Integers
    too large for a float become signed infinity.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        try:
            return float(value)
        except OverflowError:
            return float("inf") if value > 0 else float("-inf")
    if isinstance(value, float):
        return value
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def present_fields(source: Dict[str, Any], aliases: Dict[str, Iterable[str]]) -> Dict[str, Any]:
    """
    Build a partial record from the fields actually present in source.

    Args:
        source: Incoming entry
        aliases: Mapping of stored field name -> candidate incoming names

    Returns:
        Dict holding only stored fields that resolved to a value, so a
        shallow merge never clobbers existing data with blanks.
    """
    record = {}
    for field_name, candidates in aliases.items():
        value = pick_field(source, candidates)
        if value is not None:
            record[field_name] = value
    return record
