"""Map heterogeneous zone attributes onto :class:`NormalizedZoneResult`.

The valuation layers publish the same facts under different attribute names
depending on the dataset and the query style. Each semantic field has an
ordered list of candidate names; the first present, non-blank value wins.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from typing import Any

from pygsis.models.query import QueryKind
from pygsis.models.result import ErrorKind, NormalizedZoneResult

ASSESSED_VALUE_FIELDS: tuple[str, ...] = ("TIMH", "CURRENTZONEVALUE", "ZONEVALUE", "TIMH_ZONIS")
ZONE_ID_FIELDS: tuple[str, ...] = ("ZONEREGISTRYID", "ZONE_REGISTRY_ID", "ZONEID", "ZONE_ID")
ZONE_NAME_FIELDS: tuple[str, ...] = ("ZONENAME", "ZONE_NAME", "NAME")

NO_ATTRIBUTES = "no attributes returned"

# Where each query style puts its records.
_RECORD_KEYS: dict[QueryKind, str] = {
    QueryKind.QUERY: "features",
    QueryKind.IDENTIFY: "results",
}


def safe_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_id(value: Any) -> str | None:
    """Stringify an identifier; integral floats drop their ``.0``."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    return text or None


def first_present(attributes: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    """Value of the first candidate that is present and not blank."""
    for name in candidates:
        value = attributes.get(name)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def first_record(payload: Mapping[str, Any], query_kind: QueryKind) -> dict[str, Any] | None:
    """Attributes of the first matching record, or ``None`` if there is none."""
    records = payload.get(_RECORD_KEYS[query_kind])
    if not isinstance(records, list):
        return None
    for record in records:
        if not isinstance(record, dict):
            continue
        attributes = record.get("attributes")
        if isinstance(attributes, dict):
            return attributes
    return None


def normalize(payload: Mapping[str, Any], query_kind: QueryKind = QueryKind.QUERY) -> NormalizedZoneResult:
    """Turn a zone-layer payload into a :class:`NormalizedZoneResult`.

    Only a missing record set is a failure; a record without a value or an
    id still counts as a successful match with ``None`` in those fields.
    """
    attributes = first_record(payload, query_kind)
    if attributes is None:
        return NormalizedZoneResult.failure(NO_ATTRIBUTES, kind=ErrorKind.DATA)

    name = first_present(attributes, ZONE_NAME_FIELDS)
    return NormalizedZoneResult(
        success=True,
        assessed_value_per_area=safe_float(first_present(attributes, ASSESSED_VALUE_FIELDS)),
        zone_id=safe_id(first_present(attributes, ZONE_ID_FIELDS)),
        zone_name=str(name).strip() if name is not None else None,
    )
