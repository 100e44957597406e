"""Validated lookup queries."""

from __future__ import annotations

import math
import re
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from pygsis.exceptions import GsisValidationError

_NON_DIGITS = re.compile(r"\D+")
POSTAL_CODE_LENGTH = 5


class QueryKind(StrEnum):
    """ArcGIS request style used against the zone layer."""

    QUERY = "query"
    IDENTIFY = "identify"


def normalize_postal_code(value: Any) -> str:
    """Strip everything but digits; the result must be exactly 5 digits.

    ``"106 81"``, ``"10681"`` and ``"GR-10681"`` all become ``"10681"``.

    Raises
    ------
    GsisValidationError
        When the stripped value is not 5 digits long.
    """
    if value is None or isinstance(value, bool):
        raise GsisValidationError("zip must be 5 digits")
    digits = _NON_DIGITS.sub("", str(value))
    if len(digits) != POSTAL_CODE_LENGTH:
        raise GsisValidationError("zip must be 5 digits")
    return digits


def _first_error_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    message = str(errors[0].get("msg", ""))
    return message.removeprefix("Value error, ")


class CoordinateQuery(BaseModel):
    """A WGS84 point to look up."""

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _coerce_finite(cls, value: Any) -> float:
        if value is None or isinstance(value, bool):
            raise ValueError("lat/lng required")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValueError("lat/lng required") from None
        except OverflowError:
            raise ValueError("lat/lng must be finite numbers") from None
        if not math.isfinite(number):
            raise ValueError("lat/lng must be finite numbers")
        return number

    @classmethod
    def parse(cls, latitude: Any, longitude: Any) -> CoordinateQuery:
        """Validate raw input, raising :class:`GsisValidationError` on failure."""
        try:
            return cls(latitude=latitude, longitude=longitude)
        except ValidationError as exc:
            raise GsisValidationError(_first_error_message(exc)) from exc


class PostalCodeQuery(BaseModel):
    """A Greek postal code, normalized to 5 digits."""

    model_config = ConfigDict(frozen=True)

    postal_code: str

    @field_validator("postal_code", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> str:
        try:
            return normalize_postal_code(value)
        except GsisValidationError as exc:
            raise ValueError(str(exc)) from None

    @classmethod
    def parse(cls, postal_code: Any) -> PostalCodeQuery:
        """Validate raw input, raising :class:`GsisValidationError` on failure."""
        try:
            return cls(postal_code=postal_code)
        except ValidationError as exc:
            raise GsisValidationError(_first_error_message(exc)) from exc
