"""Data models for the Reservation Dashboard."""

import math
import re
from datetime import date, datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator

from reservation_dashboard.errors import ErrorKind, ReservationError, error_for

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_PHONE_RE = re.compile(r"^\d{3}-\d{7}$")


class ReservationType(str, Enum):
    """Meal sitting of a reservation, with the values stored in the sheet."""

    LUNCH = "ALMUERZO"
    DINNER = "CENA"


class Lateness(str, Enum):
    """Punctuality of a reservation relative to the current instant."""

    ON_TIME = "on_time"
    LATE_WARN = "late_warn"
    LATE_CRITICAL = "late_critical"
    ARRIVED = "arrived"
    UNSCHEDULED = "unscheduled"


def _normalize_type(value: Any) -> Any:
    if isinstance(value, str):
        text = value.strip().upper()
        for member in ReservationType:
            if text in (member.value, member.name):
                return member
    return value


class ReservationFields(BaseModel):
    """Fields shared by drafts and stored reservations."""

    fecha: str = Field(..., description="Reservation date (YYYY-MM-DD)")
    hora: str = Field(..., description="Reservation time (HH:MM, 24h)")
    nombre: str = Field(..., min_length=1, description="Guest name")
    habitacion: str = Field(default="", description="Room or unit of the guest")
    cantidad: int = Field(default=1, ge=1, description="Number of guests")
    telefono: str = Field(default="", description="Guest phone number (XXX-XXXXXXX)")
    tipo: ReservationType = Field(..., description="Meal sitting")
    observacion: str = Field(default="", description="Free-text note")

    @field_validator("tipo", mode="before")
    @classmethod
    def _coerce_type(cls, value: Any) -> Any:
        return _normalize_type(value)


class ReservationDraft(ReservationFields):
    """Reservation as entered by staff, before the remote store assigns an id."""

    @field_validator("nombre")
    @classmethod
    def _check_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("nombre must not be blank")
        return value

    @field_validator("fecha")
    @classmethod
    def _check_date(cls, value: str) -> str:
        if not _DATE_RE.match(value):
            raise ValueError("fecha must use the YYYY-MM-DD format")
        date.fromisoformat(value)
        return value

    @field_validator("hora")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not _TIME_RE.match(value):
            raise ValueError("hora must use the 24h HH:MM format")
        return value

    @field_validator("telefono")
    @classmethod
    def _check_phone(cls, value: str) -> str:
        if value and not _PHONE_RE.match(value):
            raise ValueError("telefono must look like XXX-XXXXXXX")
        return value


class Reservation(ReservationFields):
    """Reservation row as read back from the remote store.

    Sheet values arrive loosely typed, so the validators below coerce them
    into the strict shape the store and the classifier rely on.
    """

    id: str = Field(..., min_length=1, description="Identifier assigned by the remote store")
    arrived: bool = Field(default=False, description="Whether the guest has checked in")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if value is None:
            return value
        return str(value)

    @field_validator("fecha", "hora", "nombre", "habitacion", "telefono", "observacion", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("nombre")
    @classmethod
    def _check_name(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("nombre must not be blank")
        return value

    @field_validator("cantidad", mode="before")
    @classmethod
    def _coerce_party_size(cls, value: Any) -> int:
        if isinstance(value, bool) or value is None:
            return 1
        try:
            number = float(str(value).strip())
        except ValueError:
            return 1
        if not math.isfinite(number) or number < 1:
            return 1
        return int(number)

    @field_validator("arrived", mode="before")
    @classmethod
    def _coerce_arrived(cls, value: Any) -> bool:
        return value is True or str(value).lower() == "true"


class RemoteFailure(BaseModel):
    """Failure reported by a reservation provider."""

    kind: ErrorKind = Field(..., description="Failure category")
    message: str = Field(..., description="Human-readable failure detail")

    def to_exception(self) -> ReservationError:
        return error_for(self.kind, self.message)


class RemoteResult(BaseModel):
    """Tagged outcome of a call to the remote store."""

    ok: bool = Field(..., description="Whether the call succeeded")
    reservations: List[Reservation] = Field(default_factory=list, description="Records returned by a read")
    failure: Optional[RemoteFailure] = Field(None, description="Failure details when ok is false")

    @classmethod
    def success(cls, reservations: Optional[List[Reservation]] = None) -> "RemoteResult":
        return cls(ok=True, reservations=reservations or [])

    @classmethod
    def failed(cls, kind: ErrorKind, message: str) -> "RemoteResult":
        return cls(ok=False, failure=RemoteFailure(kind=kind, message=message))

    @classmethod
    def from_error(cls, error: ReservationError) -> "RemoteResult":
        return cls.failed(error.kind, error.message)


class ClassifiedReservation(BaseModel):
    """Reservation paired with its lateness state."""

    reservation: Reservation
    lateness: Lateness


class DashboardView(BaseModel):
    """Snapshot of the dashboard as shown to staff."""

    today: date = Field(..., description="Local calendar date used for bucketing")
    now: datetime = Field(..., description="Instant used for lateness classification")
    today_lunch: List[ClassifiedReservation] = Field(default_factory=list)
    today_dinner: List[ClassifiedReservation] = Field(default_factory=list)
    future: List[ClassifiedReservation] = Field(default_factory=list)
    is_loading: bool = Field(default=False, description="Whether a refresh or add is in flight")
    error: Optional[str] = Field(None, description="Message for the error banner")
