"""Bucketing and lateness classification of reservations.

Everything here is pure: callers pass the reference date and instant in,
which keeps the results deterministic and easy to test.
"""

from datetime import date, datetime
from typing import Iterable, List, NamedTuple, Optional, Union

from reservation_dashboard.schemas import Lateness, Reservation, ReservationType

LATE_WARN_MINUTES = 10
LATE_CRITICAL_MINUTES = 15


class Buckets(NamedTuple):
    today_lunch: List[Reservation]
    today_dinner: List[Reservation]
    future: List[Reservation]


def local_today(now: Optional[datetime] = None) -> date:
    """Calendar date in process-local time."""
    return _to_local_naive(now or datetime.now()).date()


def bucket_and_sort(records: Iterable[Reservation], today: Union[date, str]) -> Buckets:
    """
    Split reservations into today's lunch, today's dinner and future bookings.

    Reservations dated before today are dropped. Today's buckets are ordered by
    hora and the future bucket by (fecha, hora). Dates and times are zero-padded
    strings, so plain string comparison orders them chronologically. Sorting is
    stable: ties keep their input order.
    """
    today_key = today.isoformat() if isinstance(today, date) else today

    today_lunch: List[Reservation] = []
    today_dinner: List[Reservation] = []
    future: List[Reservation] = []
    for record in records:
        if record.fecha == today_key:
            if record.tipo == ReservationType.LUNCH:
                today_lunch.append(record)
            elif record.tipo == ReservationType.DINNER:
                today_dinner.append(record)
        elif record.fecha > today_key:
            future.append(record)

    today_lunch.sort(key=lambda r: r.hora)
    today_dinner.sort(key=lambda r: r.hora)
    future.sort(key=lambda r: (r.fecha, r.hora))
    return Buckets(today_lunch, today_dinner, future)


def parse_slot(fecha: str, hora: str) -> Optional[datetime]:
    """Combine a date and a time of day into a naive local datetime, or None."""
    for fmt in ("%Y-%m-%dT%H:%M", "%Y-%m-%dT%H:%M:%S"):
        try:
            return datetime.strptime(f"{fecha.strip()}T{hora.strip()}", fmt)
        except ValueError:
            continue
    return None


def classify_lateness(record: Reservation, now: datetime, is_future: bool) -> Lateness:
    """
    Classify how late a reservation is at the instant ``now``.

    Arrived guests are always ARRIVED. Future bookings are never late. Otherwise
    a guest more than 10 minutes past the slot is LATE_WARN and more than 15
    minutes past is LATE_CRITICAL.
    """
    if record.arrived:
        return Lateness.ARRIVED
    if is_future:
        return Lateness.ON_TIME

    slot = parse_slot(record.fecha, record.hora)
    if slot is None:
        return Lateness.UNSCHEDULED

    elapsed_minutes = (_to_local_naive(now) - slot).total_seconds() / 60
    if elapsed_minutes > LATE_CRITICAL_MINUTES:
        return Lateness.LATE_CRITICAL
    if elapsed_minutes > LATE_WARN_MINUTES:
        return Lateness.LATE_WARN
    return Lateness.ON_TIME


def _to_local_naive(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)
