"""Reservation Dashboard - reservation state and classification engine."""

from reservation_dashboard.classifier import Buckets, bucket_and_sort, classify_lateness
from reservation_dashboard.dashboard import Dashboard
from reservation_dashboard.scheduler import RefreshScheduler
from reservation_dashboard.store import ReservationStore

__all__ = [
    "Buckets",
    "Dashboard",
    "RefreshScheduler",
    "ReservationStore",
    "bucket_and_sort",
    "classify_lateness",
]
