"""Provider implementations for the remote reservation store."""

from reservation_dashboard.providers.base import ReservationProvider
from reservation_dashboard.providers.mock import MockProvider
from reservation_dashboard.providers.sheet import SheetProvider

__all__ = ["ReservationProvider", "MockProvider", "SheetProvider"]
