"""Dashboard session: store, memoized classification and reclassification timer."""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from reservation_dashboard.classifier import bucket_and_sort, classify_lateness, local_today
from reservation_dashboard.configuration import Configuration
from reservation_dashboard.providers import MockProvider, ReservationProvider, SheetProvider
from reservation_dashboard.scheduler import RefreshScheduler
from reservation_dashboard.schemas import ClassifiedReservation, DashboardView, Reservation
from reservation_dashboard.store import ReservationStore

logger = logging.getLogger(__name__)


def build_provider(config: Configuration) -> ReservationProvider:
    """Create the provider selected by RESERVATIONS_PROVIDER."""
    name = config.RESERVATIONS_PROVIDER.lower()
    if name == "sheet":
        return SheetProvider(config.SHEET_APP_URL, timeout=config.REQUEST_TIMEOUT)
    if name == "mock":
        return MockProvider()
    raise ValueError(f"Unknown reservations provider: {config.RESERVATIONS_PROVIDER}")


class Dashboard:
    """
    One dashboard view over a ReservationStore.

    Classification is memoized on (store version, local date, tick). The
    scheduler bumps the tick periodically so lateness is recomputed against a
    fresh clock even when no reservation changed.
    """

    def __init__(
        self,
        store: ReservationStore,
        interval: float = 60.0,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.scheduler = RefreshScheduler(self.invalidate, interval=interval)
        self._clock = clock
        self._tick = 0
        self._memo_key: Optional[Tuple] = None
        self._memo: Optional[DashboardView] = None

    @classmethod
    def from_configuration(cls, config: Optional[Configuration] = None) -> "Dashboard":
        config = config or Configuration()
        provider = build_provider(config)
        logger.info(f"Initialized {type(provider).__name__} for reservations")
        return cls(ReservationStore(provider), interval=config.REFRESH_INTERVAL_SECONDS)

    @property
    def tick(self) -> int:
        return self._tick

    def invalidate(self) -> None:
        self._tick += 1

    async def start(self) -> None:
        """Load the reservations and start the reclassification timer."""
        await self.store.refresh()
        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.store.drain()

    def view(self, now: Optional[datetime] = None) -> DashboardView:
        """Current dashboard; an explicit ``now`` bypasses the memo."""
        if now is not None:
            return self._with_status(self._classify(now))

        now = self._clock()
        key = (self.store.version, local_today(now), self._tick)
        if key != self._memo_key:
            self._memo = self._classify(now)
            self._memo_key = key
        return self._with_status(self._memo)

    def _with_status(self, view: DashboardView) -> DashboardView:
        return view.model_copy(update={"is_loading": self.store.is_loading, "error": self.store.last_error})

    def _classify(self, now: datetime) -> DashboardView:
        today = local_today(now)
        buckets = bucket_and_sort(self.store.reservations, today)
        return DashboardView(
            today=today,
            now=now,
            today_lunch=_classified(buckets.today_lunch, now, is_future=False),
            today_dinner=_classified(buckets.today_dinner, now, is_future=False),
            future=_classified(buckets.future, now, is_future=True),
        )


def _classified(records: List[Reservation], now: datetime, is_future: bool) -> List[ClassifiedReservation]:
    return [
        ClassifiedReservation(reservation=r, lateness=classify_lateness(r, now, is_future))
        for r in records
    ]
