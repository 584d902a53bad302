"""Mock provider with an in-memory remote store for demonstration and tests."""

import asyncio
import logging
from collections import deque
from typing import Any, Deque, Dict, List, Optional, Tuple

from reservation_dashboard.errors import ErrorKind, ProtocolError
from reservation_dashboard.providers.base import ReservationProvider, decode_reservations, encode_draft
from reservation_dashboard.schemas import RemoteResult, ReservationDraft

logger = logging.getLogger(__name__)


class MockProvider(ReservationProvider):
    """
    Mock reservation provider backed by a list of raw rows.

    Rows are kept in the loose shape the spreadsheet returns (numeric ids,
    arrived flags as strings) and decoded on every read, so the mock goes
    through the same validation as the HTTP provider. No external calls are
    made. Failures can be queued with fail_next() to exercise error paths.
    """

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None):
        """Initialize the mock provider, optionally seeded with raw rows."""
        self._rows: List[Dict[str, Any]] = [dict(row) for row in rows or []]
        self._id_counter = 1000
        self._failures: Deque[Tuple[ErrorKind, str]] = deque()
        self.calls: List[str] = []

    def fail_next(self, kind: ErrorKind = ErrorKind.NETWORK, message: str = "Simulated failure") -> None:
        """Make the next provider call fail with the given kind."""
        self._failures.append((kind, message))

    @property
    def rows(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._rows]

    async def list_reservations(self) -> RemoteResult:
        self.calls.append("list_reservations")
        await asyncio.sleep(0)
        failure = self._pop_failure()
        if failure:
            return failure

        try:
            reservations = decode_reservations(self.rows)
        except ProtocolError as e:
            logger.warning(f"Mock store holds an invalid row: {e}")
            return RemoteResult.from_error(e)

        logger.info(f"Found {len(reservations)} reservations in mock store")
        return RemoteResult.success(reservations)

    async def create_reservation(self, draft: ReservationDraft) -> RemoteResult:
        self.calls.append("create_reservation")
        await asyncio.sleep(0)
        failure = self._pop_failure()
        if failure:
            return failure

        self._id_counter += 1
        row = encode_draft(draft)
        row["id"] = self._id_counter
        row["arrived"] = "FALSE"
        self._rows.append(row)
        logger.info(f"Created reservation {self._id_counter} for {draft.nombre}")
        return RemoteResult.success()

    async def set_arrived(self, reservation_id: str, arrived: bool) -> RemoteResult:
        self.calls.append("set_arrived")
        await asyncio.sleep(0)
        failure = self._pop_failure()
        if failure:
            return failure

        for row in self._rows:
            if str(row.get("id")) == reservation_id:
                row["arrived"] = "TRUE" if arrived else "FALSE"
                logger.info(f"Reservation {reservation_id} arrived={arrived}")
                return RemoteResult.success()

        logger.warning(f"Reservation {reservation_id} not found")
        return RemoteResult.failed(ErrorKind.PROTOCOL, f"Reservation {reservation_id} not found")

    def _pop_failure(self) -> Optional[RemoteResult]:
        if not self._failures:
            return None
        kind, message = self._failures.popleft()
        logger.warning(f"Simulated {kind.value} failure: {message}")
        return RemoteResult.failed(kind, message)
