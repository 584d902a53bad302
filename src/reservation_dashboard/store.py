"""Session-lifetime cache of reservations synchronized with the remote store."""

import asyncio
import itertools
import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Set, Tuple, Union

from reservation_dashboard.providers.base import ReservationProvider
from reservation_dashboard.schemas import RemoteResult, Reservation, ReservationDraft

logger = logging.getLogger(__name__)

REFRESH_ERROR = "No se pudieron cargar las reservas. Verifica la URL del script y los permisos."
ADD_ERROR = "No se pudo guardar la reserva. Por favor, inténtalo de nuevo."
STATUS_ERROR = "No se pudo actualizar el estado de la reserva."


@dataclass(eq=False)
class PendingMutation:
    """Optimistic arrived update whose remote confirmation is still in flight."""

    reservation_id: str
    previous: bool
    applied: bool
    seq: int = 0


class ReservationStore:
    """
    Owns the authoritative in-memory reservation set.

    The set is replaced wholesale by refresh(). Each refresh takes a token and
    its response is applied only while that token is the latest issued, so a
    slow response can never overwrite a newer one. Status updates are applied
    locally first and rolled back field by field if the remote store rejects
    them.
    """

    def __init__(self, provider: ReservationProvider):
        self._provider = provider
        self._current: List[Reservation] = []
        self._pending: List[PendingMutation] = []
        self._mutation_seq = itertools.count(1)
        self._updates: Set[asyncio.Task] = set()
        self._issued_refreshes = 0
        self.is_loading = False
        self.last_error: Optional[str] = None
        self.version = 0

    @property
    def reservations(self) -> Tuple[Reservation, ...]:
        return tuple(self._current)

    def find(self, reservation_id: str) -> Optional[Reservation]:
        return next((r for r in self._current if r.id == reservation_id), None)

    def dismiss_error(self) -> None:
        self.last_error = None

    async def refresh(self) -> bool:
        """
        Reload every reservation from the remote store.

        Returns:
            True if the response was applied and succeeded, False if it failed
            or was superseded by a later refresh
        """
        self._issued_refreshes += 1
        token = self._issued_refreshes
        self.is_loading = True
        self.last_error = None

        result = await self._provider.list_reservations()

        if token != self._issued_refreshes:
            logger.debug(f"Discarding refresh {token}, refresh {self._issued_refreshes} is newer")
            return False

        if result.ok:
            self._replace(result.reservations)
            self._reapply_pending()
            self.last_error = None
            logger.info(f"Refreshed {len(self._current)} reservations")
        else:
            self.last_error = REFRESH_ERROR
            logger.error(f"Failed to load reservations: {result.failure.message}")
        self.is_loading = False
        return result.ok

    async def add(self, draft: Union[ReservationDraft, Mapping[str, Any]]) -> RemoteResult:
        """
        Create a reservation and reload the set to learn its id.

        Raises:
            pydantic.ValidationError: If a mapping does not form a valid draft
            NetworkError, ProtocolError: If the remote store did not save it
        """
        if not isinstance(draft, ReservationDraft):
            draft = ReservationDraft.model_validate(draft)

        self.is_loading = True
        result = await self._provider.create_reservation(draft)
        if not result.ok:
            logger.error(f"Failed to add reservation for {draft.nombre}: {result.failure.message}")
            self.last_error = ADD_ERROR
            self.is_loading = False
            raise result.failure.to_exception()

        logger.info(f"Added reservation for {draft.nombre} on {draft.fecha} {draft.hora}")
        await self.refresh()
        return result

    def set_arrived(self, reservation_id: str, arrived: bool) -> "asyncio.Task[RemoteResult]":
        """
        Mark a guest as arrived (or not) optimistically.

        The local record changes before this returns; the remote update runs as
        a background task, returned so callers can await its outcome. Must be
        called from within a running event loop.
        """
        mutation = self._apply_optimistic(reservation_id, arrived)
        task = asyncio.get_running_loop().create_task(self._confirm(reservation_id, arrived, mutation))
        self._updates.add(task)
        task.add_done_callback(self._updates.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight status update to resolve."""
        while self._updates:
            await asyncio.gather(*list(self._updates))

    def _replace(self, records: List[Reservation]) -> None:
        self._current = list(records)
        self.version += 1

    def _write_arrived(self, reservation_id: str, arrived: bool) -> None:
        self._replace([
            r.model_copy(update={"arrived": arrived}) if r.id == reservation_id else r
            for r in self._current
        ])

    def _apply_optimistic(self, reservation_id: str, arrived: bool) -> Optional[PendingMutation]:
        record = self.find(reservation_id)
        if record is None:
            logger.warning(f"Reservation {reservation_id} is not loaded, sending update without local change")
            return None

        mutation = PendingMutation(
            reservation_id, previous=record.arrived, applied=arrived, seq=next(self._mutation_seq)
        )
        self._pending.append(mutation)
        self._write_arrived(reservation_id, arrived)
        return mutation

    def _reapply_pending(self) -> None:
        # A refresh can land before an in-flight update is confirmed.
        for mutation in self._pending:
            record = self.find(mutation.reservation_id)
            if record is not None and record.arrived != mutation.applied:
                self._write_arrived(mutation.reservation_id, mutation.applied)

    async def _confirm(
        self, reservation_id: str, arrived: bool, mutation: Optional[PendingMutation]
    ) -> RemoteResult:
        result = await self._provider.set_arrived(reservation_id, arrived)
        if mutation is not None:
            self._pending.remove(mutation)

        if result.ok:
            logger.debug(f"Reservation {reservation_id} arrived={arrived} confirmed")
            return result

        logger.error(f"Failed to update reservation {reservation_id}: {result.failure.message}")
        self.last_error = STATUS_ERROR
        if mutation is not None:
            self._rollback(mutation)
        return result

    def _rollback(self, mutation: PendingMutation) -> None:
        later = [
            m for m in self._pending
            if m.reservation_id == mutation.reservation_id and m.seq > mutation.seq
        ]
        if later:
            # The next in-flight edit was built on the value that just failed.
            later[0].previous = mutation.previous
            return

        record = self.find(mutation.reservation_id)
        if record is None or record.arrived != mutation.applied:
            return
        logger.info(f"Rolling back reservation {mutation.reservation_id} to arrived={mutation.previous}")
        self._write_arrived(mutation.reservation_id, mutation.previous)
