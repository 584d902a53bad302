"""Abstract base class for reservation providers."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List

from pydantic import ValidationError

from reservation_dashboard.errors import ProtocolError
from reservation_dashboard.schemas import RemoteResult, Reservation, ReservationDraft


class ReservationProvider(ABC):
    """
    Abstract interface for the remote reservation store.

    Implementations never raise past this boundary: every failure is returned
    as a failed RemoteResult tagged with its ErrorKind. No retries are
    performed here; retry policy belongs to the caller.
    """

    @abstractmethod
    async def list_reservations(self) -> RemoteResult:
        """
        Read every reservation held by the remote store.

        Returns:
            Success carrying the decoded reservations, or a NETWORK/PROTOCOL failure
        """
        pass

    @abstractmethod
    async def create_reservation(self, draft: ReservationDraft) -> RemoteResult:
        """
        Append a new reservation. The remote store assigns its id.

        Args:
            draft: Reservation fields without id and arrived

        Returns:
            Success, or a NETWORK/PROTOCOL failure
        """
        pass

    @abstractmethod
    async def set_arrived(self, reservation_id: str, arrived: bool) -> RemoteResult:
        """
        Update the arrived flag of a single reservation.

        Args:
            reservation_id: Identifier assigned by the remote store
            arrived: New value of the flag

        Returns:
            Success, or a NETWORK/PROTOCOL failure
        """
        pass


def decode_reservations(payload: Any) -> List[Reservation]:
    """
    Decode a raw list response into validated reservations.

    Raises:
        ProtocolError: If the payload carries an error field, is not a list of
            objects, or any record fails validation
    """
    if isinstance(payload, dict) and payload.get("error"):
        raise ProtocolError(str(payload["error"]))
    if not isinstance(payload, list):
        raise ProtocolError(f"Expected a list of reservations, got {type(payload).__name__}")

    reservations = []
    for index, raw in enumerate(payload):
        if not isinstance(raw, dict):
            raise ProtocolError(f"Reservation at position {index} is not an object")
        try:
            reservations.append(Reservation.model_validate(raw))
        except ValidationError as e:
            raise ProtocolError(f"Invalid reservation {raw.get('id', index)!r}: {e.errors()[0]['msg']}") from e
    return reservations


def encode_draft(draft: ReservationDraft) -> Dict[str, Any]:
    """Serialize a draft the way the remote store expects it."""
    return draft.model_dump(mode="json")
