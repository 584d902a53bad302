"""Provider backed by the spreadsheet script service over HTTP."""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from reservation_dashboard.errors import NetworkError, ProtocolError, ReservationError
from reservation_dashboard.providers.base import ReservationProvider, decode_reservations, encode_draft
from reservation_dashboard.schemas import RemoteResult, ReservationDraft

logger = logging.getLogger(__name__)

# The script service only accepts "simple" requests, so JSON bodies go out as plain text.
POST_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}
SUCCESS_STATUS = "success"


class SheetProvider(ReservationProvider):
    """
    Reservation provider talking to a spreadsheet-backed script endpoint.

    Reads are a cache-busted GET returning the full list of rows; writes are
    POSTs carrying an ``action`` field. The blocking requests calls run in a
    worker thread so the event loop only suspends at the network boundary.
    """

    def __init__(self, url: str, timeout: float = 30.0, session: Optional[requests.Session] = None):
        self._url = url
        self._timeout = timeout
        self._session = session or requests.Session()

    async def list_reservations(self) -> RemoteResult:
        logger.debug(f"Fetching reservations from {self._url}")
        try:
            payload = await asyncio.to_thread(self._get_json)
            reservations = decode_reservations(payload)
        except ReservationError as e:
            self._log_failure("list_reservations", e)
            return RemoteResult.from_error(e)

        logger.info(f"Loaded {len(reservations)} reservations")
        return RemoteResult.success(reservations)

    async def create_reservation(self, draft: ReservationDraft) -> RemoteResult:
        logger.debug(f"Adding reservation for {draft.nombre} on {draft.fecha} {draft.hora}")
        body = {"action": "addReservation", "reservation": encode_draft(draft)}
        return await self._send("create_reservation", body, "Fallo al agregar la reserva")

    async def set_arrived(self, reservation_id: str, arrived: bool) -> RemoteResult:
        logger.debug(f"Updating reservation {reservation_id}: arrived={arrived}")
        body = {"action": "updateStatus", "id": reservation_id, "arrived": arrived}
        return await self._send("set_arrived", body, "Fallo al actualizar el estado")

    async def _send(self, operation: str, body: Dict[str, Any], default_message: str) -> RemoteResult:
        try:
            result = await asyncio.to_thread(self._post_json, body)
            if not isinstance(result, dict) or result.get("status") != SUCCESS_STATUS:
                message = result.get("message") if isinstance(result, dict) else None
                raise ProtocolError(message or default_message)
        except ReservationError as e:
            self._log_failure(operation, e)
            return RemoteResult.from_error(e)

        logger.info(f"{operation} succeeded")
        return RemoteResult.success()

    def _get_json(self) -> Any:
        params = {"t": int(time.time() * 1000)}
        try:
            resp = self._session.get(self._url, params=params, timeout=self._timeout)
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}") from e
        return self._parse(resp)

    def _post_json(self, body: Dict[str, Any]) -> Any:
        try:
            resp = self._session.post(
                self._url,
                data=json.dumps(body),
                headers=POST_HEADERS,
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"Request failed: {e}") from e
        return self._parse(resp)

    @staticmethod
    def _parse(resp: requests.Response) -> Any:
        if not 200 <= resp.status_code < 300:
            raise NetworkError(f"Request failed with status {resp.status_code}")
        try:
            return resp.json()
        except ValueError as e:
            raise ProtocolError("Response is not valid JSON") from e

    @staticmethod
    def _log_failure(operation: str, error: ReservationError) -> None:
        if isinstance(error, NetworkError):
            logger.error("Error in %s: %s", operation, error)
        else:
            logger.warning("Remote store rejected %s: %s", operation, error)
