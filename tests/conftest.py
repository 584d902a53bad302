"""Shared fixtures for the reservation dashboard tests."""

import asyncio
from typing import List

import pytest

from reservation_dashboard.providers import MockProvider, ReservationProvider
from reservation_dashboard.schemas import RemoteResult, Reservation, ReservationType


class GatedProvider(ReservationProvider):
    """Provider whose calls stay pending until the test resolves them."""

    def __init__(self):
        self.list_calls: List[asyncio.Future] = []
        self.status_calls: List[asyncio.Future] = []
        self.drafts = []

    async def list_reservations(self) -> RemoteResult:
        future = asyncio.get_running_loop().create_future()
        self.list_calls.append(future)
        return await future

    async def create_reservation(self, draft) -> RemoteResult:
        self.drafts.append(draft)
        return RemoteResult.success()

    async def set_arrived(self, reservation_id: str, arrived: bool) -> RemoteResult:
        future = asyncio.get_running_loop().create_future()
        self.status_calls.append(future)
        return await future


@pytest.fixture
def make_reservation():
    """Factory for reservations with sensible defaults."""

    def _make(**overrides) -> Reservation:
        fields = {
            "id": "1",
            "fecha": "2024-03-10",
            "hora": "13:00",
            "nombre": "Ana Pérez",
            "habitacion": "",
            "cantidad": 2,
            "telefono": "",
            "tipo": ReservationType.LUNCH,
            "observacion": "",
            "arrived": False,
        }
        fields.update(overrides)
        return Reservation(**fields)

    return _make


@pytest.fixture
def raw_rows():
    """Rows as the spreadsheet returns them."""
    return [
        {"id": 1, "fecha": "2024-03-10", "hora": "13:00", "nombre": "Ana Pérez", "habitacion": "101",
         "cantidad": "2", "telefono": "351-1234567", "tipo": "ALMUERZO", "observacion": "", "arrived": "FALSE"},
        {"id": 2, "fecha": "2024-03-10", "hora": "21:00", "nombre": "Luis Gómez", "habitacion": "",
         "cantidad": 4, "telefono": "", "tipo": "CENA", "observacion": "Cumpleaños", "arrived": True},
        {"id": 3, "fecha": "2024-03-12", "hora": "12:30", "nombre": "Marta Ruiz", "habitacion": "204",
         "cantidad": "", "telefono": "", "tipo": "ALMUERZO", "observacion": "", "arrived": "false"},
    ]


@pytest.fixture
def mock_provider(raw_rows):
    return MockProvider(rows=raw_rows)


@pytest.fixture
def gated_provider():
    return GatedProvider()
