"""Reservation Dashboard MCP Server.

This MCP server lets restaurant staff record reservations, view today's lunch
and dinner seating plus future bookings, and mark guests as arrived. The
reservations live in a spreadsheet-backed script service.
"""

import json
import logging
import os
import sys

from fastmcp import FastMCP
from pydantic import ValidationError

from reservation_dashboard.dashboard import Dashboard
from reservation_dashboard.errors import ReservationError

# Setup logging
logger = logging.getLogger(__name__)
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    stream=sys.stdout,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logging.getLogger("urllib3").setLevel(logging.INFO)

dashboard = Dashboard.from_configuration()

mcp = FastMCP("Reservation Dashboard")


async def _ensure_started() -> None:
    """Load reservations and start the reclassification timer on first use."""
    if not dashboard.scheduler.running:
        await dashboard.start()


@mcp.tool(annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True})
async def get_dashboard() -> str:
    """
    Get today's lunch and dinner reservations and the future bookings.

    Today's reservations are ordered by time and carry a lateness state
    (on_time, late_warn, late_critical, arrived or unscheduled). Past
    reservations are not shown.

    Returns:
        JSON string with today_lunch, today_dinner, future, is_loading and error
    """
    logger.info("get_dashboard called")
    await _ensure_started()
    return dashboard.view().model_dump_json(indent=2)


@mcp.tool(annotations={"readOnlyHint": True, "destructiveHint": False, "idempotentHint": True})
async def refresh_reservations() -> str:
    """
    Reload every reservation from the spreadsheet and return the dashboard.

    Use this to retry after an error.

    Returns:
        JSON string with the refreshed dashboard
    """
    logger.info("refresh_reservations called")
    await dashboard.store.refresh()
    return dashboard.view().model_dump_json(indent=2)


@mcp.tool(annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": False})
async def add_reservation(
    nombre: str,
    fecha: str,
    hora: str,
    tipo: str,
    cantidad: int = 1,
    habitacion: str = "",
    telefono: str = "",
    observacion: str = "",
) -> str:
    """
    Record a new table reservation.

    Args:
        nombre: Guest name
        fecha: Reservation date (YYYY-MM-DD)
        hora: Reservation time (HH:MM, 24h)
        tipo: Meal sitting, "ALMUERZO" (lunch) or "CENA" (dinner)
        cantidad: Number of guests (at least 1)
        habitacion: Optional room or unit of the guest
        telefono: Optional phone number (XXX-XXXXXXX)
        observacion: Optional note

    Returns:
        JSON string with the refreshed dashboard, or an error
    """
    logger.info(f"add_reservation called: nombre={nombre}, fecha={fecha}, hora={hora}, tipo={tipo}")
    await _ensure_started()

    draft = {
        "nombre": nombre,
        "fecha": fecha,
        "hora": hora,
        "tipo": tipo,
        "cantidad": cantidad,
        "habitacion": habitacion,
        "telefono": telefono,
        "observacion": observacion,
    }
    try:
        await dashboard.store.add(draft)
    except ValidationError as e:
        logger.warning(f"Validation error in add_reservation: {e}")
        return json.dumps({"error": "Invalid reservation", "details": [err["msg"] for err in e.errors()]})
    except ReservationError as e:
        logger.warning(f"Remote error in add_reservation: {e}")
        return json.dumps({"error": dashboard.store.last_error, "details": [e.message]})

    return dashboard.view().model_dump_json(indent=2)


@mcp.tool(annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": True})
async def set_arrived(reservation_id: str, arrived: bool = True) -> str:
    """
    Mark a guest as arrived, or clear the mark.

    The change is shown immediately and confirmed with the spreadsheet in the
    background; if the spreadsheet rejects it the change is reverted and the
    dashboard error is set.

    Args:
        reservation_id: Reservation identifier from the dashboard
        arrived: True when the guest has arrived

    Returns:
        JSON string with the updated reservation
    """
    logger.info(f"set_arrived called: reservation_id={reservation_id}, arrived={arrived}")
    await _ensure_started()

    dashboard.store.set_arrived(reservation_id, arrived)
    record = dashboard.store.find(reservation_id)
    if record is None:
        return json.dumps({"error": f"Reservation {reservation_id} is not loaded"})
    return record.model_dump_json(indent=2)


@mcp.tool(annotations={"readOnlyHint": False, "destructiveHint": False, "idempotentHint": True})
def dismiss_error() -> str:
    """Clear the dashboard error message."""
    dashboard.store.dismiss_error()
    return json.dumps({"error": None})


def run_server():
    """Run the MCP server with configured transport."""
    transport = os.getenv("MCP_TRANSPORT", "streamable-http")
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))

    logger.info(f"Starting Reservation Dashboard MCP Server on {host}:{port} with transport={transport}")
    logger.info("Registered tools: get_dashboard, refresh_reservations, add_reservation, set_arrived, dismiss_error")

    mcp.run(transport=transport, host=host, port=port)


if __name__ == "__main__":
    run_server()
