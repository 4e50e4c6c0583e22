"""Seat endpoints: partner view and deactivation, admin grants."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends

from app.core.responses import created, ok
from app.core.security import CurrentUser, partner_scope, require_admin, require_partner
from app.dependencies import Container, get_container
from app.models.seat import SeatCreate, SeatView
from app.services.seat_ledger import available_seats

router = APIRouter()
admin_router = APIRouter()


@router.get("")
async def list_seats(
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    return ok(container.ledger.list_seats(partner_scope(user)), "Seats retrieved")


@router.patch("/{batch_id}/deactivate")
async def deactivate_seat(
    batch_id: UUID,
    user: CurrentUser = Depends(require_partner),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    seat = container.ledger.deactivate(partner_scope(user), batch_id)
    return ok(seat, "Seat deactivated")


@admin_router.post("", status_code=201)
async def create_seat(
    body: SeatCreate,
    _: CurrentUser = Depends(require_admin),
    container: Container = Depends(get_container),
) -> dict[str, Any]:
    seat = container.ledger.create_seat(body)
    view = SeatView(**seat.model_dump(), available_seats=available_seats(seat))
    return created(view, "Seat created")
