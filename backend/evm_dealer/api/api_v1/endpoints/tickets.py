"""Support ticket API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import SUPPORT_ROLES
from evm_dealer.models.support import SupportTicket
from evm_dealer.models.user import User
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.support import (
    TicketCreate, TicketUpdate, TicketAssign, TicketStatusUpdate,
    TicketResponse, TicketListResponse, TicketStatistics
)
from evm_dealer.services import support_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter(dependencies=[Depends(require_roles(*SUPPORT_ROLES))])


def build_ticket_response(ticket: SupportTicket) -> TicketResponse:
    return TicketResponse(
        id=ticket.id,
        title=ticket.title,
        description=ticket.description,
        status=ticket.status,
        created_at=ticket.created_at,
        closed_at=ticket.closed_at,
        customer_id=ticket.customer_id,
        customer_name=ticket.customer.full_name if ticket.customer else None,
        customer_phone=ticket.customer.phone_number if ticket.customer else None,
        assigned_user_id=ticket.assigned_user_id,
        assigned_user_name=ticket.assigned_user.full_name if ticket.assigned_user else None,
        sales_order_id=ticket.sales_order_id,
        vehicle_id=ticket.vehicle_id,
        vehicle_vin=ticket.vehicle.vin if ticket.vehicle else None
    )


def build_ticket_list(tickets: List[SupportTicket]) -> List[TicketResponse]:
    return [build_ticket_response(t) for t in tickets]


@router.get("/", response_model=TicketListResponse)
async def list_tickets(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Title or description"),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None),
    assigned_user_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    sort_by: Optional[str] = Query(None, description="created_asc, created_desc, status_asc, status_desc")
) -> Any:
    tickets, total = await support_service.search_tickets(
        db, page, size, keyword=keyword, status=status, customer_id=customer_id,
        assigned_user_id=assigned_user_id, from_date=from_date, to_date=to_date, sort_by=sort_by
    )
    return TicketListResponse(
        data=build_ticket_list(tickets),
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/statistics", response_model=TicketStatistics)
async def ticket_statistics(db: AsyncSession = Depends(get_db)) -> Any:
    return TicketStatistics(**await support_service.ticket_statistics(db))


@router.get("/open", response_model=List[TicketResponse])
async def list_open_tickets(db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_list(await support_service.list_open_tickets(db))


@router.get("/pending", response_model=List[TicketResponse])
async def list_pending_tickets(db: AsyncSession = Depends(get_db)) -> Any:
    """PENDING tickets nobody has picked up"""
    return build_ticket_list(await support_service.list_pending_unassigned(db))


@router.get("/my", response_model=List[TicketResponse])
async def list_my_tickets(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
) -> Any:
    return build_ticket_list(await support_service.list_my_tickets(db, current_user.id))


@router.get("/customer/{customer_id}", response_model=List[TicketResponse])
async def list_customer_tickets(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_list(await support_service.list_tickets_by_customer(db, customer_id))


@router.get("/assignee/{user_id}", response_model=List[TicketResponse])
async def list_assignee_tickets(user_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_list(await support_service.list_tickets_by_assignee(db, user_id))


@router.get("/order/{order_id}", response_model=List[TicketResponse])
async def list_order_tickets(order_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_list(await support_service.list_tickets_by_order(db, order_id))


@router.get("/vehicle/{vehicle_id}", response_model=List[TicketResponse])
async def list_vehicle_tickets(vehicle_id: str, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_list(await support_service.list_tickets_by_vehicle(db, vehicle_id))


@router.get("/{ticket_id}", response_model=TicketResponse)
async def get_ticket(ticket_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_response(await get_or_404(db, SupportTicket, ticket_id, "Support ticket"))


@router.post("/", response_model=TicketResponse, status_code=201)
async def create_ticket(*, db: AsyncSession = Depends(get_db), ticket_in: TicketCreate) -> Any:
    return build_ticket_response(await support_service.create_ticket(db, ticket_in))


@router.put("/{ticket_id}", response_model=TicketResponse)
async def update_ticket(*, db: AsyncSession = Depends(get_db), ticket_id: int, ticket_in: TicketUpdate) -> Any:
    return build_ticket_response(await support_service.update_ticket(db, ticket_id, ticket_in))


@router.delete("/{ticket_id}", response_model=MessageResponse)
async def delete_ticket(ticket_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await support_service.delete_ticket(db, ticket_id)
    return MessageResponse(message="Ticket deleted")


@router.post("/{ticket_id}/assign", response_model=TicketResponse)
async def assign_ticket(*, db: AsyncSession = Depends(get_db), ticket_id: int, assign_in: TicketAssign) -> Any:
    return build_ticket_response(await support_service.assign_ticket(db, ticket_id, assign_in.user_id))


@router.patch("/{ticket_id}/status", response_model=TicketResponse)
async def update_ticket_status(*, db: AsyncSession = Depends(get_db), ticket_id: int, status_in: TicketStatusUpdate) -> Any:
    return build_ticket_response(await support_service.update_ticket_status(db, ticket_id, status_in.status))


@router.post("/{ticket_id}/close", response_model=TicketResponse)
async def close_ticket(ticket_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_response(await support_service.close_ticket(db, ticket_id))


@router.post("/{ticket_id}/reopen", response_model=TicketResponse)
async def reopen_ticket(ticket_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_ticket_response(await support_service.reopen_ticket(db, ticket_id))
