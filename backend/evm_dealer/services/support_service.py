"""
Customer care: support tickets and showroom appointments
A staff member cannot hold two live appointments within 30 minutes of each other.
"""

from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import (
    Appointment, AppointmentStatus, Customer, Dealer, Product, SalesOrder,
    SupportTicket, TicketStatus, User, Vehicle
)
from evm_dealer.schemas.support import AppointmentCreate, AppointmentUpdate, TicketCreate, TicketUpdate
from evm_dealer.services.common import get_or_404, like, list_where, paginate

logger = get_logger(__name__)

STAFF_BUFFER = timedelta(minutes=30)
ACTIVE_TICKET_STATUSES = (TicketStatus.OPEN, TicketStatus.IN_PROGRESS)

TICKET_SORT_OPTIONS = {
    "created_asc": SupportTicket.created_at.asc(),
    "created_desc": SupportTicket.created_at.desc(),
    "status_asc": SupportTicket.status.asc(),
    "status_desc": SupportTicket.status.desc(),
}

APPOINTMENT_SORT_OPTIONS = {
    "time_asc": Appointment.appointment_time.asc(),
    "time_desc": Appointment.appointment_time.desc(),
}


def _check_ticket_status(status: str) -> str:
    status = status.upper()
    if status not in TicketStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
    return status


async def _check_ticket_links(db: AsyncSession, data) -> None:
    if getattr(data, "customer_id", None):
        await get_or_404(db, Customer, data.customer_id)
    if data.assigned_user_id:
        await get_or_404(db, User, data.assigned_user_id)
    if data.sales_order_id:
        await get_or_404(db, SalesOrder, data.sales_order_id, "Sales order")
    if data.vehicle_id:
        await get_or_404(db, Vehicle, data.vehicle_id)


def _set_ticket_status(ticket: SupportTicket, status: str) -> None:
    ticket.status = status
    if status in (TicketStatus.CLOSED, TicketStatus.RESOLVED):
        ticket.closed_at = datetime.utcnow()


async def create_ticket(db: AsyncSession, data: TicketCreate) -> SupportTicket:
    await _check_ticket_links(db, data)
    ticket = SupportTicket(**data.model_dump(), status=TicketStatus.OPEN, created_at=datetime.utcnow())
    db.add(ticket)
    await db.commit()
    logger.info(f"Support ticket {ticket.id} opened for customer {ticket.customer_id}")
    return await get_or_404(db, SupportTicket, ticket.id, "Support ticket")


async def update_ticket(db: AsyncSession, ticket_id: int, data: TicketUpdate) -> SupportTicket:
    ticket = await get_or_404(db, SupportTicket, ticket_id, "Support ticket")
    if ticket.status == TicketStatus.CLOSED:
        raise HTTPException(status_code=400, detail="Cannot update a closed ticket")
    await _check_ticket_links(db, data)
    update_data = data.model_dump(exclude_unset=True)
    status = update_data.pop("status", None)
    for field, value in update_data.items():
        setattr(ticket, field, value)
    if status:
        _set_ticket_status(ticket, _check_ticket_status(status))
    await db.commit()
    return await get_or_404(db, SupportTicket, ticket_id, "Support ticket")


async def delete_ticket(db: AsyncSession, ticket_id: int) -> None:
    ticket = await get_or_404(db, SupportTicket, ticket_id, "Support ticket")
    await db.delete(ticket)
    await db.commit()
    logger.info(f"Support ticket {ticket_id} deleted")


async def assign_ticket(db: AsyncSession, ticket_id: int, user_id: int) -> SupportTicket:
    """Assign to a user; OPEN and PENDING tickets move to IN_PROGRESS"""
    ticket = await get_or_404(db, SupportTicket, ticket_id, "Support ticket")
    user = await get_or_404(db, User, user_id)
    ticket.assigned_user_id = user.id
    if ticket.status in (TicketStatus.OPEN, TicketStatus.PENDING):
        ticket.status = TicketStatus.IN_PROGRESS
    await db.commit()
    logger.info(f"Support ticket {ticket_id} assigned to {user.username}")
    return await get_or_404(db, SupportTicket, ticket_id, "Support ticket")


async def update_ticket_status(db: AsyncSession, ticket_id: int, status: str) -> SupportTicket:
    ticket = await get_or_404(db, SupportTicket, ticket_id, "Support ticket")
    _set_ticket_status(ticket, _check_ticket_status(status))
    await db.commit()
    return await get_or_404(db, SupportTicket, ticket_id, "Support ticket")


async def close_ticket(db: AsyncSession, ticket_id: int) -> SupportTicket:
    ticket = await get_or_404(db, SupportTicket, ticket_id, "Support ticket")
    if ticket.status == TicketStatus.CLOSED:
        raise HTTPException(status_code=400, detail="Ticket is already closed")
    _set_ticket_status(ticket, TicketStatus.CLOSED)
    await db.commit()
    logger.info(f"Support ticket {ticket_id} closed")
    return await get_or_404(db, SupportTicket, ticket_id, "Support ticket")


async def reopen_ticket(db: AsyncSession, ticket_id: int) -> SupportTicket:
    ticket = await get_or_404(db, SupportTicket, ticket_id, "Support ticket")
    if ticket.status not in (TicketStatus.CLOSED, TicketStatus.RESOLVED):
        raise HTTPException(status_code=400, detail="Only closed or resolved tickets can be reopened")
    ticket.status = TicketStatus.OPEN
    ticket.closed_at = None
    await db.commit()
    logger.info(f"Support ticket {ticket_id} reopened")
    return await get_or_404(db, SupportTicket, ticket_id, "Support ticket")


async def ticket_statistics(db: AsyncSession) -> Dict[str, int]:
    result = await db.execute(
        select(SupportTicket.status, func.count(SupportTicket.id)).group_by(SupportTicket.status)
    )
    counts = dict(result.all())
    return {
        "total": sum(counts.values()),
        "open": counts.get(TicketStatus.OPEN, 0),
        "pending": counts.get(TicketStatus.PENDING, 0),
        "in_progress": counts.get(TicketStatus.IN_PROGRESS, 0),
        "resolved": counts.get(TicketStatus.RESOLVED, 0),
        "closed": counts.get(TicketStatus.CLOSED, 0),
        "cancelled": counts.get(TicketStatus.CANCELLED, 0),
    }


async def search_tickets(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                         status: Optional[str] = None, customer_id: Optional[int] = None,
                         assigned_user_id: Optional[int] = None, from_date: Optional[date] = None,
                         to_date: Optional[date] = None,
                         sort_by: Optional[str] = None) -> Tuple[List[SupportTicket], int]:
    conditions = []
    if keyword:
        conditions.append(or_(
            SupportTicket.title.ilike(like(keyword)),
            SupportTicket.description.ilike(like(keyword)),
        ))
    if status:
        conditions.append(SupportTicket.status == status.upper())
    if customer_id:
        conditions.append(SupportTicket.customer_id == customer_id)
    if assigned_user_id:
        conditions.append(SupportTicket.assigned_user_id == assigned_user_id)
    if from_date:
        conditions.append(SupportTicket.created_at >= datetime.combine(from_date, datetime.min.time()))
    if to_date:
        conditions.append(SupportTicket.created_at < datetime.combine(to_date + timedelta(days=1), datetime.min.time()))
    order = TICKET_SORT_OPTIONS.get(sort_by or "", SupportTicket.created_at.desc())
    return await paginate(db, SupportTicket, conditions, [order, SupportTicket.id.desc()], page, size)


def _newest_first():
    return [SupportTicket.created_at.desc(), SupportTicket.id.desc()]


async def list_tickets_by_customer(db: AsyncSession, customer_id: int) -> List[SupportTicket]:
    await get_or_404(db, Customer, customer_id)
    return await list_where(db, SupportTicket, SupportTicket.customer_id == customer_id, order_by=_newest_first())


async def list_tickets_by_assignee(db: AsyncSession, user_id: int) -> List[SupportTicket]:
    return await list_where(db, SupportTicket, SupportTicket.assigned_user_id == user_id, order_by=_newest_first())


async def list_tickets_by_order(db: AsyncSession, order_id: int) -> List[SupportTicket]:
    return await list_where(db, SupportTicket, SupportTicket.sales_order_id == order_id, order_by=_newest_first())


async def list_tickets_by_vehicle(db: AsyncSession, vehicle_id: str) -> List[SupportTicket]:
    return await list_where(db, SupportTicket, SupportTicket.vehicle_id == vehicle_id, order_by=_newest_first())


async def list_open_tickets(db: AsyncSession) -> List[SupportTicket]:
    """OPEN and IN_PROGRESS tickets"""
    return await list_where(db, SupportTicket, SupportTicket.status.in_(ACTIVE_TICKET_STATUSES),
                            order_by=_newest_first())


async def list_pending_unassigned(db: AsyncSession) -> List[SupportTicket]:
    return await list_where(
        db, SupportTicket,
        SupportTicket.status == TicketStatus.PENDING,
        SupportTicket.assigned_user_id.is_(None),
        order_by=_newest_first()
    )


async def list_my_tickets(db: AsyncSession, user_id: int) -> List[SupportTicket]:
    """Active tickets assigned to the user"""
    return await list_where(
        db, SupportTicket,
        SupportTicket.assigned_user_id == user_id,
        SupportTicket.status.in_(ACTIVE_TICKET_STATUSES),
        order_by=_newest_first()
    )


# Appointments

async def staff_available(db: AsyncSession, staff_user_id: int, when: datetime,
                          exclude_id: Optional[int] = None) -> bool:
    conditions = [
        Appointment.staff_user_id == staff_user_id,
        Appointment.status != AppointmentStatus.CANCELLED,
        Appointment.appointment_time > when - STAFF_BUFFER,
        Appointment.appointment_time < when + STAFF_BUFFER,
    ]
    if exclude_id:
        conditions.append(Appointment.id != exclude_id)
    result = await db.execute(select(func.count(Appointment.id)).where(*conditions))
    return (result.scalar() or 0) == 0


async def _check_staff(db: AsyncSession, staff_user_id: Optional[int], when: datetime,
                       exclude_id: Optional[int] = None) -> None:
    if not staff_user_id:
        return
    await get_or_404(db, User, staff_user_id, "Staff")
    if not await staff_available(db, staff_user_id, when, exclude_id):
        raise HTTPException(status_code=400, detail="Staff is not available at this time")


def _check_appointment_status(status: str) -> str:
    status = status.upper()
    if status not in AppointmentStatus.ALL:
        raise HTTPException(status_code=400, detail=f"Invalid appointment status: {status}")
    return status


async def create_appointment(db: AsyncSession, data: AppointmentCreate) -> Appointment:
    await get_or_404(db, Customer, data.customer_id)
    await get_or_404(db, Product, data.product_id)
    await get_or_404(db, Dealer, data.dealer_id)
    await _check_staff(db, data.staff_user_id, data.appointment_time)

    appointment = Appointment(**data.model_dump(), status=AppointmentStatus.SCHEDULED)
    db.add(appointment)
    await db.commit()
    logger.info(f"Appointment {appointment.id} scheduled at {appointment.appointment_time}")
    return await get_or_404(db, Appointment, appointment.id)


async def update_appointment(db: AsyncSession, appointment_id: int, data: AppointmentUpdate) -> Appointment:
    appointment = await get_or_404(db, Appointment, appointment_id)
    update_data = data.model_dump(exclude_unset=True)
    if "product_id" in update_data:
        await get_or_404(db, Product, update_data["product_id"])
    if "status" in update_data:
        update_data["status"] = _check_appointment_status(update_data["status"])

    staff_user_id = update_data.get("staff_user_id", appointment.staff_user_id)
    when = update_data.get("appointment_time", appointment.appointment_time)
    if "staff_user_id" in update_data or "appointment_time" in update_data:
        await _check_staff(db, staff_user_id, when, exclude_id=appointment_id)

    for field, value in update_data.items():
        setattr(appointment, field, value)
    await db.commit()
    return await get_or_404(db, Appointment, appointment_id)


async def update_appointment_status(db: AsyncSession, appointment_id: int, status: str) -> Appointment:
    appointment = await get_or_404(db, Appointment, appointment_id)
    appointment.status = _check_appointment_status(status)
    await db.commit()
    return await get_or_404(db, Appointment, appointment_id)


async def cancel_appointment(db: AsyncSession, appointment_id: int) -> Appointment:
    appointment = await get_or_404(db, Appointment, appointment_id)
    if appointment.status in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED):
        raise HTTPException(status_code=400, detail=f"Cannot cancel appointment with status: {appointment.status}")
    appointment.status = AppointmentStatus.CANCELLED
    await db.commit()
    logger.info(f"Appointment {appointment_id} cancelled")
    return await get_or_404(db, Appointment, appointment_id)


async def delete_appointment(db: AsyncSession, appointment_id: int) -> None:
    appointment = await get_or_404(db, Appointment, appointment_id)
    await db.delete(appointment)
    await db.commit()


async def search_appointments(db: AsyncSession, page: int, size: int, status: Optional[str] = None,
                              customer_id: Optional[int] = None, staff_user_id: Optional[int] = None,
                              dealer_id: Optional[int] = None, product_id: Optional[int] = None,
                              from_time: Optional[datetime] = None, to_time: Optional[datetime] = None,
                              sort_by: Optional[str] = None) -> Tuple[List[Appointment], int]:
    conditions = []
    if status:
        conditions.append(Appointment.status == status.upper())
    if customer_id:
        conditions.append(Appointment.customer_id == customer_id)
    if staff_user_id:
        conditions.append(Appointment.staff_user_id == staff_user_id)
    if dealer_id:
        conditions.append(Appointment.dealer_id == dealer_id)
    if product_id:
        conditions.append(Appointment.product_id == product_id)
    if from_time:
        conditions.append(Appointment.appointment_time >= from_time)
    if to_time:
        conditions.append(Appointment.appointment_time <= to_time)
    order = APPOINTMENT_SORT_OPTIONS.get(sort_by or "", Appointment.appointment_time.desc())
    return await paginate(db, Appointment, conditions, [order, Appointment.id.desc()], page, size)


async def list_appointments_by_customer(db: AsyncSession, customer_id: int) -> List[Appointment]:
    await get_or_404(db, Customer, customer_id)
    return await list_where(db, Appointment, Appointment.customer_id == customer_id,
                            order_by=[Appointment.appointment_time.desc()])


async def list_appointments_by_staff(db: AsyncSession, user_id: int) -> List[Appointment]:
    return await list_where(db, Appointment, Appointment.staff_user_id == user_id,
                            order_by=[Appointment.appointment_time.asc()])


async def list_appointments_by_dealer(db: AsyncSession, dealer_id: int) -> List[Appointment]:
    await get_or_404(db, Dealer, dealer_id)
    return await list_where(db, Appointment, Appointment.dealer_id == dealer_id,
                            order_by=[Appointment.appointment_time.asc()])


async def list_upcoming_appointments(db: AsyncSession) -> List[Appointment]:
    return await list_where(
        db, Appointment,
        Appointment.appointment_time >= datetime.now(),
        Appointment.status.in_((AppointmentStatus.SCHEDULED, AppointmentStatus.CONFIRMED)),
        order_by=[Appointment.appointment_time.asc()]
    )


async def list_today_appointments(db: AsyncSession) -> List[Appointment]:
    start = datetime.combine(date.today(), datetime.min.time())
    return await list_where(
        db, Appointment,
        Appointment.appointment_time >= start,
        Appointment.appointment_time < start + timedelta(days=1),
        order_by=[Appointment.appointment_time.asc()]
    )
