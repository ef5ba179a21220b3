"""Customers"""

from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import Customer, SalesOrder, SupportTicket
from evm_dealer.schemas.customer import CustomerCreate, CustomerUpdate
from evm_dealer.services.common import count_where, get_or_404, like, paginate

logger = get_logger(__name__)

SORT_OPTIONS = {
    "name_asc": Customer.full_name.asc(),
    "name_desc": Customer.full_name.desc(),
    "date_asc": Customer.created_at.asc(),
    "date_desc": Customer.created_at.desc(),
}


async def _check_unique(db: AsyncSession, email: Optional[str], phone: Optional[str],
                        exclude_id: Optional[int] = None) -> None:
    if email:
        query = select(Customer.id).where(Customer.email == email)
        if exclude_id:
            query = query.where(Customer.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(status_code=400, detail=f"Customer email already exists: {email}")
    if phone:
        query = select(Customer.id).where(Customer.phone_number == phone)
        if exclude_id:
            query = query.where(Customer.id != exclude_id)
        if (await db.execute(query)).first():
            raise HTTPException(status_code=400, detail=f"Customer phone number already exists: {phone}")


async def create_customer(db: AsyncSession, data: CustomerCreate) -> Customer:
    await _check_unique(db, data.email, data.phone_number)
    customer = Customer(**data.model_dump())
    db.add(customer)
    await db.commit()
    await db.refresh(customer)
    logger.info(f"Created customer {customer.id}: {customer.full_name}")
    return customer


async def update_customer(db: AsyncSession, customer_id: int, data: CustomerUpdate) -> Customer:
    customer = await get_or_404(db, Customer, customer_id)
    update_data = data.model_dump(exclude_unset=True)
    await _check_unique(db, update_data.get("email"), update_data.get("phone_number"), exclude_id=customer_id)
    for field, value in update_data.items():
        setattr(customer, field, value)
    await db.commit()
    await db.refresh(customer)
    return customer


async def delete_customer(db: AsyncSession, customer_id: int) -> None:
    customer = await get_or_404(db, Customer, customer_id)
    order_count = await count_where(db, SalesOrder.id, SalesOrder.customer_id == customer_id)
    if order_count > 0:
        raise HTTPException(status_code=400, detail=f"Customer has {order_count} sales orders and cannot be deleted")
    ticket_count = await count_where(db, SupportTicket.id, SupportTicket.customer_id == customer_id)
    if ticket_count > 0:
        raise HTTPException(status_code=400, detail=f"Customer has {ticket_count} support tickets and cannot be deleted")
    await db.delete(customer)
    await db.commit()
    logger.info(f"Deleted customer {customer_id}")


async def customer_counts(db: AsyncSession, customer_id: int) -> Tuple[int, int]:
    """(order_count, ticket_count)"""
    orders = await count_where(db, SalesOrder.id, SalesOrder.customer_id == customer_id)
    tickets = await count_where(db, SupportTicket.id, SupportTicket.customer_id == customer_id)
    return orders, tickets


async def get_by_email(db: AsyncSession, email: str) -> Customer:
    result = await db.execute(select(Customer).where(Customer.email == email))
    customer = result.scalars().first()
    if not customer:
        raise HTTPException(status_code=404, detail=f"Customer not found with email: {email}")
    return customer


async def get_by_phone(db: AsyncSession, phone: str) -> Customer:
    result = await db.execute(select(Customer).where(Customer.phone_number == phone))
    customer = result.scalars().first()
    if not customer:
        raise HTTPException(status_code=404, detail=f"Customer not found with phone: {phone}")
    return customer


async def search_customers(db: AsyncSession, page: int, size: int, keyword: Optional[str] = None,
                           customer_type: Optional[str] = None, sort_by: Optional[str] = None
                           ) -> Tuple[List[Customer], int]:
    conditions = []
    if keyword:
        conditions.append(or_(
            Customer.full_name.ilike(like(keyword)),
            Customer.phone_number.ilike(like(keyword)),
            Customer.email.ilike(like(keyword)),
        ))
    if customer_type:
        conditions.append(Customer.customer_type == customer_type)
    order = SORT_OPTIONS.get(sort_by or "", Customer.id.desc())
    return await paginate(db, Customer, conditions, [order], page, size)
