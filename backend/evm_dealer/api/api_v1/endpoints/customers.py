"""Customer API"""

from typing import Any, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import SUPPORT_ROLES
from evm_dealer.models.customer import Customer
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse, CustomerListResponse
from evm_dealer.services import customer_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter(dependencies=[Depends(require_roles(*SUPPORT_ROLES))])


async def build_customer_response(db: AsyncSession, customer: Customer) -> CustomerResponse:
    order_count, ticket_count = await customer_service.customer_counts(db, customer.id)
    response = CustomerResponse.model_validate(customer)
    response.order_count = order_count
    response.ticket_count = ticket_count
    return response


@router.get("/", response_model=CustomerListResponse)
async def list_customers(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    keyword: Optional[str] = Query(None, description="Name, phone or email"),
    customer_type: Optional[str] = Query(None),
    sort_by: Optional[str] = Query(None, description="name_asc, name_desc, date_asc, date_desc")
) -> Any:
    customers, total = await customer_service.search_customers(
        db, page, size, keyword=keyword, customer_type=customer_type, sort_by=sort_by
    )
    return CustomerListResponse(
        data=[CustomerResponse.model_validate(c) for c in customers],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/email/{email}", response_model=CustomerResponse)
async def get_customer_by_email(email: str, db: AsyncSession = Depends(get_db)) -> Any:
    return await build_customer_response(db, await customer_service.get_by_email(db, email))


@router.get("/phone/{phone}", response_model=CustomerResponse)
async def get_customer_by_phone(phone: str, db: AsyncSession = Depends(get_db)) -> Any:
    return await build_customer_response(db, await customer_service.get_by_phone(db, phone))


@router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return await build_customer_response(db, await get_or_404(db, Customer, customer_id))


@router.post("/", response_model=CustomerResponse, status_code=201)
async def create_customer(*, db: AsyncSession = Depends(get_db), customer_in: CustomerCreate) -> Any:
    return await build_customer_response(db, await customer_service.create_customer(db, customer_in))


@router.put("/{customer_id}", response_model=CustomerResponse)
async def update_customer(*, db: AsyncSession = Depends(get_db), customer_id: int, customer_in: CustomerUpdate) -> Any:
    return await build_customer_response(db, await customer_service.update_customer(db, customer_id, customer_in))


@router.delete("/{customer_id}", response_model=MessageResponse)
async def delete_customer(customer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    """Rejected while orders or tickets reference the customer"""
    await customer_service.delete_customer(db, customer_id)
    return MessageResponse(message="Customer deleted")
