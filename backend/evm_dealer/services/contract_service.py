"""Dealer contracts"""

from datetime import date, timedelta
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import Brand, Dealer, DealerContract
from evm_dealer.schemas.brand import ContractCreate, ContractUpdate
from evm_dealer.services.common import get_or_404, list_where, money, paginate

logger = get_logger(__name__)


def contract_status(contract: DealerContract, today: Optional[date] = None) -> str:
    today = today or date.today()
    if today < contract.start_date:
        return "UPCOMING"
    if today > contract.end_date:
        return "EXPIRED"
    return "ACTIVE"


def days_remaining(contract: DealerContract, today: Optional[date] = None) -> int:
    today = today or date.today()
    if today > contract.end_date:
        return 0
    return (contract.end_date - today).days


async def _check_overlap(db: AsyncSession, dealer_id: int, start: date, end: date,
                         exclude_id: Optional[int] = None) -> None:
    query = select(DealerContract.id).where(
        DealerContract.dealer_id == dealer_id,
        DealerContract.start_date <= end,
        DealerContract.end_date >= start,
    )
    if exclude_id:
        query = query.where(DealerContract.id != exclude_id)
    if (await db.execute(query)).first():
        raise HTTPException(
            status_code=400,
            detail="Contract dates overlap with an existing contract for this dealer"
        )


async def create_contract(db: AsyncSession, data: ContractCreate) -> DealerContract:
    if data.end_date < data.start_date:
        raise HTTPException(status_code=400, detail="End date must be after start date")
    await get_or_404(db, Brand, data.brand_id)
    await get_or_404(db, Dealer, data.dealer_id)
    await _check_overlap(db, data.dealer_id, data.start_date, data.end_date)

    contract = DealerContract(
        start_date=data.start_date,
        end_date=data.end_date,
        contract_terms=data.contract_terms,
        commission_rate=money(data.commission_rate),
        sales_target=money(data.sales_target),
        brand_id=data.brand_id,
        dealer_id=data.dealer_id,
    )
    db.add(contract)
    await db.commit()
    logger.info(f"Created contract for dealer {data.dealer_id}: {data.start_date} - {data.end_date}")
    return await get_or_404(db, DealerContract, contract.id, "Contract")


async def update_contract(db: AsyncSession, contract_id: int, data: ContractUpdate) -> DealerContract:
    contract = await get_or_404(db, DealerContract, contract_id, "Contract")
    update_data = data.model_dump(exclude_unset=True)

    start = update_data.get("start_date", contract.start_date)
    end = update_data.get("end_date", contract.end_date)
    if end < start:
        raise HTTPException(status_code=400, detail="End date must be after start date")
    await _check_overlap(db, contract.dealer_id, start, end, exclude_id=contract_id)

    for field, value in update_data.items():
        if field in ("commission_rate", "sales_target") and value is not None:
            value = money(value)
        setattr(contract, field, value)
    await db.commit()
    return await get_or_404(db, DealerContract, contract_id, "Contract")


async def delete_contract(db: AsyncSession, contract_id: int) -> None:
    contract = await get_or_404(db, DealerContract, contract_id, "Contract")
    await db.delete(contract)
    await db.commit()


async def search_contracts(db: AsyncSession, page: int, size: int, brand_id: Optional[int] = None,
                           dealer_id: Optional[int] = None, status: Optional[str] = None
                           ) -> Tuple[List[DealerContract], int]:
    today = date.today()
    conditions = []
    if brand_id is not None:
        conditions.append(DealerContract.brand_id == brand_id)
    if dealer_id is not None:
        conditions.append(DealerContract.dealer_id == dealer_id)
    if status:
        status = status.upper()
        if status == "ACTIVE":
            conditions += [DealerContract.start_date <= today, DealerContract.end_date >= today]
        elif status == "EXPIRED":
            conditions.append(DealerContract.end_date < today)
        elif status == "UPCOMING":
            conditions.append(DealerContract.start_date > today)
        else:
            raise HTTPException(status_code=400, detail=f"Invalid contract status: {status}")
    return await paginate(db, DealerContract, conditions, [DealerContract.start_date.desc()], page, size)


async def list_by_dealer(db: AsyncSession, dealer_id: int) -> List[DealerContract]:
    return await list_where(db, DealerContract, DealerContract.dealer_id == dealer_id,
                            order_by=[DealerContract.start_date.desc()])


async def list_by_brand(db: AsyncSession, brand_id: int) -> List[DealerContract]:
    return await list_where(db, DealerContract, DealerContract.brand_id == brand_id,
                            order_by=[DealerContract.start_date.desc()])


async def get_current_contract(db: AsyncSession, dealer_id: int) -> DealerContract:
    today = date.today()
    contracts = await list_where(
        db, DealerContract,
        DealerContract.dealer_id == dealer_id,
        DealerContract.start_date <= today,
        DealerContract.end_date >= today,
        order_by=[DealerContract.start_date.desc()]
    )
    if not contracts:
        raise HTTPException(status_code=404, detail=f"No active contract for dealer {dealer_id}")
    return contracts[0]


async def list_expiring(db: AsyncSession, days: int) -> List[DealerContract]:
    today = date.today()
    return await list_where(
        db, DealerContract,
        DealerContract.end_date >= today,
        DealerContract.end_date <= today + timedelta(days=days),
        order_by=[DealerContract.end_date.asc()]
    )


async def latest_contract(db: AsyncSession, dealer_id: int) -> Optional[DealerContract]:
    """Most recent contract by start date, used for sales targets"""
    contracts = await list_where(db, DealerContract, DealerContract.dealer_id == dealer_id,
                                 order_by=[DealerContract.start_date.desc()])
    return contracts[0] if contracts else None
