"""Dealer contract API"""

from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, get_current_user, require_roles
from evm_dealer.core.permissions import CATALOG_WRITE
from evm_dealer.models.contract import DealerContract
from evm_dealer.schemas.brand import ContractCreate, ContractUpdate, ContractResponse, ContractListResponse
from evm_dealer.schemas.common import MessageResponse
from evm_dealer.services import contract_service
from evm_dealer.services.common import get_or_404, total_pages

router = APIRouter()


def build_contract_response(contract: DealerContract) -> ContractResponse:
    return ContractResponse(
        id=contract.id,
        start_date=contract.start_date,
        end_date=contract.end_date,
        contract_terms=contract.contract_terms,
        commission_rate=float(contract.commission_rate or 0),
        sales_target=float(contract.sales_target or 0),
        brand_id=contract.brand_id,
        brand_name=contract.brand.brand_name if contract.brand else None,
        dealer_id=contract.dealer_id,
        dealer_name=contract.dealer.dealer_name if contract.dealer else None,
        status=contract_service.contract_status(contract),
        days_remaining=contract_service.days_remaining(contract)
    )


@router.get("/", response_model=ContractListResponse, dependencies=[Depends(get_current_user)])
async def list_contracts(
    *,
    db: AsyncSession = Depends(get_db),
    page: int = Query(0, ge=0),
    size: int = Query(20, ge=1, le=100),
    brand_id: Optional[int] = Query(None),
    dealer_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None, description="ACTIVE, EXPIRED or UPCOMING")
) -> Any:
    contracts, total = await contract_service.search_contracts(
        db, page, size, brand_id=brand_id, dealer_id=dealer_id, status=status
    )
    return ContractListResponse(
        data=[build_contract_response(c) for c in contracts],
        total=total,
        page=page,
        size=size,
        total_pages=total_pages(total, size)
    )


@router.get("/dealer/{dealer_id}", response_model=List[ContractResponse], dependencies=[Depends(get_current_user)])
async def list_by_dealer(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_contract_response(c) for c in await contract_service.list_by_dealer(db, dealer_id)]


@router.get("/dealer/{dealer_id}/current", response_model=ContractResponse, dependencies=[Depends(get_current_user)])
async def current_contract(dealer_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_contract_response(await contract_service.get_current_contract(db, dealer_id))


@router.get("/brand/{brand_id}", response_model=List[ContractResponse], dependencies=[Depends(get_current_user)])
async def list_by_brand(brand_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return [build_contract_response(c) for c in await contract_service.list_by_brand(db, brand_id)]


@router.get("/expiring", response_model=List[ContractResponse], dependencies=[Depends(get_current_user)])
async def list_expiring(
    db: AsyncSession = Depends(get_db),
    days: int = Query(30, ge=1, le=365)
) -> Any:
    return [build_contract_response(c) for c in await contract_service.list_expiring(db, days)]


@router.get("/{contract_id}", response_model=ContractResponse, dependencies=[Depends(get_current_user)])
async def get_contract(contract_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    return build_contract_response(await get_or_404(db, DealerContract, contract_id, "Contract"))


@router.post("/", response_model=ContractResponse, status_code=201, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def create_contract(*, db: AsyncSession = Depends(get_db), contract_in: ContractCreate) -> Any:
    return build_contract_response(await contract_service.create_contract(db, contract_in))


@router.put("/{contract_id}", response_model=ContractResponse, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def update_contract(*, db: AsyncSession = Depends(get_db), contract_id: int, contract_in: ContractUpdate) -> Any:
    return build_contract_response(await contract_service.update_contract(db, contract_id, contract_in))


@router.delete("/{contract_id}", response_model=MessageResponse, dependencies=[Depends(require_roles(*CATALOG_WRITE))])
async def delete_contract(contract_id: int, db: AsyncSession = Depends(get_db)) -> Any:
    await contract_service.delete_contract(db, contract_id)
    return MessageResponse(message="Contract deleted")
