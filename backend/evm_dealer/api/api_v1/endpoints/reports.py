"""Report API"""

from datetime import date
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.permissions import REPORT_ROLES
from evm_dealer.schemas.report import (
    SalesReport, InventoryReport, DealerPerformance, RevenueReport, DashboardSummary
)
from evm_dealer.services import report_service

router = APIRouter(dependencies=[Depends(require_roles(*REPORT_ROLES))])


@router.get("/dashboard", response_model=DashboardSummary)
async def get_dashboard(*, db: AsyncSession = Depends(get_db)) -> Any:
    """Month to date revenue, orders, stock alerts and outstanding payments"""
    return await report_service.dashboard(db)


@router.get("/sales", response_model=SalesReport)
async def get_sales_report(
    *,
    db: AsyncSession = Depends(get_db),
    from_date: Optional[date] = Query(None, description="Defaults to one month before to_date"),
    to_date: Optional[date] = Query(None, description="Defaults to today"),
    dealer_id: Optional[int] = Query(None)
) -> Any:
    return await report_service.sales_report(db, from_date, to_date, dealer_id)


@router.get("/inventory", response_model=InventoryReport)
async def get_inventory_report(
    *,
    db: AsyncSession = Depends(get_db),
    dealer_id: Optional[int] = Query(None),
    threshold: Optional[int] = Query(None, ge=0)
) -> Any:
    return await report_service.inventory_report(db, dealer_id, threshold)


@router.get("/dealer-performance", response_model=List[DealerPerformance])
async def get_all_dealers_performance(
    *,
    db: AsyncSession = Depends(get_db),
    from_date: Optional[date] = Query(None, description="Defaults to three months before to_date"),
    to_date: Optional[date] = Query(None)
) -> Any:
    """Performance of every dealer, highest revenue first"""
    return await report_service.all_dealers_performance(db, from_date, to_date)


@router.get("/dealer-performance/{dealer_id}", response_model=DealerPerformance)
async def get_dealer_performance(
    *,
    db: AsyncSession = Depends(get_db),
    dealer_id: int,
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None)
) -> Any:
    return await report_service.dealer_performance(db, dealer_id, from_date, to_date)


@router.get("/revenue", response_model=RevenueReport)
async def get_revenue_report(
    *,
    db: AsyncSession = Depends(get_db),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    dealer_id: Optional[int] = Query(None)
) -> Any:
    return await report_service.revenue_report(db, from_date, to_date, dealer_id)
