"""
Reports
- sales, revenue and dealer performance are aggregated in SQL over non-cancelled orders
- inventory report classifies each stock row against LOW_STOCK_THRESHOLD
- growth compares against the previous period of equal length
"""

import calendar
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import get_logger
from evm_dealer.models import (
    Dealer, Inventory, OrderStatus, Payment, PaymentStatus, Product, SalesOrder, User
)
from evm_dealer.services import contract_service
from evm_dealer.services.common import get_or_404, growth_rate, list_where, money, percent, to_decimal

logger = get_logger(__name__)

TOP_LIMIT = 10
BRAND_WAREHOUSE = "Brand warehouse"

IN_STOCK = "IN_STOCK"
LOW_STOCK = "LOW_STOCK"
OUT_OF_STOCK = "OUT_OF_STOCK"


def months_ago(day: date, months: int) -> date:
    """Same day n months earlier, clamped to the end of shorter months"""
    month_index = day.year * 12 + day.month - 1 - months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def report_window(from_date: Optional[date], to_date: Optional[date], default_months: int) -> Tuple[date, date]:
    """Fill in missing bounds (to_date defaults to today) and reject reversed ranges"""
    to_date = to_date or date.today()
    from_date = from_date or months_ago(to_date, default_months)
    if from_date > to_date:
        logger.warning(f"Rejected report window {from_date} > {to_date}")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="from_date must not be after to_date"
        )
    return from_date, to_date


def previous_period(from_date: date, to_date: date) -> Tuple[date, date]:
    length = (to_date - from_date).days + 1
    prev_to = from_date - timedelta(days=1)
    return prev_to - timedelta(days=length - 1), prev_to


def month_keys(from_date: date, to_date: date) -> List[str]:
    keys = []
    year, month = from_date.year, from_date.month
    while (year, month) <= (to_date.year, to_date.month):
        keys.append(f"{year:04d}-{month:02d}")
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return keys


def performance_level(achievement: Decimal) -> str:
    if achievement >= 100:
        return "EXCELLENT"
    if achievement >= 80:
        return "GOOD"
    if achievement >= 60:
        return "AVERAGE"
    return "POOR"


def stock_status(inventory: Inventory, threshold: int) -> str:
    available = inventory.available_quantity or 0
    if available == 0:
        return OUT_OF_STOCK
    if available < threshold:
        return LOW_STOCK
    return IN_STOCK


def _order_conditions(from_date: date, to_date: date, dealer_id: Optional[int] = None) -> list:
    conditions = [
        SalesOrder.status != OrderStatus.CANCELLED,
        SalesOrder.order_date >= datetime.combine(from_date, time.min),
        SalesOrder.order_date < datetime.combine(to_date + timedelta(days=1), time.min),
    ]
    if dealer_id is not None:
        conditions.append(SalesOrder.dealer_id == dealer_id)
    return conditions


async def _order_totals(db: AsyncSession, conditions: list) -> Tuple[Decimal, int, Decimal]:
    """(revenue, order count, discounts)"""
    result = await db.execute(
        select(
            func.coalesce(func.sum(SalesOrder.total_price), 0),
            func.count(SalesOrder.id),
            func.coalesce(func.sum(SalesOrder.discount_amount), 0)
        ).where(and_(*conditions))
    )
    row = result.first()
    return money(row[0]), int(row[1] or 0), money(row[2])


async def _top_products(db: AsyncSession, conditions: list, limit: int = TOP_LIMIT) -> List[Dict[str, Any]]:
    revenue = func.coalesce(func.sum(SalesOrder.total_price), 0)
    result = await db.execute(
        select(Product.id, Product.product_name, func.count(SalesOrder.id), revenue)
        .join(Product, SalesOrder.product_id == Product.id)
        .where(and_(*conditions))
        .group_by(Product.id, Product.product_name)
        .order_by(revenue.desc())
        .limit(limit)
    )
    return [
        {
            "product_id": row[0],
            "product_name": row[1],
            "units_sold": int(row[2] or 0),
            "revenue": float(money(row[3])),
        }
        for row in result.all()
    ]


async def sales_report(
    db: AsyncSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    dealer_id: Optional[int] = None
) -> Dict[str, Any]:
    from_date, to_date = report_window(from_date, to_date, 1)
    conditions = _order_conditions(from_date, to_date, dealer_id)

    revenue, order_count, discount = await _order_totals(db, conditions)
    prev_from, prev_to = previous_period(from_date, to_date)
    previous_revenue, _, _ = await _order_totals(db, _order_conditions(prev_from, prev_to, dealer_id))

    # Daily sales
    day = func.date(SalesOrder.order_date)
    daily_result = await db.execute(
        select(day, func.coalesce(func.sum(SalesOrder.total_price), 0), func.count(SalesOrder.id))
        .where(and_(*conditions))
        .group_by(day)
        .order_by(day)
    )
    sales_by_day = []
    for row in daily_result.all():
        day_revenue = money(row[1])
        day_count = int(row[2] or 0)
        sales_by_day.append({
            "date": date.fromisoformat(str(row[0])[:10]),
            "revenue": float(day_revenue),
            "order_count": day_count,
            "average_value": float(money(day_revenue / day_count)) if day_count else 0.0,
        })

    total = func.coalesce(func.sum(SalesOrder.total_price), 0)

    sales_person_result = await db.execute(
        select(User.id, User.full_name, total, func.count(SalesOrder.id))
        .join(User, SalesOrder.sales_person_id == User.id)
        .where(and_(*conditions))
        .group_by(User.id, User.full_name)
        .order_by(total.desc())
        .limit(TOP_LIMIT)
    )
    top_sales_persons = [
        {"id": row[0], "name": row[1], "total_sales": float(money(row[2])), "order_count": int(row[3] or 0)}
        for row in sales_person_result.all()
    ]

    dealer_result = await db.execute(
        select(Dealer.id, Dealer.dealer_name, total, func.count(SalesOrder.id))
        .join(Dealer, SalesOrder.dealer_id == Dealer.id)
        .where(and_(*conditions))
        .group_by(Dealer.id, Dealer.dealer_name)
        .order_by(total.desc())
        .limit(TOP_LIMIT)
    )
    top_dealers = [
        {"id": row[0], "name": row[1], "total_sales": float(money(row[2])), "order_count": int(row[3] or 0)}
        for row in dealer_result.all()
    ]

    return {
        "from_date": from_date,
        "to_date": to_date,
        "dealer_id": dealer_id,
        "total_revenue": float(revenue),
        "total_orders": order_count,
        "average_order_value": float(money(revenue / order_count)) if order_count else 0.0,
        "total_discount": float(discount),
        "previous_period_revenue": float(previous_revenue),
        "growth_rate": float(growth_rate(revenue, previous_revenue)),
        "sales_by_day": sales_by_day,
        "top_sales_persons": top_sales_persons,
        "top_dealers": top_dealers,
        "top_products": await _top_products(db, conditions),
    }


async def inventory_report(
    db: AsyncSession,
    dealer_id: Optional[int] = None,
    threshold: Optional[int] = None
) -> Dict[str, Any]:
    threshold = settings.LOW_STOCK_THRESHOLD if threshold is None else threshold
    conditions = []
    if dealer_id is not None:
        conditions.append(Inventory.dealer_id == dealer_id)
    rows = await list_where(db, Inventory, *conditions, order_by=[Inventory.product_id, Inventory.id])

    details = []
    alerts = []
    for inventory in rows:
        status = stock_status(inventory, threshold)
        product_name = inventory.product.product_name if inventory.product else None
        dealer_name = inventory.dealer.dealer_name if inventory.dealer else BRAND_WAREHOUSE
        details.append({
            "inventory_id": inventory.id,
            "product_id": inventory.product_id,
            "product_name": product_name,
            "version": inventory.product.version if inventory.product else None,
            "dealer_id": inventory.dealer_id,
            "dealer_name": dealer_name,
            "location": inventory.location,
            "total_quantity": inventory.total_quantity or 0,
            "available_quantity": inventory.available_quantity or 0,
            "reserved_quantity": inventory.reserved_quantity or 0,
            "in_transit_quantity": inventory.in_transit_quantity or 0,
            "stock_status": status,
        })
        if status == IN_STOCK:
            continue
        if status == OUT_OF_STOCK:
            message = f"{product_name} is out of stock at {dealer_name}"
        else:
            message = f"{product_name} is low on stock at {dealer_name}: {inventory.available_quantity} left"
        alerts.append({
            "product_id": inventory.product_id,
            "product_name": product_name,
            "dealer_id": inventory.dealer_id,
            "dealer_name": dealer_name,
            "alert_type": status,
            "current_quantity": inventory.available_quantity or 0,
            "min_stock_level": threshold,
            "message": message,
        })

    return {
        "report_date": date.today(),
        "total_products": len({row.product_id for row in rows}),
        "total_stock": sum(row.total_quantity or 0 for row in rows),
        "available_stock": sum(row.available_quantity or 0 for row in rows),
        "reserved_stock": sum(row.reserved_quantity or 0 for row in rows),
        "in_transit_stock": sum(row.in_transit_quantity or 0 for row in rows),
        "low_stock_count": sum(1 for d in details if d["stock_status"] == LOW_STOCK),
        "out_of_stock_count": sum(1 for d in details if d["stock_status"] == OUT_OF_STOCK),
        "inventory_details": details,
        "alerts": alerts,
    }


async def dealer_performance(
    db: AsyncSession,
    dealer_id: int,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None
) -> Dict[str, Any]:
    from_date, to_date = report_window(from_date, to_date, 3)
    dealer = await get_or_404(db, Dealer, dealer_id)
    conditions = _order_conditions(from_date, to_date, dealer_id)

    revenue, order_count, _ = await _order_totals(db, conditions)

    contract = await contract_service.latest_contract(db, dealer_id)
    target = money(contract.sales_target) if contract and contract.sales_target else Decimal("0.00")
    achievement = percent(revenue, target)

    # Monthly breakdown, months without orders included
    month = func.strftime("%Y-%m", SalesOrder.order_date)
    month_result = await db.execute(
        select(month, func.coalesce(func.sum(SalesOrder.total_price), 0), func.count(SalesOrder.id))
        .where(and_(*conditions))
        .group_by(month)
    )
    by_month = {row[0]: (money(row[1]), int(row[2] or 0)) for row in month_result.all()}
    keys = month_keys(from_date, to_date)
    monthly_target = money(target / len(keys))
    monthly_performance = []
    for key in keys:
        month_revenue, month_orders = by_month.get(key, (Decimal("0.00"), 0))
        monthly_performance.append({
            "month": key,
            "revenue": float(month_revenue),
            "order_count": month_orders,
            "target": float(monthly_target),
            "achievement_rate": float(percent(month_revenue, monthly_target)),
        })

    product_breakdown = []
    for item in await _top_products(db, conditions, limit=None):
        item["percentage"] = float(percent(to_decimal(item["revenue"]), revenue))
        product_breakdown.append(item)

    return {
        "dealer_id": dealer.id,
        "dealer_name": dealer.dealer_name,
        "from_date": from_date,
        "to_date": to_date,
        "total_revenue": float(revenue),
        "total_orders": order_count,
        "average_order_value": float(money(revenue / order_count)) if order_count else 0.0,
        "sales_target": float(target),
        "achieved_sales": float(revenue),
        "achievement_rate": float(achievement),
        "performance_level": performance_level(achievement),
        "contract_start_date": contract.start_date if contract else None,
        "contract_end_date": contract.end_date if contract else None,
        "commission_rate": float(contract.commission_rate) if contract and contract.commission_rate is not None else None,
        "monthly_performance": monthly_performance,
        "product_breakdown": product_breakdown,
    }


async def all_dealers_performance(
    db: AsyncSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None
) -> List[Dict[str, Any]]:
    from_date, to_date = report_window(from_date, to_date, 3)
    dealers = await list_where(db, Dealer, order_by=[Dealer.id])
    reports = [await dealer_performance(db, dealer.id, from_date, to_date) for dealer in dealers]
    reports.sort(key=lambda r: r["total_revenue"], reverse=True)
    return reports


async def _collected(db: AsyncSession, conditions: list) -> Decimal:
    """Completed payments on the orders matching conditions"""
    result = await db.execute(
        select(func.coalesce(func.sum(Payment.amount), 0))
        .join(SalesOrder, Payment.order_id == SalesOrder.id)
        .where(Payment.status == PaymentStatus.COMPLETED, *conditions)
    )
    return money(result.scalar() or 0)


async def revenue_report(
    db: AsyncSession,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    dealer_id: Optional[int] = None
) -> Dict[str, Any]:
    from_date, to_date = report_window(from_date, to_date, 1)
    conditions = _order_conditions(from_date, to_date, dealer_id)

    revenue, _, _ = await _order_totals(db, conditions)
    paid = await _collected(db, conditions)
    prev_from, prev_to = previous_period(from_date, to_date)
    previous_revenue, _, _ = await _order_totals(db, _order_conditions(prev_from, prev_to, dealer_id))

    return {
        "report_date": date.today(),
        "from_date": from_date,
        "to_date": to_date,
        "total_revenue": float(revenue),
        "total_paid": float(paid),
        "total_pending": float(money(revenue - paid)),
        "previous_period_revenue": float(previous_revenue),
        "growth_rate": float(growth_rate(revenue, previous_revenue)),
    }


async def dashboard(db: AsyncSession) -> Dict[str, Any]:
    """Month to date figures plus stock alerts"""
    today = date.today()
    month_start = today.replace(day=1)
    conditions = _order_conditions(month_start, today)

    revenue, order_count, _ = await _order_totals(db, conditions)
    prev_from, prev_to = previous_period(month_start, today)
    previous_revenue, _, _ = await _order_totals(db, _order_conditions(prev_from, prev_to))

    open_orders = [SalesOrder.status.in_((OrderStatus.PENDING, OrderStatus.CONFIRMED))]
    open_total, _, _ = await _order_totals(db, open_orders)
    open_paid = await _collected(db, open_orders)

    stock = await inventory_report(db)

    return {
        "current_date": today,
        "total_revenue": float(revenue),
        "total_orders": order_count,
        "growth_rate": float(growth_rate(revenue, previous_revenue)),
        "low_stock_count": stock["low_stock_count"],
        "out_of_stock_count": stock["out_of_stock_count"],
        "total_pending_payment": float(money(open_total - open_paid)),
        "top_products": await _top_products(db, conditions, limit=5),
        "recent_alerts": stock["alerts"][:TOP_LIMIT],
    }
