"""Report schemas"""
from datetime import date
from typing import Optional, List
from pydantic import BaseModel


class SalesDataPoint(BaseModel):
    date: date
    revenue: float
    order_count: int
    average_value: float


class TopPerformer(BaseModel):
    id: int
    name: Optional[str] = None
    total_sales: float
    order_count: int


class TopProduct(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    units_sold: int
    revenue: float


class SalesReport(BaseModel):
    from_date: date
    to_date: date
    dealer_id: Optional[int] = None
    total_revenue: float
    total_orders: int
    average_order_value: float
    total_discount: float
    previous_period_revenue: float
    growth_rate: float
    sales_by_day: List[SalesDataPoint]
    top_sales_persons: List[TopPerformer]
    top_dealers: List[TopPerformer]
    top_products: List[TopProduct]


class InventoryDetail(BaseModel):
    inventory_id: int
    product_id: int
    product_name: Optional[str] = None
    version: Optional[str] = None
    dealer_id: Optional[int] = None
    dealer_name: str
    location: Optional[str] = None
    total_quantity: int
    available_quantity: int
    reserved_quantity: int
    in_transit_quantity: int
    stock_status: str


class StockAlert(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    dealer_id: Optional[int] = None
    dealer_name: str
    alert_type: str
    current_quantity: int
    min_stock_level: int
    message: str


class InventoryReport(BaseModel):
    report_date: date
    total_products: int
    total_stock: int
    available_stock: int
    reserved_stock: int
    in_transit_stock: int
    low_stock_count: int
    out_of_stock_count: int
    inventory_details: List[InventoryDetail]
    alerts: List[StockAlert]


class MonthlyPerformance(BaseModel):
    month: str
    revenue: float
    order_count: int
    target: float
    achievement_rate: float


class ProductPerformance(BaseModel):
    product_id: int
    product_name: Optional[str] = None
    units_sold: int
    revenue: float
    percentage: float


class DealerPerformance(BaseModel):
    dealer_id: int
    dealer_name: str
    from_date: date
    to_date: date
    total_revenue: float
    total_orders: int
    average_order_value: float
    sales_target: float
    achieved_sales: float
    achievement_rate: float
    performance_level: str
    contract_start_date: Optional[date] = None
    contract_end_date: Optional[date] = None
    commission_rate: Optional[float] = None
    monthly_performance: List[MonthlyPerformance]
    product_breakdown: List[ProductPerformance]


class RevenueReport(BaseModel):
    report_date: date
    from_date: date
    to_date: date
    total_revenue: float
    total_paid: float
    total_pending: float
    previous_period_revenue: float
    growth_rate: float


class DashboardSummary(BaseModel):
    current_date: date
    total_revenue: float
    total_orders: int
    growth_rate: float
    low_stock_count: int
    out_of_stock_count: int
    total_pending_payment: float
    top_products: List[TopProduct]
    recent_alerts: List[StockAlert]
