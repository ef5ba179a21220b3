"""API v1 router aggregation"""
from fastapi import APIRouter

from evm_dealer.api.api_v1.endpoints import (
    auth, users, brands, dealers, contracts, customers, products, vehicles,
    inventory, promotions, quotations, sales_orders, payments, sell_in,
    tickets, appointments, forecasts, reports, system
)

api_router = APIRouter()

# Accounts
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])

# Catalog and network
api_router.include_router(brands.router, prefix="/brands", tags=["Brands"])
api_router.include_router(dealers.router, prefix="/dealers", tags=["Dealers"])
api_router.include_router(contracts.router, prefix="/contracts", tags=["Dealer contracts"])
api_router.include_router(products.router, prefix="/products", tags=["Products"])
api_router.include_router(vehicles.router, prefix="/vehicles", tags=["Vehicles"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["Inventory"])
api_router.include_router(sell_in.router, prefix="/sell-in-requests", tags=["Sell-in requests"])

# Sales
api_router.include_router(customers.router, prefix="/customers", tags=["Customers"])
api_router.include_router(promotions.router, prefix="/promotions", tags=["Promotions"])
api_router.include_router(quotations.router, prefix="/quotations", tags=["Quotations"])
api_router.include_router(sales_orders.router, prefix="/sales-orders", tags=["Sales orders"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])

# After-sales
api_router.include_router(tickets.router, prefix="/support-tickets", tags=["Support tickets"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])

# Planning
api_router.include_router(forecasts.router, prefix="/forecasts", tags=["Demand forecasts"])
api_router.include_router(reports.router, prefix="/reports", tags=["Reports"])

api_router.include_router(system.router, prefix="/system", tags=["System"])
