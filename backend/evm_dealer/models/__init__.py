# Import every model so Base.metadata knows all tables

from evm_dealer.models.brand import Brand, Dealer
from evm_dealer.models.user import Role, RoleType, User
from evm_dealer.models.customer import Customer
from evm_dealer.models.product import Product, ProductFeature, ProductVariant
from evm_dealer.models.vehicle import Vehicle, VehicleStatus
from evm_dealer.models.inventory import Inventory
from evm_dealer.models.promotion import Promotion, DiscountType
from evm_dealer.models.sales_order import (
    SalesOrder, OrderPromotion, Payment, OrderStatus, PaymentStatus
)
from evm_dealer.models.quotation import Quotation, QuotationPromotion, QuotationStatus
from evm_dealer.models.sell_in import (
    SellInRequest, SellInRequestDetail, DistributionOrder, SellInStatus
)
from evm_dealer.models.support import (
    SupportTicket, Appointment, TicketStatus, AppointmentStatus
)
from evm_dealer.models.contract import DealerContract
from evm_dealer.models.forecast import DemandForecast, ForecastMethod

__all__ = [
    "Brand",
    "Dealer",
    "Role",
    "RoleType",
    "User",
    "Customer",
    "Product",
    "ProductFeature",
    "ProductVariant",
    "Vehicle",
    "VehicleStatus",
    "Inventory",
    "Promotion",
    "DiscountType",
    "SalesOrder",
    "OrderPromotion",
    "Payment",
    "OrderStatus",
    "PaymentStatus",
    "Quotation",
    "QuotationPromotion",
    "QuotationStatus",
    "SellInRequest",
    "SellInRequestDetail",
    "DistributionOrder",
    "SellInStatus",
    "SupportTicket",
    "Appointment",
    "TicketStatus",
    "AppointmentStatus",
    "DealerContract",
    "DemandForecast",
    "ForecastMethod",
]
