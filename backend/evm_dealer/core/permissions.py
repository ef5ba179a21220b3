"""
Role groups used by the API routers
ADMIN is accepted everywhere by require_roles, so it is not listed here
"""

from evm_dealer.models.user import RoleType

CATALOG_WRITE = (RoleType.BRAND_MANAGER,)

USER_READ = (RoleType.BRAND_MANAGER, RoleType.DEALER_MANAGER)

SALES_ROLES = (
    RoleType.BRAND_MANAGER,
    RoleType.DEALER_MANAGER,
    RoleType.DEALER_STAFF,
    RoleType.SALES_MANAGER,
    RoleType.SALES_PERSON,
)

PROMOTION_WRITE = (RoleType.BRAND_MANAGER, RoleType.DEALER_MANAGER)

INVENTORY_READ = SALES_ROLES + (RoleType.WAREHOUSE_STAFF,)
INVENTORY_WRITE = (RoleType.BRAND_MANAGER, RoleType.DEALER_MANAGER, RoleType.WAREHOUSE_STAFF)

SELL_IN_READ = (RoleType.BRAND_MANAGER, RoleType.DEALER_MANAGER, RoleType.DEALER_STAFF)
SELL_IN_REQUEST = (RoleType.DEALER_MANAGER, RoleType.DEALER_STAFF)
SELL_IN_APPROVE = (RoleType.BRAND_MANAGER,)
SELL_IN_SHIP = (RoleType.BRAND_MANAGER,)
# The receiving dealer may confirm arrival
SELL_IN_RECEIVE = (RoleType.BRAND_MANAGER, RoleType.DEALER_MANAGER)

SUPPORT_ROLES = SALES_ROLES + (RoleType.SUPPORT_STAFF,)

FORECAST_ROLES = (RoleType.BRAND_MANAGER, RoleType.SALES_MANAGER)

REPORT_ROLES = (RoleType.BRAND_MANAGER, RoleType.DEALER_MANAGER, RoleType.SALES_MANAGER)
