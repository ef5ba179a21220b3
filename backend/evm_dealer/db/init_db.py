import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.config import settings
from evm_dealer.core.logging_config import get_logger
from evm_dealer.core.security import get_password_hash
from evm_dealer.db.session import engine, SessionLocal
from evm_dealer.db.base import Base

# Register every model on Base.metadata
from evm_dealer.models import Role, RoleType, User

logger = get_logger(__name__)

# role_name -> (display_name, role_type, description)
SYSTEM_ROLES = {
    RoleType.ADMIN: ("Administrator", "SYSTEM", "Full access to every module"),
    RoleType.BRAND_MANAGER: ("Brand Manager", "BRAND", "Manages catalog, dealers and sell-in approvals"),
    RoleType.DEALER_MANAGER: ("Dealer Manager", "DEALER", "Runs a dealership"),
    RoleType.DEALER_STAFF: ("Dealer Staff", "DEALER", "Dealership sales and service staff"),
    RoleType.SALES_MANAGER: ("Sales Manager", "DEALER", "Leads the sales team and forecasting"),
    RoleType.SALES_PERSON: ("Sales Person", "DEALER", "Prepares quotations and orders"),
    RoleType.SUPPORT_STAFF: ("Support Staff", "DEALER", "Handles support tickets"),
    RoleType.WAREHOUSE_STAFF: ("Warehouse Staff", "BRAND", "Maintains stock levels"),
    RoleType.CUSTOMER: ("Customer", "CUSTOMER", "End customer account"),
}


async def seed_roles(db: AsyncSession) -> int:
    """Insert missing system roles, return how many were added"""
    result = await db.execute(select(Role.role_name))
    existing = set(result.scalars().all())
    added = 0
    for role_name, (display_name, role_type, description) in SYSTEM_ROLES.items():
        if role_name in existing:
            continue
        db.add(Role(
            role_name=role_name,
            display_name=display_name,
            role_type=role_type,
            description=description
        ))
        added += 1
    await db.commit()
    return added


async def seed_admin(db: AsyncSession) -> bool:
    """Create the bootstrap administrator when no user with that name exists"""
    result = await db.execute(select(User).where(User.username == settings.FIRST_ADMIN_USERNAME))
    if result.scalars().first():
        return False

    result = await db.execute(select(Role).where(Role.role_name == RoleType.ADMIN))
    admin_role = result.scalar_one()
    db.add(User(
        username=settings.FIRST_ADMIN_USERNAME,
        password_hash=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
        full_name="System Administrator",
        email=settings.FIRST_ADMIN_EMAIL,
        is_active=True,
        role_id=admin_role.id
    ))
    await db.commit()
    return True


async def ensure_tables_exist() -> None:
    """
    Create missing tables (called at application start)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_db() -> None:
    """
    Create tables and seed roles plus the first administrator
    """
    await ensure_tables_exist()
    async with SessionLocal() as db:
        added = await seed_roles(db)
        if added:
            logger.info(f"Seeded {added} system roles")
        if await seed_admin(db):
            logger.warning(
                f"Created bootstrap admin '{settings.FIRST_ADMIN_USERNAME}', change its password"
            )


if __name__ == "__main__":
    asyncio.run(init_db())
