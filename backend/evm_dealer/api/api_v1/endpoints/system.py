"""System API: scheduler status and manual job runs"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from evm_dealer.core.config import settings
from evm_dealer.core.deps import get_db, require_roles
from evm_dealer.core.logging_config import get_logger
from evm_dealer.services import quotation_service
from evm_dealer.services.scheduler import get_scheduler_status

logger = get_logger(__name__)

router = APIRouter(dependencies=[Depends(require_roles())])


@router.get("/scheduler")
async def scheduler_status() -> Any:
    """Scheduler state and the next run of each job"""
    return {
        "quotation_expiry": {
            "enabled": settings.QUOTATION_EXPIRE_JOB_ENABLED,
            "schedule": f"daily {settings.QUOTATION_EXPIRE_HOUR:02d}:{settings.QUOTATION_EXPIRE_MINUTE:02d}",
        },
        "scheduler": get_scheduler_status()
    }


@router.post("/scheduler/expire-quotations")
async def run_quotation_expiry(db: AsyncSession = Depends(get_db)) -> Any:
    """Run the quotation expiry job now"""
    expired = await quotation_service.auto_expire(db)
    logger.info(f"Manual quotation expiry run, {expired} expired")
    return {"message": f"{expired} quotations expired", "expired": expired}
