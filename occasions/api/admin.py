from fastapi import APIRouter, Depends

from occasions.api.security import require_admin_key
from occasions.scheduler.runner import scheduler_status

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin_key)])


@router.get("/status")
async def admin_status():
    return scheduler_status()
