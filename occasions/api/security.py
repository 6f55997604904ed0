from fastapi import Header, HTTPException

from occasions.config import get_settings


async def require_admin_key(x_admin_key: str = Header(None)) -> None:
    settings = get_settings()
    # Require admin key in production
    if settings.is_production:
        if not settings.admin_api_key:
            raise HTTPException(status_code=503, detail="Admin API not configured")
        if x_admin_key != settings.admin_api_key:
            raise HTTPException(status_code=401, detail="Invalid admin key")


async def require_cron_secret(authorization: str = Header(None)) -> None:
    settings = get_settings()
    if not settings.cron_secret:
        raise HTTPException(status_code=500, detail="Server misconfiguration")
    if authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")
