from fastapi import APIRouter
from fastapi.responses import JSONResponse

from sunny.core.config import get_settings
from sunny.db.database import ping_db
from sunny.utils.dates import iso, utcnow

router = APIRouter(tags=["system"])


@router.get("/health")
def health():
    s = get_settings()
    db_ok = ping_db()
    body = {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": iso(utcnow()),
        "services": {
            "api": "ok",
            "database": "ok" if db_ok else "error",
            "ai": "demo_mode" if s.demo_mode else "ok",
        },
        "version": s.APP_VERSION,
        "environment": s.APP_ENV,
    }
    return JSONResponse(status_code=200 if db_ok else 503, content=body)


@router.get("/version")
def version():
    s = get_settings()
    return {"name": s.APP_NAME, "version": s.APP_VERSION, "env": s.APP_ENV}
