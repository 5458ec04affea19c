"""Health check endpoints."""

import platform
from datetime import datetime

import psutil
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.services.supabase import RecordStoreError, ping

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/health/detailed")
async def detailed_health():
    """Detailed health check with system info."""
    memory = psutil.virtual_memory()
    disk = psutil.disk_usage("/")

    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "database": get_settings().database,
        "system": {
            "platform": platform.system(),
            "machine": platform.machine(),
            "python": platform.python_version(),
        },
        "cpu": {
            "percent": psutil.cpu_percent(interval=0.1),
            "cores": psutil.cpu_count(),
        },
        "memory": {
            "used_gb": round(memory.used / (1024**3), 2),
            "total_gb": round(memory.total / (1024**3), 2),
            "percent": memory.percent,
        },
        "disk": {
            "used_gb": round(disk.used / (1024**3), 2),
            "total_gb": round(disk.total / (1024**3), 2),
            "percent": disk.percent,
        },
    }


@router.get("/health/ready")
async def readiness_check():
    """
    Readiness check.

    Returns 200 if the record store answers, 503 otherwise.
    """
    try:
        await ping()
    except RecordStoreError as e:
        return JSONResponse(status_code=503, content={"ready": False, "error": str(e)})

    return {"ready": True, "database": get_settings().database}
