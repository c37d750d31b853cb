from datetime import datetime

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..core.config import settings
from ..core.logger import logger
from ..services.stats import collect_stats

router = APIRouter(tags=["Health"])

@router.get("/health")
def health():
    return {"status": "OK", "timestamp": datetime.now().isoformat(), "environment": settings.ENVIRONMENT}

@router.get("/ready")
def ready(db: Session = Depends(get_db)):
    try:
        collect_stats(db)
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        return Response(content="Not Ready", status_code=503)
    return Response(content="Ready", media_type="text/plain")

@router.get("/api/status")
def status(db: Session = Depends(get_db)):
    try:
        stats = collect_stats(db)
    except SQLAlchemyError as e:
        logger.error(f"Status check failed: {e}")
        return JSONResponse(
            status_code=500,
            content={"status": "ERROR", "timestamp": datetime.now().isoformat(), "error": "Database connection failed"},
        )
    return {
        "status": "OK",
        "timestamp": datetime.now().isoformat(),
        "environment": settings.ENVIRONMENT,
        "database": {"connected": True, **stats},
    }
