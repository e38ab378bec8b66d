"""Health check endpoint with database connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.database import check_db_connected, get_db
from app.schemas.common import DataResponse
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=DataResponse[HealthResponse])
def get_health(
    db: Annotated[Session, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> DataResponse[HealthResponse]:
    """
    Return service health status and credential store connectivity.
    Used by load balancers and monitoring.
    """
    return DataResponse[HealthResponse](
        data=HealthResponse(
            environment=settings.APP_ENV,
            database="connected" if check_db_connected(db) else "disconnected",
        )
    )
