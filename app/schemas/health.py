"""Schema for the health check payload."""

from typing import Literal

from pydantic import BaseModel, Field

from app.core.config import API_VERSION


class HealthResponse(BaseModel):
    """Service status, environment and credential store reachability."""

    status: Literal["ok"] = "ok"
    version: str = Field(default=API_VERSION, description="API version")
    environment: str = Field(description="Current app environment (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether the credential store answered a trivial query",
    )
