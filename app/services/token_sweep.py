"""Expiry sweep: delete expired or revoked opaque tokens so the token tables stay small."""

import logging
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from app.services.tokens import purge_expired_tokens, utcnow

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


def run_token_sweep(
    session: Session, settings: "Settings", now: datetime | None = None
) -> dict[str, int]:
    """
    Delete refresh tokens that are expired or blacklisted, and expired
    verification/reset tokens. Returns deleted counts per token kind.

    Idempotent: safe to run repeatedly. Live tokens are never touched.
    """
    if not settings.TOKEN_SWEEP_ENABLED:
        logger.info("Token sweep is disabled (TOKEN_SWEEP_ENABLED=false); skipping.")
        return {}

    cutoff = now or utcnow()
    counts = purge_expired_tokens(session, cutoff)
    session.commit()

    if any(counts.values()):
        logger.info(
            "Token sweep run: cutoff=%s, deleted=%s",
            cutoff.isoformat(),
            counts,
        )
    return counts
