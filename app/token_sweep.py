"""
CLI entrypoint for the expired-token sweep. Run from cron, e.g.:

  python -m app.token_sweep

Or hourly: 0 * * * * cd /path/to/gatekeeper && .venv/bin/python -m app.token_sweep
"""

import logging
import sys

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.core.logging import configure_logging
from app.services.token_sweep import run_token_sweep

logger = logging.getLogger(__name__)


def main() -> int:
    """Run the sweep: delete expired and revoked tokens."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    db = SessionLocal()
    try:
        counts = run_token_sweep(db, settings)
        logger.info("Token sweep completed: deleted=%s", counts)
        return 0
    except Exception as e:
        logger.exception("Token sweep failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
