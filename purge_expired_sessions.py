#!/usr/bin/env python3
"""
Script to remove expired login sessions.
Meant to run from cron, e.g. hourly:

  0 * * * * cd /srv/demiland && python3 purge_expired_sessions.py
"""

import sys
import logging
from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

load_dotenv()

from demiland import create_app  # noqa: E402
from demiland.auth.accounts import clean_expired_sessions  # noqa: E402


def main():
    app = create_app()
    with app.app_context():
        try:
            deleted = clean_expired_sessions()
        except Exception as e:
            logger.error(f"Session purge failed: {str(e)}")
            logger.error(f"Error type: {type(e).__name__}")
            return 1
    logger.info(f"Purge complete. Total sessions deleted: {deleted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
