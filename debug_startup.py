#!/usr/bin/env python3
"""
Debug script to test backend startup without running the full server.
Use this to validate configuration before deploying.
"""

import sys
import logging
from dotenv import load_dotenv

# Set up comprehensive logging
logging.basicConfig(
    level=logging.DEBUG,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.FileHandler('startup_debug.log'),
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


def test_imports():
    """Test all critical imports"""
    logger.info("=== TESTING IMPORTS ===")
    try:
        from config import Config
        logger.info(f"✅ Config loaded - frontend origin {Config.FRONTEND_URL}")
        if not Config.JWT_SECRET_KEY:
            logger.warning("JWT_SECRET is not set; app creation will fail")

        from demiland.models import User, Product, Category, UserFavorite, UserSession, AnalyticsEvent  # noqa: F401
        logger.info("✅ All models imported successfully")

        from demiland.auth import auth_bp  # noqa: F401
        from demiland.products import products_bp  # noqa: F401
        from demiland.users import users_bp  # noqa: F401
        from demiland.analytics import analytics_bp  # noqa: F401
        logger.info("✅ All blueprints imported successfully")
        return True
    except Exception as e:
        logger.error(f"❌ Import failed: {str(e)}")
        logger.error(f"Error type: {type(e).__name__}")
        return False


def test_app_creation():
    """Test Flask app creation and database connectivity"""
    logger.info("=== TESTING APP CREATION ===")
    try:
        from demiland import create_app
        from database import check_connection
        app = create_app()
        logger.info("✅ Flask app created successfully")

        with app.app_context():
            result = check_connection()
            if not result['success']:
                logger.error(f"❌ Database unreachable: {result['error']}")
                return False
            logger.info("✅ Database connection works")
        return True
    except Exception as e:
        logger.error(f"❌ App creation failed: {str(e)}")
        logger.error(f"Error type: {type(e).__name__}")
        return False


def main():
    logger.info("Starting DEMILAND backend startup debug")
    load_dotenv()

    if not test_imports():
        logger.error("Import test failed - cannot proceed")
        return False

    if not test_app_creation():
        logger.error("App creation test failed")
        return False

    logger.info("🎉 All startup tests passed! App should work with gunicorn.")
    return True


if __name__ == '__main__':
    success = main()
    sys.exit(0 if success else 1)
