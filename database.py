# database.py

import logging
from contextlib import contextmanager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text

logger = logging.getLogger(__name__)

# Initialize SQLAlchemy without an app yet. We will init_app later.
db = SQLAlchemy()


def init_db(app):
    """
    Binds the SQLAlchemy handle to the app and ensures the schema exists.
    Models must be imported before this runs so their tables are registered.
    """
    db.init_app(app)
    with app.app_context():
        logger.info(f"Ensuring tables at {db.engine.url.render_as_string(hide_password=True)}...")
        db.create_all()
        logger.info("Tables ensured.")


@contextmanager
def unit_of_work():
    """
    Runs a multi-statement mutation atomically on the request's session.
    Commits when the block exits cleanly, rolls back on any error and re-raises.
    """
    try:
        yield db.session
        db.session.commit()
    except Exception as e:
        logger.error(f"Transaction rolled back: {str(e)}")
        logger.error(f"Error type: {type(e).__name__}")
        db.session.rollback()
        raise


def check_connection():
    try:
        db.session.execute(text("SELECT 1"))
        logger.info("Database connection test successful")
        return {"success": True, "message": "Database connection successful"}
    except Exception as e:
        logger.error(f"Database connection test failed: {str(e)}")
        db.session.rollback()
        return {"success": False, "error": str(e)}
