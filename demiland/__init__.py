# demiland/__init__.py

import logging
import traceback
from datetime import datetime
from flask import Flask, request, jsonify
from flask_cors import CORS
from config import Config
from database import init_db, check_connection

# Set up logging for debugging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(config_class=Config):
    try:
        logger.info("Starting Flask app creation...")

        app = Flask(__name__)
        app.config.from_object(config_class)
        logger.info("Flask app instance created successfully")

        if not app.config.get('JWT_SECRET_KEY'):
            raise RuntimeError("JWT_SECRET is not set; refusing to start without a token signing key")

        # Import models here to ensure they're registered before table creation
        from demiland import models  # noqa: F401
        init_db(app)
        logger.info("Database initialized with Flask app")

        from demiland.utils import jwt, success_response, error_response
        jwt.init_app(app)

        CORS(
            app,
            origins=[app.config['FRONTEND_URL']],
            supports_credentials=True,
            methods=['GET', 'POST', 'PUT', 'DELETE', 'PATCH'],
            allow_headers=['Content-Type', 'Authorization'],
        )
        logger.info(f"CORS enabled for {app.config['FRONTEND_URL']}")

        # Register Blueprints
        logger.info("Registering blueprints...")
        try:
            from demiland.auth import auth_bp
            from demiland.products import products_bp
            from demiland.users import users_bp
            from demiland.analytics import analytics_bp

            app.register_blueprint(auth_bp)
            app.register_blueprint(products_bp)
            app.register_blueprint(users_bp)
            app.register_blueprint(analytics_bp)
            logger.info("All blueprints registered successfully")
        except Exception as e:
            logger.error(f"Failed to register blueprints: {str(e)}")
            raise

        @app.route('/health', methods=['GET'])
        def health():
            return jsonify({
                'status': 'OK',
                'message': 'DEMILAND Backend API is running',
                'timestamp': datetime.utcnow().isoformat(),
            })

        @app.route('/api/test-db', methods=['GET'])
        def test_db():
            result = check_connection()
            if result['success']:
                return success_response(message=result['message'])
            return error_response('Database connection failed', 500, error=result['error'])

        @app.errorhandler(404)
        def not_found(e):
            return error_response('API endpoint not found', 404, path=request.path)

        @app.errorhandler(405)
        def method_not_allowed(e):
            return error_response('Method not allowed', 405, path=request.path)

        @app.errorhandler(Exception)
        def unhandled(e):
            if hasattr(e, 'code') and hasattr(e, 'description'):
                return error_response(e.description, e.code)
            logger.error(f"Unhandled error on {request.method} {request.path}: {str(e)}")
            logger.error(f"Error type: {type(e).__name__}")
            extra = {}
            if app.config.get('DEBUG'):
                extra['stack'] = traceback.format_exc()
            return error_response('Internal server error', 500, error=str(e), **extra)

        logger.info("Flask app creation completed successfully")
        return app

    except Exception as e:
        logger.error(f"Failed to create Flask app: {str(e)}")
        logger.error(f"Error type: {type(e).__name__}")
        raise
