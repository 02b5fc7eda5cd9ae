# run.py

import os
import logging
from dotenv import load_dotenv

# Set up logging to help diagnose issues
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Environment must be loaded before config.py reads it
load_dotenv()

from demiland import create_app  # noqa: E402

try:
    logger.info("Starting app creation...")
    app = create_app()
    logger.info("App created successfully")
except Exception as e:
    logger.error(f"Failed to create app: {str(e)}")
    logger.error(f"Error type: {type(e).__name__}")
    raise

if __name__ == '__main__':
    port = int(os.environ.get('PORT', '5000'))
    logger.info(f"Starting Flask development server on port {port}...")
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=port)
