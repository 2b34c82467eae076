"""Flask application entry point."""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

logging.basicConfig(
    level=os.environ.get('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s'
)

from src.archive import create_app

app = create_app()

if __name__ == '__main__':
    port = app.config['PORT']
    store = app.extensions['catalog_store']
    print(f"Project archive API running on port {port}", file=sys.stderr, flush=True)
    print(f"Catalog: {store.describe()}", file=sys.stderr, flush=True)
    print(f"Health check: http://localhost:{port}/api/health", file=sys.stderr, flush=True)
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1', port=port)
