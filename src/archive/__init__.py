"""Flask application factory."""

import os
import sys
from flask import Flask
from flask_cors import CORS
from .config import Config, DEFAULT_SECRET_TOKEN


def create_store(config):
    """Build the CatalogStore selected by CATALOG_BACKEND."""
    backend = (config.get('CATALOG_BACKEND') or 'file').lower()

    if backend == 'blob':
        from .blob_storage import create_blob_catalog_store
        return create_blob_catalog_store(
            config.get('AZURE_STORAGE_ACCOUNT', ''),
            config.get('AZURE_STORAGE_KEY', ''),
            container=config.get('AZURE_CATALOG_CONTAINER', 'catalog'),
            blob_name=config.get('AZURE_CATALOG_BLOB', 'projects.json'),
        )
    if backend == 'file':
        from .catalog import JsonFileCatalogStore
        return JsonFileCatalogStore(
            os.path.abspath(config.get('PROJECTS_FILE', './projects.json')),
            backup_retention=config.get('BACKUP_RETENTION', 0),
        )
    raise ValueError(f'Unknown CATALOG_BACKEND: {backend}')


def create_app(config_overrides=None, store=None):
    """Create and configure the Flask application.

    config_overrides: dict applied on top of Config (used by tests).
    store: an already built CatalogStore; otherwise one is created from config.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    origins = app.config.get('CORS_ORIGINS', '*')
    if origins != '*':
        origins = [o.strip() for o in origins.split(',') if o.strip()]
    CORS(app, resources={r'/api/*': {'origins': origins}}, send_wildcard=(origins == '*'))

    app.extensions['catalog_store'] = store or create_store(app.config)

    from .routes import main
    app.register_blueprint(main)

    if app.config.get('SECRET_TOKEN') == DEFAULT_SECRET_TOKEN:
        print("Using default token - please set SECRET_TOKEN environment variable", file=sys.stderr, flush=True)

    return app
