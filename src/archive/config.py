"""Flask configuration."""

import os

DEFAULT_SECRET_TOKEN = 'your-secret-token-here'


class Config:
    """Application configuration."""

    # Authentication (bearer token for add/delete)
    SECRET_TOKEN = os.environ.get('SECRET_TOKEN', DEFAULT_SECRET_TOKEN)

    # Server
    PORT = int(os.environ.get('PORT', '3000'))
    APP_VERSION = os.environ.get('APP_VERSION', '1.0.0')

    # Comma-separated list of allowed origins for the API, '*' for any
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # Catalog storage: 'file' (local JSON) or 'blob' (Azure Blob Storage)
    CATALOG_BACKEND = os.environ.get('CATALOG_BACKEND', 'file')
    PROJECTS_FILE = os.environ.get('PROJECTS_FILE', './projects.json')

    # Number of backups to keep beside the projects file (0 keeps all)
    BACKUP_RETENTION = int(os.environ.get('BACKUP_RETENTION', '0'))

    # Azure Blob Storage (used when CATALOG_BACKEND=blob)
    AZURE_STORAGE_ACCOUNT = os.environ.get('AZURE_STORAGE_ACCOUNT', '')
    AZURE_STORAGE_KEY = os.environ.get('AZURE_STORAGE_KEY', '')
    AZURE_CATALOG_CONTAINER = os.environ.get('AZURE_CATALOG_CONTAINER', 'catalog')
    AZURE_CATALOG_BLOB = os.environ.get('AZURE_CATALOG_BLOB', 'projects.json')
