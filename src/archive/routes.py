"""Catalog API routes."""

from flask import Blueprint, request, jsonify, current_app
from werkzeug.exceptions import HTTPException

from .auth import token_required
from .catalog import utc_timestamp
from .errors import CatalogError, ValidationError

main = Blueprint('main', __name__)


def get_store():
    """The CatalogStore configured for this app."""
    return current_app.extensions['catalog_store']


@main.before_app_request
def log_request():
    current_app.logger.info(f"{request.method} {request.path}")


# ─── Error handlers ───

@main.app_errorhandler(CatalogError)
def handle_catalog_error(e):
    if e.status_code >= 500:
        current_app.logger.error(f"{type(e).__name__} on {request.method} {request.path}: {e.message}")
    return jsonify(e.to_dict()), e.status_code


@main.app_errorhandler(404)
def handle_not_found(e):
    return jsonify({
        'error': 'Not found',
        'message': 'The requested endpoint does not exist'
    }), 404


@main.app_errorhandler(405)
def handle_method_not_allowed(e):
    return jsonify({
        'error': 'Method not allowed',
        'message': f'{request.method} is not supported on {request.path}'
    }), 405


@main.app_errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({'error': e.name, 'message': e.description}), e.code
    current_app.logger.exception(f"Unhandled error on {request.method} {request.path}")
    return jsonify({
        'error': 'Internal server error',
        'message': 'An unexpected error occurred'
    }), 500


# ─── Catalog API ───

@main.route('/api/projects', methods=['GET'])
def list_projects():
    """List every project in the catalog."""
    projects = get_store().list_all()
    return jsonify({
        'success': True,
        'projects': projects,
        'count': len(projects)
    })


@main.route('/api/projects', methods=['POST'])
@token_required
def add_project():
    """Add a new project."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError('Request body must be valid JSON')

    store = get_store()
    project = store.append(data)
    return jsonify({
        'success': True,
        'message': 'Project added successfully',
        'project': project,
        'totalProjects': store.count()
    }), 201


@main.route('/api/projects/<path:title>', methods=['DELETE'])
@token_required
def delete_project(title):
    """Delete a project by its (case-insensitive) title."""
    store = get_store()
    deleted = store.delete_by_title(title)
    return jsonify({
        'success': True,
        'message': 'Project deleted successfully',
        'deletedProject': deleted,
        'totalProjects': store.count()
    })


@main.route('/api/health')
def health():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'timestamp': utc_timestamp(),
        'version': current_app.config.get('APP_VERSION', '1.0.0')
    })
