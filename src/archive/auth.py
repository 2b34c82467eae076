"""Static bearer-token authentication for catalog mutations."""

import hmac
from functools import wraps
from flask import request, current_app

from .errors import AuthError


def get_bearer_token():
    """Extract the token from an 'Authorization: Bearer <token>' header."""
    header = request.headers.get('Authorization', '')
    parts = header.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return ''
    return parts[1].strip()


def check_token(token: str) -> bool:
    """Check if token matches the configured secret."""
    secret = current_app.config.get('SECRET_TOKEN', '')
    if not secret:
        return False
    return hmac.compare_digest(token.encode('utf-8'), secret.encode('utf-8'))


def token_required(f):
    """Decorator to require a valid bearer token.

    Missing token answers 401, wrong token answers 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = get_bearer_token()
        if not token:
            raise AuthError('Please provide a valid authorization token in the header')
        if not check_token(token):
            current_app.logger.warning(f"Rejected token for {request.method} {request.path}")
            raise AuthError('The provided token is not valid', status_code=403)
        return f(*args, **kwargs)
    return decorated_function
