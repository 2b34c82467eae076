"""Catalog error types, each mapped to the HTTP status the API answers with."""


class CatalogError(Exception):
    """Base class for catalog failures."""
    status_code = 500
    error = 'Internal server error'

    def __init__(self, message=None):
        super().__init__(message or self.error)
        self.message = message or self.error

    def to_dict(self):
        return {'error': self.error, 'message': self.message}


class ValidationError(CatalogError):
    """A candidate record has a bad or missing field."""
    status_code = 400
    error = 'Invalid project'


class DuplicateTitle(CatalogError):
    """A record with the same case-folded title already exists."""
    status_code = 409
    error = 'Duplicate project'


class NotFound(CatalogError):
    status_code = 404
    error = 'Project not found'


class CorruptData(CatalogError):
    """The stored document is not a list of well-formed records."""
    error = 'Corrupt catalog'


class StorageUnavailable(CatalogError):
    """Reading or writing the backing document failed."""
    error = 'Storage unavailable'


class AuthError(CatalogError):
    """Missing (401) or invalid (403) bearer token."""
    status_code = 401
    error = 'Access token is required'

    def __init__(self, message=None, status_code=None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
            if status_code == 403:
                self.error = 'Invalid access token'
