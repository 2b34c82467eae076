"""HTTP client for the catalog API, used by authoring tools and the catalog view."""

from urllib.parse import quote

import requests

from .catalog import normalize_catalog

DEFAULT_TIMEOUT = 30


class ArchiveAPIError(Exception):
    """Error communicating with the catalog API."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


def parse_tags(text: str) -> list:
    """Split comma-separated tag input, dropping blanks."""
    if not text:
        return []
    return [tag.strip() for tag in text.split(',') if tag.strip()]


class ArchiveClient:
    """Thin wrapper over the catalog API endpoints."""

    def __init__(self, base_url='http://localhost:3000', token='', timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _request(self, method, endpoint, data=None, auth=False):
        headers = {'Content-Type': 'application/json'}
        if auth:
            if not self.token:
                raise ArchiveAPIError('An access token is required for this operation')
            headers['Authorization'] = f'Bearer {self.token}'

        url = f'{self.base_url}{endpoint}'
        try:
            response = self.session.request(method, url, headers=headers, json=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise ArchiveAPIError(f'Request to {url} failed: {e}') from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.ok:
            message = f'HTTP error! status: {response.status_code}'
            if isinstance(body, dict):
                message = body.get('message') or body.get('error') or message
            raise ArchiveAPIError(message, status_code=response.status_code)

        if body is None:
            raise ArchiveAPIError(f'Invalid JSON response from {url}', status_code=response.status_code)
        return body

    def list_projects(self) -> list:
        """All projects from GET /api/projects, normalized."""
        body = self._request('GET', '/api/projects')
        return normalize_catalog(body)

    def fetch_catalog(self, url) -> list:
        """Fetch a static catalog document (bare array or {projects: [...]})."""
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as e:
            raise ArchiveAPIError(f'HTTP error! status: {e.response.status_code}', status_code=e.response.status_code) from e
        except (requests.RequestException, ValueError) as e:
            raise ArchiveAPIError(f'Failed to load catalog from {url}: {e}') from e
        return normalize_catalog(data)

    def add_project(self, title, file, tags=None) -> dict:
        """Submit a new project. Returns the stored record."""
        payload = {'title': title, 'file': file, 'tags': list(tags or [])}
        body = self._request('POST', '/api/projects', data=payload, auth=True)
        return body['project']

    def delete_project(self, title) -> dict:
        """Delete a project by title. Returns the removed record."""
        body = self._request('DELETE', f"/api/projects/{quote(title, safe='')}", auth=True)
        return body['deletedProject']

    def health(self) -> dict:
        return self._request('GET', '/api/health')
