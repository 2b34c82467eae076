"""Catalog view -- search and tag filtering over a fetched catalog snapshot.

The view loads the catalog once and answers every query locally. State lives
on a CatalogView instance so several views (or tests) never share it.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional

from markupsafe import Markup

from .catalog import is_valid_url, normalize_catalog

logger = logging.getLogger(__name__)

# Rendering states; exactly one is current at a time
LOADING = 'loading'
ERROR = 'error'
EMPTY = 'empty'
POPULATED = 'populated'

SEARCH_DEBOUNCE_SECONDS = 0.3


def fold(text: str) -> str:
    return text.casefold().strip()


def matches_search(project: Dict[str, Any], term: str) -> bool:
    """Empty term, or term is a substring of the title or of any tag."""
    if not term:
        return True
    if term in project.get('title', '').casefold():
        return True
    return any(term in tag.casefold() for tag in project.get('tags', []))


def matches_tags(project: Dict[str, Any], active: Iterable[str]) -> bool:
    """No active filters, or the project carries at least one of them."""
    active = set(active)
    if not active:
        return True
    return any(fold(tag) in active for tag in project.get('tags', []))


def filter_projects(projects, term='', active_tags=()):
    """Projects matching both the search term and the tag filters, in order."""
    term = fold(term)
    active = {fold(t) for t in active_tags}
    return [p for p in projects if matches_search(p, term) and matches_tags(p, active)]


def tag_vocabulary(projects) -> List[str]:
    """Every distinct tag across projects, case-folded, trimmed and sorted."""
    tags = set()
    for project in projects:
        for tag in project.get('tags', []):
            folded = fold(tag)
            if folded:
                tags.add(folded)
    return sorted(tags)


class Debouncer:
    """Run a callback once input has been quiet for `delay` seconds.

    Each trigger() discards the pending call and restarts the wait.
    """

    def __init__(self, callback: Callable[[], Any], delay: float = SEARCH_DEBOUNCE_SECONDS):
        self.callback = callback
        self.delay = delay
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def trigger(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.delay, self._fire)
            timer.args = (timer,)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _fire(self, timer):
        # A timer replaced by a later trigger() may still wake up; only the current one runs
        with self._lock:
            if self._timer is not timer:
                return
            self._timer = None
        self.callback()

    def cancel(self) -> bool:
        """Discard the pending call. Returns True if one was pending."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return True

    def flush(self):
        """Run the pending call now instead of waiting."""
        if self.cancel():
            self.callback()


class CatalogView:
    """Client-held mirror of the catalog with search and tag-filter state."""

    def __init__(self, debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
                 on_change: Optional[Callable[['CatalogView'], Any]] = None):
        self.all_projects: List[Dict[str, Any]] = []
        self.filtered: List[Dict[str, Any]] = []
        self.active_tag_filters = set()
        self.search_term = ''
        self.on_change = on_change
        self._loaded = False
        self._error = None
        self._lock = threading.RLock()
        self._debouncer = Debouncer(self.recompute, debounce_seconds)

    # ─── Loading ───

    def load(self, payload):
        """Install a catalog snapshot (bare array or {projects: [...]})."""
        projects = normalize_catalog(payload)
        with self._lock:
            self.all_projects = projects
            self._loaded = True
            self._error = None
        logger.info("Loaded %d projects", len(projects))
        return self.recompute()

    def fetch(self, client, url=None):
        """Load the catalog through an ArchiveClient; any failure shows the error state.

        With url, the static catalog document at that address is read instead
        of the API listing.
        """
        with self._lock:
            self._loaded = False
            self._error = None
        try:
            projects = client.fetch_catalog(url) if url else client.list_projects()
            return self.load(projects)
        except Exception as e:
            self.fail(e)
            return []

    def fail(self, exc):
        logger.error("Error loading projects: %s", exc)
        with self._lock:
            self._error = exc
            self.filtered = []

    # ─── Query state ───

    def recompute(self) -> List[Dict[str, Any]]:
        """Recompute the filtered list from the current query state."""
        with self._lock:
            self.filtered = filter_projects(self.all_projects, self.search_term, self.active_tag_filters)
            result = list(self.filtered)
        if self.on_change is not None:
            self.on_change(self)
        return result

    def tag_vocabulary(self) -> List[str]:
        return tag_vocabulary(self.all_projects)

    def toggle_tag(self, tag: str) -> List[Dict[str, Any]]:
        """Flip a tag filter on or off and recompute."""
        tag = fold(tag)
        with self._lock:
            if tag in self.active_tag_filters:
                self.active_tag_filters.discard(tag)
            else:
                self.active_tag_filters.add(tag)
        return self.recompute()

    def set_search_term(self, term: str):
        """Update the search term; recompute once typing pauses."""
        with self._lock:
            self.search_term = fold(term or '')
        self._debouncer.trigger()

    def cancel_search(self) -> List[Dict[str, Any]]:
        """Clear the search term immediately, dropping any pending recompute."""
        self._debouncer.cancel()
        with self._lock:
            self.search_term = ''
        return self.recompute()

    def clear_filters(self) -> List[Dict[str, Any]]:
        """Drop every tag filter and the search term, then recompute."""
        self._debouncer.cancel()
        with self._lock:
            self.active_tag_filters.clear()
            self.search_term = ''
        return self.recompute()

    def flush(self):
        """Apply a pending debounced recompute right away."""
        self._debouncer.flush()
        return list(self.filtered)

    @property
    def search_pending(self) -> bool:
        return self._debouncer.pending

    @property
    def state(self) -> str:
        if self._error is not None:
            return ERROR
        if not self._loaded:
            return LOADING
        return POPULATED if self.filtered else EMPTY

    # ─── Rendering ───

    def render_cards(self) -> Markup:
        """HTML cards for the filtered projects, with every value escaped.

        Links that are not absolute http(s) URLs render as "#".
        """
        cards = []
        for project in self.filtered:
            title = project.get('title') or 'Untitled Project'
            file_url = project.get('file')
            if not isinstance(file_url, str) or not is_valid_url(file_url):
                file_url = '#'
            tags = Markup('').join(
                Markup('<span class="project-tag">{}</span>').format(tag) for tag in project.get('tags', [])
            )
            cards.append(Markup(
                '<div class="project-card">'
                '<h3 class="project-title">{title}</h3>'
                '<div class="project-tags">{tags}</div>'
                '<a href="{file}" target="_blank" class="view-pdf-btn">View PDF</a>'
                '</div>'
            ).format(title=title, tags=tags, file=file_url))
        return Markup('\n').join(cards)

    def __repr__(self):
        return (f"<CatalogView state={self.state} projects={len(self.all_projects)} "
                f"shown={len(self.filtered)} term={self.search_term!r} tags={sorted(self.active_tag_filters)}>")
