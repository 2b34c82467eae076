"""Tests for the catalog view's filtering and state handling."""

import threading
from unittest.mock import MagicMock

import pytest

from src.archive.client import ArchiveAPIError
from src.archive.errors import CorruptData
from src.archive.view import (
    CatalogView, Debouncer, EMPTY, ERROR, LOADING, POPULATED, filter_projects, tag_vocabulary
)

from .conftest import WETLAND

CATALOG = [
    WETLAND,
    {'title': 'Coastal Erosion Study', 'tags': ['Ocean', 'GIS '], 'file': 'https://x/c.pdf'},
    {'title': 'Forest Inventory', 'tags': ['forestry'], 'file': 'https://x/f.pdf'},
    {'title': 'Untagged Memo', 'file': 'https://x/m.pdf'},
]


@pytest.fixture
def view():
    v = CatalogView(debounce_seconds=60)
    v.load(CATALOG)
    return v


def titles(projects):
    return [p['title'] for p in projects]


class TestFiltering:

    @pytest.mark.parametrize('term,expected', [
        ('wetland', ['Wetland Survey']),
        ('forest', ['Forest Inventory']),
        ('', ['Wetland Survey', 'Coastal Erosion Study', 'Forest Inventory', 'Untagged Memo']),
    ])
    def test_search_scenarios(self, term, expected):
        assert titles(filter_projects(CATALOG, term)) == expected

    def test_search_matches_tag_substring(self):
        assert titles(filter_projects(CATALOG, 'eco')) == ['Wetland Survey']
        assert titles(filter_projects(CATALOG, 'GI')) == ['Wetland Survey', 'Coastal Erosion Study']

    def test_wetland_record_scenarios(self):
        single = [WETLAND]
        assert titles(filter_projects(single, 'wetland')) == ['Wetland Survey']
        assert filter_projects(single, 'forest') == []
        assert titles(filter_projects(single, active_tags={'gis'})) == ['Wetland Survey']
        assert filter_projects(single, active_tags={'ocean'}) == []

    def test_tag_filters_are_or_combined(self):
        result = filter_projects(CATALOG, active_tags={'ocean', 'forestry'})
        assert titles(result) == ['Coastal Erosion Study', 'Forest Inventory']

    def test_search_and_tags_both_apply(self):
        assert titles(filter_projects(CATALOG, 'study', {'gis'})) == ['Coastal Erosion Study']
        assert filter_projects(CATALOG, 'wetland', {'ocean'}) == []

    def test_tag_vocabulary(self):
        assert tag_vocabulary(CATALOG) == ['ecology', 'forestry', 'gis', 'ocean']


class TestCatalogView:

    def test_initial_state_is_loading(self):
        assert CatalogView().state == LOADING

    def test_load_accepts_wrapped_shape(self):
        view = CatalogView()
        view.load({'projects': CATALOG})
        assert view.state == POPULATED
        assert len(view.filtered) == 4
        assert view.all_projects[3]['tags'] == []

    def test_load_rejects_unknown_shape(self):
        view = CatalogView()
        with pytest.raises(CorruptData):
            view.load({'items': CATALOG})

    def test_recompute_is_idempotent(self, view):
        view.toggle_tag('gis')
        assert view.recompute() == view.recompute()

    def test_toggle_tag(self, view):
        assert titles(view.toggle_tag('GIS')) == ['Wetland Survey', 'Coastal Erosion Study']
        assert view.active_tag_filters == {'gis'}
        assert len(view.toggle_tag('gis')) == 4
        assert view.active_tag_filters == set()

    def test_search_is_debounced(self, view):
        view.set_search_term('Forest')
        assert view.search_pending
        assert len(view.filtered) == 4

        assert titles(view.flush()) == ['Forest Inventory']
        assert not view.search_pending

    def test_cancel_search_clears_immediately(self, view):
        view.set_search_term('forest')
        view.flush()
        view.set_search_term('wetl')
        assert len(view.cancel_search()) == 4
        assert view.search_term == ''
        assert not view.search_pending

    def test_empty_state(self, view):
        view.set_search_term('nothing matches this')
        view.flush()
        assert view.state == EMPTY
        view.cancel_search()
        assert view.state == POPULATED

    def test_debounced_recompute_fires(self):
        done = threading.Event()
        view = CatalogView(debounce_seconds=0.01, on_change=lambda v: done.set() if v.search_term else None)
        view.load(CATALOG)
        view.set_search_term('coastal')
        assert done.wait(2)
        assert titles(view.filtered) == ['Coastal Erosion Study']

    def test_fetch_from_client(self):
        client = MagicMock()
        client.list_projects.return_value = CATALOG
        view = CatalogView()
        view.fetch(client)
        assert view.state == POPULATED
        assert view.tag_vocabulary() == ['ecology', 'forestry', 'gis', 'ocean']

    def test_fetch_static_catalog_url(self):
        client = MagicMock()
        client.fetch_catalog.return_value = [WETLAND]
        view = CatalogView()
        view.fetch(client, url='https://archive.example.org/projects.json')
        client.fetch_catalog.assert_called_once_with('https://archive.example.org/projects.json')
        assert titles(view.filtered) == ['Wetland Survey']

    def test_fetch_failure_is_error_state(self):
        client = MagicMock()
        client.list_projects.side_effect = ArchiveAPIError('HTTP error! status: 500', status_code=500)
        view = CatalogView()
        assert view.fetch(client) == []
        assert view.state == ERROR

    def test_render_cards_escapes(self):
        view = CatalogView()
        view.load([{'title': '<script>alert(1)</script>', 'tags': ['a&b'], 'file': 'https://x/a.pdf?x="1"'}])
        html = str(view.render_cards())
        assert '<script>' not in html
        assert '&lt;script&gt;' in html
        assert 'a&amp;b' in html
        assert 'href="https://x/a.pdf?x=&#34;1&#34;"' in html

    def test_render_cards_fallbacks(self):
        view = CatalogView()
        view.load([{'title': '', 'tags': []}])
        html = str(view.render_cards())
        assert 'Untitled Project' in html
        assert 'href="#"' in html

    def test_render_cards_drops_non_http_links(self):
        view = CatalogView()
        view.load([
            {'title': 'A', 'tags': [], 'file': 'javascript://x/%0Aalert(1)'},
            {'title': 'B', 'tags': [], 'file': 'data:text/html,hi'},
        ])
        html = str(view.render_cards())
        assert 'javascript' not in html
        assert 'data:' not in html
        assert html.count('href="#"') == 2

    def test_clear_filters(self, view):
        view.toggle_tag('ocean')
        view.set_search_term('coastal')
        view.flush()
        view.set_search_term('wetl')

        assert len(view.clear_filters()) == 4
        assert view.active_tag_filters == set()
        assert view.search_term == ''
        assert not view.search_pending


class TestDebouncer:

    def test_retrigger_discards_pending_call(self):
        calls = []
        debouncer = Debouncer(lambda: calls.append(1), delay=60)
        debouncer.trigger()
        debouncer.trigger()
        debouncer.flush()
        assert calls == [1]

    def test_flush_without_pending_is_noop(self):
        calls = []
        Debouncer(lambda: calls.append(1), delay=60).flush()
        assert calls == []

    def test_replaced_timer_does_not_clear_pending_call(self):
        calls = []
        debouncer = Debouncer(lambda: calls.append(1), delay=60)
        debouncer.trigger()
        stale = debouncer._timer
        debouncer.trigger()

        debouncer._fire(stale)
        assert calls == []
        assert debouncer.pending

        debouncer.flush()
        assert calls == [1]
