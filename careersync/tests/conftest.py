"""Shared fixtures: fake Playwright page/session objects and zero-delay settings.
 - Sets env vars to disable log file and event side effects.
 - No real browser is ever launched.
"""
from __future__ import annotations
import os
import pytest

os.environ.setdefault('CAREERSYNC_DISABLE_FILE_LOGS', '1')
os.environ.setdefault('CAREERSYNC_DISABLE_EVENTS', '1')

from careersync.harvester.extract.embedded import LD_JSON_JS
from careersync.harvester.extract.expansion import CENSUS_JS, COLLECT_JS, EXPAND_JS
from careersync.harvester.settings import EngineConfig, TargetConfig


@pytest.fixture(autouse=True, scope="session")
def test_env_setup():
    os.environ.setdefault('CAREERSYNC_DISABLE_FILE_LOGS', '1')
    os.environ.setdefault('CAREERSYNC_DISABLE_EVENTS', '1')
    yield


class FakeLocator:
    def __init__(self, visible=False, error=None):
        self.visible = visible
        self.error = error

    @property
    def first(self):
        return self

    def is_visible(self):
        if self.error:
            raise self.error
        return self.visible


class FakePage:
    """Minimal stand-in for a Playwright page.

    `entries` are the dicts the collection script would return; `ld_blocks`
    the raw JSON-LD script texts. Census/expansion results derive from them.
    """

    def __init__(self, entries=None, ld_blocks=None, marker_error=None, visible_texts=(), url='https://example.test/careers',
                 expand_failures=()):
        self.expand_failures = list(expand_failures)
        self.entries = list(entries or [])
        self.ld_blocks = list(ld_blocks or [])
        self.marker_error = marker_error
        self.visible_texts = set(visible_texts)
        self.url = url
        self.calls = []
        self.waits = []
        self.screenshots = []

    def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(('goto', url, wait_until))
        self.url = url

    def wait_for_selector(self, selector, timeout=None, state=None):
        self.calls.append(('wait_for_selector', selector, state))
        if self.marker_error:
            raise self.marker_error

    def wait_for_load_state(self, state=None, timeout=None):
        self.calls.append(('wait_for_load_state', state))

    def wait_for_timeout(self, ms):
        self.waits.append(ms)

    def locator(self, selector):
        text = selector[len('text="'):-1] if selector.startswith('text="') else selector
        return FakeLocator(visible=text in self.visible_texts)

    def evaluate(self, script, arg=None):
        self.calls.append(('evaluate', script))
        if script == CENSUS_JS:
            return {
                'headers': len(self.entries),
                'containers': sum(1 for e in self.entries if e.get('contentText') is not None),
                'titleLinks': sum(1 for e in self.entries if e.get('linkText')),
                'bodyTextLength': 1000,
            }
        if script == EXPAND_JS:
            return {'total': len(self.entries), 'clicked': len(self.entries) - len(self.expand_failures),
                    'failures': list(self.expand_failures)}
        if script == COLLECT_JS:
            return [dict(e) for e in self.entries]
        if script == LD_JSON_JS:
            return list(self.ld_blocks)
        raise AssertionError('unexpected script')

    def screenshot(self, path=None, full_page=False):
        self.screenshots.append((path, full_page))


class FakeSession:
    """Context-manager session handing out one prepared page; records lifecycle."""

    instances = []

    def __init__(self, settings, page=None, open_error=None):
        self.settings = settings
        self.page = page if page is not None else FakePage()
        self.open_error = open_error
        self.opened = False
        self.closed = False
        FakeSession.instances.append(self)

    def __enter__(self):
        if self.open_error:
            self.closed = True
            raise self.open_error
        self.opened = True
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False

    def new_page(self):
        return self.page


def make_entry(index, header, content, link='', hrefs=()):
    return {'index': index, 'headerText': header, 'linkText': link, 'contentText': content, 'hrefs': list(hrefs)}


@pytest.fixture
def fast_settings():
    return EngineConfig(
        timeout_ms=1000,
        render_settle_ms=0,
        spa_settle_ms=0,
        expand_settle_ms=0,
        retry_backoff_ms=1000,
    )


@pytest.fixture
def target():
    return TargetConfig(company_id='acme-health')


@pytest.fixture(autouse=True)
def reset_fake_sessions():
    FakeSession.instances = []
    yield
