"""Browser session lifecycle.

One `BrowserSession` owns a Playwright driver, a Chromium process and a single
browsing context. Sessions are created fresh for every scrape attempt and are
never shared; use it as a context manager so teardown runs on every exit path:

    with BrowserSession(settings) as session:
        page = session.new_page()
        ...
"""
from __future__ import annotations
from typing import Any, Optional
import logging

from playwright.sync_api import sync_playwright

from .logging_config import log_event
from .settings import EngineConfig

logger = logging.getLogger(__name__)

VIEWPORT = {'width': 1280, 'height': 720}

ACCEPT_HEADERS = {
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
}

# Bundlers that keep function names wrap evaluated callbacks in __name(fn, "x");
# the helper does not exist inside the page, so provide a pass-through.
COMPAT_SHIM = """
(() => {
  const g = typeof globalThis !== 'undefined' ? globalThis : window;
  if (typeof g.__name !== 'function') {
    g.__name = (target) => target;
  }
})();
"""


class SessionError(RuntimeError):
    """Raised when a page is requested from a session that is not open."""


class BrowserSession:
    def __init__(self, settings: EngineConfig):
        self.settings = settings
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None

    @property
    def is_open(self) -> bool:
        return self._browser is not None

    def open(self) -> 'BrowserSession':
        if self._browser is not None:
            return self
        logger.debug('Launching Chromium')
        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(
            headless=self.settings.headless,
            args=list(self.settings.browser_args),
        )
        self._context = self._browser.new_context(
            user_agent=self.settings.user_agent,
            viewport=dict(VIEWPORT),
            ignore_https_errors=True,
            extra_http_headers=dict(ACCEPT_HEADERS),
        )
        self._context.add_init_script(COMPAT_SHIM)
        return self

    def new_page(self):
        if self._context is None:
            raise SessionError('Browser context not initialized')
        page = self._context.new_page()
        page.set_default_timeout(self.settings.timeout_ms)
        page.set_default_navigation_timeout(self.settings.timeout_ms)
        blocked = set(self.settings.blocked_resource_types)

        def _route(route):
            if route.request.resource_type in blocked:
                route.abort()
            else:
                route.continue_()

        page.route('**/*', _route)
        if self.settings.debug:
            page.on('console', _console_handler)
        return page

    def close(self):
        """Close context, browser and driver. Errors are logged, never raised."""
        for label, attr, method in (('context', '_context', 'close'),
                                    ('browser', '_browser', 'close'),
                                    ('playwright', '_playwright', 'stop')):
            handle = getattr(self, attr)
            if handle is None:
                continue
            try:
                getattr(handle, method)()
            except Exception as e:
                logger.warning(f"Error closing {label}: {e}")
                log_event('session_close_error', stage=label, message=str(e))
            finally:
                setattr(self, attr, None)

    def __enter__(self) -> 'BrowserSession':
        try:
            return self.open()
        except Exception:
            self.close()
            raise

    def __exit__(self, *exc) -> Optional[bool]:
        self.close()
        return False


def _console_handler(msg):
    try:
        logger.debug(f"PAGE_CONSOLE {msg.type} {(msg.text or '')[:300]}")
    except Exception:
        logger.debug('Failed handling console message', exc_info=True)
