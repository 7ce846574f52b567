"""Navigation and dynamic-content readiness detection.

Layered detection after navigation:
  1. readiness marker selector becomes visible
  2. otherwise network idle again, then a fixed settle delay for the SPA to paint
  3. "no postings" sentinel texts; a visible sentinel means the page is
     legitimately empty (a success with zero records, not a failure)
"""
from __future__ import annotations
import logging

from playwright.sync_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from .logging_config import log_event
from .settings import EngineConfig

logger = logging.getLogger(__name__)

NO_JOBS_SENTINELS = (
    'No positions available',
    'No current openings',
    'No job opportunities',
    "We don't have any open positions",
)


def navigate(page, url: str, timeout_ms: int):
    logger.debug(f"Navigating to {url}")
    return page.goto(url, wait_until='networkidle', timeout=timeout_ms)


def has_no_jobs_indicator(page) -> bool:
    for text in NO_JOBS_SENTINELS:
        try:
            if page.locator(f'text="{text}"').first.is_visible():
                logger.info(f"No jobs available indicator found: {text!r}")
                log_event('no_jobs_indicator', text=text)
                return True
        except PlaywrightError:
            continue
    return False


def wait_for_listings(page, settings: EngineConfig) -> bool:
    """Block until listings are rendered. Returns True when the page reports no openings."""
    logger.debug('Waiting for job listings to load')
    try:
        page.wait_for_selector(settings.wait_for_selector, timeout=settings.timeout_ms, state='visible')
        logger.debug('Readiness marker visible')
    except PlaywrightTimeoutError:
        # marker missing is structural, not fatal; a second idle timeout is
        logger.debug('Readiness marker not found, waiting for network idle')
        page.wait_for_load_state('networkidle', timeout=settings.timeout_ms)
        page.wait_for_timeout(settings.render_settle_ms)
    return has_no_jobs_indicator(page)
