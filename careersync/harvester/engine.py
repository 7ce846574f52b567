"""Scrape engine: retry controller around one browser session per attempt.

Each attempt opens a fresh `BrowserSession`, navigates, waits for listings and
runs the extraction strategies. Any failure tears the session down before the
next attempt. Backoff between attempts is linear (attempt x retry_backoff_ms).
"""
from __future__ import annotations
from pathlib import Path
from typing import Callable, List, Optional
import logging
import re
import time

from . import readiness
from .extract import orchestrator
from .logging_config import log_event
from .models import RawJobRecord, ScrapeOutcome, iso_now
from .normalize import normalize_jobs
from .session import BrowserSession
from .settings import EngineConfig, TargetConfig, load_engine_config

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = 'github-actions'


def build_screenshot_path(directory, company_id: str) -> str:
    safe = re.sub(r'[^A-Za-z0-9_.-]', '_', company_id or 'unknown')
    stamp = int(time.time() * 1000)
    return str(Path(directory) / f"scrape-debug-{safe}-{stamp}.png")


class ScrapeEngine:
    def __init__(self, settings: Optional[EngineConfig] = None,
                 session_factory: Callable[[EngineConfig], BrowserSession] = BrowserSession,
                 sleep: Callable[[float], None] = time.sleep):
        self.settings = settings or load_engine_config()
        self._session_factory = session_factory
        self._sleep = sleep

    def _attempt(self, target: TargetConfig, screenshot_path: Optional[str]) -> tuple[List[RawJobRecord], Optional[str]]:
        url = target.resolved_url
        with self._session_factory(self.settings) as session:
            page = session.new_page()
            readiness.navigate(page, url, self.settings.timeout_ms)
            if readiness.wait_for_listings(page, self.settings):
                raw: List[RawJobRecord] = []
            else:
                raw = orchestrator.extract_jobs(page, self.settings, target)
            shot = None
            if self.settings.debug and screenshot_path:
                shot = self._screenshot(page, screenshot_path)
            return raw, shot

    def _screenshot(self, page, path: str) -> Optional[str]:
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            page.screenshot(path=path, full_page=True)
            logger.debug(f"Debug screenshot saved: {path}")
            return path
        except Exception as e:
            logger.warning(f"Failed to take debug screenshot: {e}")
            return None

    def scrape(self, target: TargetConfig, source: str = DEFAULT_SOURCE,
               screenshot_path: Optional[str] = None) -> ScrapeOutcome:
        url = target.resolved_url
        scraped_at = iso_now()
        retries = self.settings.retries
        logger.info(f"Scraping {url} (company={target.company_id}, retries={retries})")
        log_event('scrape_start', url=url, company_id=target.company_id, retries=retries)

        last_error: Optional[str] = None
        for attempt in range(1, retries + 1):
            try:
                raw, shot = self._attempt(target, screenshot_path)
            except Exception as e:
                last_error = str(e) or e.__class__.__name__
                logger.warning(f"Attempt {attempt}/{retries} failed: {last_error}")
                log_event('attempt_failed', attempt=attempt, retries=retries, error=last_error)
                if attempt < retries:
                    delay = attempt * self.settings.retry_backoff_ms / 1000.0
                    logger.debug(f"Retrying in {delay:.1f}s")
                    self._sleep(delay)
                continue

            jobs = normalize_jobs(raw, source)
            logger.info(f"Scrape complete: {len(jobs)} jobs (attempt {attempt})")
            log_event('scrape_complete', url=url, attempt=attempt, jobs=len(jobs))
            return ScrapeOutcome(
                success=True,
                jobs=jobs,
                total_count=len(jobs),
                url=url,
                scraped_at=scraped_at,
                screenshot_path=shot,
            )

        logger.error(f"Scrape failed after {retries} attempts: {last_error}")
        log_event('scrape_failed', url=url, attempts=retries, error=last_error)
        return ScrapeOutcome(
            success=False,
            jobs=[],
            total_count=0,
            url=url,
            scraped_at=scraped_at,
            error=last_error,
        )
