"""Scrape the configured careers page, save artifacts and publish to the webhook.

Usage:
  careersync-scrape --company-id acme-health
  python -m careersync.scripts.run_scrape --debug --no-publish

Environment:
  DRIVEHR_COMPANY_ID / CAREERS_URL   target (CLI flags win)
  WP_API_URL / WEBHOOK_SECRET        publishing endpoint and signing secret
  GITHUB_RUN_ID                      run id stamped on artifacts
  FORCE_SYNC                         publish even when zero jobs were found

Exit codes: 0 ok, 1 scrape or publish failure, 2 configuration error.
"""
from __future__ import annotations
from pathlib import Path
import argparse
import logging
import os
import time

from careersync.harvester.artifacts import save_jobs_artifact, save_run_log
from careersync.harvester.engine import DEFAULT_SOURCE, ScrapeEngine, build_screenshot_path
from careersync.harvester.logging_config import setup_logging, log_event, set_run_id
from careersync.harvester.publisher import WebhookPublisher
from careersync.harvester.settings import ConfigError, load_engine_config, load_target_config

logger = logging.getLogger('careersync.run_scrape')

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser('careersync-scrape', description='Scrape a careers page and publish the jobs')
    ap.add_argument('--company-id', type=str, help='Company id (default: DRIVEHR_COMPANY_ID)')
    ap.add_argument('--careers-url', type=str, help='Explicit careers page URL (default: CAREERS_URL or derived)')
    ap.add_argument('--source', type=str, default=DEFAULT_SOURCE, help='Source label stamped on every job')
    ap.add_argument('--retries', type=int, help='Attempt ceiling')
    ap.add_argument('--timeout-ms', type=int, help='Per-operation timeout in milliseconds')
    ap.add_argument('--headed', action='store_true', help='Show the browser window')
    ap.add_argument('--debug', action='store_true', help='Enable debug logging and a page screenshot')
    ap.add_argument('--force-sync', action='store_true', help='Publish even when no jobs were found')
    ap.add_argument('--no-publish', action='store_true', help='Skip the webhook call')
    ap.add_argument('--output-dir', type=str, default='artifacts', help='Directory for run artifacts')
    return ap


def _truthy(value) -> bool:
    return str(value or '').strip().lower() in {'1', 'true', 'yes', 'on'}


def main(argv=None) -> int:
    started = time.monotonic()
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        target = load_target_config(args.company_id, args.careers_url)
        settings = load_engine_config(
            retries=args.retries,
            timeout_ms=args.timeout_ms,
            headless=False if args.headed else None,
            debug=True if args.debug else None,
        )
        publisher = None
        if not args.no_publish:
            api_url = os.getenv('WP_API_URL')
            secret = os.getenv('WEBHOOK_SECRET')
            if not api_url or not secret:
                raise ConfigError('WP_API_URL and WEBHOOK_SECRET are required to publish (or pass --no-publish)')
            publisher = WebhookPublisher(api_url, secret)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return EXIT_CONFIG

    run_id = os.getenv('GITHUB_RUN_ID') or 'local'
    set_run_id(run_id)
    force_sync = args.force_sync or _truthy(os.getenv('FORCE_SYNC'))
    out_dir = Path(args.output_dir)

    screenshot = build_screenshot_path(out_dir, target.company_id) if settings.debug else None
    scrape_started = time.monotonic()
    outcome = ScrapeEngine(settings).scrape(target, source=args.source, screenshot_path=screenshot)
    scrape_ms = int((time.monotonic() - scrape_started) * 1000)

    summary = {
        'success': outcome.success,
        'url': outcome.url,
        'scrapedAt': outcome.scraped_at,
        'totalJobs': outcome.total_count,
        'error': outcome.error,
        'screenshotPath': outcome.screenshot_path,
        'published': False,
        'scrapeMs': scrape_ms,
        'publish': None,
    }
    exit_code = EXIT_OK

    if outcome.success:
        jobs_path = save_jobs_artifact(outcome.jobs, run_id, out_dir)
        summary['jobsArtifact'] = str(jobs_path)
        logger.info(f"Saved {outcome.total_count} jobs to {jobs_path}")
        if publisher is None:
            logger.info('Publishing disabled')
        elif outcome.jobs or force_sync:
            result = publisher.send_jobs(outcome.jobs, args.source)
            summary['published'] = result.success
            summary['publish'] = {
                'success': result.success,
                'message': result.message,
                'jobs_processed': result.jobs_processed,
                'error': result.error,
            }
            if not result.success:
                exit_code = EXIT_FAILURE
        else:
            logger.info('No jobs found and force sync not set; skipping publish')
    else:
        logger.error(f"Scrape failed: {outcome.error}")
        exit_code = EXIT_FAILURE

    summary['totalMs'] = int((time.monotonic() - started) * 1000)
    log_path = save_run_log(summary, run_id, out_dir)
    logger.info(f"Run log written to {log_path}")
    log_event('run_complete', exit_code=exit_code, jobs=outcome.total_count)
    return exit_code


if __name__ == '__main__':
    raise SystemExit(main())
