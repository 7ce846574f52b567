"""Signed webhook delivery of normalized jobs.

The receiving endpoint verifies `X-Webhook-Signature: sha256=<hex>`, an
HMAC-SHA256 of the exact request body keyed with the shared secret. Failures
(HTTP status or transport) are reported in the returned `PublishResult`.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, Optional
import hashlib
import hmac
import json
import logging

import httpx

from .logging_config import log_event
from .models import NormalizedJobRecord, iso_now

logger = logging.getLogger(__name__)

DEFAULT_WEBHOOK_PATH = '/webhook/drivehr-sync/v1/jobs'
USER_AGENT = 'CareerSync-Publisher/2.0'


@dataclass
class PublishResult:
    success: bool
    message: str
    jobs_processed: int = 0
    error: Optional[str] = None


def sign_payload(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()
    return f"sha256={digest}"


class WebhookPublisher:
    def __init__(self, api_url: str, secret: str, webhook_path: str = DEFAULT_WEBHOOK_PATH,
                 timeout: float = 30.0, client: Optional[httpx.Client] = None):
        self.endpoint = api_url.rstrip('/') + '/' + webhook_path.lstrip('/')
        self.secret = secret
        self.timeout = timeout
        self._client = client

    def build_body(self, jobs: Iterable[NormalizedJobRecord], source: str) -> bytes:
        payload_jobs = [j.to_payload() for j in jobs]
        payload = {
            'source': source,
            'jobs': payload_jobs,
            'timestamp': iso_now(),
            'total_count': len(payload_jobs),
        }
        return json.dumps(payload, ensure_ascii=False, default=str).encode('utf-8')

    def _post(self, client: httpx.Client, body: bytes) -> httpx.Response:
        headers = {
            'Content-Type': 'application/json',
            'X-Webhook-Signature': sign_payload(body, self.secret),
            'User-Agent': USER_AGENT,
        }
        return client.post(self.endpoint, content=body, headers=headers)

    def send_jobs(self, jobs: Iterable[NormalizedJobRecord], source: str) -> PublishResult:
        jobs = list(jobs)
        body = self.build_body(jobs, source)
        logger.info(f"Publishing {len(jobs)} jobs to {self.endpoint}")
        try:
            if self._client is not None:
                resp = self._post(self._client, body)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    resp = self._post(client, body)
        except httpx.HTTPError as e:
            logger.error(f"Webhook request failed: {e}")
            log_event('publish_failed', endpoint=self.endpoint, error=str(e))
            return PublishResult(False, 'Webhook request failed', 0, str(e))

        if resp.status_code >= 300:
            snippet = (resp.text or '')[:300]
            err = f"HTTP {resp.status_code}: {snippet}"
            logger.error(f"Webhook rejected payload: {err}")
            log_event('publish_failed', endpoint=self.endpoint, status=resp.status_code)
            return PublishResult(False, 'Webhook rejected payload', 0, err)

        processed = len(jobs)
        message = 'Jobs published'
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            # receiver may report its own count
            try:
                processed = int(data.get('jobs_processed', data.get('processed', processed)))
            except (TypeError, ValueError):
                pass
            message = str(data.get('message') or message)
        logger.info(f"Webhook accepted {processed} jobs")
        log_event('publish_complete', endpoint=self.endpoint, jobs=processed, status=resp.status_code)
        return PublishResult(True, message, processed)
