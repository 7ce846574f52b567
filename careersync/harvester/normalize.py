"""Raw -> normalized job record mapping.

Pure functions, no I/O. Every call stamps all of its records with one shared
``processed_at`` value computed before mapping begins.

Alternate raw field names are tried in order before a default is applied:

  id          id, job_id                     -> title-derived id
  title       title only                     -> record dropped when blank
  department  department, category, division -> ''
  location    location, city, office         -> ''
  type        type, employment_type, schedule -> 'Full-Time'
  description description, summary, overview -> ''
  posted_date posted_date, created_at, date_posted -> processed_at
  apply_url   apply_url, application_url, url -> ''
"""
from __future__ import annotations
from datetime import date, datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union
import hashlib
import logging
import re

from dateutil import parser as date_parser

from .models import NormalizedJobRecord, RawJobRecord, iso_now, to_iso

logger = logging.getLogger(__name__)

DEFAULT_EMPLOYMENT_TYPE = 'Full-Time'

ID_FIELDS = ('id', 'job_id')
DEPARTMENT_FIELDS = ('department', 'category', 'division')
LOCATION_FIELDS = ('location', 'city', 'office')
TYPE_FIELDS = ('type', 'employment_type', 'schedule')
DESCRIPTION_FIELDS = ('description', 'summary', 'overview')
DATE_FIELDS = ('posted_date', 'created_at', 'date_posted')
URL_FIELDS = ('apply_url', 'application_url', 'url')

RawInput = Union[RawJobRecord, Mapping[str, Any]]


def normalize_for_id(text: str, max_length: int = 20) -> str:
    slug = re.sub(r'[^a-z0-9]', '-', (text or '').lower())
    slug = re.sub(r'-+', '-', slug).strip('-')
    return slug[:max_length].rstrip('-')


def generate_id_from_title(title: str) -> str:
    """Deterministic id: slug plus a short digest of the full title."""
    digest = hashlib.sha1(title.encode('utf-8')).hexdigest()[:10]
    slug = normalize_for_id(title)
    return f"{slug}-{digest}" if slug else f"job-{digest}"


def _coerce_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return None
    text = value if isinstance(value, str) else str(value)
    text = text.strip()
    return text or None


def first_text(raw: RawJobRecord, fields: Iterable[str]) -> Optional[str]:
    for name in fields:
        val = _coerce_text(getattr(raw, name, None))
        if val is not None:
            return val
    return None


def first_value(raw: RawJobRecord, fields: Iterable[str]) -> Any:
    """Like first_text but keeps datetime / epoch values intact."""
    for name in fields:
        val = getattr(raw, name, None)
        if isinstance(val, (datetime, date, int, float)) and not isinstance(val, bool):
            return val
        if _coerce_text(val) is not None:
            return val
    return None


def parse_posted_date(value: Any) -> Optional[str]:
    """Convert a loosely typed date into ISO-8601, or None when unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, date):
        return to_iso(datetime(value.year, value.month, value.day, tzinfo=timezone.utc))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch; milliseconds when it is too large to be seconds
        ts = float(value) / 1000.0 if value > 1e11 else float(value)
        try:
            return to_iso(datetime.fromtimestamp(ts, tz=timezone.utc))
        except (OverflowError, OSError, ValueError):
            return None
    text = _coerce_text(value)
    if not text:
        return None
    try:
        iso_candidate = text[:-1] + '+00:00' if text.endswith('Z') else text
        return to_iso(datetime.fromisoformat(iso_candidate))
    except ValueError:
        pass
    try:
        return to_iso(date_parser.parse(text))
    except (ValueError, OverflowError, TypeError):
        return None


def coerce_raw(raw: RawInput) -> RawJobRecord:
    if isinstance(raw, RawJobRecord):
        return raw
    return RawJobRecord.model_validate(dict(raw))


def normalize_job(raw: RawJobRecord, source: str, processed_at: str) -> Optional[NormalizedJobRecord]:
    title = _coerce_text(raw.title)
    if not title:
        return None
    posted = parse_posted_date(first_value(raw, DATE_FIELDS)) or processed_at
    return NormalizedJobRecord(
        id=first_text(raw, ID_FIELDS) or generate_id_from_title(title),
        title=title,
        description=first_text(raw, DESCRIPTION_FIELDS) or '',
        location=first_text(raw, LOCATION_FIELDS) or '',
        department=first_text(raw, DEPARTMENT_FIELDS) or '',
        type=first_text(raw, TYPE_FIELDS) or DEFAULT_EMPLOYMENT_TYPE,
        posted_date=posted,
        apply_url=first_text(raw, URL_FIELDS) or '',
        source=source,
        raw_data=raw,
        processed_at=processed_at,
    )


def normalize_jobs(raw_jobs: Iterable[RawInput], source: str, processed_at: Optional[str] = None) -> List[NormalizedJobRecord]:
    processed_at = processed_at or iso_now()
    out: List[NormalizedJobRecord] = []
    dropped = 0
    for item in raw_jobs:
        job = normalize_job(coerce_raw(item), source, processed_at)
        if job is None:
            dropped += 1
            continue
        out.append(job)
    if dropped:
        logger.debug(f"Dropped {dropped} raw records without a title")
    return out
