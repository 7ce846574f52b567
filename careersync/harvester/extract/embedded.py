"""Embedded-metadata extractor (fallback strategy).

Reads `<script type="application/ld+json">` blocks and projects schema.org
``JobPosting`` objects into raw records. A block may hold a single object, an
array of objects, or an ``@graph`` container. Blocks and entries that fail to
parse are skipped; an empty list is the signal that nothing usable exists.
"""
from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional
import json
import logging

from ..models import RawJobRecord

logger = logging.getLogger(__name__)

LD_JSON_JS = """
() => Array.from(document.querySelectorAll('script[type="application/ld+json"]'))
  .map(s => s.textContent || '')
"""


def _is_job_posting(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    kind = obj.get('@type')
    if isinstance(kind, list):
        return 'JobPosting' in kind
    return kind == 'JobPosting'


def _text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _identifier(data: Dict[str, Any]) -> Optional[str]:
    ident = data.get('identifier')
    if isinstance(ident, dict):
        # schema.org PropertyValue
        ident = ident.get('value') or ident.get('name')
    return _text(ident) or _text(data.get('id')) or _text(data.get('@id'))


def _location(data: Dict[str, Any]) -> Optional[str]:
    loc = data.get('jobLocation')
    if isinstance(loc, list):
        loc = loc[0] if loc else None
    if isinstance(loc, dict):
        address = loc.get('address')
        if isinstance(address, dict):
            parts = [_text(address.get('addressLocality')), _text(address.get('addressRegion'))]
            joined = ', '.join(p for p in parts if p)
            return joined or None
        return _text(address) or _text(loc.get('name'))
    return _text(loc)


def _department(data: Dict[str, Any]) -> Optional[str]:
    org = data.get('hiringOrganization')
    if isinstance(org, dict):
        name = _text(org.get('name'))
        if name:
            return name
    return _text(data.get('department'))


def _employment_type(data: Dict[str, Any]) -> Optional[str]:
    et = data.get('employmentType')
    if isinstance(et, list):
        return ', '.join(str(x) for x in et if x) or None
    return _text(et)


def posting_to_raw(data: Dict[str, Any]) -> RawJobRecord:
    return RawJobRecord(
        id=_identifier(data),
        title=_text(data.get('title')),
        description=_text(data.get('description')),
        location=_location(data),
        department=_department(data),
        type=_employment_type(data),
        posted_date=_text(data.get('datePosted')),
        apply_url=_text(data.get('url')) or _text(data.get('applicationUrl')),
    )


def _candidates(payload: Any) -> Iterable[Any]:
    if isinstance(payload, list):
        yield from payload
    elif isinstance(payload, dict):
        if isinstance(payload.get('@graph'), list):
            yield from payload['@graph']
        else:
            yield payload


def parse_blocks(blocks: Iterable[str]) -> List[RawJobRecord]:
    jobs: List[RawJobRecord] = []
    for i, block in enumerate(blocks):
        if not block or not block.strip():
            continue
        try:
            payload = json.loads(block)
        except (ValueError, RecursionError) as e:
            logger.debug(f"Skipping malformed JSON-LD block {i}: {e}")
            continue
        for item in _candidates(payload):
            if not _is_job_posting(item):
                continue
            try:
                jobs.append(posting_to_raw(item))
            except Exception as e:
                logger.debug(f"Skipping JobPosting in block {i}: {e}")
    return jobs


def extract_embedded_jobs(page) -> List[RawJobRecord]:
    blocks = page.evaluate(LD_JSON_JS) or []
    jobs = parse_blocks(str(b) for b in blocks)
    logger.debug(f"Embedded metadata: {len(jobs)} postings across {len(blocks)} blocks")
    return jobs
