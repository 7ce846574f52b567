"""Interactive expansion extractor (primary strategy).

Targets Element UI collapse lists. Each posting is a header
(`.el-collapse-item__header`) with a collapsed content region
(`.el-collapse-item__content`). The component keeps headers and content
regions as two index-parallel collections and detaches/reattaches the content
while animating, so header i is paired with container i by position rather
than by walking the DOM from the header. This is the most fragile assumption in
the engine: a layout that breaks the parallel ordering yields skipped entries
and, when nothing survives, the embedded-metadata fallback.

Browser-side code only counts, clicks and reads text; every heuristic runs on
the host in `parse_entry` so the page never has to be trusted for structure.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import logging
import re
import time

from ..logging_config import log_event
from ..models import RawJobRecord
from ..normalize import DEFAULT_EMPLOYMENT_TYPE, normalize_for_id
from ..settings import EngineConfig, TargetConfig

logger = logging.getLogger(__name__)

ID_MAX_LENGTH = 64

CENSUS_JS = """
([headerSel, contentSel]) => {
  const headers = document.querySelectorAll(headerSel);
  const first = headers.length ? (headers[0].textContent || '').trim().slice(0, 120) : '';
  return {
    url: location.href,
    title: document.title,
    readyState: document.readyState,
    headers: headers.length,
    containers: document.querySelectorAll(contentSel).length,
    titleLinks: document.querySelectorAll(headerSel + ' a').length,
    bodyTextLength: (document.body && document.body.innerText || '').length,
    hasElementUI: !!document.querySelector('[class*="el-"]'),
    firstHeaderText: first,
  };
}
"""

EXPAND_JS = """
(headerSel) => {
  const headers = Array.from(document.querySelectorAll(headerSel));
  let clicked = 0;
  const failures = [];
  headers.forEach((el, i) => {
    try {
      el.click();
      clicked += 1;
    } catch (err) {
      failures.push(i + ': ' + String(err && err.message || err));
    }
  });
  return { total: headers.length, clicked, failures: failures.slice(0, 20) };
}
"""

COLLECT_JS = """
([headerSel, contentSel]) => {
  const headers = Array.from(document.querySelectorAll(headerSel));
  const containers = Array.from(document.querySelectorAll(contentSel));
  return headers.map((header, index) => {
    const container = containers[index] || null;
    const link = header.querySelector('a');
    const hrefs = container
      ? Array.from(container.querySelectorAll('a[href]')).map(a => a.href).filter(Boolean)
      : [];
    return {
      index,
      headerText: (header.innerText || header.textContent || '').trim(),
      linkText: link ? (link.textContent || '').trim() : '',
      contentText: container ? (container.innerText || container.textContent || '').trim() : null,
      hrefs,
    };
  });
}
"""

# Header fields are separated by line breaks, pipes, bullets or spaced dashes
FIELD_DELIMITER_RGX = re.compile(r"\s*(?:\n|\||·|•|\s[-–—]\s)\s*")
LOCATION_RGX = re.compile(r"\b([A-Z][a-zA-Z]+(?:[ .'-]{1,2}[A-Z][a-zA-Z]+){0,3}),\s*([A-Z]{2})\b")
DATE_RGX = re.compile(r"\b(\d{1,2}/\d{1,2}/\d{2,4}|\d{4}-\d{2}-\d{2}|\d{1,2}-\d{1,2}-\d{4})\b")

US_STATE_CODES = frozenset((
    "AL AK AZ AR CA CO CT DE FL GA HI ID IL IN IA KS KY LA ME MD MA MI MN MS MO MT NE NV NH NJ NM NY NC ND OH "
    "OK OR PA RI SC SD TN TX UT VT VA WA WV WI WY DC PR GU VI AS MP"
).split())

EMPLOYMENT_TYPES = [
    (re.compile(r"\bfull[- ]?time\b", re.I), 'Full-Time'),
    (re.compile(r"\bpart[- ]?time\b", re.I), 'Part-Time'),
    (re.compile(r"\bper[- ]?diem\b", re.I), 'Per Diem'),
    (re.compile(r"\bPRN\b"), 'PRN'),
    (re.compile(r"\bcontract(?:or)?\b", re.I), 'Contract'),
    (re.compile(r"\btemporary\b|\btemp\b", re.I), 'Temporary'),
    (re.compile(r"\bseasonal\b", re.I), 'Seasonal'),
    (re.compile(r"\binternship\b|\bintern\b", re.I), 'Internship'),
]

PAY_TYPES = [
    (re.compile(r"\bnon[- ]?exempt\b", re.I), 'Non-Exempt'),
    (re.compile(r"\bexempt\b", re.I), 'Exempt'),
    (re.compile(r"\bhourly\b", re.I), 'Hourly'),
    (re.compile(r"\bsalar(?:y|ied)\b", re.I), 'Salary'),
    (re.compile(r"\bcommission\b", re.I), 'Commission'),
    (re.compile(r"\bstipend\b", re.I), 'Stipend'),
]

DEPARTMENT_RGXS = [
    re.compile(r"\b(?:Department|Dept\.?|Division|Team|Category)\s*[:\-]\s*([A-Za-z&/,' ]{2,60}?)\s*(?:$|\n|\||·)", re.I | re.M),
    re.compile(r"\b([A-Z][A-Za-z&']+(?: [A-Z][A-Za-z&']+){0,3}) (?:Department|Division)\b"),
]


@dataclass(frozen=True)
class EntryText:
    """Header/container texts for one index-paired entry, as marshalled from the page."""
    index: int
    header_text: str
    link_text: str = ''
    content_text: Optional[str] = None
    hrefs: Sequence[str] = ()

    @classmethod
    def from_page(cls, data: Dict[str, Any]) -> 'EntryText':
        content = data.get('contentText')
        return cls(
            index=int(data.get('index', 0)),
            header_text=str(data.get('headerText') or ''),
            link_text=str(data.get('linkText') or ''),
            content_text=None if content is None else str(content),
            hrefs=tuple(str(h) for h in (data.get('hrefs') or []) if h),
        )


def extract_title(header_text: str, link_text: str = '') -> str:
    if link_text.strip():
        return link_text.strip()
    parts = FIELD_DELIMITER_RGX.split(header_text.strip(), maxsplit=1)
    return parts[0].strip() if parts else ''


def extract_location(text: str, fallback: str) -> str:
    for segment in FIELD_DELIMITER_RGX.split(text):
        for m in LOCATION_RGX.finditer(segment):
            if m.group(2) in US_STATE_CODES:
                return f"{m.group(1)}, {m.group(2)}"
    return fallback


def extract_posted_date(text: str) -> Optional[str]:
    m = DATE_RGX.search(text)
    return m.group(1) if m else None


def _first_label(text: str, vocabulary) -> Optional[str]:
    for rgx, label in vocabulary:
        if rgx.search(text):
            return label
    return None


def extract_employment_type(text: str) -> str:
    return _first_label(text, EMPLOYMENT_TYPES) or DEFAULT_EMPLOYMENT_TYPE


def extract_pay_type(text: str) -> Optional[str]:
    return _first_label(text, PAY_TYPES)


def extract_department(header_text: str, organization_name: str = '') -> Optional[str]:
    if organization_name and organization_name.lower() in header_text.lower():
        return organization_name
    for rgx in DEPARTMENT_RGXS:
        m = rgx.search(header_text)
        if m:
            dept = m.group(1).strip(" ,/")
            if dept:
                return dept
    return None


def combine_description(header_text: str, content_text: str) -> str:
    header = header_text.strip()
    content = content_text.strip()
    if not header:
        return content
    if not content:
        return header
    if header.lower() in content.lower():
        return content
    if content.lower() in header.lower():
        return header
    return f"{header}\n\n{content}"


def generate_entry_id(title: str, index: int, timestamp_ms: int) -> str:
    slug = normalize_for_id(title, max_length=40) or 'job'
    return f"{slug}-{index}-{timestamp_ms}"[:ID_MAX_LENGTH]


def fallback_apply_url(template: str, target: Optional[TargetConfig], job_id: str) -> Optional[str]:
    if not template or target is None:
        return None
    try:
        return template.format(
            careers_url=target.resolved_url,
            company_id=target.company_id,
            base_url=target.base_url.rstrip('/'),
            job_id=job_id,
        )
    except (KeyError, IndexError, ValueError) as e:
        logger.debug(f"Bad apply_url_template {template!r}: {e}")
        return None


def parse_entry(entry: EntryText, settings: EngineConfig, target: Optional[TargetConfig] = None,
                timestamp_ms: Optional[int] = None) -> Optional[RawJobRecord]:
    """Turn one header/container pair into a raw record; None when the pair is unusable."""
    content = entry.content_text
    if content is None or len(content.strip()) < settings.min_content_length:
        return None
    title = extract_title(entry.header_text, entry.link_text)
    if not title:
        return None
    ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    job_id = generate_entry_id(title, entry.index, ts)
    combined = f"{entry.header_text}\n{content}"
    apply_url = entry.hrefs[0] if entry.hrefs else fallback_apply_url(settings.apply_url_template, target, job_id)
    return RawJobRecord(
        id=job_id,
        title=title,
        department=extract_department(entry.header_text, settings.organization_name),
        location=extract_location(entry.header_text, '') or extract_location(content, settings.fallback_location),
        description=combine_description(entry.header_text, content),
        posted_date=extract_posted_date(combined),
        type=extract_employment_type(combined),
        pay_type=extract_pay_type(combined),
        apply_url=apply_url,
    )


def parse_entries(entries: List[Dict[str, Any]], settings: EngineConfig, target: Optional[TargetConfig] = None,
                  timestamp_ms: Optional[int] = None) -> List[RawJobRecord]:
    ts = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    jobs: List[RawJobRecord] = []
    skipped = 0
    for data in entries:
        try:
            job = parse_entry(EntryText.from_page(data), settings, target, ts)
        except Exception as e:
            logger.debug(f"Dropping entry {data.get('index') if isinstance(data, dict) else '?'}: {e}")
            job = None
        if job is None:
            skipped += 1
            continue
        jobs.append(job)
    if skipped:
        logger.debug(f"Skipped {skipped} of {len(entries)} collapse entries")
    return jobs


def extract_expanded_jobs(page, settings: EngineConfig, target: Optional[TargetConfig] = None) -> List[RawJobRecord]:
    page.wait_for_timeout(settings.spa_settle_ms)
    selectors = [settings.header_selector, settings.content_selector]
    census = page.evaluate(CENSUS_JS, selectors) or {}
    logger.debug(f"Collapse census: {census}")
    log_event('expansion_census', headers=census.get('headers'), containers=census.get('containers'),
              title_links=census.get('titleLinks'), body_text_length=census.get('bodyTextLength'))
    if not census.get('headers'):
        logger.debug('No collapse headers found; skipping interactive extraction')
        return []

    expansion = page.evaluate(EXPAND_JS, settings.header_selector) or {}
    for failure in expansion.get('failures') or []:
        logger.debug(f"Header expand failed: {failure}")
    logger.debug(f"Expanded {expansion.get('clicked', 0)}/{expansion.get('total', 0)} collapse headers")

    # content read straight after a programmatic click may not be attached yet
    page.wait_for_timeout(settings.expand_settle_ms)

    entries = page.evaluate(COLLECT_JS, selectors) or []
    jobs = parse_entries(list(entries), settings, target)
    logger.debug(f"Interactive extraction produced {len(jobs)} records from {len(entries)} headers")
    return jobs
