from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def iso_now() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a Z suffix."""
    return to_iso(datetime.now(timezone.utc))


def to_iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class RawJobRecord(BaseModel):
    """Unvalidated extraction output.

    Every field is optional and loosely typed; alternate field names used by
    different page layouts are kept side by side and resolved by the normalizer.
    """
    model_config = ConfigDict(extra='allow', frozen=True)

    id: Any = None
    job_id: Any = None
    title: Any = None
    department: Any = None
    category: Any = None
    division: Any = None
    location: Any = None
    city: Any = None
    office: Any = None
    type: Any = None
    employment_type: Any = None
    schedule: Any = None
    pay_type: Any = None
    description: Any = None
    summary: Any = None
    overview: Any = None
    posted_date: Any = None
    created_at: Any = None
    date_posted: Any = None
    apply_url: Any = None
    application_url: Any = None
    url: Any = None


class NormalizedJobRecord(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    title: str
    description: str = ''
    location: str = ''
    department: str = ''
    type: str
    posted_date: str
    apply_url: str = ''
    source: str
    raw_data: RawJobRecord
    processed_at: str

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=False)


class ScrapeOutcome(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    jobs: List[NormalizedJobRecord] = Field(default_factory=list)
    total_count: int = 0
    url: str
    scraped_at: str
    error: Optional[str] = None
    screenshot_path: Optional[str] = None
