from __future__ import annotations
from typing import List, Optional
import logging

from ..logging_config import log_event
from ..models import RawJobRecord
from ..settings import EngineConfig, TargetConfig
from . import embedded, expansion

logger = logging.getLogger(__name__)


def extract_jobs(page, settings: EngineConfig, target: Optional[TargetConfig] = None) -> List[RawJobRecord]:
    """Run the interactive strategy, falling back to embedded metadata only when it finds nothing.

    Results from the two strategies are never merged.
    """
    jobs = expansion.extract_expanded_jobs(page, settings, target)
    if jobs:
        logger.info(f"Extracted {len(jobs)} jobs via interactive expansion")
        log_event('strategy_selected', strategy='expansion', count=len(jobs))
        return jobs

    jobs = embedded.extract_embedded_jobs(page)
    if jobs:
        logger.info(f"Extracted {len(jobs)} jobs via embedded JSON-LD")
        log_event('strategy_selected', strategy='json_ld', count=len(jobs))
        return jobs

    # either a genuinely empty board or markup the strategies no longer understand
    logger.error('No job data could be extracted from page')
    log_event('extraction_empty', url=getattr(page, 'url', None))
    return []
