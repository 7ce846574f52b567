"""Run artifacts written next to the CI job.

  scraped-jobs-<run>-<ms>.json  normalized jobs of one run
  scrape-log-<run>-<ms>.json    run summary plus interpreter/platform info
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Iterable
import json
import platform
import sys
import time

from .models import NormalizedJobRecord, iso_now


def _artifact_path(directory, prefix: str, run_id: str) -> Path:
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    return out_dir / f"{prefix}-{run_id or 'local'}-{int(time.time() * 1000)}.json"


def save_jobs_artifact(jobs: Iterable[NormalizedJobRecord], run_id: str, directory) -> Path:
    payload_jobs = [j.to_payload() for j in jobs]
    data = {
        'timestamp': iso_now(),
        'runId': run_id,
        'totalJobs': len(payload_jobs),
        'jobs': payload_jobs,
    }
    path = _artifact_path(directory, 'scraped-jobs', run_id)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding='utf-8')
    return path


def save_run_log(summary: Dict[str, Any], run_id: str, directory) -> Path:
    data = {
        'timestamp': iso_now(),
        'runId': run_id,
        'python': sys.version.split()[0],
        'platform': platform.platform(),
        'machine': platform.machine(),
    }
    data.update(summary)
    path = _artifact_path(directory, 'scrape-log', run_id)
    path.write_text(json.dumps(data, indent=2, ensure_ascii=False, default=str), encoding='utf-8')
    return path
