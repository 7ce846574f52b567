"""CareerSync package public API."""
from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("careersync")
except Exception:  # fallback when not installed
    __version__ = "2.0.0"

from .harvester.engine import ScrapeEngine  # re-export
from .harvester.models import NormalizedJobRecord, RawJobRecord, ScrapeOutcome  # re-export
from .harvester.settings import EngineConfig, TargetConfig  # re-export

__all__ = ["__version__","ScrapeEngine","EngineConfig","TargetConfig","RawJobRecord","NormalizedJobRecord","ScrapeOutcome"]
