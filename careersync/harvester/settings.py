"""Engine and target settings with environment + runtime config overlay.
Provides typed accessors to avoid scattering magic numbers through the engine.
"""
from __future__ import annotations
from pathlib import Path
import os, yaml
from dataclasses import dataclass, replace
from typing import Optional, Tuple

_RUNTIME_CACHE: dict | None = None

CONFIG_DIR = Path(__file__).resolve().parent.parent / 'config'

DEFAULT_BASE_URL = 'https://drivehris.app'
DEFAULT_USER_AGENT = 'CareerSync-Scraper/2.0 (Playwright)'
DEFAULT_WAIT_SELECTOR = '.el-collapse-item, .job-listing, .job-item, .career-listing'
DEFAULT_BROWSER_ARGS = (
    '--no-sandbox',
    '--disable-dev-shm-usage',
    '--disable-gpu',
    '--disable-background-timer-throttling',
    '--disable-backgrounding-occluded-windows',
    '--disable-renderer-backgrounding',
)
DEFAULT_BLOCKED_RESOURCES = ('image', 'stylesheet', 'font', 'media')


class ConfigError(Exception):
    """Raised when required configuration is missing or unusable."""


def _load_runtime() -> dict:
    global _RUNTIME_CACHE
    if _RUNTIME_CACHE is None:
        cfg_file = CONFIG_DIR / 'runtime.yml'
        if cfg_file.exists():
            try:
                _RUNTIME_CACHE = yaml.safe_load(cfg_file.read_text(encoding='utf-8')) or {}
            except Exception:
                _RUNTIME_CACHE = {}
        else:
            _RUNTIME_CACHE = {}
    return _RUNTIME_CACHE


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is not None:
        try:
            return int(v)
        except ValueError:
            return default
    try:
        return int(_load_runtime().get(name.lower(), default))
    except (TypeError, ValueError):
        return default


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    if v is not None:
        return v
    return str(_load_runtime().get(name.lower(), default))


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        v = _load_runtime().get(name.lower())
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    return str(v).strip().lower() in {'1', 'true', 'yes', 'on'}


def _env_list(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    v = os.getenv(name)
    if v is None:
        v = _load_runtime().get(name.lower())
    if v is None:
        return default
    if isinstance(v, (list, tuple)):
        return tuple(str(x) for x in v)
    return tuple(p.strip() for p in str(v).split(',') if p.strip())


@dataclass(frozen=True)
class EngineConfig:
    headless: bool = True
    timeout_ms: int = 30000
    wait_for_selector: str = DEFAULT_WAIT_SELECTOR
    retries: int = 3
    debug: bool = False
    user_agent: str = DEFAULT_USER_AGENT
    browser_args: Tuple[str, ...] = DEFAULT_BROWSER_ARGS
    blocked_resource_types: Tuple[str, ...] = DEFAULT_BLOCKED_RESOURCES
    # delays (ms)
    render_settle_ms: int = 2000
    spa_settle_ms: int = 3000
    expand_settle_ms: int = 2000
    retry_backoff_ms: int = 1000
    # Element UI collapse list: headers and content wraps are index-parallel
    header_selector: str = '.el-collapse-item__header'
    content_selector: str = '.el-collapse-item__content'
    min_content_length: int = 20
    fallback_location: str = 'Not specified'
    organization_name: str = ''
    apply_url_template: str = '{careers_url}'

    def __post_init__(self):
        if self.retries < 1:
            object.__setattr__(self, 'retries', 1)
        if self.timeout_ms <= 0:
            raise ConfigError(f"timeout_ms must be positive, got {self.timeout_ms}")

    def with_overrides(self, **overrides) -> 'EngineConfig':
        clean = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **clean) if clean else self


def load_engine_config(**overrides) -> EngineConfig:
    base = EngineConfig()
    cfg = EngineConfig(
        headless=_env_bool('CAREERSYNC_HEADLESS', base.headless),
        timeout_ms=_env_int('CAREERSYNC_TIMEOUT_MS', base.timeout_ms),
        wait_for_selector=_env_str('CAREERSYNC_WAIT_FOR_SELECTOR', base.wait_for_selector),
        retries=_env_int('CAREERSYNC_RETRIES', base.retries),
        debug=_env_bool('CAREERSYNC_DEBUG', base.debug),
        user_agent=_env_str('CAREERSYNC_USER_AGENT', base.user_agent),
        browser_args=_env_list('CAREERSYNC_BROWSER_ARGS', base.browser_args),
        blocked_resource_types=_env_list('CAREERSYNC_BLOCKED_RESOURCES', base.blocked_resource_types),
        render_settle_ms=_env_int('CAREERSYNC_RENDER_SETTLE_MS', base.render_settle_ms),
        spa_settle_ms=_env_int('CAREERSYNC_SPA_SETTLE_MS', base.spa_settle_ms),
        expand_settle_ms=_env_int('CAREERSYNC_EXPAND_SETTLE_MS', base.expand_settle_ms),
        retry_backoff_ms=_env_int('CAREERSYNC_RETRY_BACKOFF_MS', base.retry_backoff_ms),
        header_selector=_env_str('CAREERSYNC_HEADER_SELECTOR', base.header_selector),
        content_selector=_env_str('CAREERSYNC_CONTENT_SELECTOR', base.content_selector),
        min_content_length=_env_int('CAREERSYNC_MIN_CONTENT_LENGTH', base.min_content_length),
        fallback_location=_env_str('CAREERSYNC_FALLBACK_LOCATION', base.fallback_location),
        organization_name=_env_str('CAREERSYNC_ORGANIZATION_NAME', base.organization_name),
        apply_url_template=_env_str('CAREERSYNC_APPLY_URL_TEMPLATE', base.apply_url_template),
    )
    return cfg.with_overrides(**overrides)


@dataclass(frozen=True)
class TargetConfig:
    company_id: str
    careers_url: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL

    @property
    def resolved_url(self) -> str:
        # explicit careers page wins over the standard listing path
        if self.careers_url:
            return self.careers_url
        return f"{self.base_url.rstrip('/')}/careers/{self.company_id}/list"


def load_target_config(company_id: Optional[str] = None, careers_url: Optional[str] = None) -> TargetConfig:
    cid = company_id or os.getenv('DRIVEHR_COMPANY_ID') or _load_runtime().get('drivehr_company_id')
    if not cid:
        raise ConfigError('DRIVEHR_COMPANY_ID is required')
    url = careers_url or os.getenv('CAREERS_URL') or None
    return TargetConfig(
        company_id=str(cid),
        careers_url=url,
        base_url=_env_str('DRIVEHR_BASE_URL', DEFAULT_BASE_URL),
    )
