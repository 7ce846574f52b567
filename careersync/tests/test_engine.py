from careersync.harvester import engine as engine_mod
from careersync.harvester.engine import ScrapeEngine, build_screenshot_path
from careersync.harvester.settings import EngineConfig
from conftest import FakePage, FakeSession, make_entry

BODY = 'We are hiring a compassionate professional to join our growing team.'


class Sleeper:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def _session_factory(pages=None, open_errors=None):
    pages = list(pages or [])
    open_errors = list(open_errors or [])

    def factory(settings):
        page = pages.pop(0) if pages else FakePage()
        err = open_errors.pop(0) if open_errors else None
        return FakeSession(settings, page=page, open_error=err)
    return factory


def test_exhausted_retries_close_every_session(monkeypatch, fast_settings, target):
    errors = [RuntimeError('launch failed 1'), RuntimeError('launch failed 2'), RuntimeError('launch failed 3')]
    sleeper = Sleeper()
    eng = ScrapeEngine(fast_settings, session_factory=_session_factory(open_errors=errors), sleep=sleeper)
    outcome = eng.scrape(target)
    assert outcome.success is False
    assert outcome.error == 'launch failed 3'
    assert outcome.jobs == [] and outcome.total_count == 0
    assert len(FakeSession.instances) == 3
    assert all(s.closed for s in FakeSession.instances)
    assert sleeper.delays == [1.0, 2.0]


def test_failure_inside_attempt_tears_down(monkeypatch, fast_settings, target):
    def boom(page, settings):
        raise RuntimeError('selector exploded')
    monkeypatch.setattr(engine_mod.readiness, 'wait_for_listings', boom)
    sleeper = Sleeper()
    eng = ScrapeEngine(fast_settings.with_overrides(retries=2), session_factory=_session_factory(), sleep=sleeper)
    outcome = eng.scrape(target)
    assert outcome.success is False
    assert outcome.error == 'selector exploded'
    assert [s.closed for s in FakeSession.instances] == [True, True]
    assert sleeper.delays == [1.0]


def test_recovers_on_later_attempt(fast_settings, target):
    entries = [make_entry(0, 'Cook | Denver, CO', BODY), make_entry(1, 'Baker | Reno, NV', BODY)]
    sleeper = Sleeper()
    eng = ScrapeEngine(
        fast_settings,
        session_factory=_session_factory(pages=[FakePage(), FakePage(entries=entries)],
                                         open_errors=[RuntimeError('flaky'), None]),
        sleep=sleeper,
    )
    outcome = eng.scrape(target, source='test-run')
    assert outcome.success is True
    assert outcome.total_count == 2
    assert [j.title for j in outcome.jobs] == ['Cook', 'Baker']
    assert {j.source for j in outcome.jobs} == {'test-run'}
    assert len({j.processed_at for j in outcome.jobs}) == 1
    assert sleeper.delays == [1.0]
    assert outcome.url == target.resolved_url


def test_no_jobs_indicator_is_success_without_retry(monkeypatch, fast_settings, target):
    page = FakePage(visible_texts={'No current openings'})
    calls = []
    monkeypatch.setattr(engine_mod.orchestrator, 'extract_jobs', lambda *a, **k: calls.append(a) or [])
    sleeper = Sleeper()
    eng = ScrapeEngine(fast_settings, session_factory=_session_factory(pages=[page]), sleep=sleeper)
    outcome = eng.scrape(target)
    assert outcome.success is True
    assert outcome.jobs == [] and outcome.total_count == 0
    assert calls == []
    assert len(FakeSession.instances) == 1
    assert sleeper.delays == []


def test_scraped_at_is_captured_once(monkeypatch, fast_settings, target):
    stamps = iter(['2025-01-01T00:00:00.000Z', '2025-01-01T00:00:05.000Z', '2025-01-01T00:00:09.000Z'])
    monkeypatch.setattr(engine_mod, 'iso_now', lambda: next(stamps))
    eng = ScrapeEngine(fast_settings, session_factory=_session_factory(open_errors=[RuntimeError('x')] * 3),
                       sleep=Sleeper())
    outcome = eng.scrape(target)
    assert outcome.scraped_at == '2025-01-01T00:00:00.000Z'


def test_debug_screenshot(tmp_path, fast_settings, target):
    page = FakePage(entries=[make_entry(0, 'Cook', BODY)])
    cfg = fast_settings.with_overrides(debug=True)
    shot = str(tmp_path / 'shot.png')
    eng = ScrapeEngine(cfg, session_factory=_session_factory(pages=[page]), sleep=Sleeper())
    outcome = eng.scrape(target, screenshot_path=shot)
    assert outcome.screenshot_path == shot
    assert page.screenshots == [(shot, True)]


def test_no_screenshot_without_debug(tmp_path, fast_settings, target):
    page = FakePage(entries=[make_entry(0, 'Cook', BODY)])
    eng = ScrapeEngine(fast_settings, session_factory=_session_factory(pages=[page]), sleep=Sleeper())
    outcome = eng.scrape(target, screenshot_path=str(tmp_path / 'shot.png'))
    assert outcome.screenshot_path is None
    assert page.screenshots == []


def test_single_attempt_never_sleeps(target):
    cfg = EngineConfig(retries=1, spa_settle_ms=0, expand_settle_ms=0, render_settle_ms=0)
    sleeper = Sleeper()
    eng = ScrapeEngine(cfg, session_factory=_session_factory(open_errors=[RuntimeError('down')]), sleep=sleeper)
    assert eng.scrape(target).success is False
    assert sleeper.delays == []


def test_build_screenshot_path(tmp_path):
    path = build_screenshot_path(tmp_path, 'acme/health')
    assert path.startswith(str(tmp_path))
    assert 'scrape-debug-acme_health-' in path and path.endswith('.png')


def test_navigation_timeout_on_every_attempt(fast_settings, target):
    from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

    class TimeoutPage(FakePage):
        def goto(self, url, wait_until=None, timeout=None):
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")

    sleeper = Sleeper()
    pages = [TimeoutPage() for _ in range(3)]
    eng = ScrapeEngine(fast_settings, session_factory=_session_factory(pages=pages), sleep=sleeper)
    outcome = eng.scrape(target)
    assert outcome.success is False
    assert outcome.error == f"Timeout 1000ms exceeded navigating to {target.resolved_url}"
    assert [(s.opened, s.closed) for s in FakeSession.instances] == [(True, True)] * 3
    assert sleeper.delays == [1.0, 2.0]
