from careersync.harvester.extract import orchestrator
from careersync.harvester.models import RawJobRecord


class CountingStrategy:
    def __init__(self, result):
        self.result = result
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        return list(self.result)


def _patch(monkeypatch, primary, fallback):
    monkeypatch.setattr(orchestrator.expansion, 'extract_expanded_jobs', primary)
    monkeypatch.setattr(orchestrator.embedded, 'extract_embedded_jobs', fallback)


def test_primary_result_skips_fallback(monkeypatch, fast_settings, target):
    primary = CountingStrategy([RawJobRecord(title='A')])
    fallback = CountingStrategy([RawJobRecord(title='B')])
    _patch(monkeypatch, primary, fallback)
    jobs = orchestrator.extract_jobs(object(), fast_settings, target)
    assert [j.title for j in jobs] == ['A']
    assert (primary.calls, fallback.calls) == (1, 0)


def test_fallback_runs_once_when_primary_empty(monkeypatch, fast_settings, target):
    primary = CountingStrategy([])
    fallback = CountingStrategy([RawJobRecord(title='B'), RawJobRecord(title='C')])
    _patch(monkeypatch, primary, fallback)
    jobs = orchestrator.extract_jobs(object(), fast_settings, target)
    assert [j.title for j in jobs] == ['B', 'C']
    assert (primary.calls, fallback.calls) == (1, 1)


def test_both_empty_returns_empty(monkeypatch, fast_settings, target):
    primary = CountingStrategy([])
    fallback = CountingStrategy([])
    _patch(monkeypatch, primary, fallback)
    assert orchestrator.extract_jobs(object(), fast_settings, target) == []
    assert (primary.calls, fallback.calls) == (1, 1)
