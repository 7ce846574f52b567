import json

import pytest

from careersync.harvester import logging_config


@pytest.fixture
def events_file(tmp_path, monkeypatch):
    path = tmp_path / 'events' / 'scrape.events.jsonl'
    monkeypatch.setattr(logging_config, 'STRUCTURED_LOG_FILE', path)
    monkeypatch.delenv('CAREERSYNC_DISABLE_EVENTS', raising=False)
    monkeypatch.delenv('GITHUB_RUN_ID', raising=False)
    monkeypatch.setattr(logging_config, '_RUN_ID', None)
    return path


def _lines(path):
    return [json.loads(line) for line in path.read_text(encoding='utf-8').splitlines()]


def test_events_carry_explicit_run_id(events_file):
    logging_config.set_run_id('1234')
    logging_config.log_event('scrape_start', url='https://example.test', retries=3)
    [rec] = _lines(events_file)
    assert rec['run_id'] == '1234'
    assert rec['event'] == 'scrape_start'
    assert rec['retries'] == 3


def test_run_id_defaults_to_ci_env_then_local(events_file, monkeypatch):
    logging_config.log_event('a')
    monkeypatch.setenv('GITHUB_RUN_ID', '77')
    logging_config.log_event('b')
    assert [r['run_id'] for r in _lines(events_file)] == ['local', '77']


def test_disabled_events_write_nothing(events_file, monkeypatch):
    monkeypatch.setenv('CAREERSYNC_DISABLE_EVENTS', '1')
    logging_config.log_event('scrape_start')
    assert not events_file.exists()
