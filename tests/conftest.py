"""Shared pytest fixtures."""
import pytest

from processor.models import RawEvent, StoredEvent


@pytest.fixture(autouse=True)
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def make_stored_event():
    """Factory for StoredEvent objects with sensible defaults."""
    counter = {'n': 0}

    def _make(title='Test Event', date_start='2026-03-15T18:00:00+00:00',
              source='unknownsource', **kwargs):
        counter['n'] += 1
        kwargs.setdefault('id', f"event-{counter['n']}")
        return StoredEvent(title=title, date_start=date_start, source=source, **kwargs)

    return _make


@pytest.fixture
def make_raw_event():
    """Factory for RawEvent objects with sensible defaults."""

    def _make(**kwargs):
        defaults = {
            'title': 'Konsert med Bergen Filharmoniske',
            'date_text': '2026-03-15T19:00:00+01:00',
            'venue_name': 'Grieghallen',
            'source_url': 'https://grieghallen.no/event/1',
        }
        defaults.update(kwargs)
        return RawEvent(**defaults)

    return _make
