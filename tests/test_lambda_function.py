"""Integration tests for the Lambda handlers and the scrape cycle."""
import json
import logging
import os
from unittest.mock import Mock, patch

import pytest

from lambda_function import (
    JsonFormatter,
    health_handler,
    lambda_handler,
    run_cycle,
    setup_logging,
)
from processor.event_processor import EventProcessor
from processor.models import CycleResult, ScrapeResult, ScraperRunRecord


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo setup_logging so handlers do not leak between tests."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def mock_env():
    """Set up environment variables for testing."""
    env_vars = {
        'EVENTS_TABLE': 'test-bergen-events',
        'RUNS_TABLE': 'test-bergen-scraper-runs',
        'LOG_LEVEL': 'INFO',
        'TIMEOUT_SECONDS': '10',
        'PIPELINE_DEADLINE_SECONDS': '780',
        'HEALTH_WINDOW_DAYS': '14'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def mock_context():
    """Create a mock Lambda context."""
    context = Mock()
    context.function_name = 'test-function'
    context.memory_limit_in_mb = 512
    context.invoked_function_arn = 'arn:aws:lambda:us-east-1:123456789012:function:test-function'
    context.aws_request_id = 'test-request-id'
    return context


@pytest.fixture
def mock_store():
    """Create a mock event store."""
    store = Mock()
    store.remove_expired_events.return_value = 2
    store.fetch_all_for_dedup.return_value = []
    return store


def scraper_returning(found, inserted):
    scraper = Mock()
    scraper.scrape.return_value = ScrapeResult(found=found, inserted=inserted)
    return scraper


def recorded_runs(store):
    return [c.args[0] for c in store.record_run.call_args_list]


class TestRunCycle:
    """Test cases for run_cycle."""

    @patch('lambda_function.build_scraper')
    def test_runs_every_scraper_then_dedups_once(self, mock_build, mock_store):
        """Test stage order: expire, scrape, record, dedup."""
        mock_build.side_effect = lambda name, timeout: scraper_returning(5, 2)

        result = run_cycle(mock_store, EventProcessor(), ['ticketco', 'bergenkjott'], timeout=7)

        assert [c.args[0] for c in mock_build.call_args_list] == ['ticketco', 'bergenkjott']
        assert all(c.kwargs['timeout'] == 7 for c in mock_build.call_args_list)
        assert result.scrapers_run == 2
        assert result.total_found == 10
        assert result.total_inserted == 4
        assert result.expired_removed == 2
        assert result.failed_scrapers == []

        calls = [name for name, _, _ in mock_store.method_calls]
        assert calls[0] == 'remove_expired_events'
        assert calls.count('fetch_all_for_dedup') == 1
        assert calls.index('fetch_all_for_dedup') > max(
            i for i, name in enumerate(calls) if name == 'record_run'
        )

    @patch('lambda_function.build_scraper')
    def test_records_run_for_each_scraper(self, mock_build, mock_store):
        """Test a run record is written per scraper."""
        mock_build.side_effect = lambda name, timeout: scraper_returning(0, 0)

        result = run_cycle(mock_store, EventProcessor(), ['kulturikveld'])

        runs = recorded_runs(mock_store)
        assert len(runs) == 1
        assert isinstance(runs[0], ScraperRunRecord)
        assert runs[0].scraper_name == 'kulturikveld'
        assert runs[0].errored is False
        assert runs[0].skipped is False
        assert result.failed_scrapers == ['kulturikveld']

    @patch('lambda_function.build_scraper')
    def test_unknown_scraper_is_skipped(self, mock_build, mock_store):
        """Test unknown names are logged and not run or recorded."""
        mock_build.side_effect = lambda name, timeout: scraper_returning(1, 1)

        result = run_cycle(mock_store, EventProcessor(), ['nosuchsource', 'ticketco'])

        assert [c.args[0] for c in mock_build.call_args_list] == ['ticketco']
        assert [r.scraper_name for r in recorded_runs(mock_store)] == ['ticketco']
        assert result.scrapers_run == 1

    @patch('lambda_function.build_scraper')
    def test_scraper_failure_is_recorded_and_cycle_continues(self, mock_build, mock_store):
        """Test a raising scraper yields an errored run record."""
        broken = Mock()
        broken.scrape.side_effect = Exception('HTTP 503')
        mock_build.side_effect = [broken, scraper_returning(4, 4)]

        result = run_cycle(mock_store, EventProcessor(), ['ticketco', 'bergenkjott'])

        runs = recorded_runs(mock_store)
        assert runs[0].scraper_name == 'ticketco'
        assert runs[0].errored is True
        assert runs[0].error_message == 'HTTP 503'
        assert runs[1].errored is False
        assert result.total_inserted == 4
        assert result.failed_scrapers == ['ticketco']
        assert any('HTTP 503' in error for error in result.errors)

    @patch('lambda_function.build_scraper')
    def test_deadline_skips_remaining_scrapers(self, mock_build, mock_store):
        """Test scrapers not started before the deadline are recorded as skipped."""
        clock = {'now': 1000.0}

        def slow_scraper(name, timeout):
            scraper = Mock()

            def scrape(store, processor):
                clock['now'] += 100
                return ScrapeResult(found=3, inserted=1)

            scraper.scrape.side_effect = scrape
            return scraper

        mock_build.side_effect = slow_scraper

        with patch('lambda_function.time.time', side_effect=lambda: clock['now']):
            result = run_cycle(
                mock_store, EventProcessor(),
                ['ticketco', 'nosuchsource', 'bergenkjott', 'kulturikveld'],
                deadline_seconds=50
            )

        assert mock_build.call_count == 1
        assert result.scrapers_run == 1
        runs = recorded_runs(mock_store)
        assert [(r.scraper_name, r.skipped) for r in runs] == [
            ('ticketco', False),
            ('bergenkjott', True),
            ('kulturikveld', True),
        ]
        # Dedup still runs after a cut-short cycle
        mock_store.fetch_all_for_dedup.assert_called_once()

    @patch('lambda_function.build_scraper')
    def test_expire_and_dedup_failures_do_not_stop_cycle(self, mock_build, mock_store):
        """Test maintenance failures are reported in errors."""
        mock_store.remove_expired_events.side_effect = Exception('scan failed')
        mock_store.fetch_all_for_dedup.side_effect = Exception('dedup failed')
        mock_build.side_effect = lambda name, timeout: scraper_returning(2, 1)

        result = run_cycle(mock_store, EventProcessor(), ['ticketco'])

        assert result.total_inserted == 1
        assert result.expired_removed == 0
        assert result.duplicates_removed == 0
        assert len(result.errors) == 2


class TestLambdaHandler:
    """Test cases for Lambda handler."""

    @patch('lambda_function.build_scraper')
    @patch('lambda_function._make_store')
    def test_successful_cycle(self, mock_make_store, mock_build, mock_store, mock_env, mock_context):
        """Test successful scrape cycle."""
        mock_make_store.return_value = mock_store
        mock_build.side_effect = lambda name, timeout: scraper_returning(6, 3)

        response = lambda_handler({'scrapers': ['ticketco', 'kulturikveld']}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['message'] == 'Scrape cycle completed successfully'
        assert body['statistics']['scrapers_run'] == 2
        assert body['statistics']['total_inserted'] == 6
        assert body['statistics']['expired_removed'] == 2
        assert all(c.kwargs['timeout'] == 10 for c in mock_build.call_args_list)

    @patch('lambda_function.build_scraper')
    @patch('lambda_function._make_store')
    def test_runs_all_registered_scrapers_by_default(
        self, mock_make_store, mock_build, mock_store, mock_env, mock_context
    ):
        """Test an empty payload runs every registered scraper."""
        mock_make_store.return_value = mock_store
        mock_build.side_effect = lambda name, timeout: scraper_returning(1, 1)

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        assert [c.args[0] for c in mock_build.call_args_list] == [
            'ticketco', 'bergenkjott', 'kulturikveld'
        ]

    @patch('lambda_function.run_cycle')
    @patch('lambda_function._make_store')
    def test_many_failed_scrapers_without_inserts(
        self, mock_make_store, mock_run_cycle, mock_env, mock_context
    ):
        """Test the cycle is reported as failed when nothing came in."""
        mock_run_cycle.return_value = CycleResult(
            scrapers_run=6,
            total_found=0,
            total_inserted=0,
            failed_scrapers=['a', 'b', 'c', 'd', 'e', 'f']
        )

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'No events inserted and multiple scrapers failed'
        assert body['statistics']['failed_scrapers'] == ['a', 'b', 'c', 'd', 'e', 'f']

    @patch('lambda_function.run_cycle')
    @patch('lambda_function._make_store')
    def test_few_failed_scrapers_is_success(
        self, mock_make_store, mock_run_cycle, mock_env, mock_context
    ):
        """Test a handful of empty scrapers does not fail a large cycle."""
        mock_run_cycle.return_value = CycleResult(
            scrapers_run=12,
            total_found=40,
            total_inserted=0,
            failed_scrapers=['a', 'b', 'c', 'd', 'e']
        )

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200

    @patch('lambda_function.build_scraper')
    @patch('lambda_function._make_store')
    def test_all_registered_scrapers_empty(
        self, mock_make_store, mock_build, mock_store, mock_env, mock_context
    ):
        """Test the cycle fails when every registered scraper comes back empty."""
        mock_make_store.return_value = mock_store
        mock_build.side_effect = lambda name, timeout: scraper_returning(0, 0)

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['statistics']['scrapers_run'] == 3
        assert len(body['statistics']['failed_scrapers']) == 3

    @patch('lambda_function.build_scraper')
    @patch('lambda_function._make_store')
    def test_one_empty_scraper_of_three_is_success(
        self, mock_make_store, mock_build, mock_store, mock_env, mock_context
    ):
        """Test a single empty source does not fail a small cycle."""
        mock_make_store.return_value = mock_store
        mock_build.side_effect = lambda name, timeout: (
            scraper_returning(0, 0) if name == 'ticketco' else scraper_returning(4, 0)
        )

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 200
        body = json.loads(response['body'])
        assert body['statistics']['failed_scrapers'] == ['ticketco']

    @patch('lambda_function._make_store')
    def test_store_failure(self, mock_make_store, mock_env, mock_context):
        """Test error handling when the store cannot be created."""
        mock_make_store.side_effect = Exception('No credentials')

        response = lambda_handler({}, mock_context)

        assert response['statusCode'] == 500
        body = json.loads(response['body'])
        assert body['message'] == 'Scrape cycle failed'
        assert 'No credentials' in body['error']
        assert body['error_type'] == 'Exception'
        assert 'duration_seconds' in body


class TestHealthHandler:
    """Test cases for the health handler."""

    @patch('lambda_function._make_store')
    def test_health_report(self, mock_make_store, mock_env, mock_context):
        """Test statuses are returned most severe first."""
        store = Mock()
        store.fetch_run_history.return_value = [
            ScraperRunRecord('ticketco', 12, 3, False, None, False, '2026-10-19T06:00:00+00:00'),
            ScraperRunRecord('kode', 0, 0, True, 'HTTP 503', False, '2026-10-19T06:00:00+00:00'),
        ]
        mock_make_store.return_value = store

        response = health_handler({}, mock_context)

        assert response['statusCode'] == 200
        scrapers = json.loads(response['body'])['scrapers']
        assert [(s['name'], s['status']) for s in scrapers] == [
            ('kode', 'warning'),
            ('ticketco', 'healthy'),
        ]
        assert scrapers[0]['last_error_message'] == 'HTTP 503'

    @patch('lambda_function._make_store')
    def test_health_failure(self, mock_make_store, mock_env, mock_context):
        """Test error handling when the store cannot be created."""
        mock_make_store.side_effect = Exception('No credentials')

        response = health_handler({}, mock_context)

        assert response['statusCode'] == 500
        assert json.loads(response['body'])['message'] == 'Health check failed'


class TestSetupLogging:
    """Test cases for logging setup."""

    def test_setup_logging_default_level(self):
        """Test logging setup with default INFO level."""
        setup_logging()
        assert logging.getLogger().level == logging.INFO

    def test_setup_logging_debug_level(self):
        """Test logging setup with DEBUG level."""
        setup_logging('DEBUG')
        assert logging.getLogger().level == logging.DEBUG

    def test_setup_logging_unknown_level(self):
        """Test an unknown level falls back to INFO."""
        setup_logging('CHATTY')
        assert logging.getLogger().level == logging.INFO

    def test_json_formatter_includes_extra_fields(self):
        """Test fields passed through `extra` end up in the JSON line."""
        record = logging.LogRecord(
            'lambda_function', logging.INFO, __file__, 1, 'Found %s events', (3,), None
        )
        record.scrapers = ['ticketco']

        data = json.loads(JsonFormatter().format(record))

        assert data['message'] == 'Found 3 events'
        assert data['level'] == 'INFO'
        assert data['logger'] == 'lambda_function'
        assert data['scrapers'] == ['ticketco']
        assert 'args' not in data
