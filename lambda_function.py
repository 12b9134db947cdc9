"""AWS Lambda handlers for the Bergen events scrape cycle and scraper health."""
import json
import logging
import os
import time
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Dict, List

from processor.dedup import deduplicate
from processor.event_processor import EventProcessor
from processor.models import CycleResult, ScrapeResult, ScraperRunRecord
from processor.scraper_health import analyze_scraper_health
from scraper.sources import SCRAPERS, build_scraper
from storage.dynamodb_manager import DynamoDBManager

# Attributes every LogRecord has; anything else came in through `extra`
_RECORD_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}

# Cycle is treated as failed when nothing was inserted and more scrapers than
# this came back empty, lowered to half the scrapers run for small registries
CRITICAL_FAILED_SCRAPERS = 5


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _failure_threshold(scrapers_run: int) -> int:
    """Number of empty scrapers a cycle without inserts may tolerate."""
    return min(CRITICAL_FAILED_SCRAPERS, scrapers_run // 2)


def _make_store() -> DynamoDBManager:
    return DynamoDBManager(
        events_table_name=os.environ.get('EVENTS_TABLE', 'bergen-events'),
        runs_table_name=os.environ.get('RUNS_TABLE', 'bergen-scraper-runs')
    )


def _run_record(name: str, result: ScrapeResult, errored: bool = False,
                error_message: str = None, skipped: bool = False) -> ScraperRunRecord:
    return ScraperRunRecord(
        scraper_name=name,
        found=result.found,
        inserted=result.inserted,
        errored=errored,
        error_message=error_message,
        skipped=skipped,
        run_at=datetime.now(timezone.utc).isoformat()
    )


def run_cycle(
    store,
    processor: EventProcessor,
    scraper_names: List[str],
    timeout: int = 15,
    deadline_seconds: float = 780
) -> CycleResult:
    """
    Run one full scrape cycle.

    Stages run strictly in order: expire old events, run every scraper
    sequentially, then deduplicate once. Scrapers not yet started when the
    deadline passes are recorded as skipped.

    Args:
        store: Event store
        processor: Processor shared by all scrapers
        scraper_names: Registered scraper names, in run order
        timeout: HTTP request timeout in seconds
        deadline_seconds: Time after which no new scraper is started

    Returns:
        CycleResult summary
    """
    logger = logging.getLogger(__name__)
    start_time = time.time()
    errors = []

    expired = 0
    try:
        expired = store.remove_expired_events()
        logger.info(f"Removed {expired} expired events")
    except Exception as e:
        error_msg = f"Failed to remove expired events: {e}"
        logger.error(error_msg)
        errors.append(error_msg)

    results: Dict[str, ScrapeResult] = {}
    for index, name in enumerate(scraper_names):
        if time.time() - start_time > deadline_seconds:
            remaining = scraper_names[index:]
            logger.warning(
                f"Pipeline deadline reached, skipping remaining scrapers: "
                f"{', '.join(remaining)}"
            )
            for skipped_name in remaining:
                if skipped_name in SCRAPERS:
                    store.record_run(_run_record(skipped_name, ScrapeResult(), skipped=True))
            break

        if name not in SCRAPERS:
            logger.error(
                f"Unknown scraper: {name}. Available: {', '.join(SCRAPERS)}"
            )
            continue

        try:
            result = build_scraper(name, timeout=timeout).scrape(store, processor)
            record = _run_record(name, result)
        except Exception as e:
            logger.error(
                f"[{name}] Failed: {e}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            result = ScrapeResult()
            record = _run_record(name, result, errored=True, error_message=str(e))
            errors.append(f"{name}: {e}")

        results[name] = result
        store.record_run(record)

    duplicates = 0
    try:
        duplicates = deduplicate(store)
    except Exception as e:
        error_msg = f"Deduplication failed: {e}"
        logger.error(error_msg, exc_info=True)
        errors.append(error_msg)

    failed = [
        name for name, result in results.items()
        if result.found == 0 and result.inserted == 0
    ]

    return CycleResult(
        scrapers_run=len(results),
        total_found=sum(r.found for r in results.values()),
        total_inserted=sum(r.inserted for r in results.values()),
        failed_scrapers=failed,
        expired_removed=expired,
        duplicates_removed=duplicates,
        duration_seconds=round(time.time() - start_time, 2),
        errors=errors
    )


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler: run one scrape cycle.

    Args:
        event: EventBridge event payload; an optional "scrapers" list
            restricts the run to those sources
        context: Lambda context object

    Returns:
        Response dict with statusCode and summary statistics
    """
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '15'))
    deadline_seconds = int(os.environ.get('PIPELINE_DEADLINE_SECONDS', '780'))

    setup_logging(log_level)
    logger = logging.getLogger(__name__)

    start_time = time.time()
    selected = (event or {}).get('scrapers') or list(SCRAPERS)
    logger.info(
        "Scrape cycle started",
        extra={'scrapers': selected, 'deadline_seconds': deadline_seconds}
    )

    try:
        store = _make_store()
        result = run_cycle(
            store,
            EventProcessor(),
            selected,
            timeout=timeout_seconds,
            deadline_seconds=deadline_seconds
        )
    except Exception as e:
        duration = time.time() - start_time
        logger.error(
            f"Scrape cycle failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Scrape cycle failed',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        }

    summary = asdict(result)
    logger.info("Scrape cycle completed", extra=summary)

    threshold = _failure_threshold(result.scrapers_run)
    if result.total_inserted == 0 and len(result.failed_scrapers) > threshold:
        logger.critical("No events inserted and multiple scrapers failed")
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'No events inserted and multiple scrapers failed',
                'statistics': summary
            })
        }

    return {
        'statusCode': 200,
        'body': json.dumps({
            'message': 'Scrape cycle completed successfully',
            'statistics': summary
        })
    }


def health_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler: classify scraper health from recent run history.

    Args:
        event: Invocation payload (unused)
        context: Lambda context object

    Returns:
        Response dict with one status per scraper, most severe first
    """
    setup_logging(os.environ.get('LOG_LEVEL', 'INFO'))
    logger = logging.getLogger(__name__)
    days = int(os.environ.get('HEALTH_WINDOW_DAYS', '14'))

    try:
        statuses = analyze_scraper_health(_make_store(), days=days)
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}", exc_info=True)
        return {
            'statusCode': 500,
            'body': json.dumps({
                'message': 'Health check failed',
                'error': str(e),
                'error_type': type(e).__name__
            })
        }

    return {
        'statusCode': 200,
        'body': json.dumps({
            'scrapers': [asdict(status) for status in statuses]
        })
    }
