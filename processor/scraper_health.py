"""Scraper health classification from run history.

Each scraper is classified as healthy, warning, broken or dormant from its
recent runs. The classification is pure; analyze_scraper_health only adds
the history query around it.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from botocore.exceptions import ClientError

from processor.models import ScraperHealthStatus, ScraperRunRecord

logger = logging.getLogger(__name__)

HEALTHY = 'healthy'
WARNING = 'warning'
BROKEN = 'broken'
DORMANT = 'dormant'

STATUS_ORDER = {BROKEN: 0, WARNING: 1, DORMANT: 2, HEALTHY: 3}

# Scrapers that legitimately return nothing outside their season
SEASONAL_SCRAPERS = frozenset({
    'festspillene',
    'bergenfest',
    'beyondthegates',
    'vvv',
})

BROKEN_ERROR_STREAK = 3
BROKEN_ZERO_STREAK = 6
WARNING_ZERO_STREAK = 2
ZERO_DROP_MIN_AVG = 2
SIGNIFICANT_DROP_MIN_AVG = 5
SIGNIFICANT_DROP_RATIO = 0.3
AUTO_DORMANT_MIN_RUNS = 20
ERROR_MESSAGE_MAX_LENGTH = 100


def _streak(runs: List[ScraperRunRecord], predicate) -> int:
    count = 0
    for run in runs:
        if not predicate(run):
            break
        count += 1
    return count


def _error_text(run: ScraperRunRecord) -> str:
    return (run.error_message or '')[:ERROR_MESSAGE_MAX_LENGTH] or 'unknown'


def _classify(name: str, runs: List[ScraperRunRecord]) -> ScraperHealthStatus:
    """Classify one scraper from its non-skipped runs, most recent first."""
    latest = runs[0]
    avg_found = sum(run.found for run in runs) / len(runs)
    consecutive_zeros = _streak(runs, lambda r: r.found == 0 and not r.errored)
    consecutive_errors = _streak(runs, lambda r: r.errored)

    status = HEALTHY
    reason = ''

    if consecutive_errors >= BROKEN_ERROR_STREAK:
        status = BROKEN
        reason = f"{consecutive_errors} consecutive errors. Last: {_error_text(latest)}"
    elif latest.errored:
        status = WARNING
        reason = f"Error on last run: {_error_text(latest)}"
    elif latest.found == 0 and avg_found >= ZERO_DROP_MIN_AVG:
        if name in SEASONAL_SCRAPERS:
            status = DORMANT
            reason = f"Seasonal scraper, 0 events found (avg: {avg_found:.1f})"
        elif consecutive_zeros >= BROKEN_ZERO_STREAK:
            status = BROKEN
            reason = (
                f"0 events found for {consecutive_zeros} consecutive runs "
                f"(avg was {avg_found:.1f})"
            )
        elif consecutive_zeros >= WARNING_ZERO_STREAK:
            status = WARNING
            reason = f"0 events for {consecutive_zeros} runs (avg: {avg_found:.1f})"
    elif (
        avg_found >= SIGNIFICANT_DROP_MIN_AVG
        and 0 < latest.found < avg_found * SIGNIFICANT_DROP_RATIO
    ):
        status = WARNING
        reason = f"Found {latest.found} events (avg: {avg_found:.1f}), significant drop"
    elif len(runs) >= AUTO_DORMANT_MIN_RUNS and all(
        run.found == 0 and not run.errored for run in runs
    ):
        status = DORMANT
        reason = 'No events found in 14+ days, likely seasonal or source inactive'

    return ScraperHealthStatus(
        name=name,
        status=status,
        reason=reason,
        last_found=latest.found,
        avg_found=round(avg_found, 1),
        consecutive_zeros=consecutive_zeros,
        last_errored=latest.errored,
        last_error_message=latest.error_message or None,
        last_run_at=latest.run_at,
    )


def classify_scrapers(runs: List[ScraperRunRecord]) -> List[ScraperHealthStatus]:
    """
    Classify every scraper that appears in the run history.

    Skipped runs are dropped before any statistic is computed, and a scraper
    with no remaining runs is left out.

    Args:
        runs: Run records ordered most recent first

    Returns:
        One status per scraper, broken first, then warning, dormant, healthy
    """
    by_name: Dict[str, List[ScraperRunRecord]] = {}
    for run in runs:
        by_name.setdefault(run.scraper_name, []).append(run)

    results = []
    for name, scraper_runs in by_name.items():
        real_runs = [run for run in scraper_runs if not run.skipped]
        if not real_runs:
            continue
        results.append(_classify(name, real_runs))

    results.sort(key=lambda status: STATUS_ORDER[status.status])
    return results


def analyze_scraper_health(
    store,
    days: int = 14,
    now: Optional[datetime] = None
) -> List[ScraperHealthStatus]:
    """
    Load recent run history and classify every scraper.

    Args:
        store: Event store providing fetch_run_history
        days: Size of the history window
        now: Reference time, defaults to the current UTC time

    Returns:
        Health statuses, or an empty list if history could not be read
    """
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days)

    try:
        runs = store.fetch_run_history(since)
    except ClientError as e:
        logger.error(f"Error reading scraper run history: {e}")
        return []

    if not runs:
        return []

    statuses = classify_scrapers(runs)
    logger.info(
        "Scraper health classified",
        extra={
            status: sum(1 for s in statuses if s.status == status)
            for status in STATUS_ORDER
        }
    )
    return statuses
