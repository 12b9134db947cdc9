"""Base class shared by the per-source event scrapers."""
import logging
import time
from typing import List, Optional

import requests

from processor.event_processor import EventProcessor
from processor.models import RawEvent, ScrapeResult

logger = logging.getLogger(__name__)


class BaseScraper:
    """
    Fetch one source and feed its events into the event store.

    Subclasses set ``source`` and implement ``fetch_events``.
    """

    source = ''
    USER_AGENT = 'Gaari-Bergen-Events/1.0 (gaari.bergen@proton.me)'
    MAX_RETRIES = 3
    BASE_DELAY = 1  # seconds, doubled after every failed attempt
    REQUEST_DELAY = 2  # seconds between requests to the same host

    def __init__(self, timeout: int = 15):
        """
        Initialize the scraper.

        Args:
            timeout: HTTP request timeout in seconds (default: 15)
        """
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': self.USER_AGENT,
            'Accept': 'text/html,application/json',
            'Accept-Language': 'nb-NO,nb;q=0.9,no;q=0.8,en;q=0.5',
        })

    def fetch_events(self) -> List[RawEvent]:
        """Fetch the source's current events."""
        raise NotImplementedError

    def scrape(self, store, processor: EventProcessor) -> ScrapeResult:
        """
        Fetch events and insert the ones not yet stored.

        Args:
            store: Event store providing exists and insert
            processor: Processor used to normalize raw events

        Returns:
            ScrapeResult with raw events found and events inserted
        """
        logger.info(f"[{self.source}] Fetching events")
        raw_events = self.fetch_events()
        result = ScrapeResult(found=len(raw_events))

        new_events = [
            event for event in raw_events if not store.exists(event.source_url)
        ]
        for candidate in processor.process_events(new_events, self.source):
            if store.insert(candidate):
                logger.info(
                    f"[{self.source}] + {candidate.title} @ {candidate.venue_name} "
                    f"({candidate.category})"
                )
                result.inserted += 1

        logger.info(
            f"[{self.source}] Found {result.found}, inserted {result.inserted} new"
        )
        return result

    def fetch_html(self, url: str) -> Optional[str]:
        """
        Fetch a page with retry logic.

        Args:
            url: Page URL

        Returns:
            Response body, or None if all retry attempts fail
        """
        for attempt in range(self.MAX_RETRIES):
            try:
                response = self.session.get(url, timeout=self.timeout)
                response.raise_for_status()
                return response.text

            except requests.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.BASE_DELAY * (2 ** attempt)
                    logger.warning(
                        f"[{self.source}] Request to {url} failed "
                        f"(attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"[{self.source}] All {self.MAX_RETRIES} attempts for {url} "
                        f"failed. Last error: {e}"
                    )
        return None

    def polite_delay(self) -> None:
        """Pause between consecutive requests to the same host."""
        time.sleep(self.REQUEST_DELAY)
