"""Event processor for validating and normalizing scraped events."""
import logging
from typing import List, Optional

from processor.categories import map_bydel, map_category
from processor.models import CandidateEvent, RawEvent
from processor.normalize import (
    make_description,
    make_slug,
    parse_norwegian_date,
    strip_html,
    to_utc_iso,
)
from processor.venues import resolve_ticket_url

logger = logging.getLogger(__name__)


class EventProcessor:
    """Processor turning raw scraped events into candidate events."""

    MAX_TITLE_LENGTH = 200
    MAX_DESCRIPTION_LENGTH = 2000

    def process_events(self, raw_events: List[RawEvent], source: str) -> List[CandidateEvent]:
        """
        Process and validate raw events from one source.

        Args:
            raw_events: List of RawEvent objects from a scraper
            source: Id of the scraper that produced them

        Returns:
            List of valid CandidateEvent objects
        """
        candidates = []

        for event in raw_events:
            try:
                candidate = self.process_event(event, source)
                if candidate:
                    candidates.append(candidate)
            except Exception as e:
                logger.warning(
                    f"Failed to process event '{event.title}': {e}"
                )
                continue

        logger.info(
            f"Processed {len(candidates)} valid events out of "
            f"{len(raw_events)} total events from {source}"
        )
        return candidates

    def process_event(self, event: RawEvent, source: str) -> Optional[CandidateEvent]:
        """
        Process a single event.

        Args:
            event: Raw event
            source: Id of the producing scraper

        Returns:
            CandidateEvent or None if validation fails
        """
        if not self._validate_required_fields(event):
            return None

        date_start = parse_norwegian_date(event.date_text)
        if not date_start:
            logger.warning(
                f"Invalid date format for event '{event.title}': {event.date_text}"
            )
            return None

        date_end = None
        if event.date_end_text:
            parsed_end = parse_norwegian_date(event.date_end_text)
            if parsed_end and parsed_end >= date_start:
                date_end = to_utc_iso(parsed_end)

        title = event.title.strip()[:self.MAX_TITLE_LENGTH]
        venue_name = event.venue_name.strip()
        category = map_category(event.category_text)
        date_start_iso = to_utc_iso(date_start)

        description = strip_html(event.description)[:self.MAX_DESCRIPTION_LENGTH]
        if not description:
            description = make_description(title, venue_name, category)

        return CandidateEvent(
            title=title,
            venue_name=venue_name,
            date_start=date_start_iso,
            date_end=date_end,
            category=category,
            bydel=map_bydel(venue_name),
            price=event.price.strip(),
            ticket_url=resolve_ticket_url(venue_name, event.ticket_url),
            source=source,
            source_url=event.source_url,
            image_url=event.image_url or None,
            description=description,
            slug=make_slug(title, date_start_iso),
        )

    def _validate_required_fields(self, event: RawEvent) -> bool:
        """
        Validate that required fields are present and non-empty.

        Args:
            event: RawEvent to validate

        Returns:
            True if valid, False otherwise
        """
        if not event.title or not event.title.strip():
            logger.warning("Event missing required field: title")
            return False

        if not event.source_url or not event.source_url.strip():
            logger.warning(f"Event '{event.title}' missing required field: source_url")
            return False

        if not event.date_text or not event.date_text.strip():
            logger.warning(f"Event '{event.title}' missing required field: date")
            return False

        return True
