"""Scraper for sites that publish schema.org Event data as JSON-LD."""
import json
import logging
from typing import List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from processor.models import RawEvent
from scraper.base_scraper import BaseScraper

logger = logging.getLogger(__name__)

EVENT_TYPES = {'Event', 'MusicEvent', 'TheaterEvent', 'SocialEvent',
               'ExhibitionEvent', 'Festival', 'ComedyEvent', 'ChildrensEvent'}

# schema.org subtypes mapped to text the category table understands
TYPE_CATEGORIES = {
    'MusicEvent': 'konsert',
    'TheaterEvent': 'teater',
    'ComedyEvent': 'comedy',
    'ExhibitionEvent': 'utstilling',
    'Festival': 'festival',
    'ChildrensEvent': 'barn',
}


def _first(value):
    """Return the first element of a list, or the value itself."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _format_price(value) -> str:
    """Render an offers price, dropping the ".0" of whole numbers."""
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_event(item: dict) -> bool:
    types = item.get('@type')
    if isinstance(types, list):
        return any(t in EVENT_TYPES for t in types)
    return types in EVENT_TYPES


class JsonLdScraper(BaseScraper):
    """Scraper reading every Event object embedded in one or more listing pages."""

    def __init__(
        self,
        source: str,
        urls: List[str],
        default_venue: str = '',
        timeout: int = 15
    ):
        """
        Initialize the scraper.

        Args:
            source: Source id recorded on every event
            urls: Listing pages to read
            default_venue: Venue used when an event has no location name
            timeout: HTTP request timeout in seconds
        """
        super().__init__(timeout=timeout)
        self.source = source
        self.urls = urls
        self.default_venue = default_venue

    def fetch_events(self) -> List[RawEvent]:
        """
        Fetch every listing page and collect its events.

        Returns:
            List of RawEvent objects
        """
        events = []
        for i, url in enumerate(self.urls):
            if i > 0:
                self.polite_delay()
            html = self.fetch_html(url)
            if not html:
                continue
            events.extend(self.parse_events(html, url))
        return events

    def parse_events(self, html: str, page_url: str) -> List[RawEvent]:
        """
        Parse JSON-LD Event objects from a page.

        Args:
            html: Page HTML
            page_url: URL the page was fetched from, used for relative links

        Returns:
            List of RawEvent objects
        """
        soup = BeautifulSoup(html, 'html.parser')
        events = []

        for script in soup.find_all('script', type='application/ld+json'):
            try:
                data = json.loads(script.string or '')
            except ValueError:
                logger.debug(f"[{self.source}] Skipping malformed JSON-LD block")
                continue

            for item in self._iter_items(data):
                try:
                    event = self._parse_item(item, page_url)
                    if event:
                        events.append(event)
                except Exception as e:
                    logger.warning(f"[{self.source}] Failed to parse event item: {e}")
                    continue

        return events

    def _iter_items(self, data):
        """Yield event dicts from a JSON-LD document, lists and @graph included."""
        items = data if isinstance(data, list) else [data]
        for item in items:
            if not isinstance(item, dict):
                continue
            if '@graph' in item:
                yield from self._iter_items(item['@graph'])
            elif _is_event(item):
                yield item

    def _category_text(self, item: dict) -> str:
        """Category hint from the schema.org subtype, else from keywords."""
        types = item.get('@type')
        for schema_type in (types if isinstance(types, list) else [types]):
            if schema_type in TYPE_CATEGORIES:
                return TYPE_CATEGORIES[schema_type]
        keywords = item.get('keywords') or ''
        if isinstance(keywords, list):
            keywords = ' '.join(str(k) for k in keywords)
        return keywords

    def _parse_item(self, item: dict, page_url: str) -> Optional[RawEvent]:
        """Convert one JSON-LD Event to a RawEvent, or None if incomplete."""
        title = (item.get('name') or '').strip()
        start = item.get('startDate')
        if not title or not start:
            return None

        location = _first(item.get('location')) or {}
        venue = ''
        if isinstance(location, dict):
            venue = location.get('name') or ''

        image = _first(item.get('image'))
        if isinstance(image, dict):
            image = image.get('url')

        offers = _first(item.get('offers')) or {}
        ticket_url = offers.get('url') if isinstance(offers, dict) else None
        price = offers.get('price') if isinstance(offers, dict) else None

        event_url = item.get('url') or page_url

        return RawEvent(
            title=title,
            date_text=start,
            date_end_text=item.get('endDate'),
            venue_name=venue.strip() or self.default_venue,
            source_url=urljoin(page_url, event_url),
            category_text=self._category_text(item),
            price=_format_price(price),
            ticket_url=urljoin(page_url, ticket_url) if ticket_url else None,
            image_url=image or None,
            description=item.get('description') or '',
        )
