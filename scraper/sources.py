"""Registry of configured source scrapers, in run order."""
from typing import Callable, Dict

from scraper.base_scraper import BaseScraper
from scraper.jsonld_scraper import JsonLdScraper

TICKETCO_SUBDOMAINS = (
    '7fjell',
    'bergenvinfest',
    'kulturhusetibergen',
    'kvarteret',
    'cinemateketbergen',
    'hulen',
    'litthus',
    'kirkemusikkibergen',
)


def _ticketco(timeout: int) -> BaseScraper:
    return JsonLdScraper(
        'ticketco',
        [f'https://{sub}.ticketco.events/no/nb?filter_type=all' for sub in TICKETCO_SUBDOMAINS],
        timeout=timeout,
    )


def _bergenkjott(timeout: int) -> BaseScraper:
    return JsonLdScraper(
        'bergenkjott',
        ['https://bergenkjott.org/kalendar'],
        default_venue='Bergen Kjøtt',
        timeout=timeout,
    )


def _kulturikveld(timeout: int) -> BaseScraper:
    return JsonLdScraper(
        'kulturikveld',
        ['https://kulturikveld.no/arrangementer/bergen'],
        timeout=timeout,
    )


# Venue feeds first; aggregators last so they only fill gaps and are the
# first to be cut when the pipeline deadline is reached.
SCRAPERS: Dict[str, Callable[[int], BaseScraper]] = {
    'ticketco': _ticketco,
    'bergenkjott': _bergenkjott,
    'kulturikveld': _kulturikveld,
}


def build_scraper(name: str, timeout: int = 15) -> BaseScraper:
    """
    Instantiate a registered scraper.

    Args:
        name: Source id
        timeout: HTTP request timeout in seconds

    Returns:
        Scraper instance

    Raises:
        KeyError: If no scraper is registered under the name
    """
    return SCRAPERS[name](timeout)
