"""Venue website registry and aggregator URL detection."""
from types import MappingProxyType
from typing import Optional

# Competing listing sites and social networks whose links point at generic
# pages rather than a purchase page. bergen.kommune.no itself hosts venue
# pages, so only its ticketing subdomain is listed.
AGGREGATOR_DOMAINS = (
    'visitbergen.com',
    'kulturikveld.no',
    'barnasnorge.no',
    'billett.bergen.kommune.no',
    'studentbergen.no',
    'bergenlive.no',
    'miljofyrtarn.no',
    'facebook.com',
    'instagram.com',
    'twitter.com',
    'linkedin.com',
    'youtube.com',
)

VENUE_URLS = MappingProxyType({
    'ole bull scene': 'https://olebullhuset.no',
    'ole bull huset': 'https://olebullhuset.no',
    'lille ole bull': 'https://olebullhuset.no',
    'det vestnorske teateret': 'https://dfrtvest.no',
    'den nationale scene': 'https://dns.no',
    'dns': 'https://dns.no',
    'forum scene': 'https://forumscene.no',
    'grieghallen': 'https://grieghallen.no',
    'usf verftet': 'https://usf.no',
    'usf': 'https://usf.no',
    'sardinen': 'https://usf.no',
    'røkeriet': 'https://usf.no',
    'madam felle': 'https://madamfelle.no',
    'cornerteateret': 'https://cornerteateret.no',
    'hulen': 'https://hulen.no',
    'bergen kjøtt': 'https://bergenkjott.no',
    'kvarteret': 'https://kvarteret.no',
    'det akademiske kvarter': 'https://kvarteret.no',
    'landmark': 'https://landmark.no',
    'victoria': 'https://www.victoriapub.no',
    'statsraaden': 'https://lehmkuhl.no',
    "o'connor's": 'https://oconnors.no/bergen',
    'bergen kunsthall': 'https://bergenkunsthall.no',
    'kode': 'https://kodebergen.no',
    'permanenten': 'https://kodebergen.no',
    'troldhaugen': 'https://kodebergen.no',
    'litteraturhuset': 'https://litthusbergen.no',
    'cinemateket': 'https://cinemateket.no',
    'bit teatergarasjen': 'https://bitteater.no',
    'carte blanche': 'https://carteblanche.no',
    'harmonien': 'https://harmonien.no',
    'bergen offentlige bibliotek': 'https://bergenbibliotek.no',
    'bergen bibliotek': 'https://bergenbibliotek.no',
    'fana kulturhus': 'https://bergen.kommune.no/kulturhus/fana',
    'åsane kulturhus': 'https://bergen.kommune.no/kulturhus/asane',
    'laksevåg kultursenter': 'https://bergen.kommune.no/kulturhus/laksevag',
    'fyllingsdalen teater': 'https://fyllingsdalenteater.no',
    'akvariet': 'https://akvariet.no',
    'vilvite': 'https://vilvite.no',
    'bergen kino': 'https://bergenkino.no',
    'bymuseet': 'https://bymuseet.no',
    'bryggens museum': 'https://bymuseet.no',
    'håkonshallen': 'https://forsvarsbygg.no/festningene/bergenhus-festning',
    'bergenhus festning': 'https://forsvarsbygg.no/festningene/bergenhus-festning',
    'kulturhuset i bergen': 'https://kulturhusetibergen.no',
    'oseana': 'https://oseana.no',
    'studio bergen': 'https://studiobergen.no',
    'konsertpaleet': 'https://konsertpaleet.no',
    'torbjørns konserthall': 'https://torbjornskonserthall.no',
    'fløibanen': 'https://floyen.no',
    'bergenfest': 'https://bergenfest.no',
    'festspillene': 'https://www.fib.no',
    'brann stadion': 'https://brann.no',
    'gg bergen': 'https://ggbergen.org',
    'bergen filmklubb': 'https://bergenfilmklubb.no',
    "paint'n sip": 'https://paintnsip.no',
})

_VENUE_ENTRIES = tuple(
    sorted(VENUE_URLS.items(), key=lambda item: len(item[0]), reverse=True)
)


def is_aggregator_url(url: str) -> bool:
    """True if the URL points at a listing site rather than a venue or ticket page."""
    return any(domain in url for domain in AGGREGATOR_DOMAINS)


def get_venue_url(venue_name: str) -> Optional[str]:
    """
    Look up a venue's own website.

    Args:
        venue_name: Venue name as published by the source

    Returns:
        Website URL, or None if the venue is not registered
    """
    lower = venue_name.lower().strip()
    if lower in VENUE_URLS:
        return VENUE_URLS[lower]
    for key, url in _VENUE_ENTRIES:
        if key in lower:
            return url
    return None


def resolve_ticket_url(venue_name: str, existing_url: Optional[str] = None) -> Optional[str]:
    """
    Pick the best ticket link for an event.

    Non-aggregator links are real purchase pages and are kept. Aggregator
    links are replaced by the venue's website when one is registered.

    Args:
        venue_name: Venue name
        existing_url: Ticket link published by the source, if any

    Returns:
        Ticket URL, or None if none is known
    """
    if not existing_url:
        return get_venue_url(venue_name)
    if not is_aggregator_url(existing_url):
        return existing_url
    return get_venue_url(venue_name) or existing_url
