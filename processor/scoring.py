"""Source quality scoring used to pick the survivor among duplicates."""
from types import MappingProxyType

from processor.models import StoredEvent
from processor.venues import is_aggregator_url

# Higher = more specific, higher-fidelity data. Venues' own feeds rank above
# listing aggregators.
SOURCE_RANK = MappingProxyType({
    'bergenlive': 5,
    'studentbergen': 4,
    'dnt': 4,
    'eventbrite': 3,
    'ticketco': 4,
    'hoopla': 3,
    'nordnessjobad': 4,
    'raabrent': 4,
    'bergenchamber': 3,
    'colonialen': 4,
    'bergenkjott': 4,
    'paintnsip': 4,
    'bergenfilmklubb': 4,
    'cornerteateret': 4,
    'dvrtvest': 5,
    'kunsthall': 4,
    'brettspill': 3,
    'mediacity': 3,
    'forumscene': 5,
    'usfverftet': 5,
    'dns': 5,
    'olebull': 5,
    'bergenkommune': 3,
    'kulturikveld': 3,
    'barnasnorge': 2,
    'visitbergen': 1,
})

IMAGE_BONUS = 2
TICKET_BONUS = 2
DESCRIPTION_BONUS = 1
DESCRIPTION_MIN_LENGTH = 50


def score_event(event: StoredEvent) -> int:
    """
    Score how desirable a stored event is as the canonical copy.

    Args:
        event: Stored event with source, image, ticket and description loaded

    Returns:
        Source rank (0 for unknown sources) plus completeness bonuses
    """
    score = SOURCE_RANK.get(event.source, 0)
    if event.image_url:
        score += IMAGE_BONUS
    if event.ticket_url and not is_aggregator_url(event.ticket_url):
        score += TICKET_BONUS
    if event.description and len(event.description) > DESCRIPTION_MIN_LENGTH:
        score += DESCRIPTION_BONUS
    return score
