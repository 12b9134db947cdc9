"""Lookup tables mapping source categories and venue names to canonical values."""
from types import MappingProxyType

DEFAULT_CATEGORY = 'culture'
DEFAULT_BYDEL = 'Sentrum'

CATEGORY_MAP = MappingProxyType({
    # Norwegian
    'konserter': 'music',
    'konsert': 'music',
    'musikk': 'music',
    'jazz': 'music',
    'rock': 'music',
    'pop': 'music',
    'elektronisk': 'music',
    'klassisk': 'music',
    'festival': 'festival',
    'festivaler': 'festival',
    'marked': 'festival',
    'markeder': 'festival',
    'julemarked': 'festival',
    'teater/musikal': 'theatre',
    'teater': 'theatre',
    'theater': 'theatre',
    'scenekunst': 'theatre',
    'opera': 'theatre',
    'dans': 'theatre',
    'revy': 'theatre',
    'musikal': 'theatre',
    'standup': 'nightlife',
    'stand-up': 'nightlife',
    'uteliv': 'nightlife',
    'nattklubb': 'nightlife',
    'klubb': 'nightlife',
    'quiz': 'nightlife',
    'pub': 'nightlife',
    'humor': 'nightlife',
    'kunst': 'culture',
    'kultur': 'culture',
    'utstilling': 'culture',
    'utstillinger': 'culture',
    'galleri': 'culture',
    'museum': 'culture',
    'litteratur': 'culture',
    'kino': 'culture',
    'film': 'culture',
    'foredrag': 'culture',
    'debatt': 'culture',
    'lesning': 'culture',
    'annet': 'culture',
    'mat og drikke': 'food',
    'restaurant': 'food',
    'mat': 'food',
    'vin': 'food',
    'smak': 'food',
    'familieaktiviteter': 'family',
    'barneaktiviteter': 'family',
    'familie/barn': 'family',
    'familie': 'family',
    'barn': 'family',
    'sport': 'sports',
    'idrett': 'sports',
    'fotball': 'sports',
    'friluft': 'sports',
    'turgåing': 'sports',
    'vandring': 'sports',
    'yoga': 'sports',
    'omvisning': 'tours',
    'guidet': 'tours',
    'sightseeing': 'tours',
    'tur': 'tours',
    'kurs': 'workshop',
    'workshop': 'workshop',
    'verksted': 'workshop',
    'student': 'student',
    # English
    'concerts': 'music',
    'concert': 'music',
    'music': 'music',
    'festivals': 'festival',
    'markets': 'festival',
    'performing arts': 'theatre',
    'theatre': 'theatre',
    'nightlife': 'nightlife',
    'comedy': 'nightlife',
    'arts': 'culture',
    'culture': 'culture',
    'exhibition': 'culture',
    'exhibitions': 'culture',
    'food & drink': 'food',
    'food': 'food',
    'family': 'family',
    'kids': 'family',
    'children': 'family',
    'sports': 'sports',
    'outdoors': 'sports',
    'tours': 'tours',
    'workshops': 'workshop',
    'classes': 'workshop',
})

# Labels used in template descriptions
CATEGORY_LABELS_NO = MappingProxyType({
    'music': 'Konsert',
    'culture': 'Kultur',
    'theatre': 'Teater',
    'family': 'Familie',
    'food': 'Mat og drikke',
    'festival': 'Festival',
    'sports': 'Sport',
    'nightlife': 'Uteliv',
    'workshop': 'Workshop',
    'student': 'Student',
    'tours': 'Omvisning',
})

VENUE_BYDEL_MAP = MappingProxyType({
    'grieghallen': 'Sentrum',
    'den nationale scene': 'Sentrum',
    'ole bull scene': 'Sentrum',
    'lille ole bull': 'Sentrum',
    'forum scene': 'Sentrum',
    'det akademiske kvarter': 'Sentrum',
    'kvarteret': 'Sentrum',
    'konsertpaleet': 'Sentrum',
    'kulturhuset': 'Sentrum',
    'bergen kunsthall': 'Sentrum',
    'kode': 'Sentrum',
    'permanenten': 'Sentrum',
    'stenersen': 'Sentrum',
    'lysverket': 'Sentrum',
    'rasmus meyer': 'Sentrum',
    'troldhaugen': 'Fana',
    'siljustøl': 'Fana',
    'bergen kino': 'Sentrum',
    'media city bergen': 'Sentrum',
    'media city': 'Sentrum',
    'byparken': 'Sentrum',
    'festplassen': 'Sentrum',
    'fisketorget': 'Sentrum',
    'torgallmenningen': 'Sentrum',
    'bergen bibliotek': 'Sentrum',
    'bergen offentlige bibliotek': 'Sentrum',
    'hulen': 'Sentrum',
    'usf verftet': 'Bergenhus',
    'usf': 'Bergenhus',
    'sardinen': 'Bergenhus',
    'røkeriet': 'Bergenhus',
    'bryggen': 'Bergenhus',
    'bryggens museum': 'Bergenhus',
    'håkonshallen': 'Bergenhus',
    'rosenkrantztårnet': 'Bergenhus',
    'bergenhus festning': 'Bergenhus',
    'schøtstuene': 'Bergenhus',
    'brann stadion': 'Bergenhus',
    'akvariet': 'Bergenhus',
    'fløibanen': 'Sentrum',
    'fløyen': 'Sentrum',
    'gg bergen': 'Laksevåg',
    'ungdommens hus': 'Laksevåg',
    'laksevåg kultursenter': 'Laksevåg',
    'fyllingsdalen arena': 'Fyllingsdalen',
    'fyllingsdalen bibliotek': 'Fyllingsdalen',
    'fyllingsdalen teater': 'Fyllingsdalen',
    'fyllingsdalen': 'Fyllingsdalen',
    'åsane bibliotek': 'Åsane',
    'åsane kulturhus': 'Åsane',
    'skyland': 'Åsane',
    'fana kulturhus': 'Fana',
    'fana bibliotek': 'Fana',
    'hordamuseet': 'Fana',
    'arna stasjon': 'Arna',
    'ytre arna bibliotek': 'Arna',
    'vilvite': 'Sentrum',
    'torbjørns konserthall': 'Sentrum',
    'madam felle': 'Sentrum',
    'cornerteateret': 'Sentrum',
    'litteraturhuset': 'Sentrum',
    'cinemateket': 'Sentrum',
    'landmark': 'Sentrum',
    'statsraaden': 'Sentrum',
    'victoria': 'Sentrum',
    'bergen kjøtt': 'Sentrum',
    'studio bergen': 'Sentrum',
    'oseana': 'Os',
    'colonialen': 'Sentrum',
    "paint'n sip": 'Sentrum',
    'bergen filmklubb': 'Sentrum',
    'lille dns': 'Sentrum',
    'det vestnorske teateret': 'Sentrum',
    'nordnes bydelshus': 'Bergenhus',
    'ny-krohnborg kultursenter': 'Bergenhus',
    'ny krohnborg kultursenter': 'Bergenhus',
    'loddefjord bibliotek': 'Laksevåg',
    'landås bibliotek': 'Bergenhus',
    'gamle bergen museum': 'Bergenhus',
    'damsgård hovedgård': 'Laksevåg',
    'damsgård': 'Laksevåg',
    'ytrebygda kultursenter': 'Ytrebygda',
    'terminus hall': 'Bergenhus',
    "o'connor's irish pub": 'Bergenhus',
    "o'connor's": 'Bergenhus',
    'østre': 'Sentrum',
})


def _longest_first(table):
    return tuple(sorted(table.items(), key=lambda item: len(item[0]), reverse=True))


_CATEGORY_ENTRIES = _longest_first(CATEGORY_MAP)
_BYDEL_ENTRIES = _longest_first(VENUE_BYDEL_MAP)


def _lookup(table, entries, text):
    lower = text.lower().strip()
    if lower in table:
        return table[lower]
    # Only the input may contain the key, never the reverse
    for key, value in entries:
        if key in lower:
            return value
    return None


def map_category(source_category: str) -> str:
    """
    Map a source's free-text category to a canonical category.

    Args:
        source_category: Category text as published by the source

    Returns:
        Canonical category, "culture" when nothing matches
    """
    return _lookup(CATEGORY_MAP, _CATEGORY_ENTRIES, source_category) or DEFAULT_CATEGORY


def map_bydel(venue_name: str) -> str:
    """
    Map a venue name to the Bergen district it lies in.

    Args:
        venue_name: Venue name as published by the source

    Returns:
        District name, "Sentrum" when the venue is unknown
    """
    return _lookup(VENUE_BYDEL_MAP, _BYDEL_ENTRIES, venue_name) or DEFAULT_BYDEL
