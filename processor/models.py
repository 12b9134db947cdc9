"""Data models for event aggregation."""
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class RawEvent:
    """Event as extracted by a source scraper, before normalization."""
    title: str
    date_text: str
    venue_name: str
    source_url: str
    date_end_text: Optional[str] = None
    category_text: str = ''
    price: str = ''
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    description: str = ''


@dataclass
class CandidateEvent:
    """Normalized event ready to be persisted."""
    title: str
    venue_name: str
    date_start: str
    category: str
    bydel: str
    source: str
    source_url: str
    slug: str
    description: str = ''
    price: str = ''
    date_end: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    status: str = 'approved'


@dataclass
class StoredEvent:
    """Persisted event. Only the dedup fields are guaranteed to be loaded."""
    id: str
    title: str
    date_start: str
    source: str
    image_url: Optional[str] = None
    ticket_url: Optional[str] = None
    description: Optional[str] = None
    venue_name: Optional[str] = None
    date_end: Optional[str] = None
    category: Optional[str] = None
    bydel: Optional[str] = None
    price: Optional[str] = None
    source_url: Optional[str] = None
    slug: Optional[str] = None
    status: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class ScraperRunRecord:
    """One scraper invocation."""
    scraper_name: str
    found: int
    inserted: int
    errored: bool
    error_message: Optional[str]
    skipped: bool
    run_at: str


@dataclass
class ScraperHealthStatus:
    """Health classification for a single scraper."""
    name: str
    status: str
    reason: str
    last_found: int
    avg_found: float
    consecutive_zeros: int
    last_errored: bool
    last_error_message: Optional[str] = None
    last_run_at: Optional[str] = None


@dataclass
class ScrapeResult:
    """Counts reported by one scraper run."""
    found: int = 0
    inserted: int = 0


@dataclass
class CycleResult:
    """Result of a full scrape cycle."""
    scrapers_run: int
    total_found: int
    total_inserted: int
    failed_scrapers: List[str] = field(default_factory=list)
    expired_removed: int = 0
    duplicates_removed: int = 0
    duration_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
