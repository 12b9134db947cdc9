"""Cross-source duplicate removal over the stored event table."""
import logging
from typing import Dict, List

from botocore.exceptions import ClientError

from processor.matching import titles_match
from processor.models import StoredEvent
from processor.normalize import normalize_title
from processor.scoring import score_event

logger = logging.getLogger(__name__)

DELETE_BATCH_SIZE = 100


def group_by_day(events: List[StoredEvent]) -> Dict[str, List[StoredEvent]]:
    """Group events by the YYYY-MM-DD prefix of date_start, keeping order."""
    by_day: Dict[str, List[StoredEvent]] = {}
    for event in events:
        by_day.setdefault(event.date_start[:10], []).append(event)
    return by_day


def cluster_day(events: List[StoredEvent]) -> List[List[StoredEvent]]:
    """
    Greedily cluster one day's events by title.

    Each unassigned event becomes an anchor and collects every later
    unassigned event whose title matches the anchor's. Members are never
    compared with each other, so the clusters are not transitively closed.

    Args:
        events: Events sharing a calendar day, in fetch order

    Returns:
        Clusters with at least two members
    """
    normalized = [normalize_title(event.title) for event in events]
    used = set()
    clusters = []

    for i, anchor in enumerate(events):
        if i in used:
            continue
        used.add(i)
        cluster = [anchor]

        for j in range(i + 1, len(events)):
            if j in used:
                continue
            if titles_match(normalized[i], normalized[j]):
                cluster.append(events[j])
                used.add(j)

        if len(cluster) > 1:
            clusters.append(cluster)

    return clusters


def find_duplicates(events: List[StoredEvent]) -> List[str]:
    """
    Find the ids of events that lose to a better copy of the same event.

    Args:
        events: All stored events, ascending by date_start

    Returns:
        Ids to delete; one member of every cluster survives
    """
    ids_to_delete = []

    for day_events in group_by_day(events).values():
        if len(day_events) < 2:
            continue

        for cluster in cluster_day(day_events):
            # sorted() is stable, so ties keep fetch order
            ranked = sorted(cluster, key=score_event, reverse=True)
            keeper = ranked[0]
            for duplicate in ranked[1:]:
                logger.info(
                    f"Dup: '{duplicate.title}' ({duplicate.source}) -> "
                    f"keeping '{keeper.title}' ({keeper.source})"
                )
                ids_to_delete.append(duplicate.id)

    return ids_to_delete


def deduplicate(store, batch_size: int = DELETE_BATCH_SIZE) -> int:
    """
    Remove cross-source duplicates from storage.

    Must run once per cycle, after every scraper has finished inserting.

    Args:
        store: Event store providing fetch_all_for_dedup and delete_by_ids
        batch_size: Number of ids per delete call

    Returns:
        Number of events deleted
    """
    try:
        events = store.fetch_all_for_dedup()
    except ClientError as e:
        logger.error(f"Dedup fetch error: {e}")
        return 0

    ids_to_delete = find_duplicates(events)
    if not ids_to_delete:
        logger.info(f"No duplicates among {len(events)} events")
        return 0

    deleted = 0
    for i in range(0, len(ids_to_delete), batch_size):
        batch = ids_to_delete[i:i + batch_size]
        try:
            deleted += store.delete_by_ids(batch)
        except ClientError as e:
            logger.error(f"Error deleting dedup batch {i // batch_size + 1}: {e}")
            continue

    logger.info(f"Removed {deleted} duplicate events")
    return deleted
