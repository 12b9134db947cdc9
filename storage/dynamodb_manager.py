"""DynamoDB manager for event and scraper run storage."""
import hashlib
import logging
from dataclasses import asdict, fields
from datetime import datetime, timezone
from typing import List, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError

from processor.models import CandidateEvent, ScraperRunRecord, StoredEvent

logger = logging.getLogger(__name__)

_STORED_FIELDS = tuple(f.name for f in fields(StoredEvent))


class DynamoDBManager:
    """Manager for DynamoDB operations on the events and scraper runs tables."""

    BATCH_SIZE = 25  # DynamoDB batch operation limit
    DEDUP_FIELDS = (
        'id', 'title', 'date_start', 'source',
        'image_url', 'ticket_url', 'description'
    )

    def __init__(self, events_table_name: str, runs_table_name: str):
        """
        Initialize DynamoDB client and table references.

        Args:
            events_table_name: Name of the events table (hash key "id")
            runs_table_name: Name of the scraper runs table
                (hash key "scraper_name", range key "run_at")
        """
        self.dynamodb = boto3.resource('dynamodb')
        self.events_table = self.dynamodb.Table(events_table_name)
        self.runs_table = self.dynamodb.Table(runs_table_name)
        logger.info(
            f"Initialized DynamoDBManager for tables: "
            f"{events_table_name}, {runs_table_name}"
        )

    @staticmethod
    def event_id(source_url: str) -> str:
        """
        Storage id for an event, derived from its source URL.

        Keying the table on this hash makes the source URL unique.

        Args:
            source_url: Event page URL at the source

        Returns:
            SHA256 hex digest of the URL
        """
        return hashlib.sha256(source_url.encode('utf-8')).hexdigest()

    def exists(self, source_url: str) -> bool:
        """
        Check whether an event with this source URL is already stored.

        Args:
            source_url: Event page URL at the source

        Returns:
            True if stored, False if not or if the lookup failed
        """
        try:
            response = self.events_table.get_item(
                Key={'id': self.event_id(source_url)},
                ProjectionExpression='#id',
                ExpressionAttributeNames={'#id': 'id'}
            )
        except ClientError as e:
            logger.error(f"Error checking existence of {source_url}: {e}")
            return False
        return 'Item' in response

    def insert(self, event: CandidateEvent) -> bool:
        """
        Persist a new event unless its source URL is already stored.

        Args:
            event: CandidateEvent to store

        Returns:
            True if inserted, False on duplicate or backend error
        """
        item = self._candidate_to_item(event)
        try:
            self.events_table.put_item(
                Item=item,
                ConditionExpression='attribute_not_exists(#id)',
                ExpressionAttributeNames={'#id': 'id'}
            )
        except ClientError as e:
            if e.response['Error']['Code'] == 'ConditionalCheckFailedException':
                logger.debug(f"Event already stored: {event.source_url}")
                return False
            logger.error(f"Error inserting '{event.title}': {e}")
            return False
        return True

    def delete_by_ids(self, event_ids: List[str]) -> int:
        """
        Delete events in batches of 25 items.

        Args:
            event_ids: Storage ids to delete

        Returns:
            Count of successfully deleted events
        """
        if not event_ids:
            return 0

        logger.info(f"Deleting {len(event_ids)} events from DynamoDB")
        success_count = 0

        for i in range(0, len(event_ids), self.BATCH_SIZE):
            batch = event_ids[i:i + self.BATCH_SIZE]

            try:
                with self.events_table.batch_writer() as writer:
                    for event_id in batch:
                        writer.delete_item(Key={'id': event_id})
                success_count += len(batch)

            except ClientError as e:
                logger.error(
                    f"Error deleting batch {i // self.BATCH_SIZE + 1}: {e}"
                )
                # Continue processing remaining batches
                continue

        logger.info(f"Successfully deleted {success_count} events")
        return success_count

    def fetch_all_for_dedup(self) -> List[StoredEvent]:
        """
        Retrieve the dedup fields of every stored event.

        Returns:
            StoredEvent objects ordered ascending by date_start

        Raises:
            ClientError: If the table scan fails
        """
        logger.info("Scanning events table for deduplication")
        try:
            items = self._scan(self.events_table, projection=self.DEDUP_FIELDS)
        except ClientError as e:
            logger.error(f"Error scanning events table: {e}")
            raise

        events = [
            event for event in map(self._item_to_stored_event, items) if event
        ]
        events.sort(key=lambda event: event.date_start)
        logger.info(f"Retrieved {len(events)} events from DynamoDB")
        return events

    def fetch_run_history(self, since: datetime) -> List[ScraperRunRecord]:
        """
        Retrieve scraper runs since a point in time.

        Args:
            since: Earliest run time to include

        Returns:
            ScraperRunRecord objects ordered most recent first

        Raises:
            ClientError: If the table scan fails
        """
        since_iso = since.astimezone(timezone.utc).isoformat()
        try:
            items = self._scan(
                self.runs_table,
                filter_expression=Attr('run_at').gte(since_iso)
            )
        except ClientError as e:
            logger.error(f"Error scanning scraper runs table: {e}")
            raise

        runs = [run for run in map(self._item_to_run_record, items) if run]
        runs.sort(key=lambda run: run.run_at, reverse=True)
        return runs

    def record_run(self, record: ScraperRunRecord) -> bool:
        """
        Append a scraper run to the history table.

        Args:
            record: Run to store

        Returns:
            True if written, False on backend error
        """
        item = {k: v for k, v in asdict(record).items() if v is not None}
        try:
            self.runs_table.put_item(Item=item)
        except ClientError as e:
            logger.error(f"Error recording run for {record.scraper_name}: {e}")
            return False
        return True

    def remove_expired_events(self, now: Optional[datetime] = None) -> int:
        """
        Delete events that ended before the start of the current UTC day.

        Events without an end date expire on their start date.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            Count of deleted events

        Raises:
            ClientError: If the table scan fails
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now.astimezone(timezone.utc).date().isoformat()

        try:
            items = self._scan(
                self.events_table,
                projection=('id', 'date_start', 'date_end')
            )
        except ClientError as e:
            logger.error(f"Error scanning for expired events: {e}")
            raise

        expired_ids = [
            item['id'] for item in items
            if (item.get('date_end') or item.get('date_start', ''))[:10] < cutoff
        ]
        logger.info(f"Found {len(expired_ids)} expired events before {cutoff}")
        return self.delete_by_ids(expired_ids)

    def _scan(self, table, projection=None, filter_expression=None) -> List[dict]:
        """Scan a table, following pagination."""
        kwargs = {}
        if projection:
            names = {f'#f{i}': name for i, name in enumerate(projection)}
            kwargs['ProjectionExpression'] = ', '.join(names)
            kwargs['ExpressionAttributeNames'] = names
        if filter_expression is not None:
            kwargs['FilterExpression'] = filter_expression

        response = table.scan(**kwargs)
        items = response.get('Items', [])

        while 'LastEvaluatedKey' in response:
            response = table.scan(
                ExclusiveStartKey=response['LastEvaluatedKey'], **kwargs
            )
            items.extend(response.get('Items', []))

        return items

    def _candidate_to_item(self, event: CandidateEvent) -> dict:
        """
        Convert CandidateEvent to DynamoDB item.

        Args:
            event: CandidateEvent object

        Returns:
            DynamoDB item dictionary
        """
        item = {k: v for k, v in asdict(event).items() if v is not None}
        item['id'] = self.event_id(event.source_url)
        item['created_at'] = datetime.now(timezone.utc).isoformat()
        return item

    def _item_to_stored_event(self, item: dict) -> Optional[StoredEvent]:
        """
        Convert DynamoDB item to StoredEvent object.

        Args:
            item: DynamoDB item dictionary

        Returns:
            StoredEvent object or None if conversion fails
        """
        try:
            return StoredEvent(
                id=item['id'],
                title=item['title'],
                date_start=item['date_start'],
                source=item['source'],
                **{
                    name: item.get(name) for name in _STORED_FIELDS
                    if name not in ('id', 'title', 'date_start', 'source')
                }
            )
        except KeyError as e:
            logger.warning(f"Failed to convert item to StoredEvent: {e}")
            return None

    def _item_to_run_record(self, item: dict) -> Optional[ScraperRunRecord]:
        """Convert DynamoDB item to ScraperRunRecord, or None if malformed."""
        try:
            return ScraperRunRecord(
                scraper_name=item['scraper_name'],
                found=int(item['found']),
                inserted=int(item.get('inserted', 0)),
                errored=bool(item.get('errored', False)),
                error_message=item.get('error_message'),
                skipped=bool(item.get('skipped', False)),
                run_at=item['run_at']
            )
        except (KeyError, ValueError) as e:
            logger.warning(f"Failed to convert item to ScraperRunRecord: {e}")
            return None
