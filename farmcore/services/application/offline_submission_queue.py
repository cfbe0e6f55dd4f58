"""
Application service: durable queue of scan submissions awaiting delivery.

Per item: Enqueued -> Attempting -> Delivered | Enqueued(retry + 1) | Dropped.
"""
import logging
import time
import uuid
from typing import Callable, List, Optional, Tuple

from farmcore.config import settings
from farmcore.domain.errors import ExternalAPIError, TransientAPIError
from farmcore.domain.models import (
    ClassificationResult,
    DrainReport,
    DroppedSubmission,
    QueuedScanSubmission,
    ScanPayload,
    ScanRecord,
)
from farmcore.domain.ports import KeyValueStore, RemoteScanClassifier
from farmcore.infrastructure.persistence import InMemoryKeyValueStore, StorageKeys
from farmcore.services.domain.scan_quota_gate import DailyQuota
from farmcore.services.domain.scan_record_store import ScanRecordStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_id() -> str:
    return uuid.uuid4().hex


class OfflineSubmissionQueue:
    """
    Queue of scans that could not be delivered when submitted.
    
    Only one drain runs at a time; a drain works on a snapshot taken when it
    starts, so items enqueued meanwhile wait for the next drain. All list
    bookkeeping happens synchronously around the single network await.
    """
    
    def __init__(
        self,
        classifier: RemoteScanClassifier,
        record_store: ScanRecordStore,
        quota: DailyQuota,
        store: Optional[KeyValueStore] = None,
        max_retries: Optional[int] = None,
        clock: Callable[[], int] = _now_ms,
        id_factory: Callable[[], str] = _new_id,
    ):
        """
        Initialize the queue, restoring persisted items.
        
        Args:
            classifier: Remote scan classifier used for delivery
            record_store: Single-slot scan record store to reconcile into
            quota: Daily quota, updated with the original submission date
            store: Durable key-value store (in-memory when omitted)
            max_retries: Retries before an item is dropped
            clock: Returns the current epoch time in milliseconds
            id_factory: Generates submission identifiers
        """
        self.classifier = classifier
        self.record_store = record_store
        self.quota = quota
        self.max_retries = settings.max_queue_retries if max_retries is None else max_retries
        self._store = store if store is not None else InMemoryKeyValueStore()
        self._clock = clock
        self._id_factory = id_factory
        self._draining = False
        
        self._items: List[QueuedScanSubmission] = [
            QueuedScanSubmission(**raw)
            for raw in self._store.get(StorageKeys.OFFLINE_QUEUE, [])
        ]
        if self._items:
            logger.info(f"Restored {len(self._items)} queued scan submissions")
    
    @property
    def is_draining(self) -> bool:
        return self._draining
    
    def pending(self) -> List[QueuedScanSubmission]:
        return list(self._items)
    
    def enqueue(self, payload: ScanPayload) -> Tuple[QueuedScanSubmission, ScanRecord]:
        """
        Queue a submission and store a placeholder result for it.
        
        Args:
            payload: Image reference, field id and crop type
            
        Returns:
            Tuple of (queued submission, placeholder scan record)
        """
        submission = QueuedScanSubmission(
            id=self._id_factory(),
            payload=payload,
            enqueued_at_ms=self._clock(),
            retry_count=0,
        )
        self._items.append(submission)
        self._persist()
        
        placeholder = ScanRecord(
            id=submission.id,
            field_id=payload.field_id,
            image_path=payload.image_ref,
            label=settings.pending_scan_label,
            confidence_percent=settings.pending_scan_confidence,
            created_at_ms=submission.enqueued_at_ms,
            is_queued=True,
        )
        self.record_store.replace(placeholder)
        
        logger.info(f"Queued scan submission {submission.id} ({len(self._items)} pending)")
        return submission, placeholder
    
    async def drain_queue(self) -> DrainReport:
        """
        Attempt delivery of every item queued when the drain starts.
        
        Returns:
            DrainReport listing delivered, requeued and dropped submission ids;
            `skipped` is set when another drain was already running.
        """
        if self._draining:
            logger.info("Queue drain already in progress; skipping")
            return DrainReport(skipped=True)
        
        self._draining = True
        report = DrainReport()
        snapshot = list(self._items)
        if snapshot:
            logger.info(f"Draining offline queue: {len(snapshot)} items")
        
        try:
            for item in snapshot:
                payload = item.payload
                try:
                    result = await self.classifier.classify(
                        payload.image_ref,
                        payload.field_id,
                        payload.crop_type,
                    )
                except (TransientAPIError, ExternalAPIError) as e:
                    self._handle_failure(item, e, report)
                    continue
                except Exception as e:
                    logger.exception(f"Unexpected error delivering queued scan {item.id}")
                    self._handle_failure(item, e, report)
                    continue
                
                self._reconcile(item, result)
                report.delivered.append(item.id)
        finally:
            self._draining = False
        
        if snapshot:
            logger.info(f"Queue drain finished: {len(report.delivered)} delivered, "
                        f"{len(report.requeued)} requeued, {len(report.dropped)} dropped")
        return report
    
    def list_dropped(self) -> List[DroppedSubmission]:
        return [
            DroppedSubmission(**raw)
            for raw in self._store.get(StorageKeys.DROPPED_SUBMISSIONS, [])
        ]
    
    def acknowledge_dropped(self) -> int:
        """Clear the dropped-submission list once it has been shown to the user."""
        count = len(self.list_dropped())
        self._store.set(StorageKeys.DROPPED_SUBMISSIONS, [])
        return count
    
    def _reconcile(self, item: QueuedScanSubmission, result: ClassificationResult) -> None:
        record = ScanRecord(
            id=item.id,
            field_id=item.payload.field_id,
            image_path=item.payload.image_ref,
            label=result.label,
            confidence_percent=result.confidence_percent,
            advisory_steps=result.advisory_steps,
            created_at_ms=item.enqueued_at_ms,
            is_queued=False,
        )
        self._remove(item.id)
        self.record_store.reconcile(record)
        self.quota.record_scan_on(item.enqueued_at_ms)
        logger.info(f"Delivered queued scan {item.id}: {result.label} ({result.confidence_percent}%)")
    
    def _handle_failure(
        self,
        item: QueuedScanSubmission,
        error: Exception,
        report: DrainReport,
    ) -> None:
        self._remove(item.id)
        
        if item.retry_count < self.max_retries:
            retried = item.model_copy(update={"retry_count": item.retry_count + 1})
            self._items.append(retried)
            self._persist()
            report.requeued.append(item.id)
            logger.warning(f"Delivery of queued scan {item.id} failed "
                           f"(retry {retried.retry_count}/{self.max_retries}): {error}")
            return
        
        dropped = DroppedSubmission(
            submission=item,
            dropped_at_ms=self._clock(),
            last_error=str(error),
        )
        failures = self._store.get(StorageKeys.DROPPED_SUBMISSIONS, [])
        failures.append(dropped.model_dump(mode="json"))
        self._store.set(StorageKeys.DROPPED_SUBMISSIONS, failures)
        report.dropped.append(item.id)
        logger.error(f"Dropped queued scan {item.id} after {item.retry_count} retries: {error}")
    
    def _remove(self, item_id: str) -> None:
        self._items = [i for i in self._items if i.id != item_id]
        self._persist()
    
    def _persist(self) -> None:
        self._store.set(
            StorageKeys.OFFLINE_QUEUE,
            [i.model_dump(mode="json") for i in self._items],
        )
