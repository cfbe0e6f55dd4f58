"""
Application service: scan submission.

Coordinates the daily quota, the image quality pre-check, the remote
classifier and the offline queue. No classification logic lives here.
"""
import asyncio
import logging
import time
import uuid
from typing import Callable, Optional

from farmcore.domain.errors import QuotaExceededError, TransientAPIError
from farmcore.domain.models import (
    ScanOutcome,
    ScanOutcomeStatus,
    ScanPayload,
    ScanRecord,
)
from farmcore.domain.ports import ImageQualityChecker, RemoteScanClassifier
from farmcore.services.application.offline_submission_queue import OfflineSubmissionQueue
from farmcore.services.domain.scan_quota_gate import DailyQuota
from farmcore.services.domain.scan_record_store import ScanRecordStore

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _always_online() -> bool:
    return True


class ScanOrchestrator:
    """
    Application service turning a captured image into a scan outcome.
    
    Submissions are serialized, so a second call on the same civil day waits
    for the first and then fails the quota check.
    """
    
    def __init__(
        self,
        quota: DailyQuota,
        quality_checker: ImageQualityChecker,
        classifier: RemoteScanClassifier,
        queue: OfflineSubmissionQueue,
        record_store: ScanRecordStore,
        is_online: Callable[[], bool] = _always_online,
        clock: Callable[[], int] = _now_ms,
    ):
        """
        Initialize the orchestrator with its collaborators.
        
        Args:
            quota: Daily scan quota
            quality_checker: Local image quality pre-check
            classifier: Remote scan classifier
            queue: Offline submission queue
            record_store: Single-slot scan record store
            is_online: Connectivity probe
            clock: Returns the current epoch time in milliseconds
        """
        self.quota = quota
        self.quality_checker = quality_checker
        self.classifier = classifier
        self.queue = queue
        self.record_store = record_store
        self.is_online = is_online
        self.clock = clock
        self._lock = asyncio.Lock()
    
    def get_scan_record(self) -> Optional[ScanRecord]:
        return self.record_store.get()
    
    async def submit_scan(
        self,
        image_ref: str,
        field_id: Optional[str],
        crop_type: str,
        force: bool = False,
    ) -> ScanOutcome:
        """
        Submit a scan.
        
        This method:
        1. Rejects the scan if one was already accepted today
        2. Runs the image quality pre-check unless `force` is set
        3. Classifies online, replacing the stored scan record
        4. Queues the scan when offline or when delivery fails
        
        Args:
            image_ref: Reference to the captured image
            field_id: Registered field id, if any
            crop_type: Crop the image shows
            force: Proceed even if the quality pre-check fails
            
        Returns:
            ScanOutcome: completed, queued (with a placeholder record) or
            low quality (with the list of issues)
            
        Raises:
            QuotaExceededError: If a scan was already accepted today
            ExternalAPIError: If the classifier rejects the request
        """
        async with self._lock:
            if not self.quota.can_scan_today():
                last = self.quota.state.get_last_scan_date()
                logger.warning(f"Scan rejected: daily limit reached ({last})")
                raise QuotaExceededError(last)
            
            if not force:
                quality = await self.quality_checker.check(image_ref)
                if not quality.is_valid:
                    logger.warning(f"Scan image failed quality check: {quality.issues}")
                    return ScanOutcome(
                        status=ScanOutcomeStatus.LOW_QUALITY,
                        issues=quality.issues,
                    )
            
            payload = ScanPayload(image_ref=image_ref, field_id=field_id, crop_type=crop_type)
            
            if self.is_online():
                try:
                    result = await self.classifier.classify(image_ref, field_id, crop_type)
                except TransientAPIError as e:
                    logger.warning(f"Scan delivery failed, queueing instead: {e}")
                else:
                    record = ScanRecord(
                        id=uuid.uuid4().hex,
                        field_id=field_id,
                        image_path=image_ref,
                        label=result.label,
                        confidence_percent=result.confidence_percent,
                        advisory_steps=result.advisory_steps,
                        created_at_ms=self.clock(),
                        is_queued=False,
                    )
                    self.record_store.replace(record)
                    self.quota.record_scan_today()
                    logger.info(f"Scan {record.id} classified: {record.label} "
                                f"({record.confidence_percent}%)")
                    return ScanOutcome(status=ScanOutcomeStatus.COMPLETED, record=record)
            
            # The daily attempt counts as used even though delivery is pending
            _, placeholder = self.queue.enqueue(payload)
            self.quota.record_scan_today()
            return ScanOutcome(status=ScanOutcomeStatus.QUEUED, record=placeholder)
