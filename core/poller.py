import logging
import threading
import time
from typing import Callable, List, Optional

from logger_setup import format_api_error
from providers.interface import IStorageClient
from .types import DeleteEntryResult, DeleteJob, DeleteJobStatus, DeleteOutcome

logger = logging.getLogger("dropbox_pattern_cleaner.poller")

POLL_INTERVAL = 0.5


class BatchDeletionPoller:
    """
    Deletes a set of paths with one batch request and waits for the result.

    Polling runs until the job is terminal. Without a deadline or cancel
    event it never gives up; status-check failures are logged and retried
    at the same interval.
    """

    def __init__(self,
                 client: IStorageClient,
                 poll_interval: float = POLL_INTERVAL,
                 deadline: Optional[float] = None,
                 cancel_event: Optional[threading.Event] = None,
                 progress: Optional[Callable[[str], None]] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.monotonic):
        self.client = client
        self.poll_interval = poll_interval
        self.deadline = deadline
        self.cancel_event = cancel_event
        self.progress = progress
        self._sleep = sleep
        self._clock = clock
        self._launch_entries: List[DeleteEntryResult] = []

    def submit(self, paths: List[str]) -> DeleteJob:
        """Submit the batch delete. Returns a job that may already be complete."""
        logger.info(f"Submitting batch delete for {len(paths)} path(s)")
        launch = self.client.delete_batch(paths)
        self._launch_entries = launch.entries

        if launch.complete:
            logger.info("Batch delete completed synchronously")
            return DeleteJob(job_id=None, status=DeleteJobStatus.COMPLETE)

        logger.info(f"Batch delete running as async job {launch.async_job_id}")
        return DeleteJob(job_id=launch.async_job_id)

    def delete(self, paths: List[str]) -> DeleteOutcome:
        job = self.submit(paths)
        if job.status is DeleteJobStatus.COMPLETE:
            return self._outcome(job, 0, None, self._launch_entries)
        return self.poll(job)

    def poll(self, job: DeleteJob) -> DeleteOutcome:
        """Poll job until it reaches a terminal state, the deadline passes, or polling is cancelled."""
        started = self._clock()
        checks = 0

        while True:
            if checks:
                self._sleep(self.poll_interval)

            if self.cancel_event is not None and self.cancel_event.is_set():
                logger.warning(f"Polling of job {job.job_id} cancelled after {checks} check(s)")
                job.status = DeleteJobStatus.CANCELLED
                return self._outcome(job, checks, "Polling cancelled", [])

            if self.deadline is not None and self._clock() - started >= self.deadline:
                logger.warning(f"Job {job.job_id} still running after {self.deadline}s; giving up")
                job.status = DeleteJobStatus.TIMED_OUT
                return self._outcome(job, checks, f"Timed out after {self.deadline}s", [])

            if self.progress:
                self.progress("...")
            checks += 1

            try:
                check = self.client.delete_batch_check(job.job_id)
            except Exception as e:
                logger.error(f"Batch check request failed: {format_api_error(e)}")
                continue

            if check.status is DeleteJobStatus.IN_PROGRESS:
                logger.debug(f"Job {job.job_id} in progress (check {checks})")
                continue

            job.status = check.status
            if check.status is DeleteJobStatus.FAILED:
                logger.error(f"Batch deletion failed: {check.reason}")
            else:
                logger.info(f"Job {job.job_id} complete after {checks} check(s)")
            return self._outcome(job, checks, check.reason, check.entries)

    def _outcome(self, job: DeleteJob, checks: int, reason: Optional[str],
                 entries: List[DeleteEntryResult]) -> DeleteOutcome:
        failed = [e.path for e in entries if not e.success]
        for entry in entries:
            if not entry.success:
                logger.warning(f"Delete failed for {entry.path}: {entry.error}")
        return DeleteOutcome(
            status=job.status,
            job_id=job.job_id,
            checks=checks,
            reason=reason,
            deleted=sum(1 for e in entries if e.success),
            failed_paths=failed,
        )
