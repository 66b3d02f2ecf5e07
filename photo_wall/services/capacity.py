"""
Capacity enforcement for the photo catalog
Evicts the oldest rows beyond the configured maximum, detached from uploads
"""
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Dict, Any, Optional, Set, Tuple
from ..exceptions import PhotoNotFoundError
from ..logger import photo_logger as logger


class CapacityEnforcer:
    """
    Trims the catalog back to ``max_photos`` rows

    Runs are submitted to a private executor. A run that is queued but not
    started absorbs later ``schedule()`` calls, since it will list the
    catalog only once it starts.

    The ordering index is eventually consistent, so a run may not yet see
    the row that triggered it. After each run the newest scheduled row is
    looked for at the head of the index; while it is missing (and still
    present in the table) another run is scheduled ``recheck_delay`` seconds
    later, at most ``max_rechecks`` times.
    """

    def __init__(self, catalog, blob_store, max_photos: int, max_workers: int = 1,
                 recheck_delay: float = 1.0, max_rechecks: int = 5):
        self.catalog = catalog
        self.blob_store = blob_store
        self.max_photos = max_photos
        self.recheck_delay = recheck_delay
        self.max_rechecks = max_rechecks
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='capacity-enforcer')
        self._lock = threading.Lock()
        self._pending = False
        self._inflight: Set[Future] = set()
        self._awaited: Optional[Tuple[str, str]] = None
        self._rechecks = 0
        self._timer: Optional[threading.Timer] = None

    def schedule(self, photo=None) -> Optional[Future]:
        """
        Request an enforcement run without waiting for it

        Args:
            photo: The row just inserted, if any; later runs confirm the
                ordering index has caught up with it

        Returns:
            The Future of a newly queued run, or None if one was already queued
        """
        with self._lock:
            if photo is not None and (self._awaited is None or photo.catalog_rank > self._awaited[0]):
                self._awaited = (photo.catalog_rank, photo.photo_id)
                self._rechecks = 0

            if self._pending:
                return None
            self._pending = True

            try:
                future = self._executor.submit(self._run)
            except RuntimeError as e:
                # Executor already shut down
                self._pending = False
                logger.warning("Capacity enforcement not scheduled", reason=str(e))
                return None

            self._inflight.add(future)

        future.add_done_callback(self._on_done)
        return future
    def enforce(self) -> Dict[str, Any]:
        """
        Evict every row ranked beyond max_photos

        Blob deletes are best-effort. The row is removed whatever the blob
        result; rows removed concurrently by another run are skipped.

        Returns:
            Eviction summary
        """
        candidates = self.catalog.list_beyond(self.max_photos)

        evicted = []
        already_removed = []
        blob_failures = []

        for photo in candidates:
            blob_result = self.blob_store.delete(photo.external_id)
            if not blob_result['success']:
                blob_failures.append(photo.external_id)
                logger.warning("Orphaned blob left after eviction",
                               photo_id=photo.photo_id,
                               external_id=photo.external_id)

            try:
                self.catalog.delete_by_id(photo.photo_id)
                evicted.append(photo.photo_id)
            except PhotoNotFoundError:
                already_removed.append(photo.photo_id)

        result = {
            'max_photos': self.max_photos,
            'candidates': len(candidates),
            'evicted': evicted,
            'already_removed': already_removed,
            'blob_failures': blob_failures
        }

        if candidates:
            logger.log_pipeline_step(
                "capacity_enforced",
                max_photos=self.max_photos,
                evicted_count=len(evicted),
                already_removed_count=len(already_removed),
                blob_failure_count=len(blob_failures)
            )

        return result

    def drain(self, timeout: float = None) -> bool:
        """
        Wait for queued and running enforcement runs, and armed rechecks

        Returns:
            True if everything finished within the timeout
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            with self._lock:
                futures = list(self._inflight)
                timer = self._timer

            if timer is not None and timer.is_alive():
                timer.join(self._remaining(deadline))
                if timer.is_alive():
                    return False
                continue

            if not futures:
                return True

            _, not_done = wait(futures, timeout=self._remaining(deadline))
            if not_done:
                return False

    def shutdown(self, wait_for_runs: bool = True):
        """Stop accepting runs and release the worker threads"""
        with self._lock:
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        self._executor.shutdown(wait=wait_for_runs)

    def _run(self) -> Dict[str, Any]:
        with self._lock:
            self._pending = False
            awaited = self._awaited

        result = self.enforce()
        if awaited is not None:
            self._confirm_indexed(awaited)
        return result

    def _confirm_indexed(self, awaited: Tuple[str, str]):
        rank, photo_id = awaited

        newest = self.catalog.list_newest(1)
        if newest and newest[0].catalog_rank >= rank:
            self._settle(awaited)
            return

        try:
            self.catalog.get(photo_id)
        except PhotoNotFoundError:
            # Deleted before the index caught up; nothing left to wait for
            self._settle(awaited)
            return

        with self._lock:
            if self._awaited != awaited:
                return

            self._rechecks += 1
            if self._rechecks > self.max_rechecks:
                self._awaited = None
                gave_up = True
            else:
                gave_up = False
                timer = threading.Timer(self.recheck_delay, self.schedule)
                timer.daemon = True
                self._timer = timer
                timer.start()

        if gave_up:
            logger.warning("Ordering index still missing newest photo, giving up rechecks",
                           photo_id=photo_id,
                           max_rechecks=self.max_rechecks)
        else:
            logger.info("Ordering index behind newest photo, recheck scheduled",
                        photo_id=photo_id,
                        recheck_delay=self.recheck_delay)

    def _settle(self, awaited: Tuple[str, str]):
        with self._lock:
            if self._awaited == awaited:
                self._awaited = None
                self._rechecks = 0

    @staticmethod
    def _remaining(deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        return max(0.0, deadline - time.monotonic())

    def _on_done(self, future: Future):
        with self._lock:
            self._inflight.discard(future)

        if future.cancelled():
            return

        error = future.exception()
        if error is not None:
            logger.error("Capacity enforcement failed", error=error, max_photos=self.max_photos)
