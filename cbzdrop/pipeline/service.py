"""
Watch service: arrival detection feeding the archive pipeline.

Detection runs on its own thread and never waits for processing. Stable
arrivals are queued on a single-worker executor, so at most one archive is
processed at a time while new files keep being observed.
"""

import functools
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional

from ..archive.extractor import ARCHIVE_EXTENSION
from ..config.settings import AppSettings
from ..watchfolders.engine import ArrivalDetector
from ..watchfolders.models import Arrival, WatchFolder
from .models import PipelineResult, PipelineStatus
from .runner import ArchivePipeline

logger = logging.getLogger(__name__)


def build_detector(settings: AppSettings, process_existing: Optional[bool] = None) -> ArrivalDetector:
    """Arrival detector for the configured watch directory, excluding the output tree."""
    watch = settings.watch
    folder = WatchFolder(
        path=str(watch.directory),
        extension=ARCHIVE_EXTENSION,
        excluded_dirs=[settings.packaging.output_dir_name],
    )
    return ArrivalDetector(
        folder,
        poll_interval=watch.poll_interval_seconds,
        max_attempts=watch.stability_max_attempts,
        process_existing=watch.process_existing if process_existing is None else process_existing,
    )


class WatchService:
    """
    Long-running watcher.

    Example:
        service = WatchService(detector, pipeline)
        service.start()
        ...
        service.stop()
    """

    def __init__(self, detector: ArrivalDetector, pipeline: ArchivePipeline):
        self.detector = detector
        self.pipeline = pipeline

        self._stop_event = threading.Event()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._thread: Optional[threading.Thread] = None
        self._results: List[PipelineResult] = []
        self._results_lock = threading.Lock()

    def start(self) -> None:
        """Start the detection thread and the processing worker."""
        if self._thread is not None:
            raise RuntimeError("WatchService already started")

        self.detector.prime()
        self._stop_event.clear()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="cbzdrop-pipeline")
        self._thread = threading.Thread(
            target=self.detector.run,
            args=(self.submit, self._stop_event),
            name="cbzdrop-watch",
            daemon=True,
        )
        self._thread.start()

    def submit(self, arrival: Arrival) -> Future:
        """Queue one arrival for processing."""
        if self._executor is None:
            raise RuntimeError("WatchService is not running")
        logger.info(f"Queued for processing: {arrival.name}")
        future = self._executor.submit(self.pipeline.handle_arrival, arrival)
        future.add_done_callback(functools.partial(self._record, arrival=arrival))
        return future

    def stop(self, wait: bool = True) -> None:
        """Stop detection, then let the worker finish the archive in progress."""
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        if self._executor is not None:
            self._executor.shutdown(wait=wait, cancel_futures=True)
            self._executor = None

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until stop() is called or ``timeout`` elapses. True if stopped."""
        return self._stop_event.wait(timeout)

    @property
    def results(self) -> List[PipelineResult]:
        with self._results_lock:
            return list(self._results)

    def _record(self, future: Future, arrival: Arrival) -> None:
        if future.cancelled():
            # Never claimed in the ledger; after a restart it is part of the baseline
            logger.warning(
                f"Not processed (service stopped before it was reached): {arrival.path}"
            )
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Pipeline crashed for {arrival.path}: {error}", exc_info=error)
            return
        with self._results_lock:
            self._results.append(future.result())


def run_once(detector: ArrivalDetector, pipeline: ArchivePipeline) -> List[PipelineResult]:
    """
    Single detection pass.

    Polls until every archive seen in the first scan is stable (or timed
    out), processing each one synchronously as it becomes stable.
    """
    results: List[PipelineResult] = []

    while True:
        for arrival in detector.poll_once():
            try:
                results.append(pipeline.handle_arrival(arrival))
            except Exception as e:
                logger.error(f"Pipeline crashed for {arrival.path}: {e}", exc_info=True)
                results.append(
                    PipelineResult(
                        source_path=arrival.path,
                        status=PipelineStatus.FAILED,
                        errors=[f"unexpected: {e}"],
                    )
                )
        if not detector.has_pending():
            break
        time.sleep(detector.poll_interval)

    return results
