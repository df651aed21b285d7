"""
Archive pipeline — one archive from arrival to delivered packages.

Stages, in order:
1. Ledger gate (claim): an already-recorded archive is SKIPPED untouched
2. Output directory: <output_root>/<run_id>/<archive stem>; the run directory is
   cleared first so only the latest archive's packages stay on disk
3. Extract images and ComicInfo metadata
4. Split pages into size-bounded plans
5. Build one EPUB per plan (a failed part never removes its siblings)
6. Deliver each built package once
7. Optionally delete the source once every part was delivered

The ledger records an archive when it is claimed, before any processing,
so a crash mid-archive never causes it to be processed twice.
"""

import logging
import os
import shutil
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from ..archive.errors import ExtractionError
from ..archive.extractor import extract_archive
from ..config.settings import DEFAULT_SUBJECT, AppSettings
from ..delivery.models import DeliveryRequest
from ..delivery.transport import Deliverer
from ..packaging.builder import DEFAULT_LANGUAGE, PackageBuilder
from ..packaging.errors import PackagingError
from ..packaging.naming import resolve_base_title
from ..packaging.splitter import split_assets
from ..persistence.ledger import ProcessedLedger
from ..watchfolders.models import Arrival
from .models import PartResult, PipelineResult, PipelineStage, PipelineStatus

logger = logging.getLogger(__name__)


def new_run_id() -> str:
    """Run identifier: start timestamp plus a short random suffix."""
    return f"{datetime.now().strftime('%Y%m%d-%H%M%S')}-{uuid.uuid4().hex[:6]}"


def fallback_title_for(source_path: Path) -> str:
    """Title used when the archive has no ComicInfo title: its parent directory name."""
    return source_path.parent.name or source_path.stem


def subject_for(subject: str, part_index) -> str:
    """Message subject, prefixed with "{i}-{n} " for one of several parts."""
    if part_index is None:
        return subject
    return f"{part_index.index}-{part_index.total} {subject}"


class ArchivePipeline:
    """
    Processes one archive at a time.

    Not thread-safe by itself: the watch service feeds it from a single
    worker. The ledger it shares is locked internally.
    """

    def __init__(
        self,
        output_root: Union[str, Path],
        size_budget_bytes: int,
        ledger: Optional[ProcessedLedger] = None,
        deliverer: Optional[Deliverer] = None,
        subject: str = DEFAULT_SUBJECT,
        delete_after_processing: bool = False,
        language: str = DEFAULT_LANGUAGE,
        run_id: Optional[str] = None,
    ):
        """
        Args:
            output_root: Directory under which this run writes its packages
            size_budget_bytes: Maximum image bytes per package
            ledger: Dedup ledger; None disables the gate
            deliverer: Delivery transport; None disables delivery
            subject: Base message subject
            delete_after_processing: Remove the source once every part was delivered
            language: Package language when the archive does not declare one
            run_id: Output subdirectory for this run (generated if omitted)
        """
        self.output_root = Path(output_root)
        self.size_budget_bytes = size_budget_bytes
        self.ledger = ledger
        self.deliverer = deliverer
        self.subject = subject
        self.delete_after_processing = delete_after_processing
        self.language = language
        self.run_id = run_id or new_run_id()

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        ledger: Optional[ProcessedLedger],
        deliverer: Optional[Deliverer],
        run_id: Optional[str] = None,
    ) -> "ArchivePipeline":
        return cls(
            output_root=settings.output_root,
            size_budget_bytes=settings.packaging.size_budget_bytes,
            ledger=ledger,
            deliverer=deliverer,
            subject=settings.smtp.subject if settings.smtp else DEFAULT_SUBJECT,
            delete_after_processing=settings.watch.delete_after_processing,
            run_id=run_id,
        )

    @property
    def run_dir(self) -> Path:
        return self.output_root / self.run_id

    def handle_arrival(self, arrival: Arrival) -> PipelineResult:
        """
        Process one stable arrival end to end.

        Never raises for per-archive failures; they are reported in the
        returned PipelineResult.
        """
        source = Path(arrival.path)

        if self.ledger is not None and not self.ledger.claim(str(source)):
            logger.info(f"Already processed, skipping: {source.name}")
            return PipelineResult(
                source_path=str(source),
                status=PipelineStatus.SKIPPED,
                finished_at=datetime.now(),
            )

        result = PipelineResult(source_path=str(source), status=PipelineStatus.FAILED)
        output_dir = self.run_dir / (source.stem or "archive")

        try:
            # Only the latest archive's packages are kept on disk
            if self.run_dir.exists():
                shutil.rmtree(self.run_dir)
            output_dir.mkdir(parents=True)
        except OSError as e:
            return self._fail(result, PipelineStage.OUTPUT, f"{output_dir}: {e}")

        self._package(source, output_dir, result, deliver=self.deliverer is not None)

        if (
            self.delete_after_processing
            and self.deliverer is not None
            and result.status == PipelineStatus.COMPLETED
        ):
            self._delete_source(source, result)

        return self._finish(result)

    def convert_archive(
        self, source_path: Union[str, Path], output_dir: Union[str, Path]
    ) -> PipelineResult:
        """
        Convert one archive into ``output_dir`` without ledger or delivery.

        Existing files in ``output_dir`` are left alone; packages with the
        same name are replaced.
        """
        source = Path(source_path).expanduser().resolve()
        target = Path(output_dir)
        result = PipelineResult(source_path=str(source), status=PipelineStatus.FAILED)

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._fail(result, PipelineStage.OUTPUT, f"{target}: {e}")

        self._package(source, target, result, deliver=False)
        return self._finish(result)

    def _package(
        self, source: Path, output_dir: Path, result: PipelineResult, deliver: bool
    ) -> None:
        """Extract, split, build and optionally deliver. Fills ``result`` in place."""
        result.output_dir = str(output_dir)

        try:
            extracted = extract_archive(source)
        except ExtractionError as e:
            self._fail(result, PipelineStage.EXTRACT, str(e))
            return

        fallback_title = fallback_title_for(source)
        result.title = resolve_base_title(extracted.descriptor, fallback_title)

        if not extracted.images:
            result.status = PipelineStatus.EMPTY
            result.errors.append(f"{PipelineStage.EXTRACT.value}: no images in {source}")
            return

        try:
            plans = split_assets(extracted.images, self.size_budget_bytes)
        except ValueError as e:
            self._fail(result, PipelineStage.SPLIT, f"{source}: {e}")
            return

        builder = PackageBuilder(output_dir, language=self.language)

        for plan in plans:
            part = PartResult(part_index=plan.part_index, page_count=len(plan.assets))
            result.parts.append(part)

            try:
                built = builder.build(plan, fallback_title, extracted.descriptor)
            except PackagingError as e:
                logger.error(f"{part.label} of {source.name} failed to build: {e}")
                self._fail_part(result, part, PipelineStage.BUILD, str(e))
                continue

            part.package_path = built.path

            if not deliver:
                continue

            delivery = self.deliverer.deliver(
                DeliveryRequest(
                    artifact_path=built.path,
                    subject_hint=subject_for(self.subject, plan.part_index),
                    part_index=plan.part_index,
                )
            )
            if delivery.success:
                part.delivered = True
            else:
                self._fail_part(
                    result,
                    part,
                    PipelineStage.DELIVER,
                    delivery.error_message or f"delivery failed for {built.path}",
                )

        ok = [part for part in result.parts if part.error_message is None]
        if len(ok) == len(result.parts):
            result.status = PipelineStatus.COMPLETED
        elif ok:
            result.status = PipelineStatus.PARTIAL
        else:
            result.status = PipelineStatus.FAILED

    def _delete_source(self, source: Path, result: PipelineResult) -> None:
        try:
            os.remove(source)
        except OSError as e:
            logger.error(f"Could not delete source archive {source}: {e}")
            result.errors.append(f"{PipelineStage.CLEANUP.value}: {source}: {e}")
            return
        result.source_deleted = True
        logger.info(f"Deleted source archive: {source.name}")

    @staticmethod
    def _fail_part(
        result: PipelineResult, part: PartResult, stage: PipelineStage, message: str
    ) -> None:
        part.failed_stage = stage
        part.error_message = message
        result.errors.append(f"{stage.value}: {message}")

    @staticmethod
    def _fail(result: PipelineResult, stage: PipelineStage, message: str) -> PipelineResult:
        logger.error(f"Pipeline failed at {stage.value}: {message}")
        result.status = PipelineStatus.FAILED
        result.errors.append(f"{stage.value}: {message}")
        result.finished_at = datetime.now()
        return result

    @staticmethod
    def _finish(result: PipelineResult) -> PipelineResult:
        result.finished_at = datetime.now()
        log = logger.info if result.status in (
            PipelineStatus.COMPLETED, PipelineStatus.SKIPPED
        ) else logger.warning
        log(result.summary())
        return result


def summarize(results: List[PipelineResult]) -> dict:
    """Count results per status."""
    counts = {status.value: 0 for status in PipelineStatus}
    for result in results:
        counts[result.status.value] += 1
    return counts
