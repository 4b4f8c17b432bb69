"""Regenerate the derived data package of every study."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fieldtrial_manager.config import Settings
from fieldtrial_manager.models import (
    ArtifactBatchResult,
    Job,
    OperationStatus,
    aggregate_status,
)
from fieldtrial_manager.services.interfaces import (
    ArtifactWriter,
    Document,
    StudyRepository,
    study_label,
)
from fieldtrial_manager.services.logging import console_kwargs
from fieldtrial_manager.utils.progress import track

logger = logging.getLogger(__name__)

ARTIFACT_ERROR_NAME = "packages"


class ArtifactBatchGenerator:
    """Write a data package for each study known when the batch starts."""

    def __init__(
        self,
        settings: Settings,
        studies: StudyRepository,
        writer: ArtifactWriter,
        *,
        job: Optional[Job] = None,
        output_root: Optional[Path] = None,
    ) -> None:
        self.settings = settings
        self.studies = studies
        self.writer = writer
        self.job = job
        self.output_root = output_root if output_root is not None else settings.fd_package_root

    def regenerate_all(self) -> ArtifactBatchResult:
        if self.output_root is None:
            logger.info("No data package path has been set; skipping package generation")
            return ArtifactBatchResult(status=OperationStatus.IDLE)

        try:
            records = self.studies.load_all_studies()
        except Exception as exc:  # repository failures end the batch before it starts
            logger.error("Loading studies failed", exc_info=True)
            self._record_error(f"Loading studies failed: {exc}")
            return ArtifactBatchResult(status=OperationStatus.FAILED)
        if records is None:
            logger.error("Could not load the studies to package")
            self._record_error("Could not load the studies to package")
            return ArtifactBatchResult(status=OperationStatus.FAILED)

        result = ArtifactBatchResult(attempted=len(records))
        for record in track(
            records,
            total=len(records),
            desc="Writing study packages",
            enabled=self.settings.show_progress,
            unit="study",
        ):
            if self._write_one(record):
                result.succeeded += 1
            else:
                result.failed_studies.append(study_label(record))

        result.status = aggregate_status(
            result.succeeded,
            result.attempted,
            when_empty=OperationStatus.SUCCEEDED,
        )
        logger.info(
            "Wrote %d of %d study packages to %s",
            result.succeeded,
            result.attempted,
            self.output_root,
            extra=console_kwargs(),
        )
        return result

    def _write_one(self, record: Document) -> bool:
        label = study_label(record)
        try:
            study = self.studies.to_full_study(record)
        except Exception as exc:
            logger.error("Converting study %s failed", label, exc_info=True)
            self._record_error(f"Converting study {label} failed: {exc}")
            return False
        if study is None:
            logger.error("Could not build full study for %s", label)
            self._record_error(f"Could not build full study for {label}")
            return False

        try:
            written = self.writer.write_study_package(study)
        except Exception as exc:
            logger.error("Writing package for %s failed", label, exc_info=True)
            self._record_error(f"Writing package for {label} failed: {exc}")
            return False
        if not written:
            logger.error("Failed to save study %s as a data package", label)
            self._record_error(f"Failed to save study {label} as a data package")
            return False
        return True

    def _record_error(self, message: str) -> None:
        if self.job is not None:
            self.job.add_error(ARTIFACT_ERROR_NAME, message)


__all__ = ["ArtifactBatchGenerator"]
