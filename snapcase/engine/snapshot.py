"""Snapshot engine: records reference images or verifies renders against them."""

from __future__ import annotations

import logging
import time
from typing import Optional

from snapcase.models.config import SnapshotSettings
from snapcase.models.configuration import Configuration, ConfigurationSet
from snapcase.models.result import ConfigurationResult, VerificationReport
from snapcase.models.test_case import ExecutedTestCase, TestCase
from snapcase.renderer.base import Renderer
from snapcase.store.artifact_store import ArtifactStore

from .comparator import compare
from .exceptions import DidRecord, MismatchExceedsTolerance, ReferenceMissing, SnapshotError

logger = logging.getLogger(__name__)


class SnapshotEngine:
    """Runs the record/verify lifecycle for test cases across configurations."""

    def __init__(self, settings: SnapshotSettings, renderer: Renderer):
        self.settings = settings
        self.renderer = renderer
        self.reference_store = ArtifactStore(settings.reference_path, "reference")
        self.failure_store = ArtifactStore(settings.failure_path, "failure")

    async def verify(
        self, test_case: TestCase, configurations: ConfigurationSet | Configuration
    ) -> None:
        """Verify every configuration, then raise the first configuration's error, if any.

        A failing configuration never stops the following ones from rendering
        and filing their own failure artifacts.
        """
        if isinstance(configurations, Configuration):
            await self.verify_configuration(test_case, configurations)
            return

        report = await self.verify_all(test_case, configurations)
        error = report.first_error
        if error is not None:
            raise error

    async def verify_all(
        self, test_case: TestCase, configurations: ConfigurationSet
    ) -> VerificationReport:
        """Verify every configuration in order and report each outcome without raising."""
        if len(configurations) == 0:
            raise ValueError("Cannot verify against an empty configuration set")

        started_at = time.strftime("%Y-%m-%dT%H:%M:%SZ")
        start_time = time.time()
        logger.debug("Verifying %s across %d configurations", test_case.name, len(configurations))

        results: list[ConfigurationResult] = []
        for index, config in enumerate(configurations):
            diff: Optional[float] = None
            error: Optional[Exception] = None
            try:
                diff = await self.verify_configuration(test_case, config)
            except Exception as e:
                error = e
                if isinstance(e, MismatchExceedsTolerance):
                    diff = e.diff
            results.append(self._build_result(index, test_case, config, diff, error))

        failing = [r for r in results if r.error is not None]
        for result in failing[1:]:
            logger.warning(
                "Configuration %s also failed for %s: %s",
                result.configuration_id, test_case.name, result.message,
            )

        return VerificationReport(
            test_name=test_case.name,
            file_path=str(test_case.file_path),
            record_mode=self.settings.record_mode,
            tolerance=self._tolerance(test_case),
            started_at=started_at,
            completed_at=time.strftime("%Y-%m-%dT%H:%M:%SZ"),
            duration_seconds=round(time.time() - start_time, 2),
            total=len(results),
            passed=sum(1 for r in results if r.status == "pass"),
            failed=sum(1 for r in results if r.status == "fail"),
            recorded=sum(1 for r in results if r.status == "recorded"),
            errors=sum(1 for r in results if r.status == "error"),
            results=results,
        )

    async def verify_configuration(self, test_case: TestCase, config: Configuration) -> float:
        """Verify one configuration and return the measured diff."""
        if self.settings.record_mode:
            await self.record(test_case, config)  # raises DidRecord

        executed = await self.execute(test_case, config)

        try:
            reference = await self.reference_store.load(executed)
        except SnapshotError:
            # A copy of a reference that can no longer be loaded is stale
            await self.failure_store.delete_reference_copy(executed)
            await self.failure_store.save(executed)
            raise

        try:
            diff = compare(executed.image, reference, self._tolerance(test_case))
        except SnapshotError:
            await self.failure_store.save(executed)
            await self.failure_store.copy_from(self.reference_store, executed)
            raise

        await self.failure_store.delete(executed)
        return diff

    async def record(self, test_case: TestCase, config: Configuration) -> None:
        """Write a new reference image; always ends with ``DidRecord`` in record mode."""
        if not self.settings.record_mode:
            return
        executed = await self.execute(test_case, config)
        path = await self.reference_store.save(executed)
        raise DidRecord(path)

    async def execute(self, test_case: TestCase, config: Configuration) -> ExecutedTestCase:
        logger.debug("Rendering %s under %s", test_case.name, config.id)
        image = await self.renderer.render(test_case, config)
        return ExecutedTestCase(
            file_path=test_case.file_path,
            name=test_case.name,
            config=config,
            image=image,
        )

    def _tolerance(self, test_case: TestCase) -> float:
        if test_case.tolerance is not None:
            return test_case.tolerance
        return self.settings.tolerance

    def _build_result(
        self,
        index: int,
        test_case: TestCase,
        config: Configuration,
        diff: Optional[float],
        error: Optional[Exception],
    ) -> ConfigurationResult:
        status = _status(error)
        artifacts = self.failure_store.existing_artifacts(test_case.file_path, test_case.name, config.id)
        message = str(error) if error is not None else f"Diff {diff:.2f}"
        logger.info("[%s] %s %s: %s", status.upper(), test_case.name, config.id, message)
        return ConfigurationResult(
            index=index,
            configuration_id=config.id,
            status=status,
            diff=diff,
            message=message,
            artifacts=[str(p) for p in artifacts],
            error=error,
        )


def _status(error: Optional[Exception]) -> str:
    if error is None:
        return "pass"
    if isinstance(error, DidRecord):
        return "recorded"
    if isinstance(error, (ReferenceMissing, MismatchExceedsTolerance)):
        return "fail"
    return "error"
