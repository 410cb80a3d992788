"""Verification result data structures produced by the snapshot engine."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigurationResult(BaseModel):
    """Outcome of verifying one configuration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    index: int
    configuration_id: str
    status: str = "pass"  # pass, fail, recorded, error
    diff: Optional[float] = None
    message: str = ""
    artifacts: list[str] = Field(default_factory=list)  # failure-store files after the run
    error: Optional[Exception] = Field(default=None, exclude=True)

    @property
    def passed(self) -> bool:
        return self.error is None


class VerificationReport(BaseModel):
    test_name: str
    file_path: str
    record_mode: bool = False
    tolerance: float = 0.0
    started_at: str
    completed_at: str = ""
    duration_seconds: float = 0.0
    total: int = 0
    passed: int = 0
    failed: int = 0
    recorded: int = 0
    errors: int = 0
    results: list[ConfigurationResult] = Field(default_factory=list)

    @property
    def first_error(self) -> Optional[Exception]:
        """Error of the lowest-index failing configuration."""
        for result in sorted(self.results, key=lambda r: r.index):
            if result.error is not None:
                return result.error
        return None

    @property
    def succeeded(self) -> bool:
        return self.first_error is None
