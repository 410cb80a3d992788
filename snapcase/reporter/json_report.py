"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from snapcase.models.result import VerificationReport


def generate_json_report(report: VerificationReport, output_path: Path) -> None:
    """Write a machine-readable JSON report."""
    data = report.model_dump()
    data["succeeded"] = report.succeeded
    data["failing_configurations"] = [
        r.configuration_id for r in report.results if r.error is not None
    ]

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        json.dump(data, f, indent=2, default=str)
