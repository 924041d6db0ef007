from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .results import ResizeOutcome
from .tasks import BatchSummary


@dataclass(frozen=True)
class ProfileReport:
    source: Optional[str]
    profile: str
    target: str
    out_path: Optional[str]
    slot: Optional[int]
    width: Optional[int]
    height: Optional[int]
    reason: Optional[str]
    error: Optional[str]


@dataclass(frozen=True)
class BatchReport:
    created_utc: str
    summary: dict
    files: List[ProfileReport]


def build_report(outcomes: List[ResizeOutcome], summary: BatchSummary) -> BatchReport:
    created_utc = datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")

    files: List[ProfileReport] = []
    for outcome in outcomes:
        for r in outcome:
            files.append(
                ProfileReport(
                    source=outcome.source,
                    profile=r.profile.value,
                    target=str(r.target),
                    out_path=str(r.path) if r.path else None,
                    slot=r.artifact.index if r.artifact else None,
                    width=r.size.width if r.size else None,
                    height=r.size.height if r.size else None,
                    reason=r.reason.value if r.reason else None,
                    error=r.error,
                )
            )

    summary_dict = {
        "total_sources": summary.total_sources,
        "attempted": summary.attempted,
        "written": summary.written,
        "failed": summary.failed,
        "cancelled": summary.cancelled,
    }

    return BatchReport(created_utc=created_utc, summary=summary_dict, files=files)


def save_report_json(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with path.open("w", encoding="utf-8") as f:
        json.dump(asdict(report), f, indent=2, ensure_ascii=False)


def save_report_csv(report: BatchReport, path: Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fields = list(ProfileReport.__dataclass_fields__)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fields)
        writer.writeheader()
        for row in report.files:
            writer.writerow(asdict(row))
