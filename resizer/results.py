from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .config import ProfileKey, ProfileName
from .geometry import Dimension
from .store import ArtifactSlot


class SkipReason(str, Enum):
    DISABLED = "disabled"
    CANCELLED = "cancelled"
    SOURCE_UNAVAILABLE = "source_unavailable"
    DECODE_FAILED = "decode_failed"
    ENCODE_FAILED = "encode_failed"


@dataclass(frozen=True)
class ResizeResult:
    """
    Output of one profile of a resize request.

    ``artifact`` is None when nothing was written; ``reason`` then says
    whether the profile was switched off or something went wrong.
    """
    profile: ProfileName
    target: Dimension
    artifact: Optional[ArtifactSlot] = None
    size: Optional[Dimension] = None  # pixel size actually written
    reason: Optional[SkipReason] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.artifact is not None

    @property
    def path(self) -> Optional[Path]:
        return self.artifact.path if self.artifact else None


@dataclass(frozen=True)
class ResizeOutcome:
    """One ResizeResult per profile, always in large, medium, small order."""

    results: Tuple[ResizeResult, ...]
    source: Optional[str] = None

    def __iter__(self) -> Iterator[ResizeResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def get(self, name: ProfileKey) -> ResizeResult:
        key = ProfileName.coerce(name)
        for r in self.results:
            if r.profile is key:
                return r
        raise KeyError(key)

    @property
    def large(self) -> ResizeResult:
        return self.get(ProfileName.LARGE)

    @property
    def medium(self) -> ResizeResult:
        return self.get(ProfileName.MEDIUM)

    @property
    def small(self) -> ResizeResult:
        return self.get(ProfileName.SMALL)

    def paths(self) -> List[Optional[Path]]:
        return [r.path for r in self.results]

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(
            1 for r in self.results
            if r.reason not in (None, SkipReason.DISABLED, SkipReason.CANCELLED)
        )
