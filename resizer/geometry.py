from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Dimension:
    """A width x height pair in pixels."""

    width: int
    height: int

    @classmethod
    def parse(cls, text: str) -> "Dimension":
        """
        Accept either:
          - "1024x768"
          - "512" (square)
        """
        t = text.strip().lower()
        if "x" in t:
            a, b = t.split("x", 1)
            return cls(int(a), int(b))
        n = int(t)
        return cls(n, n)

    @property
    def is_positive(self) -> bool:
        return self.width > 0 and self.height > 0

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


def compute_sample_size(src_w: int, src_h: int, target_w: int, target_h: int) -> int:
    """
    Largest power-of-two decode factor that keeps the decoded image at
    least as big as the target box on both axes.

    A target of 0 (or less) on either axis means "no max" and returns 1.
    """
    if target_w <= 0 or target_h <= 0:
        return 1

    factor = 1
    if src_h > target_h or src_w > target_w:
        half_h = src_h // 2
        half_w = src_w // 2
        while (half_h // factor) >= target_h and (half_w // factor) >= target_w:
            factor *= 2
    return factor


def compute_output_size(src_w: int, src_h: int, target_w: int, target_h: int) -> Dimension:
    """
    Fit the source inside the target box, keeping its aspect ratio.

    When the target box is relatively wider than the source the height is
    binding; otherwise (equal ratios included) the width is binding.
    """
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"source size must be positive, got {src_w}x{src_h}")
    if target_w <= 0 or target_h <= 0:
        raise ValueError(f"target size must be positive, got {target_w}x{target_h}")

    target_ratio = target_w / target_h
    src_ratio = src_w / src_h

    if target_ratio > src_ratio:
        height = target_h
        width = round(height * src_ratio)
    else:
        width = target_w
        height = round(width / src_ratio)

    # rounding can land on 0 for extreme ratios, never on more than the box
    width = min(max(1, width), target_w)
    height = min(max(1, height), target_h)
    return Dimension(width, height)
