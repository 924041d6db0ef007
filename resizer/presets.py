from __future__ import annotations

from dataclasses import replace

from .config import ResizeConfig
from .settings import MetadataStrategy


PRESET_NAMES = ("default", "thumbnail", "retina", "web")


def apply_preset(name: str, base: ResizeConfig) -> ResizeConfig:
    """Return a copy of ``base`` adjusted for one of the named presets."""
    name = name.lower()
    config = base.copy()

    if name == "default":
        return config

    if name == "thumbnail":
        return (
            config.set_enabled("large", False)
            .set_enabled("medium", False)
            .set_dimension("small", 160, 160)
        )

    if name == "retina":
        return (
            config.set_dimension("large", 2048, 2048)
            .set_dimension("medium", 1024, 1024)
            .set_dimension("small", 512, 512)
        )

    if name == "web":
        return config.with_encode(
            replace(
                config.encode,
                output_format="webp",
                webp_quality=80,
                metadata=MetadataStrategy.NONE,
            )
        )

    raise ValueError(f"Unknown preset: {name}")
