from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from PIL import Image

from .errors import ConfigurationError
from .geometry import Dimension
from .settings import FORMAT_TO_EXT, EncodeSettings


DEFAULT_LARGE_SIZE = 1024
DEFAULT_MEDIUM_SIZE = 512
DEFAULT_SMALL_SIZE = 256


class ProfileName(str, Enum):
    # Declaration order is processing order.
    LARGE = "large"
    MEDIUM = "medium"
    SMALL = "small"

    @classmethod
    def coerce(cls, name: Union["ProfileName", str]) -> "ProfileName":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise ConfigurationError(f"Unknown profile: {name}") from None


ProfileKey = Union[ProfileName, str]


@dataclass(frozen=True)
class ResizeProfile:
    name: ProfileName
    dimension: Dimension
    enabled: bool = True


class ResizeConfig:
    """
    Which derivatives to produce and how big each one may be.

    The default configuration requests three outputs:
      - large  1024x1024
      - medium 512x512
      - small  256x256

    Setters return ``self`` so calls can be chained:

        config = ResizeConfig().set_dimension("large", 2048, 2048).set_enabled("small", False)

    A config is meant to be built once and reused; don't mutate it while a
    resize using it is in flight.
    """

    def __init__(self, encode: Optional[EncodeSettings] = None) -> None:
        self._profiles: Dict[ProfileName, ResizeProfile] = {
            ProfileName.LARGE: ResizeProfile(
                ProfileName.LARGE, Dimension(DEFAULT_LARGE_SIZE, DEFAULT_LARGE_SIZE)
            ),
            ProfileName.MEDIUM: ResizeProfile(
                ProfileName.MEDIUM, Dimension(DEFAULT_MEDIUM_SIZE, DEFAULT_MEDIUM_SIZE)
            ),
            ProfileName.SMALL: ResizeProfile(
                ProfileName.SMALL, Dimension(DEFAULT_SMALL_SIZE, DEFAULT_SMALL_SIZE)
            ),
        }
        self.encode: EncodeSettings = encode if encode is not None else EncodeSettings()

    # ------------------------------------------------------------------
    # Enabled flags
    # ------------------------------------------------------------------

    def is_enabled(self, name: ProfileKey) -> bool:
        return self._profiles[ProfileName.coerce(name)].enabled

    def set_enabled(self, name: ProfileKey, enabled: bool) -> "ResizeConfig":
        key = ProfileName.coerce(name)
        self._profiles[key] = replace(self._profiles[key], enabled=bool(enabled))
        return self

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    def get_dimension(self, name: ProfileKey) -> Dimension:
        return self._profiles[ProfileName.coerce(name)].dimension

    def set_dimension(
        self,
        name: ProfileKey,
        dimension: Union[Dimension, int],
        height: Optional[int] = None,
    ) -> "ResizeConfig":
        """
        Set the target box for one profile.

        Accepts either a Dimension (or anything with width/height) or a
        width and height pair. The values are copied, so changing the
        caller's object later never changes the configured size.
        """
        key = ProfileName.coerce(name)

        if height is None:
            if isinstance(dimension, int):
                raise ConfigurationError("set_dimension needs a Dimension or both width and height")
            width, height = int(dimension.width), int(dimension.height)
        else:
            width, height = int(dimension), int(height)

        _check_dimension(key, width, height)
        self._profiles[key] = replace(self._profiles[key], dimension=Dimension(width, height))
        return self

    # ------------------------------------------------------------------
    # Encoder settings
    # ------------------------------------------------------------------

    def with_encode(self, encode: EncodeSettings) -> "ResizeConfig":
        self.encode = encode
        return self

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def profile(self, name: ProfileKey) -> ResizeProfile:
        return self._profiles[ProfileName.coerce(name)]

    def profiles(self) -> Tuple[ResizeProfile, ...]:
        return tuple(self._profiles[name] for name in ProfileName)

    def enabled_profiles(self) -> Tuple[ResizeProfile, ...]:
        return tuple(p for p in self.profiles() if p.enabled)

    def copy(self) -> "ResizeConfig":
        other = ResizeConfig(self.encode)
        other._profiles = dict(self._profiles)
        return other

    def validate(self) -> None:
        """Raise ConfigurationError if anything here would fail at resize time."""
        for p in self.profiles():
            _check_dimension(p.name, p.dimension.width, p.dimension.height)

        enc = self.encode
        if enc.output_format not in FORMAT_TO_EXT:
            raise ConfigurationError(f"Unsupported output format: {enc.output_format}")
        if not 1 <= int(enc.jpeg_quality) <= 100:
            raise ConfigurationError(f"jpeg_quality must be 1-100, got {enc.jpeg_quality}")
        if not 1 <= int(enc.webp_quality) <= 100:
            raise ConfigurationError(f"webp_quality must be 1-100, got {enc.webp_quality}")
        resampling_filter(enc.resample)

    def __repr__(self) -> str:
        parts = ", ".join(
            f"{p.name.value}={p.dimension}{'' if p.enabled else ' (off)'}" for p in self.profiles()
        )
        return f"ResizeConfig({parts})"


def resampling_filter(name: str) -> Image.Resampling:
    try:
        return Image.Resampling[name.upper()]
    except KeyError:
        raise ConfigurationError(f"Unknown resampling filter: {name}") from None


def _check_dimension(name: ProfileName, width: int, height: int) -> None:
    if width <= 0 or height <= 0:
        raise ConfigurationError(
            f"{name.value} target must be positive, got {width}x{height}"
        )
