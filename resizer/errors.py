from __future__ import annotations


class ResizerError(Exception):
    """Base class for everything this package raises on purpose."""


class ConfigurationError(ResizerError, ValueError):
    """A profile or encoder setting is unusable (e.g. a 0px target)."""


class SourceUnavailable(ResizerError):
    """The source image could not be opened or its header probed."""


class DecodeFailure(ResizerError):
    """The source bytes could not be decoded at the requested factor."""


class EncodeFailure(ResizerError):
    """The scaled image could not be written to its slot."""
