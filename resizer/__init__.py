from .config import ProfileName, ResizeConfig, ResizeProfile
from .engine import ImageResizer
from .errors import ConfigurationError, DecodeFailure, EncodeFailure, ResizerError, SourceUnavailable
from .geometry import Dimension, compute_output_size, compute_sample_size
from .results import ResizeOutcome, ResizeResult, SkipReason
from .settings import EncodeSettings, MetadataStrategy
from .source import BytesSource, FileSource, ImageSource
from .store import ArtifactSlot, ArtifactStore
from .tasks import ResizeTask, resize_batch

__version__ = "0.1.0"
