from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union


logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10
FILE_NAME_FORMAT = "image{index}{ext}"


@dataclass(frozen=True)
class ArtifactSlot:
    index: int
    path: Path


class ArtifactStore:
    """
    A fixed ring of scratch files that resized images are written into.

    Slot ``n`` is ``image{n}.jpg`` inside ``directory``. Each allocation
    takes the next slot in turn and wraps after ``capacity``; the oldest
    file is silently overwritten by the next write that lands on it.
    Nothing is deleted before a write, only ``flush()`` removes files.

    Files here are not durable. Anything you need to keep should be
    copied somewhere else as soon as the resize completes.
    """

    def __init__(
        self,
        directory: Union[str, Path],
        capacity: int = DEFAULT_CAPACITY,
        extension: str = ".jpg",
    ) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if not extension.startswith("."):
            extension = "." + extension

        self.directory = Path(directory)
        self.capacity = int(capacity)
        self.extension = extension
        self._next_index = 0
        self._lock = threading.Lock()
        self._owns_directory = False

        self.directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def temporary(cls, capacity: int = DEFAULT_CAPACITY, extension: str = ".jpg") -> "ArtifactStore":
        """A store in a fresh private directory under the system temp dir."""
        store = cls(tempfile.mkdtemp(prefix="resizer_"), capacity=capacity, extension=extension)
        store._owns_directory = True
        return store

    @property
    def next_index(self) -> int:
        return self._next_index

    def path_for(self, index: int) -> Path:
        if not 0 <= index < self.capacity:
            raise IndexError(f"slot {index} outside 0..{self.capacity - 1}")
        return self.directory / FILE_NAME_FORMAT.format(index=index, ext=self.extension)

    def allocate_slot(self) -> ArtifactSlot:
        with self._lock:
            index = self._next_index % self.capacity
            self._next_index += 1
        slot = ArtifactSlot(index=index, path=self.path_for(index))
        logger.debug("allocated slot %d -> %s", slot.index, slot.path)
        return slot

    def paths(self) -> List[Path]:
        return [self.path_for(i) for i in range(self.capacity)]

    def existing(self) -> List[Path]:
        return [p for p in self.paths() if p.exists()]

    def flush(self) -> None:
        """Delete every slot file (present or not) and restart at slot 0."""
        with self._lock:
            for p in self.paths():
                p.unlink(missing_ok=True)
            self._next_index = 0
        logger.debug("flushed %s", self.directory)

    def cleanup(self) -> None:
        """
        Flush, then remove the directory too if this store created it
        (see ``temporary()``). A caller-supplied directory is left in place.
        """
        self.flush()
        if self._owns_directory:
            shutil.rmtree(self.directory, ignore_errors=True)
            logger.debug("removed %s", self.directory)

    def __repr__(self) -> str:
        return f"ArtifactStore({str(self.directory)!r}, capacity={self.capacity})"
