"""Protocol for frame sources."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import numpy as np


@runtime_checkable
class FrameSource(Protocol):
    """Protocol for supplying ordered frames on demand.

    Implementations: VideoCaptureSource (camera, file, stream, GStreamer).
    """

    def open(self) -> None:
        """Open the source.

        Raises:
            SourceError: If the source cannot be opened.
        """
        ...

    def read(self) -> np.ndarray | None:
        """Return the next BGR frame, or None when no frame is available."""
        ...

    def close(self) -> None:
        """Release the source."""
        ...
