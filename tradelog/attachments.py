"""
attachments.py
--------------

Directory-backed storage for chart screenshots attached to trades.
References are bare file names (``<uuid>.jpg``); a trade keeps the list of
references it owns and whoever removes a reference is expected to delete
the blob too. Missing blobs are reported as ``None``, never raised.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


class AttachmentStore:
    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, reference: str) -> Optional[Path]:
        # references are flat names inside root; anything else is treated as missing
        if not reference or Path(reference).name != reference:
            return None
        return self.root / reference

    def save(self, data: bytes, suffix: str = ".jpg") -> str:
        """Write ``data`` under a fresh name and return the reference."""
        reference = f"{uuid.uuid4()}{suffix}"
        (self.root / reference).write_bytes(data)
        logger.debug("Saved attachment %s (%d bytes)", reference, len(data))
        return reference

    def load(self, reference: str) -> Optional[bytes]:
        path = self._path(reference)
        if path is None:
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.debug("Attachment %s unavailable: %s", reference, e)
            return None

    def delete(self, reference: str) -> None:
        path = self._path(reference)
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            logger.debug("Attachment %s already gone", reference)
        except OSError as e:
            logger.warning("Could not delete attachment %s: %s", reference, e)
