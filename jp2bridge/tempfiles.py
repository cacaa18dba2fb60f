"""
Scoped temporary files for converted inputs and substituted outputs
"""

import contextlib
import logging
import os
import tempfile
import warnings
from pathlib import Path

from .exceptions import ResourceCleanupWarning


logger = logging.getLogger(__name__)

TIFF_SUFFIX = ".tif"
JP2_SUFFIX = ".jp2"


class TempArtifact:
    """
    A uniquely named temporary file owned by a single compression job.

    The file is created empty on construction. release() deletes it once;
    a failed deletion is logged and recorded but never raised.
    """

    def __init__(self, suffix, prefix="jp2bridge_", directory=None):
        fd, name = tempfile.mkstemp(suffix=suffix, prefix=prefix, dir=directory)
        os.close(fd)
        self.path = Path(name)
        self.released = False
        self.cleanup_failed = False

    def release(self):
        """
        Delete the file if it has not been deleted yet.

        Returns:
            bool: True if the file is gone
        """
        if self.released:
            return not self.cleanup_failed
        self.released = True

        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            self.cleanup_failed = True
            logger.warning("File not deleted: %s (%s)", self.path, e)
            try:
                warnings.warn(f"File not deleted: {self.path}", ResourceCleanupWarning, stacklevel=2)
            except ResourceCleanupWarning:
                # Warnings filtered to errors; the logged warning above stands
                pass
            return False
        return True

    def __fspath__(self):
        return str(self.path)

    def __repr__(self):
        return f"TempArtifact({str(self.path)!r})"


@contextlib.contextmanager
def temp_artifact(suffix, directory=None):
    """
    Create a temporary file that is deleted when the block exits.

    Args:
        suffix: File suffix, e.g. TIFF_SUFFIX or JP2_SUFFIX
        directory: Directory to create the file in (default: system temp)

    Yields:
        TempArtifact
    """
    artifact = TempArtifact(suffix, directory=directory)
    try:
        yield artifact
    finally:
        artifact.release()
