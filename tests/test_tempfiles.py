"""
Tests for scoped temporary files
"""

import shutil
import tempfile
import unittest
import warnings
from pathlib import Path
from unittest import mock

from jp2bridge.exceptions import ResourceCleanupWarning
from jp2bridge.tempfiles import JP2_SUFFIX, TIFF_SUFFIX, TempArtifact, temp_artifact


class TestTempArtifact(unittest.TestCase):
    """Test temporary file lifetime."""

    def setUp(self):
        """Create a temporary directory."""
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_created_with_suffix(self):
        """Test creating a file with a suffix."""
        artifact = TempArtifact(TIFF_SUFFIX, directory=self.temp_dir)
        self.assertTrue(artifact.path.exists())
        self.assertEqual(artifact.path.suffix, '.tif')
        self.assertEqual(artifact.path.parent, Path(self.temp_dir))
        artifact.release()

    def test_unique_names(self):
        """Test that names are unique."""
        first = TempArtifact(JP2_SUFFIX, directory=self.temp_dir)
        second = TempArtifact(JP2_SUFFIX, directory=self.temp_dir)
        self.assertNotEqual(first.path, second.path)
        first.release()
        second.release()

    def test_release_deletes_once(self):
        """Test idempotent release."""
        artifact = TempArtifact(JP2_SUFFIX, directory=self.temp_dir)
        self.assertTrue(artifact.release())
        self.assertFalse(artifact.path.exists())
        self.assertTrue(artifact.release())

    def test_release_failure_is_warned_not_raised(self):
        """Test that a failed deletion only warns."""
        artifact = TempArtifact(TIFF_SUFFIX, directory=self.temp_dir)

        with mock.patch.object(Path, 'unlink', side_effect=PermissionError("locked")):
            with self.assertLogs('jp2bridge.tempfiles', level='WARNING'):
                with self.assertWarns(ResourceCleanupWarning):
                    self.assertFalse(artifact.release())

        self.assertTrue(artifact.cleanup_failed)


class TestTempArtifactContext(unittest.TestCase):
    """Test the temp_artifact context manager."""

    def setUp(self):
        """Create a temporary directory."""
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up temporary directory."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_deleted_on_normal_exit(self):
        """Test deletion on normal exit."""
        with temp_artifact(TIFF_SUFFIX, self.temp_dir) as artifact:
            artifact.path.write_bytes(b"data")
        self.assertFalse(artifact.path.exists())

    def test_deleted_on_exception(self):
        """Test deletion when the block raises."""
        with self.assertRaises(RuntimeError):
            with temp_artifact(JP2_SUFFIX, self.temp_dir) as artifact:
                raise RuntimeError("boom")
        self.assertFalse(artifact.path.exists())

    def test_cleanup_failure_does_not_mask_error(self):
        """Test that cleanup failures keep the job error."""
        with mock.patch.object(Path, 'unlink', side_effect=PermissionError("locked")):
            with self.assertWarns(ResourceCleanupWarning):
                with self.assertRaisesRegex(RuntimeError, "original"):
                    with temp_artifact(JP2_SUFFIX, self.temp_dir):
                        raise RuntimeError("original")

    def test_cleanup_warning_as_error_does_not_mask_error(self):
        """With warnings escalated to errors, the job error still propagates."""
        with warnings.catch_warnings():
            warnings.simplefilter('error', ResourceCleanupWarning)
            with mock.patch.object(Path, 'unlink', side_effect=PermissionError("locked")):
                with self.assertLogs('jp2bridge.tempfiles', level='WARNING'):
                    with self.assertRaisesRegex(RuntimeError, "job failed"):
                        with temp_artifact(JP2_SUFFIX, self.temp_dir) as artifact:
                            raise RuntimeError("job failed")
        self.assertTrue(artifact.cleanup_failed)


if __name__ == '__main__':
    unittest.main()
