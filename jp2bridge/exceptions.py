"""
Exception types raised by the JPEG2000 compression bridge
"""


class JP2BridgeError(Exception):
    """Base class for all jp2bridge errors."""


class ConfigurationError(JP2BridgeError):
    """The compression engine is not configured (e.g. KAKADU_HOME unset)."""


class CompressionError(JP2BridgeError):
    """A compression job failed."""


class InputFormatError(CompressionError):
    """The input is not a usable TIFF and could not be converted into one."""


class ProcessLaunchError(CompressionError):
    """The compression executable could not be started."""


class ProcessExecutionError(CompressionError):
    """
    The compression executable ran but did not produce a usable result.

    Attributes:
        diagnostics: Text the engine wrote to its error stream, verbatim
        returncode: Exit status of the engine, if it exited
    """

    def __init__(self, message, diagnostics='', returncode=None):
        super().__init__(message)
        self.diagnostics = diagnostics
        self.returncode = returncode


class CompressionInterrupted(CompressionError):
    """Waiting on the engine was interrupted; the job did not finish."""


class CompressionTimeout(CompressionInterrupted):
    """The engine did not finish before the caller's deadline."""


class ResourceCleanupWarning(UserWarning):
    """A temporary file could not be deleted."""
