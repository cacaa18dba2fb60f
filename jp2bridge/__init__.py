"""
jp2bridge - JPEG2000 compression through the Kakadu kdu_compress executable
"""

__version__ = "0.1.0"

from .params import EncodeParameters, get_level_count
from .environment import EngineConfig, OSFamily
from .compressor import JP2Compressor
from .exceptions import (
    JP2BridgeError,
    ConfigurationError,
    CompressionError,
    InputFormatError,
    ProcessLaunchError,
    ProcessExecutionError,
    CompressionInterrupted,
    CompressionTimeout,
    ResourceCleanupWarning,
)

__all__ = [
    "EncodeParameters",
    "get_level_count",
    "EngineConfig",
    "OSFamily",
    "JP2Compressor",
    "JP2BridgeError",
    "ConfigurationError",
    "CompressionError",
    "InputFormatError",
    "ProcessLaunchError",
    "ProcessExecutionError",
    "CompressionInterrupted",
    "CompressionTimeout",
    "ResourceCleanupWarning",
]
