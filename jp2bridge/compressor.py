"""
JP2 Compressor - bridges images, files and streams to kdu_compress
"""

import contextlib
import logging
import os
import shutil

import numpy as np
from PIL import Image

from .command import STDOUT, build_compress_command
from .environment import EngineConfig
from .exceptions import CompressionError, InputFormatError
from .executor import ProcessExecutor
from .imaging import (
    convert_to_tiff,
    get_image_dimensions,
    image_size,
    is_usable_tiff,
    write_tiff,
)
from .params import EncodeParameters
from .tempfiles import JP2_SUFFIX, TIFF_SUFFIX, temp_artifact


logger = logging.getLogger(__name__)


def _is_writable_stream(obj):
    return hasattr(obj, 'write')


def _coerce_params(params):
    if params is None:
        return EncodeParameters()
    if isinstance(params, dict):
        return EncodeParameters.from_dict(params)
    return params


class JP2Compressor:
    """
    Compresses images to JPEG2000 by running kdu_compress.

    Each call is an independent job: it gets its own temporary files and
    its own subprocess, so one compressor can be used from many threads.
    Every temporary file is deleted before a call returns or raises.
    """

    def __init__(self, config=None, temp_dir=None, timeout=None):
        """
        Initialize the compressor.

        Args:
            config: EngineConfig (default: resolved from the environment)
            temp_dir: Directory for intermediate files (default: system temp)
            timeout: Seconds before a running engine is killed (default: no limit)

        Raises:
            ConfigurationError: if no engine home is configured
        """
        self.config = config if config is not None else EngineConfig.from_environment()
        self.temp_dir = temp_dir
        self.timeout = timeout
        self.executor = ProcessExecutor(self.config)

    def build_command(self, input_path, output_path, params):
        """Return the argument vector kdu_compress would be run with."""
        return build_compress_command(self.config.executable, input_path, output_path, params)

    def compress(self, source, destination, params=None, cancel_event=None):
        """
        Compress any supported source to a file path or binary stream.

        Args:
            source: File path, PIL Image, numpy array or readable binary stream
            destination: Output file path or writable binary stream
            params: EncodeParameters or dict of parameter fields
            cancel_event: threading.Event that aborts the job when set

        Returns:
            ExecutionResult
        """
        if isinstance(source, (Image.Image, np.ndarray)):
            return self.compress_image(source, destination, params, cancel_event)
        if hasattr(source, 'read'):
            return self.compress_stream(source, destination, params, cancel_event)
        if isinstance(source, (str, os.PathLike)):
            return self.compress_file(source, destination, params, cancel_event)
        raise TypeError(f"Unsupported image source: {type(source).__name__}")

    def compress_file(self, input_path, output, params=None, cancel_event=None):
        """
        Compress an image file.

        Uncompressed TIFFs are passed straight to the engine; anything else
        Pillow can read is converted to a temporary TIFF first.
        """
        params = _coerce_params(params)
        with contextlib.ExitStack() as stack:
            tiff_path = self._prepare_input(input_path, stack)
            if params.levels == 0:
                params = params.resolve_levels(*get_image_dimensions(tiff_path))
            return self._run(tiff_path, output, params, stack, cancel_event)

    def compress_image(self, image, output, params=None, cancel_event=None):
        """Compress an in-memory PIL Image or numpy array."""
        params = _coerce_params(params).resolve_levels(*image_size(image))
        with contextlib.ExitStack() as stack:
            tiff = self._temp_file(stack, TIFF_SUFFIX)
            try:
                write_tiff(image, tiff.path)
            except (OSError, ValueError, TypeError) as e:
                raise CompressionError(f"Cannot write temporary TIFF: {e}") from e
            return self._run(tiff.path, output, params, stack, cancel_event)

    def compress_stream(self, stream, output, params=None, cancel_event=None):
        """Compress an image read from a binary stream (normally a TIFF)."""
        params = _coerce_params(params)
        with contextlib.ExitStack() as stack:
            received = self._temp_file(stack, TIFF_SUFFIX)
            try:
                with open(received.path, 'wb') as f:
                    shutil.copyfileobj(stream, f)
            except OSError as e:
                raise CompressionError(f"Cannot buffer input stream: {e}") from e

            try:
                tiff_path = self._prepare_input(received.path, stack)
                if params.levels == 0:
                    params = params.resolve_levels(*get_image_dimensions(tiff_path))
            except InputFormatError as e:
                logger.error("Unexpected file format; expecting uncompressed TIFF: %s", e)
                raise InputFormatError("Unexpected file format; expecting uncompressed TIFF") from e

            return self._run(tiff_path, output, params, stack, cancel_event)

    def _temp_file(self, stack, suffix):
        try:
            return stack.enter_context(temp_artifact(suffix, self.temp_dir))
        except OSError as e:
            raise CompressionError(f"Cannot create temporary file: {e}") from e

    def _prepare_input(self, input_path, stack):
        if is_usable_tiff(input_path):
            logger.debug("Processing TIFF: %s", input_path)
            return input_path

        logger.debug("Converting %s to uncompressed TIFF", input_path)
        tiff = self._temp_file(stack, TIFF_SUFFIX)
        convert_to_tiff(input_path, tiff.path)
        return tiff.path

    def _run(self, input_path, output, params, stack, cancel_event):
        if not _is_writable_stream(output):
            argv = self.build_command(input_path, output, params)
            return self.executor.run(argv, expect_output=output,
                                     timeout=self.timeout, cancel_event=cancel_event)

        if self.config.supports_stdout_pipe:
            argv = self.build_command(input_path, STDOUT, params)
            return self.executor.run(argv, sink=output,
                                     timeout=self.timeout, cancel_event=cancel_event)

        substitute = self._temp_file(stack, JP2_SUFFIX)
        argv = self.build_command(input_path, substitute.path, params)
        return self.executor.run(argv, sink=output, substitute_output=substitute.path,
                                 timeout=self.timeout, cancel_event=cancel_event)
