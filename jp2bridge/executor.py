"""
Process executor - runs kdu_compress and classifies its outcome
"""

import enum
import logging
import os
import shutil
import subprocess
import threading
import time
from dataclasses import dataclass

from .command import format_command, to_process_args
from .exceptions import (
    CompressionInterrupted,
    CompressionTimeout,
    ProcessExecutionError,
    ProcessLaunchError,
)


logger = logging.getLogger(__name__)

# How often the wait loop checks for cancellation and deadlines
POLL_INTERVAL = 0.05
COPY_BUFFER_SIZE = 64 * 1024


class ProcessState(enum.Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    RUNNING = "running"
    DRAINING = "draining"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ExecutionResult:
    returncode: int
    bytes_written: int = 0
    diagnostics: str = ""


class _CountingWriter:
    """Wraps a sink to count the bytes copied into it."""

    def __init__(self, sink):
        self.sink = sink
        self.count = 0

    def write(self, data):
        self.sink.write(data)
        self.count += len(data)
        return len(data)


class ProcessHandle:
    """
    The live engine process for one job, with its streams and state.

    Owned by ProcessExecutor.run(); never outlives that call.
    """

    def __init__(self, argv):
        self.argv = argv
        self.process = None
        self.state = ProcessState.IDLE
        self.diagnostics = b""
        self.copy_error = None
        self._threads = []

    def transition(self, state):
        logger.debug("kdu_compress %s -> %s", self.state.value, state.value)
        self.state = state

    def start_thread(self, target, *args):
        thread = threading.Thread(target=target, args=args, daemon=True)
        thread.start()
        self._threads.append(thread)

    def join_threads(self):
        for thread in self._threads:
            thread.join()
        self._threads = []

    def kill(self):
        if self.process is not None and self.process.poll() is None:
            logger.debug("Killing kdu_compress (pid %s)", self.process.pid)
            self.process.kill()

    def close(self):
        """Reap the process and close all of its pipes."""
        if self.process is None:
            return
        self.kill()
        self.process.wait()
        self.join_threads()
        for stream in (self.process.stdin, self.process.stdout, self.process.stderr):
            if stream is not None:
                stream.close()


class ProcessExecutor:
    """
    Runs the compression engine under an EngineConfig.

    One executor may be shared between threads; each run() call owns its
    own ProcessHandle.
    """

    def __init__(self, config):
        self.config = config

    def run(self, argv, sink=None, substitute_output=None, expect_output=None,
            timeout=None, cancel_event=None):
        """
        Run the engine to completion.

        Args:
            argv: Escaped argument vector from build_compress_command()
            sink: Writable binary stream to receive the compressed bytes
            substitute_output: File the engine writes to instead of stdout;
                copied to sink after exit
            expect_output: File that must exist and be non-empty on success;
                any existing file there is removed before launch
            timeout: Seconds to wait before killing the engine
            cancel_event: threading.Event that aborts the job when set

        Returns:
            ExecutionResult

        Raises:
            ProcessLaunchError: if the engine cannot be started
            ProcessExecutionError: if the engine reports an error or produces no output
            CompressionTimeout: if the deadline passes
            CompressionInterrupted: if cancel_event is set
        """
        handle = ProcessHandle(argv)
        direct_stream = sink is not None and substitute_output is None

        try:
            if expect_output is not None:
                _remove_stale_output(expect_output)
            self._launch(handle, direct_stream)
            writer = _CountingWriter(sink) if sink is not None else None

            handle.transition(ProcessState.RUNNING)
            if direct_stream:
                handle.start_thread(self._copy_stdout, handle, writer)
            handle.start_thread(self._drain_stderr, handle)

            returncode = self._wait(handle, timeout, cancel_event)

            handle.transition(ProcessState.DRAINING)
            handle.join_threads()
            diagnostics = handle.diagnostics.decode('utf-8', errors='replace')

            # kdu_compress sometimes reports failure only on stderr
            if diagnostics or returncode != 0:
                message = diagnostics or f"kdu_compress exited with status {returncode}"
                raise ProcessExecutionError(message, diagnostics=diagnostics, returncode=returncode)
            if handle.copy_error is not None:
                raise ProcessExecutionError(f"Failed to copy engine output: {handle.copy_error}",
                                            returncode=returncode)

            if substitute_output is not None and sink is not None:
                try:
                    with open(substitute_output, 'rb') as f:
                        shutil.copyfileobj(f, writer, COPY_BUFFER_SIZE)
                except OSError as e:
                    raise ProcessExecutionError(f"Failed to copy engine output: {e}",
                                                returncode=returncode) from e

            if writer is not None and writer.count == 0:
                raise ProcessExecutionError("kdu_compress produced no output", returncode=returncode)
            if expect_output is not None and not _is_nonempty_file(expect_output):
                raise ProcessExecutionError("Unknown error occurred during processing.",
                                            returncode=returncode)

            handle.transition(ProcessState.COMPLETED)
            return ExecutionResult(
                returncode=returncode,
                bytes_written=writer.count if writer is not None else 0,
                diagnostics=diagnostics,
            )
        except Exception as e:
            handle.transition(ProcessState.FAILED)
            logger.error("Compression failed: %s", e)
            raise
        except BaseException:
            handle.transition(ProcessState.FAILED)
            raise
        finally:
            handle.close()

    def _launch(self, handle, direct_stream):
        handle.transition(ProcessState.LAUNCHING)
        args = to_process_args(handle.argv)
        logger.debug("Launching: %s", format_command(args))
        try:
            handle.process = subprocess.Popen(
                args,
                cwd=str(self.config.engine_home),
                env=self.config.process_environment(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE if direct_stream else subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessLaunchError(f"Cannot launch {args[0]}: {e}") from e

    def _wait(self, handle, timeout, cancel_event):
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            try:
                return handle.process.wait(timeout=POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                pass

            if cancel_event is not None and cancel_event.is_set():
                handle.kill()
                raise CompressionInterrupted("Compression was interrupted")
            if deadline is not None and time.monotonic() >= deadline:
                handle.kill()
                raise CompressionTimeout(f"kdu_compress did not finish within {timeout}s")

    @staticmethod
    def _copy_stdout(handle, writer):
        try:
            shutil.copyfileobj(handle.process.stdout, writer, COPY_BUFFER_SIZE)
        except Exception as e:
            handle.copy_error = e
            logger.debug("Output sink rejected engine output: %r", e)
            # Keep draining so the engine never blocks on a full pipe
            try:
                while handle.process.stdout.read(COPY_BUFFER_SIZE):
                    pass
            except (OSError, ValueError) as drain_error:
                logger.debug("Stopped draining kdu_compress output: %s", drain_error)

    @staticmethod
    def _drain_stderr(handle):
        try:
            handle.diagnostics = handle.process.stderr.read()
        except (OSError, ValueError) as e:
            logger.error("Cannot read kdu_compress diagnostics: %s", e)


def _remove_stale_output(path):
    """Delete a leftover output file so old bytes never pass as new output."""
    try:
        os.unlink(path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise ProcessExecutionError(f"Cannot replace existing output {path}: {e}") from e
    logger.debug("Removed existing output %s", path)


def _is_nonempty_file(path):
    try:
        with open(path, 'rb') as f:
            return bool(f.read(1))
    except OSError:
        return False
