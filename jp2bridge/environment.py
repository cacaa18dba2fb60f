"""
Platform adapter - resolves where kdu_compress lives and how to run it
"""

import enum
import logging
import os
import platform
from dataclasses import dataclass
from pathlib import Path

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)

ENGINE_HOME_VAR = "KAKADU_HOME"
COMPRESS_EXE = "kdu_compress"


class OSFamily(enum.Enum):
    LINUX = "linux"
    SOLARIS = "solaris"
    MAC = "mac"
    WINDOWS = "windows"
    OTHER = "other"

    @classmethod
    def detect(cls, system=None):
        """Map a platform.system() name onto an OS family."""
        name = (system if system is not None else platform.system()).lower()
        if name.startswith('win'):
            return cls.WINDOWS
        if name.startswith('darwin') or name.startswith('mac'):
            return cls.MAC
        if name.startswith('linux'):
            return cls.LINUX
        if name.startswith('sunos') or name.startswith('solaris'):
            return cls.SOLARIS
        return cls.OTHER

    @property
    def library_path_var(self):
        """Name of the shared-library search path variable, if one is needed."""
        if self is OSFamily.WINDOWS:
            return None
        if self is OSFamily.MAC:
            return "DYLD_LIBRARY_PATH"
        return "LD_LIBRARY_PATH"

    @property
    def supports_stdout_pipe(self):
        """Whether the engine can write its output to /dev/stdout."""
        return self is not OSFamily.WINDOWS


@dataclass(frozen=True)
class EngineConfig:
    """
    Process-wide configuration for running the compression engine.

    Resolve once with from_environment() and pass the instance to every
    compressor; it is read-only and safe to share between threads.
    """

    engine_home: Path
    executable: Path
    os_family: OSFamily
    library_path_var: str = None
    library_path_value: str = None

    @property
    def supports_stdout_pipe(self):
        return self.os_family.supports_stdout_pipe

    @classmethod
    def from_environment(cls, environ=None, system=None, engine_home=None):
        """
        Resolve the engine configuration.

        Args:
            environ: Mapping to read variables from (default: os.environ)
            system: Operating system name as from platform.system()
            engine_home: Explicit engine directory, overriding KAKADU_HOME

        Returns:
            EngineConfig

        Raises:
            ConfigurationError: if no engine home is configured
        """
        if environ is None:
            environ = os.environ

        home = engine_home if engine_home is not None else environ.get(ENGINE_HOME_VAR)
        if not home:
            logger.error("%s is not defined", ENGINE_HOME_VAR)
            raise ConfigurationError(f"{ENGINE_HOME_VAR} is not defined")

        os_family = OSFamily.detect(system)
        home = Path(home)
        exe_name = COMPRESS_EXE + ".exe" if os_family is OSFamily.WINDOWS else COMPRESS_EXE

        var = os_family.library_path_var
        value = None
        if var is not None:
            value = environ.get(var) or str(home)

        config = cls(
            engine_home=home,
            executable=home / exe_name,
            os_family=os_family,
            library_path_var=var,
            library_path_value=value,
        )
        logger.debug("Engine config: %s (%s=%s, stdout pipe: %s)",
                     config.executable, var, value, config.supports_stdout_pipe)
        return config

    def process_environment(self, base=None):
        """
        Build the environment for the engine subprocess.

        Args:
            base: Environment to start from (default: os.environ)

        Returns:
            dict: Copy of base with the library search path injected
        """
        env = dict(os.environ if base is None else base)
        if self.library_path_var:
            env[self.library_path_var] = self.library_path_value
        return env
