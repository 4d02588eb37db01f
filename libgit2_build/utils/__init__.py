"""
Utility modules for the libgit2 build step
"""

import sys
import logging
from typing import Optional

from ..environment import ArtifactLocation, BuildConfiguration
from ..exceptions import CapabilityVerificationError, FilesystemError
from ..platform import TargetPlatform


class ColoredFormatter(logging.Formatter):
    """Colored log formatter for terminal output"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'SUCCESS': '\033[92m',  # Bright Green
        'RESET': '\033[0m'
    }

    def __init__(self, fmt=None, datefmt=None, stream=None):
        super().__init__(fmt, datefmt)
        self.stream = stream or sys.stderr

    def format(self, record):
        if getattr(record, 'raw', False):
            return record.getMessage()

        # Color a copy so file handlers sharing the record stay plain
        if self.stream.isatty():
            record = logging.makeLogRecord(record.__dict__)
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            reset = self.COLORS['RESET']

            record.levelname = f"{color}{record.levelname}{reset}"
            record.msg = f"{color}{record.msg}{reset}"

        return super().format(record)


class Logger:
    """Build step logger

    Everything goes to stderr; stdout is reserved for link directives.
    """

    SUCCESS = 25  # Between INFO and WARNING

    def __init__(self, verbose: bool = False, log_file: Optional[str] = None, stream=None):
        """
        Initialize logger

        Args:
            verbose: Enable verbose output
            log_file: Optional log file path
            stream: Console stream, stderr by default
        """
        self.verbose = verbose
        stream = stream or sys.stderr

        # Add SUCCESS level
        logging.addLevelName(self.SUCCESS, "SUCCESS")

        # Create logger
        self.logger = logging.getLogger("libgit2_build")
        self.logger.setLevel(logging.DEBUG if verbose else logging.INFO)
        self.logger.propagate = False

        # Remove existing handlers
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        # Console handler
        console_handler = logging.StreamHandler(stream)
        console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)

        # Format
        if verbose:
            fmt = "%(asctime)s [%(levelname)s] %(message)s"
        else:
            fmt = "[%(levelname)s] %(message)s"

        console_formatter = ColoredFormatter(fmt, datefmt="%H:%M:%S", stream=stream)
        console_handler.setFormatter(console_formatter)
        self.logger.addHandler(console_handler)

        # File handler
        if log_file:
            self.logger.setLevel(logging.DEBUG)
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S"
            )
            file_handler.setFormatter(file_formatter)
            self.logger.addHandler(file_handler)

    def debug(self, msg: str):
        """Log debug message"""
        self.logger.debug(msg)

    def info(self, msg: str):
        """Log info message"""
        self.logger.info(msg)

    def warning(self, msg: str):
        """Log warning message"""
        self.logger.warning(msg)

    def error(self, msg: str):
        """Log error message"""
        self.logger.error(msg)

    def success(self, msg: str):
        """Log success message"""
        self.logger.log(self.SUCCESS, msg)


class ArtifactVerifier:
    """Checks that requested capabilities made it into the compiled library"""

    def __init__(self, config, logger: Logger):
        """
        Initialize verifier

        Args:
            config: Configuration loader
            logger: Logger instance
        """
        self.config = config
        self.logger = logger

    def ssh_marker(self) -> str:
        """Compiler flag libgit2 carries when SSH support was detected"""
        return f"-D{self.config.get_option('ssh_define', 'GIT_SSH')}"

    def verify(self,
               artifact: ArtifactLocation,
               build_config: BuildConfiguration,
               target: TargetPlatform) -> bool:
        """
        Verify the artifact tree against the build configuration

        The MSVC generators do not write flags.make, so the check only runs
        on other toolchains.

        Returns:
            True if the check ran, False if it was skipped
        """
        if not build_config.has("ssh"):
            self.logger.debug("SSH not requested, skipping capability check")
            return False
        if target.msvc:
            self.logger.debug("MSVC toolchain, skipping capability check")
            return False

        flags_file = artifact.flags_file
        self.logger.debug(f"Checking {flags_file} for SSH support")
        try:
            contents = flags_file.read_text()
        except OSError as e:
            raise FilesystemError(flags_file, f"cannot read generated flags: {e}", step="verify")

        if self.ssh_marker() not in contents:
            raise CapabilityVerificationError(
                "ssh",
                "libgit2 failed to find libssh2, and SSH support is required"
            )

        self.logger.success("Verified libgit2 was built with SSH support")
        return True


__all__ = ["Logger", "ColoredFormatter", "ArtifactVerifier"]
