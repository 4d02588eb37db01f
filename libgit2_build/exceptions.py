"""Holds exceptions used by the libgit2 build step"""

from pathlib import Path
from typing import List, Optional, Sequence


class BuildStepError(Exception):
    """Base class for every fatal failure of the build step"""

    step = "build"

    def __init__(self, message: str, step: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if step is not None:
            self.step = step

    def __str__(self) -> str:
        return f"{self.step}: {self.message}"


class MissingInputError(BuildStepError):
    """Raised when a mandatory environment variable is absent"""

    step = "environment"

    def __init__(self, variable: str):
        super().__init__(f"required environment variable {variable} is not set")
        self.variable = variable


class CommandError(BuildStepError):
    """Raised when an external command cannot be run or exits non-zero"""

    def __init__(self,
                 command: Sequence[str],
                 returncode: Optional[int] = None,
                 step: Optional[str] = None,
                 reason: Optional[str] = None):
        self.command: List[str] = [str(c) for c in command]
        self.returncode = returncode
        cmd_str = " ".join(self.command)
        if reason:
            message = f"command `{cmd_str}` failed: {reason}"
        else:
            message = f"command `{cmd_str}` failed with exit status {returncode}"
        super().__init__(message, step=step)


class FilesystemError(BuildStepError):
    """Raised when a directory reset or metadata read fails"""

    def __init__(self, path: Path, reason: str, step: Optional[str] = None):
        super().__init__(f"{path}: {reason}", step=step)
        self.path = Path(path)


class CapabilityVerificationError(BuildStepError):
    """Raised when a requested capability was not compiled into the library"""

    step = "verify"

    def __init__(self, capability: str, message: str):
        super().__init__(message)
        self.capability = capability


class ConfigurationFrozenError(RuntimeError):
    """Raised when a frozen build configuration is modified"""
