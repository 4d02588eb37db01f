"""
Base builder class that all builders inherit from
"""

import os
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Any

from .pkg_config import SearchPathList
from ..environment import ArtifactLocation, BuildConfiguration
from ..exceptions import CommandError, FilesystemError


class BaseBuilder(ABC):
    """Abstract base class for all builders"""

    step = "build"

    def __init__(self,
                 name: str,
                 source_dir: Path,
                 logger: Any,
                 environ: Optional[Mapping[str, str]] = None):
        """
        Initialize base builder

        Args:
            name: Library name
            source_dir: Vendored source tree
            logger: Logger instance
            environ: Base environment for child processes
        """
        self.name = name
        self.source_dir = Path(source_dir).resolve()
        self.logger = logger
        self.env = dict(os.environ if environ is None else environ)

    def run_command(self,
                    cmd: List[str],
                    cwd: Optional[Path] = None,
                    env: Optional[Dict[str, str]] = None,
                    capture_output: bool = False) -> subprocess.CompletedProcess:
        """
        Run a command with logging

        Args:
            cmd: Command and arguments
            cwd: Working directory
            env: Environment variables
            capture_output: Capture stdout/stderr

        Returns:
            CompletedProcess instance

        Raises:
            CommandError: the command could not be started or exited non-zero
        """
        if cwd is None:
            cwd = self.source_dir
        if env is None:
            env = self.env

        cmd = [str(c) for c in cmd]
        cmd_str = " ".join(cmd)
        self.logger.debug(f"Running: {cmd_str}")
        self.logger.debug(f"  in: {cwd}")

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                env=env,
                check=True,
                capture_output=capture_output,
                text=True
            )
        except subprocess.CalledProcessError as e:
            self.logger.error(f"Command failed: {cmd_str}")
            if e.stdout:
                self.logger.error(f"stdout: {e.stdout}")
            if e.stderr:
                self.logger.error(f"stderr: {e.stderr}")
            raise CommandError(cmd, e.returncode, step=self.step) from e
        except OSError as e:
            raise CommandError(cmd, step=self.step, reason=str(e)) from e

        if capture_output and result.stdout:
            self.logger.debug(f"Output: {result.stdout}")

        return result

    def check_source_dir(self):
        if not self.source_dir.is_dir():
            raise FilesystemError(self.source_dir, "source directory not found", step=self.step)

    @abstractmethod
    def configure(self, build_config: BuildConfiguration, env: Dict[str, str]):
        """Configure the build"""

    @abstractmethod
    def build(self, build_config: BuildConfiguration, env: Dict[str, str]):
        """Build and install the library"""

    @abstractmethod
    def prepare(self, build_config: BuildConfiguration):
        """Prepare the output directory"""

    @abstractmethod
    def child_environment(self, build_config: BuildConfiguration,
                          search_path: SearchPathList) -> Dict[str, str]:
        """Environment handed to the generator's processes"""

    @abstractmethod
    def artifact(self, build_config: BuildConfiguration) -> ArtifactLocation:
        """Describe the tree the build leaves behind"""

    def execute(self, build_config: BuildConfiguration, search_path: SearchPathList) -> ArtifactLocation:
        """Execute the full build process"""
        build_config.freeze()
        self.logger.info(f"Building {self.name} for {build_config.target}...")
        self.check_source_dir()

        self.prepare(build_config)
        env = self.child_environment(build_config, search_path)

        self.logger.info(f"Configuring {self.name}...")
        self.configure(build_config, env)

        self.logger.info(f"Building {self.name}...")
        self.build(build_config, env)

        self.logger.success(f"Successfully built {self.name}")
        return self.artifact(build_config)
