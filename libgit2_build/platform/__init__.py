"""
Platform classification and toolchain adaptation
"""

import os
import shlex
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..environment import SSH_INJECTION_VAR, BuildConfiguration, DependencyReference
from ..exceptions import BuildStepError


SSH_INJECTION_MODES = ("auto", "always", "never")

# Launchers that may prefix the compiler in CC
COMPILER_WRAPPERS = {"ccache", "sccache", "distcc"}


class PlatformFamily(Enum):
    """Closed set of platform families the build distinguishes"""

    WINDOWS = "windows"
    APPLE = "apple"
    UNIX = "unix"


@dataclass(frozen=True)
class TargetPlatform:
    """A triple classified once into a platform family"""

    triple: str
    family: PlatformFamily
    msvc: bool = False

    @classmethod
    def classify(cls, triple: str) -> "TargetPlatform":
        if "windows" in triple:
            family = PlatformFamily.WINDOWS
        elif "apple" in triple:
            family = PlatformFamily.APPLE
        else:
            family = PlatformFamily.UNIX
        return cls(triple=triple, family=family, msvc="msvc" in triple)

    @property
    def arch(self) -> str:
        return self.triple.split("-")[0]

    def system_name(self, names: Mapping[str, str]) -> Optional[str]:
        """CMake system name for the first OS component of the triple found in ``names``"""
        components = self.triple.split("-")[1:]
        for os_name, name in names.items():
            # androideabi carries an ABI suffix
            if any(component.startswith(os_name) for component in components):
                return name
        return None

    @property
    def is_windows(self) -> bool:
        return self.family is PlatformFamily.WINDOWS

    @property
    def is_apple(self) -> bool:
        return self.family is PlatformFamily.APPLE


def _compiler_from_value(var: str, value: str) -> str:
    """Strip launcher wrappers and arguments from a CC-style value"""
    parts = shlex.split(value)
    while parts and Path(parts[0]).name in COMPILER_WRAPPERS:
        parts = parts[1:]
    if not parts:
        raise BuildStepError(f"cannot determine a C compiler from {var}={value!r}",
                             step="platform")
    return parts[0]


def find_c_compiler(target: TargetPlatform,
                    host: TargetPlatform,
                    environ: Mapping[str, str],
                    mingw_prefixes: Optional[Dict[str, str]] = None) -> str:
    """
    Resolve the C compiler used for the target

    Checks CC_<target>, CC_<target_with_underscores>, TARGET_CC or HOST_CC
    and finally CC, before falling back to the toolchain default.

    Raises:
        BuildStepError: a variable is set but names no compiler
    """
    cross = target.triple != host.triple
    candidates = [
        f"CC_{target.triple}",
        f"CC_{target.triple.replace('-', '_')}",
        "TARGET_CC" if cross else "HOST_CC",
        "CC",
    ]
    for var in candidates:
        value = environ.get(var)
        if value:
            return _compiler_from_value(var, value)

    if target.msvc:
        return "cl.exe"
    if target.is_windows:
        prefix = (mingw_prefixes or {}).get(target.arch)
        if cross and prefix and not host.is_windows:
            return f"{prefix}-gcc"
        return "gcc"
    return "cc"


def find_import_library_tool(compiler: str,
                             path_dirs: Sequence[Path],
                             marker: str = "gcc",
                             tool: str = "dlltool") -> Optional[Path]:
    """
    Find the import-library tool installed next to the C compiler

    The first PATH entry containing the compiler wins; the tool name is the
    compiler's file name with ``marker`` replaced by ``tool``.

    Returns:
        Path to the tool, or None when the compiler is not on PATH
    """
    for directory in path_dirs:
        candidate = Path(directory) / compiler
        if candidate.exists():
            if marker not in candidate.name:
                return None
            return candidate.with_name(candidate.name.replace(marker, tool))
    return None


class PlatformAdapter:
    """Turns the configuration seed into a generator-ready configuration"""

    def __init__(self,
                 config: Any,
                 logger: Any,
                 environ: Optional[Mapping[str, str]] = None,
                 ssh_injection: Optional[str] = None):
        """
        Initialize platform adapter

        Args:
            config: Configuration loader
            logger: Logger instance
            environ: Environment used for compiler and PATH lookups
            ssh_injection: Manual SSH injection mode (auto, always, never);
                defaults to LIBGIT2_SYS_SSH_INJECTION, then the config option
        """
        self.config = config
        self.logger = logger
        self.environ = dict(os.environ if environ is None else environ)

        mode = (ssh_injection
                or self.environ.get(SSH_INJECTION_VAR)
                or config.get_option("manual_ssh_injection", "auto"))
        mode = str(mode).lower()
        if mode not in SSH_INJECTION_MODES:
            raise BuildStepError(
                f"invalid SSH injection mode {mode!r}, expected one of "
                f"{', '.join(SSH_INJECTION_MODES)}",
                step="platform",
            )
        self.ssh_injection = mode

    def path_dirs(self) -> List[Path]:
        return [Path(p) for p in self.environ.get("PATH", "").split(os.pathsep) if p]

    def should_inject_ssh(self, target: TargetPlatform, has_pkg_config: bool) -> bool:
        """Whether libgit2's own libssh2 detection needs to be bypassed"""
        if self.ssh_injection == "always":
            return True
        if self.ssh_injection == "never":
            return False
        return target.is_windows or not has_pkg_config

    def ssh_flags(self, include: Path, target: TargetPlatform) -> List[str]:
        define = self.config.get_option("ssh_define", "GIT_SSH")
        if target.msvc:
            return [f"/I{include}", f"/D{define}"]
        return [f"-I{include}", f"-D{define}"]

    def _apply_msvc(self, build_config: BuildConfiguration):
        msvc = self.config.get_msvc_config()
        for flag in msvc.get("cflags", []):
            build_config.cflag(flag)
        for key, value in msvc.get("defines", {}).items():
            build_config.define(key, value)
        self.logger.debug("Applied MSVC toolchain flags")

    def _inject_ssh(self,
                    build_config: BuildConfiguration,
                    dependencies: Dict[str, DependencyReference],
                    target: TargetPlatform,
                    has_pkg_config: bool):
        if not build_config.has("ssh"):
            return
        if not self.should_inject_ssh(target, has_pkg_config):
            return

        dep_name = self.config.get_capability_config("ssh")["dependency"]
        reference = dependencies.get(dep_name)
        if reference is None or reference.include is None:
            self.logger.debug(f"No DEP_{dep_name}_INCLUDE hint, leaving SSH detection to libgit2")
            return

        for flag in self.ssh_flags(reference.include, target):
            build_config.cflag(flag)
        self.logger.info(f"Manually enabling SSH support with headers from {reference.include}")

    def _adapt_cross_compile(self,
                             build_config: BuildConfiguration,
                             target: TargetPlatform,
                             host: TargetPlatform):
        cross = self.config.get_cross_compile_config()
        compiler = find_c_compiler(target, host, self.environ, cross.get("mingw_prefixes"))
        build_config.set_compiler(compiler)
        self.logger.info(f"Cross-compiling for {target.triple} with {compiler}")

        # DLLTOOL only for windows targets on non-windows hosts
        if not target.is_windows or host.is_windows:
            return

        dlltool = find_import_library_tool(
            compiler,
            self.path_dirs(),
            marker=cross.get("compiler_marker", "gcc"),
            tool=cross.get("import_library_tool", "dlltool"),
        )
        if dlltool is None:
            self.logger.debug(f"{compiler} not found on PATH, not setting DLLTOOL")
            return
        build_config.define("DLLTOOL", dlltool)
        self.logger.info(f"Using {dlltool} for import libraries")

    def adapt(self,
              build_config: BuildConfiguration,
              references: Sequence[DependencyReference],
              target: TargetPlatform,
              host: TargetPlatform,
              has_pkg_config: bool) -> BuildConfiguration:
        """
        Apply toolchain quirks and make every capability explicit

        Args:
            build_config: Configuration seed from the environment reader
            references: Dependency references from the environment reader
            target: Classified target triple
            host: Classified host triple
            has_pkg_config: Whether a pkg-config tool could be run

        Returns:
            The same configuration, ready to freeze
        """
        dependencies = {ref.name: ref for ref in references}

        if target.msvc:
            self._apply_msvc(build_config)

        self._inject_ssh(build_config, dependencies, target, has_pkg_config)

        if target.triple != host.triple:
            self._adapt_cross_compile(build_config, target, host)

        for name in self.config.get_capabilities():
            cap_config = self.config.get_capability_config(name)
            dep_name = cap_config["dependency"]
            if build_config.has(name):
                reference = dependencies.get(dep_name) or DependencyReference(dep_name)
                build_config.register_dep(reference)
            else:
                build_config.define(cap_config["disable_define"], "OFF")

        for key, value in self.config.get_cmake_defines().items():
            build_config.define(key, value)

        for dep_name in self.config.get_required_dependencies():
            reference = dependencies.get(dep_name) or DependencyReference(dep_name, optional=False)
            build_config.register_dep(reference)

        return build_config


__all__ = [
    "PlatformAdapter",
    "PlatformFamily",
    "TargetPlatform",
    "find_c_compiler",
    "find_import_library_tool",
]
