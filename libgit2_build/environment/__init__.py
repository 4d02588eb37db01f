"""
Build inputs read from the process environment
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Set, Tuple

from ..exceptions import ConfigurationFrozenError, MissingInputError


USE_PKG_CONFIG_VAR = "LIBGIT2_SYS_USE_PKG_CONFIG"
SSH_INJECTION_VAR = "LIBGIT2_SYS_SSH_INJECTION"


@dataclass(frozen=True)
class DependencyReference:
    """An external library located through DEP_<NAME>_* hints"""

    name: str
    root: Optional[Path] = None
    include: Optional[Path] = None
    optional: bool = True

    @property
    def pkg_config_dir(self) -> Optional[Path]:
        if self.root is None:
            return None
        return self.root / "lib" / "pkgconfig"


@dataclass(frozen=True)
class ArtifactLocation:
    """Output tree left behind by the CMake install step"""

    root: Path
    lib_subdir: str = "lib"
    flags_subpath: str = "build/CMakeFiles/git2.dir/flags.make"
    pkg_config_subpath: str = "lib/pkgconfig/libgit2.pc"

    @property
    def lib_dir(self) -> Path:
        return self.root / self.lib_subdir

    @property
    def flags_file(self) -> Path:
        return self.root / self.flags_subpath

    @property
    def pkg_config_file(self) -> Path:
        return self.root / self.pkg_config_subpath


@dataclass
class BuildConfiguration:
    """Accumulates everything handed to the build generator

    Mutators return self so calls can be chained. After freeze() every
    mutator raises ConfigurationFrozenError.
    """

    target: str
    host: str
    out_dir: Path
    capabilities: Set[str] = field(default_factory=set)
    cflags: List[str] = field(default_factory=list)
    defines: List[Tuple[str, str]] = field(default_factory=list)
    dependencies: List[DependencyReference] = field(default_factory=list)
    use_pkg_config: bool = False
    profile: str = "release"
    jobs: Optional[int] = None
    c_compiler: Optional[str] = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def _check_mutable(self):
        if self._frozen:
            raise ConfigurationFrozenError("build configuration is frozen")

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "BuildConfiguration":
        self._frozen = True
        return self

    def has(self, capability: str) -> bool:
        return capability in self.capabilities

    def cflag(self, flag: str) -> "BuildConfiguration":
        self._check_mutable()
        self.cflags.append(flag)
        return self

    def define(self, key: str, value) -> "BuildConfiguration":
        self._check_mutable()
        self.defines.append((key, str(value)))
        return self

    def register_dep(self, dependency: DependencyReference) -> "BuildConfiguration":
        self._check_mutable()
        self.dependencies.append(dependency)
        return self

    def set_compiler(self, compiler: str) -> "BuildConfiguration":
        self._check_mutable()
        self.c_compiler = compiler
        return self

    @property
    def registered_names(self) -> List[str]:
        return [dep.name for dep in self.dependencies]

    @property
    def cmake_build_type(self) -> str:
        return "Debug" if self.profile == "debug" else "Release"


class EnvironmentReader:
    """Reads feature flags, triples and dependency hints from the environment"""

    def __init__(self, config, environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            config: Configuration loader
            environ: Environment mapping, os.environ by default
        """
        self.config = config
        self.environ = dict(os.environ if environ is None else environ)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.environ.get(name, default)

    def is_set(self, name: str) -> bool:
        return name in self.environ

    def require(self, name: str) -> str:
        value = self.environ.get(name)
        if not value:
            raise MissingInputError(name)
        return value

    def feature_enabled(self, feature: str) -> bool:
        return self.is_set(f"CARGO_FEATURE_{feature.upper()}")

    def dependency(self, name: str, optional: bool = True) -> DependencyReference:
        root = self.get(f"DEP_{name}_ROOT")
        include = self.get(f"DEP_{name}_INCLUDE")
        return DependencyReference(
            name=name,
            root=Path(root) if root else None,
            include=Path(include) if include else None,
            optional=optional,
        )

    def jobs(self) -> Optional[int]:
        value = self.get("NUM_JOBS")
        if not value:
            return None
        try:
            jobs = int(value)
        except ValueError:
            return None
        return jobs if jobs > 0 else None

    def path_dirs(self) -> List[Path]:
        """Directories listed in PATH, in order"""
        return [Path(p) for p in self.get("PATH", "").split(os.pathsep) if p]

    def read(self) -> Tuple[BuildConfiguration, List[DependencyReference]]:
        """
        Build the configuration seed and dependency references

        Returns:
            (BuildConfiguration, references for enabled capabilities followed
            by the always-required dependencies)

        Raises:
            MissingInputError: TARGET, HOST or OUT_DIR is absent
        """
        target = self.require("TARGET")
        host = self.require("HOST")
        out_dir = Path(self.require("OUT_DIR"))

        capabilities = set()
        references = []
        for name in self.config.get_capabilities():
            cap_config = self.config.get_capability_config(name)
            if self.feature_enabled(cap_config.get("feature", name)):
                capabilities.add(name)
                references.append(self.dependency(cap_config["dependency"]))

        for name in self.config.get_required_dependencies():
            references.append(self.dependency(name, optional=False))

        build_config = BuildConfiguration(
            target=target,
            host=host,
            out_dir=out_dir,
            capabilities=capabilities,
            use_pkg_config=self.is_set(USE_PKG_CONFIG_VAR),
            profile=self.get("PROFILE", "release"),
            jobs=self.jobs(),
        )
        return build_config, references

    def describe(self, build_config: BuildConfiguration) -> Dict[str, str]:
        enabled = ", ".join(sorted(build_config.capabilities)) or "none"
        return {
            "target": build_config.target,
            "host": build_config.host,
            "capabilities": enabled,
            "out_dir": str(build_config.out_dir),
        }


__all__ = [
    "ArtifactLocation",
    "BuildConfiguration",
    "DependencyReference",
    "EnvironmentReader",
    "SSH_INJECTION_VAR",
    "USE_PKG_CONFIG_VAR",
]
