"""
pkg-config discovery of system dependencies
"""

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Mapping, Optional, Sequence, Tuple

from ..environment import BuildConfiguration, DependencyReference
from ..link import LinkDirective


ALLOW_CROSS_VAR = "PKG_CONFIG_ALLOW_CROSS"


@dataclass(frozen=True)
class SearchPathList:
    """Ordered PKG_CONFIG_PATH entries, highest priority first"""

    entries: Tuple[Path, ...] = ()

    @classmethod
    def parse(cls, value: Optional[str]) -> "SearchPathList":
        if not value:
            return cls()
        return cls(tuple(Path(p) for p in value.split(os.pathsep) if p))

    def prepend(self, path: Path) -> "SearchPathList":
        return SearchPathList((Path(path),) + self.entries)

    def render(self) -> str:
        return os.pathsep.join(str(p) for p in self.entries)

    def __iter__(self) -> Iterator[Path]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def parse_link_flags(output: str) -> List[LinkDirective]:
    """
    Translate ``pkg-config --libs`` output into link directives

    Search paths come first, then libraries, each in the order pkg-config
    printed them. Compiler-only flags are ignored.
    """
    searches: List[LinkDirective] = []
    libraries: List[LinkDirective] = []
    tokens = shlex.split(output)
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if token.startswith("-L") and len(token) > 2:
            searches.append(LinkDirective.search(Path(token[2:]), kind="native"))
        elif token.startswith("-F") and len(token) > 2:
            searches.append(LinkDirective.search(Path(token[2:]), kind="framework"))
        elif token.startswith("-l") and len(token) > 2:
            libraries.append(LinkDirective.library(token[2:]))
        elif token == "-framework" and index + 1 < len(tokens):
            index += 1
            libraries.append(LinkDirective.library(tokens[index], kind="framework"))
        index += 1

    # Only search paths are de-duplicated; repeated libraries keep link order
    directives: List[LinkDirective] = []
    for directive in searches:
        if directive not in directives:
            directives.append(directive)
    return directives + libraries


class PkgConfig:
    """Thin wrapper around the pkg-config executable"""

    def __init__(self, logger: Any, environ: Optional[Mapping[str, str]] = None):
        self.logger = logger
        self.environ = dict(os.environ if environ is None else environ)
        self.executable = self.environ.get("PKG_CONFIG") or "pkg-config"

    def available(self) -> bool:
        """Whether the pkg-config executable can be started at all"""
        try:
            subprocess.run(
                [self.executable, "--version"],
                capture_output=True,
                env=self.environ,
                check=False
            )
        except OSError:
            self.logger.debug(f"{self.executable} is not available")
            return False
        return True

    def probe(self, package: str, search_path: SearchPathList) -> Optional[List[LinkDirective]]:
        """
        Query pkg-config for a package

        Returns:
            Link directives for the package, or None when it is not found
        """
        env = dict(self.environ)
        if len(search_path):
            env["PKG_CONFIG_PATH"] = search_path.render()

        cmd = [self.executable, "--libs", "--cflags", package]
        self.logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, env=env, check=False)
        except OSError as e:
            self.logger.debug(f"Could not run {self.executable}: {e}")
            return None

        if result.returncode != 0:
            self.logger.debug(f"pkg-config could not find {package}: {result.stderr.strip()}")
            return None
        return parse_link_flags(result.stdout)


class DependencyRegistrar:
    """Makes dependency package metadata discoverable to the build"""

    def __init__(self,
                 config: Any,
                 logger: Any,
                 pkg_config: PkgConfig,
                 environ: Optional[Mapping[str, str]] = None):
        """
        Args:
            config: Configuration loader
            logger: Logger instance
            pkg_config: pkg-config wrapper used for the system library probe
            environ: Environment mapping, os.environ by default
        """
        self.config = config
        self.logger = logger
        self.pkg_config = pkg_config
        self.environ = dict(os.environ if environ is None else environ)

    def register(self,
                 references: Sequence[DependencyReference],
                 search_path: SearchPathList) -> SearchPathList:
        """
        Prepend ``<root>/lib/pkgconfig`` for every optional dependency root

        Returns:
            The extended search path; entries already present keep their order
        """
        for reference in references:
            if not reference.optional:
                continue
            pkg_config_dir = reference.pkg_config_dir
            if pkg_config_dir is None:
                self.logger.debug(f"No DEP_{reference.name}_ROOT, using system locations")
                continue
            search_path = search_path.prepend(pkg_config_dir)
            self.logger.info(f"Registered {reference.name} metadata from {pkg_config_dir}")
        return search_path

    def find_system_library(self,
                            build_config: BuildConfiguration,
                            search_path: SearchPathList) -> Optional[List[LinkDirective]]:
        """
        Look for an installed libgit2 when the caller asked for it

        Returns:
            Directives from pkg-config, or None when the vendored copy has to
            be built
        """
        if not build_config.use_pkg_config:
            return None

        if build_config.target != build_config.host and ALLOW_CROSS_VAR not in self.environ:
            self.logger.warning(
                f"Cross-compiling to {build_config.target}; set {ALLOW_CROSS_VAR} "
                "to use a system libgit2"
            )
            return None

        package = self.config.get_library_config().get("pkg_config_name", "libgit2")
        directives = self.pkg_config.probe(package, search_path)
        if directives is None:
            self.logger.info(f"No system {package} found, building the vendored copy")
            return None

        self.logger.success(f"Using system {package} found by pkg-config")
        return directives


__all__ = [
    "DependencyRegistrar",
    "PkgConfig",
    "SearchPathList",
    "parse_link_flags",
]
