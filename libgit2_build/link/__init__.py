"""
Link directives published to the consuming build
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional

from ..environment import ArtifactLocation
from ..exceptions import FilesystemError
from ..platform import PlatformFamily, TargetPlatform


DIRECTIVE_PREFIX = "cargo:"


@dataclass(frozen=True)
class LinkDirective:
    """One library to link or one directory to search

    Exactly one of ``name`` and ``search_path`` is set.
    """

    name: Optional[str] = None
    kind: Optional[str] = None
    search_path: Optional[Path] = None

    @classmethod
    def library(cls, name: str, kind: Optional[str] = None) -> "LinkDirective":
        return cls(name=name, kind=kind)

    @classmethod
    def search(cls, path: Path, kind: Optional[str] = "native") -> "LinkDirective":
        return cls(kind=kind, search_path=Path(path))

    @property
    def is_search(self) -> bool:
        return self.search_path is not None

    def render(self) -> str:
        if self.is_search:
            key, value = "rustc-link-search", str(self.search_path)
        else:
            key, value = "rustc-link-lib", self.name
        if self.kind:
            value = f"{self.kind}={value}"
        return f"{DIRECTIVE_PREFIX}{key}={value}"

    def __str__(self) -> str:
        return self.render()


class LinkEmitter:
    """Works out which libraries the consuming build has to link"""

    def __init__(self, config: Any, logger: Any):
        """
        Args:
            config: Configuration loader
            logger: Logger instance
        """
        self.config = config
        self.logger = logger

    def _system_libraries(self, family: PlatformFamily) -> List[LinkDirective]:
        platform_config = self.config.get_platform_config(family.value)
        directives = [LinkDirective.library(lib)
                      for lib in platform_config.get("system_libraries", [])]
        directives.extend(LinkDirective.library(fw, kind="framework")
                          for fw in platform_config.get("frameworks", []))
        return directives

    def _native_library(self, artifact: ArtifactLocation) -> List[LinkDirective]:
        return [
            LinkDirective.library(self.config.get_library_name(), kind="static"),
            LinkDirective.search(artifact.lib_dir),
        ]

    def uses_system_http_parser(self, artifact: ArtifactLocation) -> bool:
        """
        Check whether libgit2 linked against the system http_parser

        libgit2 bundles its own copy unless it found one on the system, which
        only shows up in the generated libgit2.pc.
        """
        pc_file = artifact.pkg_config_file
        if not pc_file.exists():
            self.logger.debug(f"{pc_file} not generated, assuming bundled http_parser")
            return False
        try:
            contents = pc_file.read_text()
        except OSError as e:
            raise FilesystemError(pc_file, f"cannot read package metadata: {e}", step="link")
        return self.config.get_option("http_parser_marker", "-lhttp_parser") in contents

    def emit(self, artifact: ArtifactLocation, target: TargetPlatform) -> List[LinkDirective]:
        """
        Build the ordered directive list for the artifact tree

        Args:
            artifact: Installed output tree
            target: Classified target triple

        Returns:
            Directives in the order they must be printed
        """
        directives: List[LinkDirective] = []

        if target.family is PlatformFamily.WINDOWS:
            directives.extend(self._system_libraries(target.family))
            directives.extend(self._native_library(artifact))
            return directives

        if self.uses_system_http_parser(artifact):
            library = self.config.get_option("http_parser_library", "http_parser")
            self.logger.info(f"libgit2 uses the system {library}")
            directives.append(LinkDirective.library(library))

        directives.extend(self._native_library(artifact))

        if target.family is PlatformFamily.APPLE:
            directives.extend(self._system_libraries(target.family))

        return directives


__all__ = ["LinkDirective", "LinkEmitter", "DIRECTIVE_PREFIX"]
