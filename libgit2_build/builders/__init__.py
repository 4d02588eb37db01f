"""
Builder components for the vendored library
"""

from .base_builder import BaseBuilder
from .cmake_builder import CMakeBuilder
from .pkg_config import DependencyRegistrar, PkgConfig, SearchPathList, parse_link_flags

__all__ = [
    "BaseBuilder",
    "CMakeBuilder",
    "DependencyRegistrar",
    "PkgConfig",
    "SearchPathList",
    "parse_link_flags",
]
