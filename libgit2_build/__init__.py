"""
libgit2 build step
Configures and builds the vendored libgit2 with CMake and publishes its
link directives to the consuming build
"""

__version__ = "1.0.0"

from .main import BuildPipeline, main

__all__ = ["BuildPipeline", "main", "__version__"]
