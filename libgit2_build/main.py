#!/usr/bin/env python3
"""
Main entry point for the libgit2 build step
"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Mapping, Optional

from .builders import CMakeBuilder, DependencyRegistrar, PkgConfig, SearchPathList
from .config import ConfigLoader
from .environment import EnvironmentReader
from .exceptions import BuildStepError
from .link import LinkDirective, LinkEmitter
from .platform import PlatformAdapter, TargetPlatform
from .utils import ArtifactVerifier, Logger


class BuildPipeline:
    """Runs the build step from environment to link directives"""

    def __init__(self,
                 environ: Optional[Mapping[str, str]] = None,
                 source_dir: Optional[Path] = None,
                 config_dir: Optional[Path] = None,
                 verbose: bool = False,
                 log_file: Optional[str] = None,
                 logger: Optional[Logger] = None):
        """
        Initialize the pipeline

        Args:
            environ: Environment to read, os.environ by default
            source_dir: Vendored libgit2 tree, defaults to
                $CARGO_MANIFEST_DIR/libgit2
            config_dir: Directory holding dependencies.yaml and platforms.yaml
            verbose: Enable verbose output
            log_file: Optional log file path
            logger: Logger to use instead of creating one
        """
        self.environ = dict(os.environ if environ is None else environ)
        self.logger = logger or Logger(verbose=verbose, log_file=log_file)
        self.config = ConfigLoader(config_dir)

        self.reader = EnvironmentReader(self.config, self.environ)
        self.pkg_config = PkgConfig(self.logger, self.environ)
        self.registrar = DependencyRegistrar(self.config, self.logger, self.pkg_config, self.environ)
        self.adapter = PlatformAdapter(self.config, self.logger, self.environ)

        self.source_dir = Path(source_dir) if source_dir else self._default_source_dir()
        self.builder = CMakeBuilder(
            name=self.config.get_library_name(),
            source_dir=self.source_dir,
            logger=self.logger,
            config=self.config,
            environ=self.environ
        )
        self.verifier = ArtifactVerifier(self.config, self.logger)
        self.emitter = LinkEmitter(self.config, self.logger)

    def _default_source_dir(self) -> Path:
        root = Path(self.environ.get("CARGO_MANIFEST_DIR") or Path.cwd())
        return root / self.config.get_library_config().get("source_dir", "libgit2")

    def run(self) -> List[LinkDirective]:
        """
        Run every step in order

        Returns:
            Link directives for the consuming build

        Raises:
            BuildStepError: any step failed; nothing built is usable
        """
        build_config, references = self.reader.read()
        target = TargetPlatform.classify(build_config.target)
        host = TargetPlatform.classify(build_config.host)
        for key, value in self.reader.describe(build_config).items():
            self.logger.debug(f"{key}: {value}")

        search_path = self.registrar.register(
            references,
            SearchPathList.parse(self.environ.get("PKG_CONFIG_PATH"))
        )
        has_pkg_config = self.pkg_config.available()

        system_library = self.registrar.find_system_library(build_config, search_path)
        if system_library is not None:
            return system_library

        self.adapter.adapt(build_config, references, target, host, has_pkg_config)

        artifact = self.builder.execute(build_config, search_path)
        self.verifier.verify(artifact, build_config, target)
        return self.emitter.emit(artifact, target)


def main(argv: Optional[List[str]] = None):
    """Command-line interface"""
    parser = argparse.ArgumentParser(
        description="Build the vendored libgit2 and print its link directives",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Inputs are read from the environment (TARGET, HOST, OUT_DIR,
CARGO_FEATURE_SSH, CARGO_FEATURE_HTTPS, DEP_<NAME>_ROOT, ...).
Directives are printed on stdout, diagnostics on stderr.

Examples:
  %(prog)s                          # Build from $CARGO_MANIFEST_DIR/libgit2
  %(prog)s --source-dir ./libgit2   # Build a specific checkout
        """
    )

    parser.add_argument(
        "--source-dir",
        type=Path,
        help="Vendored libgit2 source directory"
    )

    parser.add_argument(
        "--config-dir",
        type=Path,
        help="Directory containing dependencies.yaml and platforms.yaml"
    )

    parser.add_argument(
        "--log-file",
        help="Also write a debug log to this file"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args(argv)

    try:
        pipeline = BuildPipeline(
            source_dir=args.source_dir,
            config_dir=args.config_dir,
            verbose=args.verbose,
            log_file=args.log_file
        )
    except Exception as e:
        print(f"Error initializing build step: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        directives = pipeline.run()
    except BuildStepError as e:
        pipeline.logger.error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nBuild interrupted by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        pipeline.logger.error(f"Build step error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    for directive in directives:
        print(directive.render())
    sys.stdout.flush()


if __name__ == "__main__":
    main()
