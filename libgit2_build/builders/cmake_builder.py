"""
CMake builder implementation
"""

import os
import shlex
import shutil
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .base_builder import BaseBuilder
from .pkg_config import SearchPathList
from ..environment import ArtifactLocation, BuildConfiguration
from ..exceptions import CommandError, FilesystemError
from ..platform import TargetPlatform


class CMakeBuilder(BaseBuilder):
    """Builds the vendored library with CMake into the output directory"""

    def __init__(self,
                 name: str,
                 source_dir: Path,
                 logger: Any,
                 config: Any,
                 environ: Optional[Mapping[str, str]] = None):
        super().__init__(name, source_dir, logger, environ)
        self.config = config
        self._cmake: Optional[str] = None

    @property
    def cmake(self) -> str:
        if self._cmake is None:
            cmake = self.env.get("CMAKE") or shutil.which("cmake", path=self.env.get("PATH"))
            if not cmake:
                raise CommandError(["cmake"], step=self.step, reason="cmake not found in PATH")
            self._cmake = cmake
        return self._cmake

    def build_dir(self, build_config: BuildConfiguration) -> Path:
        return build_config.out_dir / "build"

    def prepare(self, build_config: BuildConfiguration):
        """Delete and recreate the output directory"""
        out_dir = build_config.out_dir
        if out_dir.exists():
            self.logger.debug(f"Removing previous output directory: {out_dir}")
        try:
            shutil.rmtree(out_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(out_dir, f"cannot remove output directory: {e}", step=self.step)

        try:
            self.build_dir(build_config).mkdir(parents=True)
        except OSError as e:
            raise FilesystemError(out_dir, f"cannot create output directory: {e}", step=self.step)

    def child_environment(self, build_config: BuildConfiguration,
                          search_path: SearchPathList) -> Dict[str, str]:
        env = dict(self.env)
        rendered = search_path.render()
        if rendered:
            env["PKG_CONFIG_PATH"] = rendered
        else:
            env.pop("PKG_CONFIG_PATH", None)
        return env

    def c_flags(self, build_config: BuildConfiguration) -> List[str]:
        return shlex.split(self.env.get("CFLAGS", "")) + list(build_config.cflags)

    def configure_command(self, build_config: BuildConfiguration) -> List[str]:
        """Assemble the CMake configure command line"""
        target = TargetPlatform.classify(build_config.target)
        build_type = build_config.cmake_build_type

        cmd = [self.cmake, "-S", str(self.source_dir), "-B", str(self.build_dir(build_config))]
        cmd.append(f"-DCMAKE_INSTALL_PREFIX={build_config.out_dir}")
        cmd.append(f"-DCMAKE_BUILD_TYPE={build_type}")

        generator = self.env.get("CMAKE_GENERATOR")
        if generator:
            cmd.extend(["-G", generator])

        # Cross-compilation support
        if build_config.target != build_config.host:
            system_name = (target.system_name(self.config.get_cmake_system_names())
                           or self.config.get_platform_config(target.family.value).get("cmake_system_name"))
            if system_name:
                cmd.append(f"-DCMAKE_SYSTEM_NAME={system_name}")
            self.logger.debug(f"CMake cross-compilation: system={system_name}, target={target.triple}")
        if build_config.c_compiler:
            cmd.append(f"-DCMAKE_C_COMPILER={build_config.c_compiler}")

        if not target.is_windows:
            # Static archive ends up inside position independent binaries
            cmd.append("-DCMAKE_POSITION_INDEPENDENT_CODE=ON")

        c_flags = self.c_flags(build_config)
        if c_flags:
            cmd.append(f"-DCMAKE_C_FLAGS={' '.join(c_flags)}")

        prefix_path = [str(dep.root) for dep in build_config.dependencies if dep.root]
        if prefix_path:
            cmd.append(f"-DCMAKE_PREFIX_PATH={';'.join(prefix_path)}")

        for key, value in build_config.defines:
            cmd.append(f"-D{key}={value}")

        return cmd

    def configure(self, build_config: BuildConfiguration, env: Dict[str, str]):
        """Configure using CMake"""
        self.run_command(self.configure_command(build_config),
                         cwd=self.build_dir(build_config), env=env)

    def build(self, build_config: BuildConfiguration, env: Dict[str, str]):
        """Build and install using CMake"""
        jobs = build_config.jobs or os.cpu_count() or 1
        cmd = [
            self.cmake,
            "--build", str(self.build_dir(build_config)),
            "--target", "install",
            "--config", build_config.cmake_build_type,
            "--parallel", str(jobs)
        ]
        self.run_command(cmd, cwd=self.build_dir(build_config), env=env)

    def artifact(self, build_config: BuildConfiguration) -> ArtifactLocation:
        library = self.config.get_library_config()
        return ArtifactLocation(
            root=build_config.out_dir,
            lib_subdir=library.get("lib_dir", "lib"),
            flags_subpath=library.get("flags_file", "build/CMakeFiles/git2.dir/flags.make"),
            pkg_config_subpath=library.get("pkg_config_file", "lib/pkgconfig/libgit2.pc"),
        )
