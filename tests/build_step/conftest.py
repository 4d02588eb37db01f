import subprocess
import sys
from pathlib import Path
from typing import List, Optional

import pytest

ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from libgit2_build.config import ConfigLoader
from libgit2_build.utils import Logger


class FakeCommands:
    """Stands in for subprocess.run, playing pkg-config and cmake"""

    def __init__(self,
                 pkg_config_available: bool = False,
                 pkg_config_output: Optional[str] = None,
                 ssh_detected: bool = True,
                 pc_libs: str = "-L${libdir} -lgit2",
                 fail_cmake: bool = False):
        self.pkg_config_available = pkg_config_available
        self.pkg_config_output = pkg_config_output
        self.ssh_detected = ssh_detected
        self.pc_libs = pc_libs
        self.fail_cmake = fail_cmake
        self.calls: List[tuple] = []

    def commands(self, name: str) -> List[List[str]]:
        return [cmd for cmd, _ in self.calls if Path(cmd[0]).name == name]

    def envs(self, name: str) -> List[dict]:
        return [env for cmd, env in self.calls if Path(cmd[0]).name == name]

    def __call__(self, cmd, cwd=None, env=None, check=False, capture_output=False, text=False, **kwargs):
        cmd = [str(c) for c in cmd]
        self.calls.append((cmd, env))
        name = Path(cmd[0]).name

        if name == "pkg-config":
            if not self.pkg_config_available:
                raise FileNotFoundError(cmd[0])
            if "--version" in cmd:
                return subprocess.CompletedProcess(cmd, 0, "0.29.2\n", "")
            if self.pkg_config_output is None:
                return subprocess.CompletedProcess(cmd, 1, "", "Package libgit2 was not found\n")
            return subprocess.CompletedProcess(cmd, 0, self.pkg_config_output, "")

        if name == "cmake":
            if self.fail_cmake:
                if check:
                    raise subprocess.CalledProcessError(1, cmd, output="", stderr="CMake Error")
                return subprocess.CompletedProcess(cmd, 1, "", "CMake Error")
            if "--build" in cmd:
                self._install(Path(cmd[cmd.index("--build") + 1]).parent)
            else:
                self._configure(cmd)
            return subprocess.CompletedProcess(cmd, 0, "", "")

        raise FileNotFoundError(cmd[0])

    def _configure(self, cmd):
        build_dir = Path(cmd[cmd.index("-B") + 1])
        flags = build_dir / "CMakeFiles" / "git2.dir" / "flags.make"
        flags.parent.mkdir(parents=True, exist_ok=True)
        c_flags = "-O3 -DNDEBUG -fPIC"
        if self.ssh_detected:
            c_flags += " -DGIT_SSH"
        flags.write_text(f"# CMAKE generated file\nC_FLAGS = {c_flags}\n")

    def _install(self, out_dir: Path):
        pkgconfig = out_dir / "lib" / "pkgconfig"
        pkgconfig.mkdir(parents=True, exist_ok=True)
        (out_dir / "lib" / "libgit2.a").write_bytes(b"!<arch>\n")
        (pkgconfig / "libgit2.pc").write_text(
            f"prefix={out_dir}\nlibdir=${{prefix}}/lib\n\nName: libgit2\nLibs: {self.pc_libs}\n"
        )


@pytest.fixture
def config():
    return ConfigLoader()


@pytest.fixture
def logger():
    return Logger(verbose=True)


@pytest.fixture
def source_dir(tmp_path):
    src = tmp_path / "libgit2"
    src.mkdir()
    (src / "CMakeLists.txt").write_text("project(libgit2 C)\n")
    return src


@pytest.fixture
def base_env(tmp_path):
    return {
        "TARGET": "x86_64-unknown-linux-gnu",
        "HOST": "x86_64-unknown-linux-gnu",
        "OUT_DIR": str(tmp_path / "out"),
        "PATH": "",
        "CMAKE": "cmake",
    }


@pytest.fixture
def fake_commands(monkeypatch):
    fake = FakeCommands()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake
