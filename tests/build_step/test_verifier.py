import pytest

from libgit2_build.environment import ArtifactLocation, BuildConfiguration
from libgit2_build.exceptions import CapabilityVerificationError, FilesystemError
from libgit2_build.platform import TargetPlatform
from libgit2_build.utils import ArtifactVerifier

LINUX = "x86_64-unknown-linux-gnu"
WINDOWS_MSVC = "x86_64-pc-windows-msvc"


def _artifact(tmp_path, c_flags=None):
    artifact = ArtifactLocation(tmp_path)
    if c_flags is not None:
        artifact.flags_file.parent.mkdir(parents=True)
        artifact.flags_file.write_text(f"C_FLAGS = {c_flags}\n")
    return artifact


def _verify(config, logger, artifact, target, capabilities):
    build_config = BuildConfiguration(target, target, artifact.root, capabilities=set(capabilities))
    return ArtifactVerifier(config, logger).verify(artifact, build_config, TargetPlatform.classify(target))


def test_ssh_marker_present(config, logger, tmp_path):
    artifact = _artifact(tmp_path, "-O3 -I/opt/ssh2/include -DGIT_SSH")

    assert _verify(config, logger, artifact, LINUX, {"ssh"}) is True


def test_ssh_marker_missing(config, logger, tmp_path):
    artifact = _artifact(tmp_path, "-O3 -DNDEBUG")

    with pytest.raises(CapabilityVerificationError) as excinfo:
        _verify(config, logger, artifact, LINUX, {"ssh"})

    assert excinfo.value.capability == "ssh"
    assert "SSH support is required" in str(excinfo.value)


def test_missing_flags_file(config, logger, tmp_path):
    with pytest.raises(FilesystemError) as excinfo:
        _verify(config, logger, _artifact(tmp_path), LINUX, {"ssh"})

    assert excinfo.value.path == tmp_path / "build" / "CMakeFiles" / "git2.dir" / "flags.make"


def test_skipped_on_msvc(config, logger, tmp_path):
    assert _verify(config, logger, _artifact(tmp_path), WINDOWS_MSVC, {"ssh"}) is False


def test_skipped_without_ssh(config, logger, tmp_path):
    assert _verify(config, logger, _artifact(tmp_path, "-O3"), LINUX, {"https"}) is False
