from pathlib import Path

import pytest

from libgit2_build.environment import BuildConfiguration, DependencyReference, EnvironmentReader
from libgit2_build.exceptions import ConfigurationFrozenError, MissingInputError


def test_unset_features_default_to_disabled(config, base_env):
    build_config, references = EnvironmentReader(config, base_env).read()

    assert build_config.capabilities == set()
    assert [ref.name for ref in references] == ["Z"]
    assert references[0].optional is False
    assert build_config.use_pkg_config is False


def test_feature_flags_enable_capabilities(config, base_env):
    env = dict(base_env, CARGO_FEATURE_SSH="1", CARGO_FEATURE_HTTPS="1")

    build_config, references = EnvironmentReader(config, env).read()

    assert build_config.capabilities == {"ssh", "https"}
    assert [ref.name for ref in references] == ["SSH2", "OPENSSL", "Z"]


def test_empty_feature_value_still_counts_as_present(config, base_env):
    env = dict(base_env, CARGO_FEATURE_SSH="")

    build_config, _ = EnvironmentReader(config, env).read()

    assert build_config.has("ssh")


@pytest.mark.parametrize("missing", ["TARGET", "HOST", "OUT_DIR"])
def test_mandatory_inputs(config, base_env, missing):
    env = dict(base_env)
    del env[missing]

    with pytest.raises(MissingInputError) as excinfo:
        EnvironmentReader(config, env).read()

    assert excinfo.value.variable == missing
    assert missing in str(excinfo.value)
    assert str(excinfo.value).startswith("environment:")


def test_dependency_hints_are_read(config, base_env):
    env = dict(
        base_env,
        CARGO_FEATURE_SSH="1",
        DEP_SSH2_ROOT="/opt/ssh2",
        DEP_SSH2_INCLUDE="/opt/ssh2/include",
    )

    _, references = EnvironmentReader(config, env).read()

    ssh = references[0]
    assert ssh == DependencyReference("SSH2", Path("/opt/ssh2"), Path("/opt/ssh2/include"))
    assert ssh.pkg_config_dir == Path("/opt/ssh2/lib/pkgconfig")


def test_build_settings(config, base_env):
    env = dict(base_env, PROFILE="debug", NUM_JOBS="6", LIBGIT2_SYS_USE_PKG_CONFIG="1")

    build_config, _ = EnvironmentReader(config, env).read()

    assert build_config.cmake_build_type == "Debug"
    assert build_config.jobs == 6
    assert build_config.use_pkg_config is True


def test_invalid_job_count_is_ignored(config, base_env):
    env = dict(base_env, NUM_JOBS="lots")

    build_config, _ = EnvironmentReader(config, env).read()

    assert build_config.jobs is None
    assert build_config.cmake_build_type == "Release"


def test_frozen_configuration_rejects_changes(tmp_path):
    build_config = BuildConfiguration("t", "h", tmp_path)
    build_config.cflag("-O2").define("CURL", "OFF").freeze()

    with pytest.raises(ConfigurationFrozenError):
        build_config.cflag("-g")
    with pytest.raises(ConfigurationFrozenError):
        build_config.define("BUILD_CLAR", "ON")
    with pytest.raises(ConfigurationFrozenError):
        build_config.register_dep(DependencyReference("Z"))

    assert build_config.cflags == ["-O2"]
    assert build_config.defines == [("CURL", "OFF")]
