import pytest

from libgit2_build.config import ConfigLoader


def test_packaged_configuration(config):
    assert config.get_library_name() == "git2"
    assert config.get_capabilities() == ["ssh", "https"]
    assert config.get_required_dependencies() == ["Z"]
    # YAML would read a bare OFF as a boolean
    assert config.get_cmake_defines() == {
        "BUILD_SHARED_LIBS": "OFF",
        "BUILD_CLAR": "OFF",
        "CURL": "OFF",
    }
    assert config.get_msvc_config()["defines"] == {"STATIC_CRT": "OFF"}


def test_unknown_entries(config):
    with pytest.raises(ValueError):
        config.get_capability_config("ftp")
    with pytest.raises(ValueError):
        config.get_platform_config("haiku")
    assert config.get_option("missing", "fallback") == "fallback"


def test_missing_config_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(tmp_path)


def test_custom_config_dir(tmp_path):
    (tmp_path / "dependencies.yaml").write_text(
        "library:\n  name: git2-custom\nbuild_options:\n  manual_ssh_injection: never\n"
    )
    (tmp_path / "platforms.yaml").write_text("platforms: {}\n")

    loader = ConfigLoader(tmp_path)

    assert loader.get_library_name() == "git2-custom"
    assert loader.get_option("manual_ssh_injection") == "never"
    assert loader.get_capabilities() == []
