"""
Configuration management for the libgit2 build step
"""

import yaml
from pathlib import Path
from typing import Dict, List, Any, Optional


DEFAULT_CONFIG_DIR = Path(__file__).parent


class ConfigLoader:
    """Loads and manages build step configuration"""

    def __init__(self, config_dir: Optional[Path] = None):
        """
        Initialize configuration loader

        Args:
            config_dir: Directory containing configuration files
        """
        self.config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR

        # Load dependencies configuration
        deps_file = self.config_dir / "dependencies.yaml"
        if not deps_file.exists():
            raise FileNotFoundError(f"Dependencies config not found: {deps_file}")

        with open(deps_file, 'r') as f:
            self.deps_config = yaml.safe_load(f) or {}

        # Load platforms configuration
        platforms_file = self.config_dir / "platforms.yaml"
        if not platforms_file.exists():
            raise FileNotFoundError(f"Platforms config not found: {platforms_file}")

        with open(platforms_file, 'r') as f:
            self.platforms_config = yaml.safe_load(f) or {}

    def get_library_config(self) -> Dict[str, Any]:
        """Get the description of the vendored library"""
        return self.deps_config.get("library", {})

    def get_library_name(self) -> str:
        """Get the link name of the vendored library"""
        return self.get_library_config().get("name", "git2")

    def get_capabilities(self) -> List[str]:
        """Get list of all optional capabilities"""
        return list(self.deps_config.get("capabilities", {}).keys())

    def get_capability_config(self, name: str) -> Dict[str, Any]:
        """
        Get configuration for a specific capability

        Args:
            name: Capability name (ssh, https)

        Returns:
            Capability configuration dictionary
        """
        capabilities = self.deps_config.get("capabilities", {})
        if name not in capabilities:
            raise ValueError(f"Unknown capability: {name}")
        return capabilities[name]

    def get_required_dependencies(self) -> List[str]:
        """Get dependencies registered for every build"""
        return list(self.deps_config.get("required_dependencies", []))

    def get_cmake_defines(self) -> Dict[str, str]:
        """Get the defines forced on every configuration"""
        defines = self.deps_config.get("cmake_defines", {})
        return {key: str(value) for key, value in defines.items()}

    def get_platform_config(self, family: str) -> Dict[str, Any]:
        """
        Get configuration for a specific platform family

        Args:
            family: Platform family name (windows, apple, unix)

        Returns:
            Platform configuration dictionary
        """
        platforms = self.platforms_config.get("platforms", {})
        if family not in platforms:
            raise ValueError(f"Unknown platform: {family}")
        return platforms[family]

    def get_cmake_system_names(self) -> Dict[str, str]:
        """Get the triple OS component to CMake system name table"""
        return dict(self.platforms_config.get("cmake_system_names", {}))

    def get_msvc_config(self) -> Dict[str, Any]:
        """Get flags and defines applied on MSVC toolchains"""
        return self.platforms_config.get("msvc", {})

    def get_cross_compile_config(self) -> Dict[str, Any]:
        """Get tool naming used when cross-compiling"""
        return self.platforms_config.get("cross_compile", {})

    def get_option(self, key: str, default: Any = None) -> Any:
        """
        Get a build option

        Args:
            key: Option key
            default: Default value if not found

        Returns:
            Option value
        """
        options = self.deps_config.get("build_options", {})
        return options.get(key, default)


__all__ = ["ConfigLoader", "DEFAULT_CONFIG_DIR"]
