"""
setup.py for the libgit2 build step

Runtime Requirements:
- CMake >= 3.5 on PATH (or CMAKE pointing at it)
- A C compiler for the target
- pkg-config (optional, used to find libssh2/OpenSSL and a system libgit2)

Usage from a build script:
- TARGET, HOST and OUT_DIR are mandatory
- CARGO_FEATURE_SSH / CARGO_FEATURE_HTTPS enable the optional transports
- DEP_<NAME>_ROOT / DEP_<NAME>_INCLUDE point at dependency installs
- LIBGIT2_SYS_USE_PKG_CONFIG=1 prefers an installed libgit2
- Example: TARGET=x86_64-unknown-linux-gnu HOST=x86_64-unknown-linux-gnu OUT_DIR=build/out libgit2-build
"""

from pathlib import Path
from setuptools import setup, find_packages


# Read README for long description
readme_path = Path("README.md")
long_description = ""
if readme_path.exists():
    with open(readme_path, "r", encoding="utf-8") as f:
        long_description = f.read()

setup(
    name="libgit2-build",
    version="1.0.0",
    description="Configures and builds a vendored libgit2 with CMake and emits its link directives",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["libgit2_build", "libgit2_build.*"]),
    package_data={
        "libgit2_build": [
            "config/*.yaml",
        ]
    },
    include_package_data=True,
    entry_points={
        "console_scripts": [
            "libgit2-build=libgit2_build.main:main",
        ],
    },
    zip_safe=False,
    python_requires=">=3.10",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: Microsoft :: Windows",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Topic :: Software Development :: Build Tools",
    ],
)
