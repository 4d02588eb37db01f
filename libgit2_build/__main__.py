"""Allow running the build step with python -m libgit2_build"""
from .main import main

main()
