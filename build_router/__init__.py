"""Build Router - fan a tagged CI build out into per-region child builds.

This package derives one set of build parameters per target region from a
git tag or branch, applies the first set to the running build and starts the
rest as separate builds on Bitrise.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
