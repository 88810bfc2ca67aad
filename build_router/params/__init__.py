"""Build parameter derivation.

This module handles:
- Parsing a tag or branch into version, RC, region and vendor fields
- Classifying the build type
- Resolving the regions to build
- Rewriting release tags for every fanned-out region
- Assembling one parameter record per region
"""

from build_router.params.assembler import (
    BuildContext,
    BuildParameterRecord,
    generate_build_params,
)

__all__ = ["BuildContext", "BuildParameterRecord", "generate_build_params"]
