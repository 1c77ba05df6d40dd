"""Packsmith: deterministic, fail-fast modpack builds.

  - Verified, content-addressed dependency cache (single download per digest)
  - Idempotent link-or-copy publishing into the build output
  - Named pipelines (build, typo-build) composed from one stage registry
  - Env-driven configuration (PACKSMITH_*, SKIP_CHANGELOG)
"""

__version__ = "0.1.0"
__description__ = "Deterministic, fail-fast modpack build pipeline"

from packsmith.core.orchestrator import Orchestrator
from packsmith.cli.app import app as cli

__all__ = ["Orchestrator", "cli", "__version__"]
