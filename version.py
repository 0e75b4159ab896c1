"""
Version information for the job board.

This file is the single source of truth for version numbers.
The frontend footer and the /health endpoint import from here.
"""

__version__ = "1.1.0"
__version_info__ = (1, 1, 0)

# Build metadata (set by CI/CD or manually)
BUILD_DATE = "2026-10-19"
GIT_COMMIT = None  # Will be set at runtime if available
