"""
Shared utilities for texrender.

Common functionality used across contexts:
- Logger configuration with provenance tracking
"""

from texrender.utils.logger import log_provenance, setup_logger

__all__ = ["log_provenance", "setup_logger"]
