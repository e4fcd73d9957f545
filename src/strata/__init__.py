"""
Strata - layered settings resolution

Strata resolves configuration values from overlapping layers (defaults,
policy, application, user, workspace, folder and in-memory overrides),
with per-language override sections and provenance tracking.
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
