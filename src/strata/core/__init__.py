"""Strata core library package.

Exposes the configuration engine (``strata.core.config``) and the shared
utilities it is built on.
"""

from . import exceptions  # noqa: F401

__all__ = ["exceptions"]
