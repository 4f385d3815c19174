"""Error types raised at the package's I/O edges."""

from __future__ import annotations


class NutriPlanError(Exception):
    """Base class for errors the CLI reports without a traceback."""


class StateError(NutriPlanError):
    """A state file is missing, unreadable, or malformed."""


class ConfigError(NutriPlanError):
    """A preferences file is malformed."""
