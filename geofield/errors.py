from __future__ import annotations


class ConfigurationError(RuntimeError):
    """A required collaborator is missing or unusable at setup time."""


__all__ = ["ConfigurationError"]
