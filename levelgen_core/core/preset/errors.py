# ========================
# file: levelgen_core/core/preset/errors.py
# ========================
class PresetError(Exception):
    """Base error for the level preset system."""


class PresetValidationError(PresetError):
    """Raised when a preset fails validation."""


class PresetNotFoundError(PresetError):
    """Raised when a preset id or path cannot be resolved."""
