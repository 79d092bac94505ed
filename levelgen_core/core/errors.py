# ========================
# file: levelgen_core/core/errors.py
# ========================
class LevelGenError(Exception):
    """Base error for level generation."""


class ValidationError(LevelGenError):
    """Raised when builder parameters are invalid (sizes, counts, ratios)."""


class TriangulationError(LevelGenError):
    """Raised when a point set cannot be triangulated."""


class LevelGenerationError(LevelGenError):
    """Raised when assembly fails to produce a usable Level."""
