from .resolver import AMBIGUOUS, NOT_FOUND, EntityResolver, Resolution, normalize_text, token_set_confidence

__all__ = [
    "AMBIGUOUS",
    "NOT_FOUND",
    "EntityResolver",
    "Resolution",
    "normalize_text",
    "token_set_confidence",
]
