from .classifier import RowClassifier
from .policies import DuplicateMatch, DuplicatePolicy, MaterialDuplicatePolicy, NoDuplicatePolicy, policy_for
from .rules import build_attendance, build_material, material_key, normalize_unit

__all__ = [
    "RowClassifier",
    "DuplicateMatch",
    "DuplicatePolicy",
    "MaterialDuplicatePolicy",
    "NoDuplicatePolicy",
    "policy_for",
    "build_attendance",
    "build_material",
    "material_key",
    "normalize_unit",
]
