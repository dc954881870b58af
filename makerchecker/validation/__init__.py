# ==============================================
# VALIDATION
# ==============================================
#
# Modules:
# --------
# - type_detector.py    → Does a value fit a declared data type?
# - field_validator.py  → Per-field checks of a payload against metadata
#
# ==============================================

from .field_validator import FieldValidator
from .type_detector import TypeDetector

__all__ = ["FieldValidator", "TypeDetector"]
