from .base import ValidationContext, ValidationRule
from .rules import DEFAULT_RULES
from .validator import ContentValidator

__all__ = ["ContentValidator", "DEFAULT_RULES", "ValidationContext", "ValidationRule"]
