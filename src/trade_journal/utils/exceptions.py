from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    DATA = "data"


class JournalError(Exception):
    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.DATA,
        field: Optional[str] = None,
    ) -> None:
        self.message = message
        self.category = category
        self.field = field
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.category.value}] {self.message}"]
        if self.field:
            parts.append(f"Field: {self.field}")
        return " | ".join(parts)


class InvalidTradeError(JournalError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.VALIDATION, field)


class AnalyticsInputError(JournalError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.VALIDATION, field)


class ConfigurationError(JournalError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.CONFIGURATION, field)
