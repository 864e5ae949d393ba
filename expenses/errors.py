from typing import Dict, Optional

from expenses.config import SIGN_IN_PROMPT


class ExpenseError(Exception):
    """Base class for errors surfaced to the presentation layer."""

    message = "Something went wrong."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class Unauthenticated(ExpenseError):
    message = SIGN_IN_PROMPT


class ValidationError(ExpenseError):
    """Entry-time field checks failed. ``fields`` maps field name to message."""

    message = "Please correct the highlighted fields."

    def __init__(self, fields: Dict[str, str]):
        super().__init__()
        self.fields = dict(fields)


class StoreError(ExpenseError):
    message = "Error loading expenses."
