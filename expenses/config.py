"""Configuration for the expense tracker.

Values are module constants with environment variable overrides so the
Streamlit app and the tests read the same settings.
"""

import os
from decimal import Decimal
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

CURRENCY_SYMBOL = os.getenv("EXPENSES_CURRENCY_SYMBOL", "£")
DEFAULT_CURRENCY = os.getenv("EXPENSES_DEFAULT_CURRENCY", "GBP")

# Number of rows in the "Recent Expenses" card on the home screen
RECENT_LIMIT = int(os.getenv("EXPENSES_RECENT_LIMIT", "10"))

MIN_PASSWORD_LENGTH = 6

# Amounts at or above this do not fit the two-decimal display precision
MAX_AMOUNT = Decimal("1e12")

DATE_LABEL_FORMAT = "%d %b %Y, %H:%M"

LOG_LEVEL = os.getenv("EXPENSES_LOG_LEVEL", "INFO").upper()

SEED_PATH = Path(os.getenv("EXPENSES_SEED_PATH", _PROJECT_ROOT / "data" / "seed.json"))

SIGN_IN_PROMPT = "Please sign in to continue."
PASSWORD_RESET_NOTICE = "Password reset link sent (if email exists)."
