"""Entry-time field checks.

All checks run before anything is sent to the store or the auth provider.
Failures come back as ``Left({field: message})`` with every offending field
reported at once, so the form can show each message next to its field.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Dict, NamedTuple, Optional

from expenses.config import MAX_AMOUNT, MIN_PASSWORD_LENGTH
from expenses.domain import NewExpense
from expenses.functional import Either, Left, Maybe, Nothing, Right, Some

EMAIL_PATTERN = re.compile(
    r"[a-zA-Z0-9+._%\-]{1,256}"
    r"@"
    r"[a-zA-Z0-9][a-zA-Z0-9\-]{0,64}"
    r"(\.[a-zA-Z0-9][a-zA-Z0-9\-]{0,25})+"
)


class Credentials(NamedTuple):
    email: str
    password: str
    display_name: Optional[str] = None


def parse_amount(text: str) -> Maybe[Decimal]:
    try:
        amount = Decimal((text or "").strip())
    except InvalidOperation:
        return Nothing()
    if not amount.is_finite():
        return Nothing()
    return Some(amount)


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch((email or "").strip()) is not None


def validate_expense(
    owner: str, title: str, category: str, amount_text: str
) -> Either[Dict[str, str], NewExpense]:
    errors: Dict[str, str] = {}
    title = (title or "").strip()
    category = (category or "").strip()

    if not title:
        errors["title"] = "Title cannot be empty."
    if not category:
        errors["category"] = "Category cannot be empty."

    amount = parse_amount(amount_text).get_or_else(None)
    if amount is None or amount <= 0:
        errors["amount"] = "Enter a valid amount greater than 0."
    elif amount >= MAX_AMOUNT:
        errors["amount"] = "Amount is too large."

    if errors:
        return Left(errors)
    return Right(NewExpense(owner=owner, title=title, category=category, amount=amount))


def validate_sign_in(email: str, password: str) -> Either[Dict[str, str], Credentials]:
    errors: Dict[str, str] = {}
    if not is_valid_email(email):
        errors["email"] = "Enter a valid email address."
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Minimum {MIN_PASSWORD_LENGTH} characters."

    if errors:
        return Left(errors)
    return Right(Credentials(email=email.strip(), password=password))


def validate_sign_up(
    name: str, email: str, password: str, confirm: str
) -> Either[Dict[str, str], Credentials]:
    errors: Dict[str, str] = {}
    if not (name or "").strip():
        errors["name"] = "Enter your full name."
    if not is_valid_email(email):
        errors["email"] = "Enter a valid email address."
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    if confirm != password:
        errors["confirm"] = "Passwords do not match."

    if errors:
        return Left(errors)
    return Right(Credentials(email=email.strip(), password=password, display_name=name.strip()))
