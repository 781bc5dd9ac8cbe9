"""Free-text answer checking with numeric tolerance."""

import math

from .config import ANSWER_TOLERANCE


def parse_answer(user_input: str) -> float | None:
    """Parse a typed answer as a number or a simple fraction.

    A comma is read as a decimal point. Returns None for anything that is
    not a finite number or a well-formed ``n/d`` with a non-zero ``d``.
    """
    cleaned = user_input.strip().replace(',', '.')
    try:
        if '/' in cleaned:
            parts = cleaned.split('/')
            if len(parts) != 2:
                return None
            numerator = float(parts[0])
            denominator = float(parts[1])
            if denominator == 0:
                return None
            value = numerator / denominator
        else:
            value = float(cleaned)
    except (ValueError, OverflowError):
        return None
    if not math.isfinite(value):
        return None
    return value


def check_answer(user_input: str, correct_answer: float) -> bool:
    """Return True when the typed answer matches within tolerance."""
    value = parse_answer(user_input)
    if value is None:
        return False
    return abs(value - correct_answer) < ANSWER_TOLERANCE
