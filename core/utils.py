"""Utility functions for quickmath application."""

import math

SORT_KEYS = ('user', 'score', 'timestamp')
SORT_DIRECTIONS = ('ascending', 'descending')


def format_number(value: float) -> str:
    """Format a numeric answer for display: integers bare, others with up to
    three decimals and no trailing zeros."""
    if math.isfinite(value) and float(value).is_integer():
        return str(int(value))
    text = f'{value:.3f}'.rstrip('0').rstrip('.')
    return '0' if text == '-0' else text


def user_history(entries: list, user: str) -> list:
    """History entries belonging to one user, most recent first."""
    own = [e for e in entries if e.user == user]
    return sorted(own, key=lambda e: e.timestamp, reverse=True)


def sort_scores(scores: list, key: str = 'score', direction: str = 'descending') -> list:
    """Sort leaderboard entries by user name, score or timestamp."""
    if key not in SORT_KEYS:
        raise ValueError(f"Invalid sort key: {key}")
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Invalid sort direction: {direction}")

    if key == 'user':
        sort_key = lambda s: s.user.casefold()
    else:
        sort_key = lambda s: getattr(s, key)
    return sorted(scores, key=sort_key, reverse=(direction == 'descending'))
