"""Typed errors raised by the gamification engine."""

from __future__ import annotations


class GamificationError(Exception):
    """Base class for engine errors."""


class NotFoundError(GamificationError):
    """The account's gamification state does not exist."""

    def __init__(self, account_id: int) -> None:
        super().__init__(f"Gamification state not found for account {account_id}")
        self.account_id = account_id


class PersistenceError(GamificationError):
    """The unit of work failed and was rolled back; nothing was applied.

    Safe for the caller to retry.
    """


class ConstraintViolation(GamificationError):
    """A concurrent duplicate insert hit a uniqueness constraint.

    Internal only: converted into an "already exists" outcome.
    """


class InvalidPointsError(GamificationError, ValueError):
    """A negative point total was given to the level table."""
