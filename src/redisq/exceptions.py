"""
redisq-specific exceptions.
"""

from __future__ import annotations

import typing as t


class RedisQError(Exception):
    """Base class for errors raised by redisq itself."""


class AdaptationError(RedisQError):
    """
    Raised when an adaptation request cannot be honored.

    Notes
    -----
    Typical causes are a naming function that maps a command onto its own
    name, or a target module missing its client or batch builder type.
    """


class MissingCommandError(AdaptationError):
    """
    Raised when a command table declares commands the target surface lacks.

    Parameters
    ----------
    missing : typing.Sequence[str]
        Qualified names (``"client.get"``, ``"batch.exec"``) of the absent
        commands.
    """

    def __init__(self, missing: t.Sequence[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"declared commands not found: {', '.join(self.missing)}")


class CommandError(RedisQError):
    """
    Carries an error value reported by the client that is not an exception.

    The value is kept as given on ``error``.
    """

    def __init__(self, error: t.Any) -> None:
        self.error = error
        super().__init__(error)
