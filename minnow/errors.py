"""Exceptions that carry the operation that failed together with an error code."""

from __future__ import annotations

import os


class TaggedError(OSError):
    """An error code tagged with a description of the attempted operation."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        super().__init__(error_code, message)
        self.attempt = attempt
        self.error_code = error_code

    def __str__(self) -> str:
        return f"{self.attempt}: {self.strerror}"


class UnixError(TaggedError):
    """A failed system call, described by its ``errno`` value."""

    def __init__(self, attempt: str, error_code: int) -> None:
        super().__init__(attempt, error_code, os.strerror(error_code))


class ResolverError(TaggedError):
    """A failure reported by the name resolver (getaddrinfo or getnameinfo)."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        super().__init__(attempt, error_code, message)


def check_system_call(attempt: str, return_value: int) -> int:
    """Return ``return_value`` if it signals success, otherwise raise.

    A negative value is taken as the negated error number.
    """
    if return_value >= 0:
        return return_value
    raise UnixError(attempt, -return_value)