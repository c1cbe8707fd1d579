"""Unit tests for the business error taxonomy."""

from __future__ import annotations

import pytest

from reviewpool.errors import (
    EntropyUnavailableError,
    InternalError,
    InvalidArgumentError,
    NoCandidateError,
    NotAssignedError,
    PRExistsError,
    PRMergedError,
    PRNotFoundError,
    ReviewpoolError,
    TeamExistsError,
    TeamNotFoundError,
    UserNotFoundError,
)


@pytest.mark.parametrize(
    "error_cls,kind,code",
    [
        (InvalidArgumentError, "InvalidArgument", "INVALID_ARGUMENT"),
        (UserNotFoundError, "UserNotFound", "NOT_FOUND"),
        (TeamNotFoundError, "TeamNotFound", "NOT_FOUND"),
        (TeamExistsError, "TeamExists", "TEAM_EXISTS"),
        (PRNotFoundError, "PRNotFound", "NOT_FOUND"),
        (PRExistsError, "PRExists", "PR_EXISTS"),
        (PRMergedError, "PRMerged", "PR_MERGED"),
        (NotAssignedError, "NotAssigned", "NOT_ASSIGNED"),
        (NoCandidateError, "NoCandidate", "NO_CANDIDATE"),
        (InternalError, "InternalError", "INTERNAL"),
    ],
)
def test_kind_and_code(error_cls: type[ReviewpoolError], kind: str, code: str) -> None:
    error = error_cls()
    assert isinstance(error, ReviewpoolError)
    assert error.kind == kind
    assert error.code == code
    assert str(error) == error.message


def test_custom_message() -> None:
    error = InvalidArgumentError("invalid argument: author inactive")
    assert error.message == "invalid argument: author inactive"
    assert str(error) == "invalid argument: author inactive"


def test_entropy_error_is_internal() -> None:
    error = EntropyUnavailableError()
    assert isinstance(error, InternalError)
    assert error.code == "INTERNAL"
    assert error.message == "random source unavailable"
