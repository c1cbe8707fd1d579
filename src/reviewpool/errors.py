"""Business error taxonomy for Reviewpool.

Every error raised by the engines for a business rule violation derives from
ReviewpoolError. Each class carries a stable ``code`` (surfaced to API
clients) and a ``kind`` naming the failure category. These errors are
terminal: retrying the same call produces the same outcome.

Transient store failures (connection loss, lock timeouts) are deliberately
not part of this hierarchy; SQLAlchemy exceptions propagate unchanged so the
caller can decide whether to retry.
"""

from __future__ import annotations


class ReviewpoolError(Exception):
    """Base class for all Reviewpool business errors.

    Attributes:
        kind: Failure category name (e.g. ``"PRMerged"``).
        code: Machine-readable error code exposed over the API.
        message: Human-readable description.
    """

    kind: str = "InternalError"
    code: str = "INTERNAL"
    default_message: str = "internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgumentError(ReviewpoolError):
    """Malformed or missing input, or an inactive author."""

    kind = "InvalidArgument"
    code = "INVALID_ARGUMENT"
    default_message = "invalid argument"


class UserNotFoundError(ReviewpoolError):
    kind = "UserNotFound"
    code = "NOT_FOUND"
    default_message = "user not found"


class TeamNotFoundError(ReviewpoolError):
    kind = "TeamNotFound"
    code = "NOT_FOUND"
    default_message = "team not found"


class TeamExistsError(ReviewpoolError):
    kind = "TeamExists"
    code = "TEAM_EXISTS"
    default_message = "team_name already exists"


class PRNotFoundError(ReviewpoolError):
    kind = "PRNotFound"
    code = "NOT_FOUND"
    default_message = "pull request not found"


class PRExistsError(ReviewpoolError):
    kind = "PRExists"
    code = "PR_EXISTS"
    default_message = "PR id already exists"


class PRMergedError(ReviewpoolError):
    """A mutation was attempted on a merged pull request."""

    kind = "PRMerged"
    code = "PR_MERGED"
    default_message = "cannot reassign on merged PR"


class NotAssignedError(ReviewpoolError):
    kind = "NotAssigned"
    code = "NOT_ASSIGNED"
    default_message = "reviewer is not assigned to this PR"


class NoCandidateError(ReviewpoolError):
    kind = "NoCandidate"
    code = "NO_CANDIDATE"
    default_message = "no active replacement candidate in team"


class InternalError(ReviewpoolError):
    """An internal invariant could not be upheld."""


class EntropyUnavailableError(InternalError):
    """The secure random source failed to produce randomness.

    Raised instead of silently degrading reviewer selection to a fixed
    slice of the candidate pool.
    """

    default_message = "random source unavailable"
