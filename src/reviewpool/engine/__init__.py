"""Transactional assignment engines for Reviewpool.

Each engine owns one group of operations and runs each operation as a
single unit of work against the store. ReviewService composes them behind
the ReviewOperations protocol used by the HTTP adapter and the CLI.
"""

from reviewpool.engine.assignment import AssignmentEngine
from reviewpool.engine.cascade import DeactivationCascade
from reviewpool.engine.membership import MembershipStore
from reviewpool.engine.merge import PRStateMachine
from reviewpool.engine.random_source import RandomSource
from reviewpool.engine.service import ReviewOperations, ReviewService
from reviewpool.engine.stats import AggregationEngine

__all__ = [
    "AggregationEngine",
    "AssignmentEngine",
    "DeactivationCascade",
    "MembershipStore",
    "PRStateMachine",
    "RandomSource",
    "ReviewOperations",
    "ReviewService",
]
