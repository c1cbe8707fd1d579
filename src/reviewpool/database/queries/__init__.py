"""Database query functions for Reviewpool.

This module provides async query functions for all database entities:
- Team lookup, creation and member upsert
- User lookup and candidate pool selection
- Pull request insertion, row locking and reviewer assignment
- Reassignment history
- Grouped statistics
"""

from reviewpool.database.queries.pull_request import (
    add_assignment,
    get_pull_request,
    insert_pull_request,
    list_reassignments,
    list_reviewer_ids,
    lock_open_prs_reviewed_by,
    record_reassignment,
    remove_assignment,
)
from reviewpool.database.queries.stats import (
    assignment_counts_by_pr,
    assignment_counts_by_reviewer,
    assignment_counts_by_team,
    pr_counts_by_status,
    reviewer_status_counts,
)
from reviewpool.database.queries.team import (
    deactivate_active_members,
    get_team_by_name,
    insert_team,
    list_team_members,
    upsert_member,
)
from reviewpool.database.queries.user import (
    get_user,
    list_active_candidates,
    list_reviewed_prs,
)

__all__ = [
    # Team queries
    "get_team_by_name",
    "insert_team",
    "upsert_member",
    "list_team_members",
    "deactivate_active_members",
    # User queries
    "get_user",
    "list_reviewed_prs",
    "list_active_candidates",
    # Pull request queries
    "insert_pull_request",
    "get_pull_request",
    "lock_open_prs_reviewed_by",
    "list_reviewer_ids",
    "add_assignment",
    "remove_assignment",
    "record_reassignment",
    "list_reassignments",
    # Stats queries
    "assignment_counts_by_reviewer",
    "assignment_counts_by_pr",
    "pr_counts_by_status",
    "assignment_counts_by_team",
    "reviewer_status_counts",
]
