"""Reviewpool - pull request reviewer assignment service.

This package manages teams, pull requests and reviewer assignments backed by
PostgreSQL: automatic reviewer selection, idempotent merge, manual reviewer
swaps, and cascading reassignment when a whole team is deactivated.
"""

__version__ = "0.1.0"
