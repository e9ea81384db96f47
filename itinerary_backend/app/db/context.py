"""Request context for tenancy enforcement."""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    """Identity of the caller.

    Every trip is owned by exactly one user; all storage access is scoped to
    ``user_id``.
    """

    user_id: str
