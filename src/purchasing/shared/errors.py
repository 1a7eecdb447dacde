"""Error taxonomy of the purchasing domain.

All errors are Protean exceptions carrying a ``messages`` dict, so they flow
through command processing untouched and are mapped to HTTP statuses at the
API boundary.
"""

from protean.exceptions import InvalidOperationError, ObjectNotFoundError, ValidationError


class NotFound(ObjectNotFoundError):
    """A referenced cart, purchase, SKU line or tag does not exist."""

    def __init__(self, field, message):
        super().__init__({field: [message]})


class Conflict(InvalidOperationError):
    """The operation would break a uniqueness or settlement precondition."""

    def __init__(self, field, message):
        super().__init__({field: [message]})


class Rejected(ValidationError):
    """A cart failed the close-time business rules."""

    def __init__(self, reason):
        self.reason = reason
        super().__init__({"cart": [reason]})


class BadRequest(ValidationError):
    """A malformed identifier or payload arrived at the boundary."""

    def __init__(self, field, message):
        super().__init__({field: [message]})
