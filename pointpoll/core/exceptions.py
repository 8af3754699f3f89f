# pointpoll/core/exceptions.py
"""
Voting errors.

Raised synchronously by the allocation engine, the vote submitter and the
poll services. main.py turns them into JSON responses using status_code.
"""


class VotingError(Exception):
    """Base class for every voting error"""

    default_status_code = 400
    default_message = "A voting error occurred"

    def __init__(self, message=None, status_code=None):
        self.message = message or self.default_message
        self.status_code = status_code or self.default_status_code
        super().__init__(self.message)


class NotFullyAllocatedError(VotingError):
    """Finalize attempted while points remain unallocated"""

    default_status_code = 422
    default_message = "Allocate all of your points before submitting"

    def __init__(self, remaining=None, message=None):
        self.remaining = remaining
        if message is None and remaining is not None:
            message = f"Allocate all of your points before submitting ({remaining} remaining)"
        super().__init__(message)


class EmptyAllocationError(VotingError):
    """Finalize attempted with nothing allocated"""

    default_status_code = 422
    default_message = "Please allocate at least 1 point"


class InvalidAllocationError(VotingError):
    """A submitted ballot that is negative or over budget"""

    default_status_code = 422
    default_message = "Invalid allocation"


class InvalidChoiceError(VotingError):
    """A choice id that does not belong to the poll"""

    default_status_code = 400
    default_message = "Invalid choice"


class AlreadyVotedError(VotingError):
    """The voter already has a vote set for this poll"""

    default_status_code = 409
    default_message = "You have already voted on this poll"


class PollNotFoundError(VotingError):
    default_status_code = 404
    default_message = "Poll not found"


class PersistenceFailureError(VotingError):
    """The datastore failed to read or write votes"""

    default_status_code = 503
    default_message = "Could not save your vote. Please try again."
