"""
Exception hierarchy for Impel.
"""


class ImpelError(Exception):
    """Base class for every error raised by the contract core."""


class Unauthorized(ImpelError):
    """Caller is not the owner, or a payment sender did not witness the transfer."""


class AlreadyInitialized(ImpelError):
    """A fresh deploy was attempted on a store that already has an owner."""


class NotInitialized(ImpelError):
    """The store has no owner or challenge counter yet."""


class DecodeError(ImpelError):
    """Stored bytes do not match the expected record schema."""

    def __init__(self, kind: str, reason: str):
        super().__init__(f"cannot decode {kind}: {reason}")
        self.kind = kind
        self.reason = reason


class InvalidTransition(ImpelError):
    """A lifecycle transition that the state machine does not allow."""

    def __init__(self, current, requested):
        super().__init__(f"invalid transition {current.value} -> {requested.value}")
        self.current = current
        self.requested = requested


class InvalidAccount(ImpelError):
    """An account identifier is not a 20-byte script hash."""


class ChallengeNotFound(ImpelError):
    """No challenge is stored under the given id."""

    def __init__(self, challenge_id: int):
        super().__init__(f"challenge {challenge_id} not found")
        self.challenge_id = challenge_id


class ContractDestroyed(ImpelError):
    """The contract was destroyed and no longer accepts invocations."""


class StorageError(ImpelError):
    """The storage backend failed to read or persist data."""


class CommitNotFound(ImpelError):
    """No commitment is stored for the given challenge and user."""

    def __init__(self, challenge_id: int, user_key: str):
        super().__init__(f"no commitment of {user_key} to challenge {challenge_id}")
        self.challenge_id = challenge_id
        self.user_key = user_key
