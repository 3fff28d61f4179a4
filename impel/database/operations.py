"""
Typed storage operations for Impel.
"""

from typing import List, Optional
import structlog

from ..challenge.state_machine import ChallengeLifecycle, CommitLifecycle
from ..errors import ChallengeNotFound, CommitNotFound, DecodeError, NotInitialized
from .codec import decode, encode
from .keyed_store import KeyedStore, Partition
from .models import Challenge, ChallengeState, User, UserChallengeState, UserCommit

logger = structlog.get_logger(__name__)

OWNER_KEY = "Owner"
LAST_CHALLENGE_ID_KEY = "LastChallengeId"
COMMIT_KEY_PREFIX = "c#"
COMMIT_KEY_DELIMITER = "#"


def challenge_key(challenge_id: int) -> str:
    return str(int(challenge_id))


def commit_key_prefix(challenge_id: int) -> str:
    """Prefix shared by every commitment key of one challenge."""
    return COMMIT_KEY_PREFIX + challenge_key(challenge_id) + COMMIT_KEY_DELIMITER


def commit_key(challenge_id: int, user_key: str) -> str:
    return commit_key_prefix(challenge_id) + user_key


class BaseOperations:
    """Base operations class."""

    def __init__(self, store: KeyedStore):
        self.store = store


class CoreDataOps(BaseOperations):
    """Owner and challenge counter operations."""

    def get_owner(self) -> Optional[bytes]:
        """Get the raw owner account id, or None before initialization."""
        return self.store.get(Partition.CORE_DATA, OWNER_KEY) or None

    def put_owner(self, owner: bytes) -> None:
        self.store.put(Partition.CORE_DATA, OWNER_KEY, bytes(owner))
        logger.info("Owner set", owner=owner.hex())

    def reset_last_challenge_id(self) -> None:
        self.store.put(Partition.CORE_DATA, LAST_CHALLENGE_ID_KEY, b"1")

    def get_last_challenge_id(self) -> int:
        """Get the id the next minted challenge will receive."""
        raw = self.store.get(Partition.CORE_DATA, LAST_CHALLENGE_ID_KEY)
        if raw is None:
            raise NotInitialized("challenge counter has not been reset")
        try:
            return int(raw.decode("ascii"))
        except (UnicodeDecodeError, ValueError) as e:
            raise DecodeError("counter", f"not a decimal integer: {raw!r}") from e

    def get_and_increment_last_challenge_id(self) -> int:
        """Return the current counter value and store its successor."""
        last_challenge_id = self.get_last_challenge_id()
        self.store.put(Partition.CORE_DATA, LAST_CHALLENGE_ID_KEY, str(last_challenge_id + 1).encode("ascii"))
        return last_challenge_id


class UserOps(BaseOperations):
    """User storage operations."""

    def get_user(self, address: str) -> User:
        """Get user by derived address. Absent users come back with an empty username."""
        user = decode(self.store.get(Partition.USERS, address), User)
        return user if user is not None else User.empty()

    def put_user(self, address: str, user: User) -> None:
        self.store.put(Partition.USERS, address, encode(user))
        logger.info("User stored", address=address, username=user.username)


class ChallengeOps(BaseOperations):
    """Challenge storage operations."""

    def __init__(self, store: KeyedStore, core_ops: Optional[CoreDataOps] = None):
        super().__init__(store)
        self.core_ops = core_ops or CoreDataOps(store)

    def get_challenge(self, challenge_id: int) -> Optional[Challenge]:
        """Get challenge by id."""
        return decode(self.store.get(Partition.CHALLENGES, challenge_key(challenge_id)), Challenge)

    def put_challenge(self, challenge_id: int, challenge: Challenge) -> None:
        self.store.put(Partition.CHALLENGES, challenge_key(challenge_id), encode(challenge))

    def mint_challenge(self, challenge: Challenge) -> int:
        """Store a challenge under a freshly minted id."""
        challenge_id = self.core_ops.get_and_increment_last_challenge_id()
        self.put_challenge(challenge_id, challenge)
        logger.info("Challenge minted", challenge_id=challenge_id, title=challenge.title)
        return challenge_id

    def update_challenge_state(self, challenge_id: int, new_state: ChallengeState) -> Challenge:
        """Move a stored challenge one lifecycle step forward."""
        challenge = self.get_challenge(challenge_id)
        if challenge is None:
            raise ChallengeNotFound(challenge_id)

        ChallengeLifecycle(challenge.state).transition_to(new_state)
        updated = challenge.model_copy(update={"state": new_state})
        self.put_challenge(challenge_id, updated)
        return updated


class CommitOps(BaseOperations):
    """User-challenge commitment operations."""

    def add_user_challenge_record(self, challenge_id: int, user_key: str, amount: int) -> UserCommit:
        """Create or overwrite the commitment of user_key to a challenge."""
        record = UserCommit(user_key=user_key, commit_amount=amount)
        self.store.put(Partition.USER_CHALLENGES, commit_key(challenge_id, user_key), encode(record))
        logger.info("Commitment recorded", challenge_id=challenge_id, user_key=user_key, amount=amount)
        return record

    def get_challenge_entry(self, challenge_id: int, user_key: str) -> Optional[UserCommit]:
        return decode(self.store.get(Partition.USER_CHALLENGES, commit_key(challenge_id, user_key)), UserCommit)

    def get_subscribed_entries_for_challenge(self, challenge_id: int) -> List[UserCommit]:
        """All commitments to a challenge, in storage scan order."""
        prefix = commit_key_prefix(challenge_id)
        entries = []
        for _suffix, value in self.store.scan(Partition.USER_CHALLENGES, prefix):
            record = decode(value, UserCommit)
            if record is not None:
                entries.append(record)
        return entries

    def update_commit_state(self, challenge_id: int, user_key: str,
                            new_state: UserChallengeState) -> UserCommit:
        """Advance a commitment's evaluation state.

        Entry point for an evaluation subsystem; the contract itself never
        calls this.
        """
        record = self.get_challenge_entry(challenge_id, user_key)
        if record is None:
            raise CommitNotFound(challenge_id, user_key)

        CommitLifecycle(record.state).transition_to(new_state)
        updated = record.model_copy(update={"state": new_state})
        self.store.put(Partition.USER_CHALLENGES, commit_key(challenge_id, user_key), encode(updated))
        return updated
