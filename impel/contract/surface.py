"""
Impel contract entry points.
"""

from typing import Any, List, Optional, Sequence
import structlog

from ..config import Config, get_config
from ..database import ChallengeOps, CommitOps, CoreDataOps, UserOps
from ..database.models import Challenge, ChallengeState, User, UserCommit
from ..errors import AlreadyInitialized, Unauthorized
from .address import derive_address, validate_account
from .context import InvocationContext

logger = structlog.get_logger(__name__)

JOIN_CHALLENGE = "join_challenge"


class ImpelContract:
    """Contract logic. Holds no state; storage comes in with each context."""

    ENTRY_POINTS = frozenset({
        "deploy",
        "update_contract",
        "destroy_contract",
        "to_address",
        "register_user",
        "retrieve_user",
        "retrieve_user_by_address",
        "get_challenge",
        "get_subscribed_entries_for_challenge",
        "create_challenge",
        "advance_challenge",
        "on_payment_received",
    })

    def __init__(self, config: Optional[Config] = None):
        self.config = config or get_config()

    def _address(self, account_id: bytes) -> str:
        return derive_address(account_id, self.config.address_version)

    def _require_owner(self, ctx: InvocationContext) -> None:
        owner = CoreDataOps(ctx.store).get_owner()
        if owner is None or ctx.sender != owner:
            logger.warning("Owner-only call rejected", sender=ctx.sender.hex())
            raise Unauthorized("Only the contract owner can do this")

    # Deployment and maintenance

    def deploy(self, ctx: InvocationContext, data: Any = None, is_update: bool = False) -> None:
        """Install hook. Initializes storage on a fresh deploy only."""
        if is_update:
            logger.info("Contract updated, storage kept")
            return

        core_ops = CoreDataOps(ctx.store)
        if core_ops.get_owner() is not None:
            raise AlreadyInitialized("contract storage already has an owner")

        core_ops.put_owner(validate_account(ctx.sender))
        core_ops.reset_last_challenge_id()
        challenge_id = ChallengeOps(ctx.store, core_ops).mint_challenge(Challenge.get_test_challenge())
        logger.info("Contract initialized", owner=ctx.sender.hex(), seed_challenge_id=challenge_id)

    def update_contract(self, ctx: InvocationContext, nef_file: bytes, manifest: str) -> None:
        self._require_owner(ctx)
        ctx.management.update(nef_file, manifest, None)
        logger.info("Contract update requested", nef_size=len(nef_file))

    def destroy_contract(self, ctx: InvocationContext) -> None:
        self._require_owner(ctx)
        ctx.management.destroy()
        logger.info("Contract destroy requested")

    # Users

    def to_address(self, ctx: InvocationContext, account_id: bytes) -> str:
        address = self._address(account_id)
        logger.info("Address", address=address)
        return address

    def register_user(self, ctx: InvocationContext, username: str) -> User:
        """Register the caller, replacing any previous registration."""
        user = User(username=username)
        UserOps(ctx.store).put_user(self._address(ctx.sender), user)
        return user

    def retrieve_user(self, ctx: InvocationContext) -> User:
        return self.retrieve_user_by_address(ctx, self._address(ctx.sender))

    def retrieve_user_by_address(self, ctx: InvocationContext, address: str) -> User:
        return UserOps(ctx.store).get_user(address)

    # Challenges

    def get_challenge(self, ctx: InvocationContext, challenge_id: int) -> Optional[Challenge]:
        return ChallengeOps(ctx.store).get_challenge(challenge_id)

    def get_subscribed_entries_for_challenge(self, ctx: InvocationContext, challenge_id: int) -> List[UserCommit]:
        return CommitOps(ctx.store).get_subscribed_entries_for_challenge(challenge_id)

    def create_challenge(self, ctx: InvocationContext, challenge: Challenge) -> int:
        """Mint a new challenge. Owner only; it always starts as NOT_STARTED."""
        self._require_owner(ctx)
        if challenge.state != ChallengeState.NOT_STARTED:
            challenge = challenge.model_copy(update={"state": ChallengeState.NOT_STARTED})
        return ChallengeOps(ctx.store).mint_challenge(challenge)

    def advance_challenge(self, ctx: InvocationContext, challenge_id: int,
                          new_state: ChallengeState) -> Challenge:
        """Move a challenge one lifecycle step forward. Owner only."""
        self._require_owner(ctx)
        return ChallengeOps(ctx.store).update_challenge_state(challenge_id, ChallengeState(new_state))

    # Payments

    def on_payment_received(self, ctx: InvocationContext, from_account: bytes,
                            amount: int, data: Optional[Sequence[Any]]) -> Optional[UserCommit]:
        """Token transfer callback.

        A witnessed GAS transfer carrying ["join_challenge", challenge_id]
        commits the sender to that challenge. Every other transfer is
        accepted without touching storage.
        """
        if not ctx.check_witness(from_account):
            logger.warning("Payment without sender witness", sender=bytes(from_account).hex())
            raise Unauthorized("Check your signature.")

        if ctx.calling_script_hash != self.config.gas_token_script_hash:
            logger.info(
                "Ignoring payment from unrecognized token",
                token=ctx.calling_script_hash.hex() if ctx.calling_script_hash else None,
            )
            return None

        challenge_id = _parse_join_request(data)
        if challenge_id is None:
            logger.info("Ignoring payment with unrecognized payload", payload=repr(data))
            return None

        return CommitOps(ctx.store).add_user_challenge_record(challenge_id, self._address(from_account), amount)


def _parse_join_request(data: Optional[Sequence[Any]]) -> Optional[int]:
    """Challenge id from a join_challenge payload, or None if it is not one."""
    if not isinstance(data, (list, tuple)) or len(data) != 2 or data[0] != JOIN_CHALLENGE:
        return None

    challenge_id = data[1]
    if isinstance(challenge_id, bool):
        return None
    if isinstance(challenge_id, str) and challenge_id.isascii() and challenge_id.isdigit():
        challenge_id = int(challenge_id)
    if isinstance(challenge_id, int) and challenge_id >= 0:
        return challenge_id
    return None
