"""
Storage record models for Impel.
"""

from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from ..challenge.states import ChallengeState, UserChallengeState


class ChallengeActivityType(str, Enum):
    """Activity tracked by a challenge."""
    WALK_RUN = "WalkRun"


class ChallengeType(str, Enum):
    """How a challenge is scored."""
    MAX = "Max"


class Record(BaseModel):
    """Base for every record kept in contract storage."""

    record_kind: ClassVar[str] = "record"

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
    )


class User(Record):
    """Registered user, keyed by derived address."""

    record_kind: ClassVar[str] = "user"

    username: str = Field(..., description="Display name chosen at registration")

    @classmethod
    def empty(cls) -> "User":
        return cls(username="")

    @property
    def is_empty(self) -> bool:
        return self.username == ""


class Challenge(Record):
    """Time-boxed fitness challenge."""

    record_kind: ClassVar[str] = "challenge"

    title: str = Field(..., description="Challenge title")

    # Timing, epoch milliseconds
    start_time: int = Field(..., ge=0, description="When the challenge starts")
    end_time: int = Field(..., ge=0, description="When the challenge ends")
    evaluation_time: int = Field(..., ge=0, description="When results are evaluated")

    state: ChallengeState = Field(default=ChallengeState.NOT_STARTED, description="Lifecycle state")
    activity_type: ChallengeActivityType = Field(default=ChallengeActivityType.WALK_RUN, description="Tracked activity")
    challenge_type: ChallengeType = Field(default=ChallengeType.MAX, alias="type", description="Scoring rule")
    value: int = Field(..., description="Goal value")

    @model_validator(mode="after")
    def _check_timeline(self) -> "Challenge":
        if not self.start_time <= self.end_time <= self.evaluation_time:
            raise ValueError("challenge times must satisfy start <= end <= evaluation")
        return self

    @classmethod
    def get_test_challenge(cls) -> "Challenge":
        """The challenge minted on first deploy."""
        return cls(
            title="June 5K Challenge",
            start_time=1624559400000,
            end_time=1624991400000,
            evaluation_time=1625164200000,
            activity_type=ChallengeActivityType.WALK_RUN,
            challenge_type=ChallengeType.MAX,
            value=5,
        )


class UserCommit(Record):
    """A user's financial commitment to one challenge."""

    record_kind: ClassVar[str] = "user_commit"

    user_key: str = Field(..., description="Derived address of the committing user")
    commit_amount: int = Field(..., ge=0, description="Amount paid in, in token base units")
    state: UserChallengeState = Field(
        default=UserChallengeState.DATA_NOT_SUBMITTED, description="Evaluation state"
    )
