"""
Lifecycle state machines for challenges and user commitments.
"""

from enum import Enum
from typing import ClassVar, Dict, Generic, Set, TypeVar
import structlog

from .states import ChallengeState, UserChallengeState
from ..errors import InvalidTransition

logger = structlog.get_logger(__name__)

S = TypeVar("S", bound=Enum)


class StateMachine(Generic[S]):
    """Table-driven state machine over one state enum."""

    VALID_TRANSITIONS: ClassVar[Dict]
    INITIAL_STATE: ClassVar[Enum]

    def __init__(self, current_state: S = None):
        self.current_state = current_state if current_state is not None else self.INITIAL_STATE

    def can_transition_to(self, new_state: S) -> bool:
        """Check if transition to new state is valid."""
        return new_state in self.VALID_TRANSITIONS.get(self.current_state, set())

    def transition_to(self, new_state: S) -> S:
        """Transition to a new state, raising InvalidTransition if not allowed."""
        if not self.can_transition_to(new_state):
            logger.warning(
                "Invalid state transition attempted",
                machine=type(self).__name__,
                current_state=self.current_state.value,
                new_state=new_state.value,
            )
            raise InvalidTransition(self.current_state, new_state)

        old_state = self.current_state
        self.current_state = new_state
        logger.info(
            "State transitioned",
            machine=type(self).__name__,
            old_state=old_state.value,
            new_state=new_state.value,
        )
        return new_state

    def is_terminal_state(self) -> bool:
        """Check if current state is terminal."""
        return len(self.VALID_TRANSITIONS.get(self.current_state, set())) == 0

    def allowed_transitions(self) -> Set[S]:
        return set(self.VALID_TRANSITIONS.get(self.current_state, set()))


class ChallengeLifecycle(StateMachine[ChallengeState]):
    """Strictly forward challenge lifecycle.

    Nothing advances a challenge on a clock; an owner moves it one step at a
    time through the contract's advance operation.
    """

    INITIAL_STATE = ChallengeState.NOT_STARTED

    VALID_TRANSITIONS: Dict[ChallengeState, Set[ChallengeState]] = {
        ChallengeState.NOT_STARTED: {ChallengeState.ACTIVE},
        ChallengeState.ACTIVE: {ChallengeState.COMPLETED},
        ChallengeState.COMPLETED: {ChallengeState.EVALUATION_COMPLETED},
        ChallengeState.EVALUATION_COMPLETED: set(),  # Terminal state
    }


class CommitLifecycle(StateMachine[UserChallengeState]):
    """Evaluation states of a user commitment.

    Commitments are created in DATA_NOT_SUBMITTED. The remaining transitions
    belong to an evaluation subsystem and are reachable only through
    CommitOps.update_commit_state.
    """

    INITIAL_STATE = UserChallengeState.DATA_NOT_SUBMITTED

    VALID_TRANSITIONS: Dict[UserChallengeState, Set[UserChallengeState]] = {
        UserChallengeState.DATA_NOT_SUBMITTED: {UserChallengeState.DATA_SUBMITTED},
        UserChallengeState.DATA_SUBMITTED: {
            UserChallengeState.DATA_SUBMITTED_QUALIFIED,
            UserChallengeState.DATA_SUBMITTED_NOT_QUALIFIED,
        },
        UserChallengeState.DATA_SUBMITTED_QUALIFIED: set(),      # Terminal state
        UserChallengeState.DATA_SUBMITTED_NOT_QUALIFIED: set(),  # Terminal state
    }
