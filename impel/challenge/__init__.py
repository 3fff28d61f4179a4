"""
Challenge lifecycle package for Impel.
"""

from .states import ChallengeState, UserChallengeState
from .state_machine import StateMachine, ChallengeLifecycle, CommitLifecycle

__all__ = [
    "ChallengeState",
    "UserChallengeState",
    "StateMachine",
    "ChallengeLifecycle",
    "CommitLifecycle"
]
