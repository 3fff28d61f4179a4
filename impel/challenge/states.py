"""
Lifecycle state enumerations.
"""

from enum import Enum


class ChallengeState(str, Enum):
    """Challenge lifecycle states."""
    NOT_STARTED = "NotStarted"
    ACTIVE = "Active"
    COMPLETED = "Completed"
    EVALUATION_COMPLETED = "EvaluationCompleted"


class UserChallengeState(str, Enum):
    """Evaluation state of a user's commitment."""
    DATA_NOT_SUBMITTED = "DataNotSubmitted"
    DATA_SUBMITTED = "DataSubmitted"
    DATA_SUBMITTED_QUALIFIED = "DataSubmittedQualified"
    DATA_SUBMITTED_NOT_QUALIFIED = "DataSubmittedNotQualified"
