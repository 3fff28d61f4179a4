import pytest

from impel.challenge import ChallengeLifecycle, ChallengeState, CommitLifecycle, UserChallengeState
from impel.errors import InvalidTransition


def test_challenge_walks_forward_to_terminal():
    machine = ChallengeLifecycle()
    assert machine.current_state == ChallengeState.NOT_STARTED

    for state in (ChallengeState.ACTIVE, ChallengeState.COMPLETED, ChallengeState.EVALUATION_COMPLETED):
        assert machine.transition_to(state) == state

    assert machine.is_terminal_state()
    assert machine.allowed_transitions() == set()


@pytest.mark.parametrize("current,requested", [
    (ChallengeState.ACTIVE, ChallengeState.NOT_STARTED),
    (ChallengeState.NOT_STARTED, ChallengeState.COMPLETED),
    (ChallengeState.COMPLETED, ChallengeState.ACTIVE),
    (ChallengeState.EVALUATION_COMPLETED, ChallengeState.NOT_STARTED),
    (ChallengeState.ACTIVE, ChallengeState.ACTIVE),
])
def test_challenge_rejects_backward_and_skipping(current, requested):
    machine = ChallengeLifecycle(current)

    assert not machine.can_transition_to(requested)
    with pytest.raises(InvalidTransition) as exc_info:
        machine.transition_to(requested)

    assert machine.current_state == current
    assert exc_info.value.current == current
    assert exc_info.value.requested == requested


def test_commit_lifecycle_branches_after_submission():
    machine = CommitLifecycle()
    assert machine.current_state == UserChallengeState.DATA_NOT_SUBMITTED
    assert machine.allowed_transitions() == {UserChallengeState.DATA_SUBMITTED}

    machine.transition_to(UserChallengeState.DATA_SUBMITTED)
    assert machine.allowed_transitions() == {
        UserChallengeState.DATA_SUBMITTED_QUALIFIED,
        UserChallengeState.DATA_SUBMITTED_NOT_QUALIFIED,
    }

    machine.transition_to(UserChallengeState.DATA_SUBMITTED_NOT_QUALIFIED)
    assert machine.is_terminal_state()
