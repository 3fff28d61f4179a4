import json

import pytest

from impel.database.codec import decode, encode
from impel.database.models import (
    Challenge,
    ChallengeState,
    User,
    UserChallengeState,
    UserCommit,
)
from impel.errors import DecodeError


@pytest.mark.parametrize("record", [
    User(username="alice"),
    User.empty(),
    Challenge.get_test_challenge(),
    Challenge.get_test_challenge().model_copy(update={"state": ChallengeState.COMPLETED}),
    UserCommit(user_key="NaddrX", commit_amount=100),
    UserCommit(user_key="NaddrY", commit_amount=0, state=UserChallengeState.DATA_SUBMITTED_QUALIFIED),
])
def test_round_trip(record):
    assert decode(encode(record), type(record)) == record


def test_encoding_is_canonical_camel_case_json():
    encoded = encode(UserCommit(user_key="abc", commit_amount=7))
    assert encoded == b'{"commitAmount":7,"kind":"user_commit","state":"DataNotSubmitted","userKey":"abc"}'


def test_challenge_field_names():
    payload = json.loads(encode(Challenge.get_test_challenge()))
    assert payload == {
        "kind": "challenge",
        "title": "June 5K Challenge",
        "startTime": 1624559400000,
        "endTime": 1624991400000,
        "evaluationTime": 1625164200000,
        "state": "NotStarted",
        "activityType": "WalkRun",
        "type": "Max",
        "value": 5,
    }


@pytest.mark.parametrize("data", [None, b""])
def test_empty_input_decodes_to_none(data):
    assert decode(data, User) is None


@pytest.mark.parametrize("data", [
    b"{not json",
    b"\xff\xfe",
    b"[1, 2]",
    b'"alice"',
])
def test_malformed_input_raises(data):
    with pytest.raises(DecodeError):
        decode(data, User)


def test_wrong_kind_is_rejected():
    with pytest.raises(DecodeError) as exc_info:
        decode(encode(User(username="alice")), UserCommit)
    assert exc_info.value.kind == "user_commit"


def test_missing_kind_is_rejected():
    with pytest.raises(DecodeError):
        decode(b'{"username":"alice"}', User)


def test_unknown_field_is_rejected():
    with pytest.raises(DecodeError):
        decode(b'{"kind":"user","username":"alice","admin":true}', User)


def test_wrong_type_is_rejected():
    with pytest.raises(DecodeError):
        decode(b'{"kind":"user_commit","userKey":"a","commitAmount":"lots","state":"DataNotSubmitted"}', UserCommit)


def test_unknown_enum_value_is_rejected():
    data = json.loads(encode(Challenge.get_test_challenge()))
    data["state"] = "Paused"
    with pytest.raises(DecodeError):
        decode(json.dumps(data).encode(), Challenge)


def test_inconsistent_timeline_is_rejected():
    data = json.loads(encode(Challenge.get_test_challenge()))
    data["endTime"] = data["startTime"] - 1
    with pytest.raises(DecodeError):
        decode(json.dumps(data).encode(), Challenge)
