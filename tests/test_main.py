import json

import pytest

from impel.contract import derive_address
from impel.main import build_parser, main

OWNER_HEX = "11" * 20
ALICE_HEX = "a1" * 20


def run(capsys, *argv):
    code = main(list(argv))
    out = capsys.readouterr().out
    return code, json.loads(out) if code == 0 else None


def test_cli_flow(capsys, alice):
    assert run(capsys, "deploy", "--sender", OWNER_HEX) == (0, {"deployed": True})

    code, user = run(capsys, "register", "--sender", ALICE_HEX, "alice")
    assert code == 0 and user == {"username": "alice"}

    code, commit = run(capsys, "pay", "--sender", ALICE_HEX, "100", "1")
    assert commit == {"userKey": derive_address(alice), "commitAmount": 100, "state": "DataNotSubmitted"}

    code, entries = run(capsys, "entries", "1")
    assert entries == [commit]

    code, found = run(capsys, "user", derive_address(alice))
    assert found == {"username": "alice"}

    code, challenge = run(capsys, "challenge", "1")
    assert challenge["title"] == "June 5K Challenge"
    assert challenge["state"] == "NotStarted"


def test_cli_owner_commands(capsys):
    run(capsys, "deploy", "--sender", OWNER_HEX)

    code, created = run(
        capsys, "create-challenge", "--sender", OWNER_HEX, "--title", "July 10K",
        "--start", "1", "--end", "2", "--evaluation", "3", "--value", "10",
    )
    assert created == {"challengeId": 2}

    code, advanced = run(capsys, "advance", "--sender", OWNER_HEX, "2", "Active")
    assert advanced["state"] == "Active"


def test_cli_reports_contract_errors(capsys):
    run(capsys, "deploy", "--sender", OWNER_HEX)

    assert main(["advance", "--sender", ALICE_HEX, "1", "Active"]) == 1
    assert "Only the contract owner" in capsys.readouterr().err

    assert main(["deploy", "--sender", OWNER_HEX]) == 1


def test_cli_address(capsys, alice):
    code, result = run(capsys, "address", ALICE_HEX)
    assert result == {"address": derive_address(alice)}


def test_parser_rejects_bad_account():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["whoami", "--sender", "nothex"])
