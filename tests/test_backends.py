import json
from unittest.mock import MagicMock

import pytest
from pymongo import ReplaceOne
from pymongo.errors import ConnectionFailure, PyMongoError

from impel.config import DatabaseConfig
from impel.contract import ContractHost
from impel.database import JsonFileBackend, MemoryBackend, MongoBackend, create_backend
from impel.errors import StorageError


def test_memory_backend_scan_is_prefix_filtered():
    backend = MemoryBackend({"A*x": b"1", "B*y": b"2", "B*z": b"3"})
    assert list(backend.scan("B*")) == [("B*y", b"2"), ("B*z", b"3")]
    assert backend.get("A*x") == b"1"
    assert backend.get("A*missing") is None


def test_json_backend_persists_between_instances(tmp_path):
    path = tmp_path / "store" / "impel.json"
    backend = JsonFileBackend(path)
    backend.commit({"A*Owner": b"\x00\xff", "B*addr": b'{"kind":"user"}'})

    reopened = JsonFileBackend(path)
    assert reopened.get("A*Owner") == b"\x00\xff"
    assert list(reopened.scan("B*")) == [("B*addr", b'{"kind":"user"}')]
    assert not path.with_suffix(".json.tmp").exists()


@pytest.mark.parametrize("content", [
    "{not json",
    "[]",
    "{\"A*Owner\": 5}",
    "{\"A*Owner\": \"not base64!\"}",
])
def test_json_backend_rejects_corrupt_file(tmp_path, content):
    path = tmp_path / "impel.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(StorageError):
        JsonFileBackend(path)


def test_host_state_survives_json_reopen(tmp_path, config, owner, alice):
    path = tmp_path / "impel.json"
    ContractHost(JsonFileBackend(path), config).deploy(owner)

    host = ContractHost(JsonFileBackend(path), config)
    host.transfer(alice, 25, ["join_challenge", 1])

    raw = json.loads(path.read_text())
    assert "A*Owner" in raw
    assert len(ContractHost(JsonFileBackend(path), config).invoke(
        "get_subscribed_entries_for_challenge", alice, 1)) == 1


def test_create_backend_selects_kind(tmp_path):
    assert isinstance(create_backend(DatabaseConfig(storage_backend="memory")), MemoryBackend)
    backend = create_backend(DatabaseConfig(storage_backend="json", storage_path=tmp_path / "s.json"))
    assert isinstance(backend, JsonFileBackend)


@pytest.fixture
def mongo_client():
    client = MagicMock()
    collection = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return client


def test_mongo_backend_reads_documents(mongo_client):
    backend = MongoBackend(DatabaseConfig(), client=mongo_client).connect()
    collection = backend.collection
    collection.find_one.return_value = {"_id": "B*addr", "value": b"data"}
    collection.find.return_value.sort.return_value = [
        {"_id": "D*c#1#a", "value": b"1"},
        {"_id": "D*c#1#b", "value": b"2"},
    ]

    assert backend.get("B*addr") == b"data"
    assert list(backend.scan("D*c#1#")) == [("D*c#1#a", b"1"), ("D*c#1#b", b"2")]

    mongo_client.admin.command.assert_called_once_with("ping")
    collection.find_one.assert_called_once_with({"_id": "B*addr"})
    query = collection.find.call_args[0][0]
    assert query == {"_id": {"$regex": "^D\\*c\\#1\\#"}}


def test_mongo_backend_commit_upserts(mongo_client):
    backend = MongoBackend(DatabaseConfig(), client=mongo_client).connect()

    backend.commit({"A*LastChallengeId": b"2"})

    requests = backend.collection.bulk_write.call_args[0][0]
    assert requests == [
        ReplaceOne({"_id": "A*LastChallengeId"}, {"_id": "A*LastChallengeId", "value": b"2"}, upsert=True)
    ]


def test_mongo_backend_wraps_errors(mongo_client):
    backend = MongoBackend(DatabaseConfig(), client=mongo_client).connect()
    backend.collection.bulk_write.side_effect = PyMongoError("down")

    with pytest.raises(StorageError):
        backend.commit({"A*Owner": b"x"})


def test_mongo_backend_connection_failure(mongo_client):
    mongo_client.admin.command.side_effect = ConnectionFailure("refused")

    with pytest.raises(StorageError):
        MongoBackend(DatabaseConfig(), client=mongo_client).connect()


def test_mongo_backend_requires_connect(mongo_client):
    with pytest.raises(StorageError):
        MongoBackend(DatabaseConfig(), client=mongo_client).get("A*Owner")


def test_mongo_backend_commits_inside_transaction(mongo_client):
    backend = MongoBackend(DatabaseConfig(use_transactions=True), client=mongo_client).connect()
    session = mongo_client.start_session.return_value.__enter__.return_value

    backend.commit({"A*Owner": b"x"})

    session.with_transaction.assert_called_once()
    callback = session.with_transaction.call_args[0][0]
    callback(session)
    backend.collection.bulk_write.assert_called_once()
    assert backend.collection.bulk_write.call_args.kwargs["session"] is session
