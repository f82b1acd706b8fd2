"""
Import of documents written by the browser dashboard.
"""

import json

import pytest

from switchboard_config import (
    ConfigStore,
    ConfigValidationError,
    FunctionKind,
    LoadStatus,
    PersistenceParseError,
    SchemaMismatchError,
    ToggleConfig,
    convert_legacy_document,
    is_legacy_document,
)

LEGACY = [
    {
        "name": "Kitchen",
        "devices": [
            {
                "name": "Relay board",
                "id": "dev1",
                "loads": [
                    {"name": "Light", "topic": "light/set", "type": "toggle", "token": "abc",
                     "config": {"onValue": "1", "offValue": "0"}},
                    {"name": "Fan", "topic": "fan", "type": "push", "token": "def",
                     "config": {"value": "PULSE"}},
                    {"name": "Display", "topic": "display", "type": "input"},
                ],
            }
        ],
    },
    {"name": "Hall", "devices": []},
]


def test_detects_legacy_layout():
    assert is_legacy_document(LEGACY)
    assert not is_legacy_document([{"name": "Kitchen", "endpoints": []}])
    assert not is_legacy_document({"devices": []})


def test_converts_identifier_bearing_document():
    tree = convert_legacy_document(LEGACY)

    assert [loc.name for loc in tree.locations] == ["Kitchen", "Hall"]
    endpoint = tree.endpoint(0, 0)
    assert endpoint.identifier == "dev1"
    assert [fn.name for fn in endpoint.functions] == ["Light", "Fan", "Display"]

    light = endpoint.functions[0]
    assert light.kind is FunctionKind.TOGGLE
    assert light.topic_suffix == "light/set"
    assert light.auth_token == "abc"
    assert light.config == ToggleConfig(on_value="1", off_value="0")

    # A load without token or config
    assert endpoint.functions[2].auth_token == ""


def test_document_without_device_id_is_rejected():
    document = [{"name": "Kitchen", "devices": [{"name": "Relay", "loads": []}]}]
    with pytest.raises(SchemaMismatchError):
        convert_legacy_document(document)


def test_invalid_load_is_rejected():
    document = [{"name": "Kitchen", "devices": [{"name": "Relay", "id": "dev1", "loads": [
        {"name": "Fan", "topic": "fan", "type": "push", "config": {"value": ""}}
    ]}]}]
    with pytest.raises(ConfigValidationError):
        convert_legacy_document(document)


def test_store_import_replaces_tree_and_persists(populated_store):
    tree = populated_store.import_legacy(LEGACY)

    assert populated_store.tree == tree
    assert populated_store.load_status is LoadStatus.LOADED
    assert ConfigStore(populated_store.path).load() == tree


def test_import_from_quarantined_file(tmp_path):
    path = tmp_path / "switchboard.json"
    path.write_text(json.dumps(LEGACY), encoding="utf-8")

    store = ConfigStore(path)
    store.load()
    assert store.load_status is LoadStatus.SCHEMA_MISMATCH

    tree = store.import_legacy(store.corrupt_path)
    assert tree.endpoint(0, 0).identifier == "dev1"
    assert json.loads(path.read_text(encoding="utf-8")) == tree.to_list()


def test_failed_import_leaves_store_untouched(populated_store, tmp_path):
    before = populated_store.tree
    with pytest.raises(SchemaMismatchError):
        populated_store.import_legacy([{"name": "Kitchen", "devices": [{"name": "Relay"}]}])

    broken = tmp_path / "broken.json"
    broken.write_text("[", encoding="utf-8")
    with pytest.raises(PersistenceParseError):
        populated_store.import_legacy(broken)

    assert populated_store.tree == before
