"""Tests for hierarchical settings resolution."""

import json
import os

import pytest

from errors import SettingNotFoundError
from experiment.settings import Settings


@pytest.fixture
def chain():
    """Session {a: 1} -> block {b: 2} -> trial {a: 3}."""
    session = Settings({"a": 1})
    block = Settings({"b": 2}, parent=session)
    trial = Settings({"a": 3}, parent=block)
    return session, block, trial


class TestSettingsResolution:
    """Tests for parent-chain lookup."""

    def test_override_chain(self, chain):
        """Trial shadows session, block inherits from session."""
        session, block, trial = chain
        assert trial["a"] == 3
        assert trial["b"] == 2
        assert block["a"] == 1

    def test_missing_key_raises(self, chain):
        """A key absent from the whole chain raises SettingNotFoundError."""
        _, _, trial = chain
        with pytest.raises(SettingNotFoundError) as exc_info:
            trial["missing"]
        assert exc_info.value.key == "missing"

    def test_missing_key_is_key_error(self, chain):
        """SettingNotFoundError can be caught as KeyError."""
        _, _, trial = chain
        with pytest.raises(KeyError):
            trial.get("missing")

    def test_default_returned_when_missing(self, chain):
        """get() returns the default instead of raising."""
        _, _, trial = chain
        assert trial.get("missing", 10) == 10
        assert trial.get("missing", None) is None

    def test_parent_change_visible_downstream(self, chain):
        """Lookups are never cached."""
        session, _, trial = chain
        session["c"] = "late"
        assert trial["c"] == "late"
        session["c"] = "later"
        assert trial.get_object("c") == "later"

    def test_write_goes_to_own_node(self, chain):
        """Setting a key on a child never writes to an ancestor."""
        session, block, trial = chain
        trial["b"] = 20
        assert trial["b"] == 20
        assert block["b"] == 2
        assert "b" not in session

    def test_contains_walks_chain(self, chain):
        """'in' sees inherited keys; keys() lists only own keys."""
        _, _, trial = chain
        assert "b" in trial
        assert trial.keys() == ["a"]
        assert len(trial) == 1

    def test_delete_reveals_parent_value(self, chain):
        """Deleting an override falls back to the parent value."""
        _, _, trial = chain
        del trial["a"]
        assert trial["a"] == 1


class TestSettingsConstruction:
    """Tests for creating and loading settings nodes."""

    def test_empty(self):
        """empty() has no values and no parent."""
        settings = Settings.empty()
        assert len(settings) == 0
        assert settings.parent is None

    def test_values_are_copied(self):
        """Mutating the source mapping doesn't change the node."""
        source = {"a": 1}
        settings = Settings(source)
        source["a"] = 2
        assert settings["a"] == 1

    def test_base_dict_is_copy(self):
        """base_dict returns only own values, as a copy."""
        parent = Settings({"p": 0})
        settings = Settings({"a": 1}, parent=parent)
        values = settings.base_dict
        values["a"] = 99
        assert settings.base_dict == {"a": 1}

    def test_clear_keeps_parent(self):
        """clear() removes own values only."""
        parent = Settings({"a": 1})
        settings = Settings({"a": 2, "b": 3}, parent=parent)
        settings.clear()
        assert settings["a"] == 1
        assert "b" not in settings

    def test_from_json_file(self, temp_dir):
        """Settings load from a JSON object file."""
        path = os.path.join(temp_dir, "settings.json")
        with open(path, "w") as f:
            json.dump({"n_trials": 5, "colours": ["red", "blue"]}, f)

        settings = Settings.from_json_file(path)
        assert settings["n_trials"] == 5
        assert settings["colours"] == ["red", "blue"]

    def test_from_json_file_rejects_non_object(self, temp_dir):
        """A JSON array is not a settings file."""
        path = os.path.join(temp_dir, "settings.json")
        with open(path, "w") as f:
            json.dump([1, 2, 3], f)

        with pytest.raises(ValueError):
            Settings.from_json_file(path)
