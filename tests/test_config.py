"""Tests for configuration dataclasses."""

import pytest
from dataclasses import FrozenInstanceError

from config import Config, FileSaverConfig, SessionConfig


class TestSessionConfig:
    """Tests for SessionConfig dataclass."""

    def test_default_values(self):
        """Test that default values are set correctly."""
        config = SessionConfig()
        assert config.ad_hoc_header_add is False
        assert config.copy_session_settings is True
        assert config.copy_participant_details is True
        assert config.end_after_last_trial is False
        assert config.end_on_exit is False
        assert config.custom_headers == ()
        assert config.settings_to_log == ()

    def test_frozen_immutability(self):
        """Test that frozen dataclass cannot be modified."""
        config = SessionConfig()
        with pytest.raises(FrozenInstanceError):
            config.ad_hoc_header_add = True

    def test_lists_stored_as_tuples(self):
        """Header lists are accepted and stored as tuples."""
        config = SessionConfig(custom_headers=["score", "rt"], settings_to_log=["level"])
        assert config.custom_headers == ("score", "rt")
        assert config.settings_to_log == ("level",)

    def test_base_header_collision_raises(self):
        """Custom headers cannot shadow base columns."""
        with pytest.raises(ValueError):
            SessionConfig(custom_headers=("trial_num",))
        with pytest.raises(ValueError):
            SessionConfig(settings_to_log=("ppid",))

    def test_empty_header_raises(self):
        with pytest.raises(ValueError):
            SessionConfig(custom_headers=(" ",))

    def test_duplicate_custom_headers_raise(self):
        with pytest.raises(ValueError):
            SessionConfig(custom_headers=("score", "score"))


class TestFileSaverConfig:
    """Tests for FileSaverConfig dataclass."""

    def test_default_values(self):
        config = FileSaverConfig()
        assert config.storage_path is None
        assert config.sort_by_data_type is True
        assert config.verbose is False


class TestConfig:
    """Tests for master Config class."""

    def test_default_initialization(self):
        """Test that Config initializes all sub-configs."""
        config = Config()
        assert isinstance(config.session, SessionConfig)
        assert isinstance(config.file_saver, FileSaverConfig)

    def test_custom_sub_configs(self):
        """Test that custom sub-configs can be provided."""
        config = Config(session=SessionConfig(ad_hoc_header_add=True),
                        file_saver=FileSaverConfig(verbose=True))
        assert config.session.ad_hoc_header_add is True
        assert config.file_saver.verbose is True
