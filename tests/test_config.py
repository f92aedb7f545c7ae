"""
Tests for library configuration loading.
"""

from pathlib import Path

import pytest

from rubato_notation.config import LibraryConfig, load_config


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults(self) -> None:
        """No path means the defaults."""
        config = load_config(None)
        assert config == LibraryConfig()
        assert config.max_exercises_per_user == 100
        assert config.exercise_expiration_days == 30
        assert config.cache_expiration_minutes == 60
        assert not config.enable_imslp_integration

    def test_missing_file(self, temp_dir: Path) -> None:
        """A missing file means the defaults."""
        assert load_config(temp_dir / "absent.yaml") == LibraryConfig()

    def test_empty_file(self, temp_dir: Path) -> None:
        """An empty file means the defaults."""
        path = temp_dir / "library.yaml"
        path.write_text("")
        assert load_config(path) == LibraryConfig()

    def test_overrides(self, temp_dir: Path) -> None:
        """Values in the file override the defaults."""
        path = temp_dir / "library.yaml"
        path.write_text("max_exercises_per_user: 5\nexercise_expiration_days: 2\n")

        config = load_config(str(path))
        assert config.max_exercises_per_user == 5
        assert config.exercise_expiration_days == 2
        assert config.initial_load_limit == 50

    def test_not_a_mapping(self, temp_dir: Path) -> None:
        """A list at the top level is rejected."""
        path = temp_dir / "library.yaml"
        path.write_text("- one\n- two\n")
        with pytest.raises(ValueError, match="must contain a mapping"):
            load_config(path)

    def test_invalid_value(self, temp_dir: Path) -> None:
        """Out-of-range values are rejected."""
        path = temp_dir / "library.yaml"
        path.write_text("max_exercises_per_user: 0\n")
        with pytest.raises(ValueError):
            load_config(path)
