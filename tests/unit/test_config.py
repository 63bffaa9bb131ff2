"""Unit tests for environment-driven settings."""

from __future__ import annotations

from har.core.config import (
    GraphSettings,
    LoggingSettings,
    load_graph_settings,
    load_logging_settings,
)


class TestGraphSettings:
    """Test graph settings loading."""

    def test_defaults(self) -> None:
        """Test defaults with an empty environment."""
        settings = load_graph_settings({})

        assert settings == GraphSettings()
        assert settings.dropped_edge_policy == "ignore"
        assert settings.display_param_limit == 3
        assert not settings.warn_on_dropped_edges

    def test_warn_policy(self) -> None:
        """Test enabling dropped edge warnings."""
        settings = load_graph_settings({"HAR_PARTITION_DROPPED_EDGES": " WARN "})

        assert settings.warn_on_dropped_edges

    def test_warning_alias(self) -> None:
        """Test that 'warning' is accepted."""
        settings = load_graph_settings({"HAR_PARTITION_DROPPED_EDGES": "warning"})

        assert settings.dropped_edge_policy == "warn"

    def test_unknown_policy_falls_back(self) -> None:
        """Test that unknown policies fall back to ignore."""
        settings = load_graph_settings({"HAR_PARTITION_DROPPED_EDGES": "explode"})

        assert settings.dropped_edge_policy == "ignore"

    def test_display_limit(self) -> None:
        """Test a custom display limit."""
        settings = load_graph_settings({"HAR_DISPLAY_PARAM_LIMIT": "7"})

        assert settings.display_param_limit == 7

    def test_invalid_display_limit_falls_back(self) -> None:
        """Test that non-positive or non-numeric limits are ignored."""
        for raw in ("0", "-2", "x"):
            settings = load_graph_settings({"HAR_DISPLAY_PARAM_LIMIT": raw})
            assert settings.display_param_limit == 3

    def test_reads_process_environment(self, monkeypatch) -> None:
        """Test that os.environ is used when no mapping is given."""
        monkeypatch.setenv("HAR_PARTITION_DROPPED_EDGES", "warn")

        assert load_graph_settings().warn_on_dropped_edges


class TestLoggingSettings:
    """Test logging settings loading."""

    def test_defaults(self) -> None:
        """Test defaults with an empty environment."""
        assert load_logging_settings({}) == LoggingSettings()

    def test_custom_values(self) -> None:
        """Test reading every logging variable."""
        settings = load_logging_settings(
            {
                "HAR_LOG_LEVEL": "debug",
                "HAR_LOG_JSON": "yes",
                "HAR_LOG_FILE": "/tmp/har.log",
            }
        )

        assert settings.level == "DEBUG"
        assert settings.json_format is True
        assert settings.log_file == "/tmp/har.log"

    def test_invalid_level_falls_back(self) -> None:
        """Test that unknown levels fall back to INFO."""
        assert load_logging_settings({"HAR_LOG_LEVEL": "loud"}).level == "INFO"

    def test_blank_log_file_is_none(self) -> None:
        """Test that a blank log file is ignored."""
        assert load_logging_settings({"HAR_LOG_FILE": "  "}).log_file is None
