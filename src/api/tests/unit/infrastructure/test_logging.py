"""Unit tests for structlog configuration."""

import pytest
import structlog
from structlog.testing import capture_logs

from iam.domain.exceptions import DomainError, NotFoundError, StateError
from infrastructure.logging import (
    add_domain_violations,
    build_processors,
    configure_logging,
)
from infrastructure.settings import get_iam_settings


@pytest.fixture(autouse=True)
def reset_structlog(monkeypatch):
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    get_iam_settings.cache_clear()
    yield
    structlog.reset_defaults()
    get_iam_settings.cache_clear()


def emitted_events(*levels: str) -> list[str]:
    with capture_logs() as logs:
        logger = structlog.get_logger()
        for level in levels:
            getattr(logger, level)(f"{level}_event")
    return [entry["event"] for entry in logs]


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_uses_json_renderer_without_tty(self):
        configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_force_color_uses_console_renderer(self, monkeypatch):
        monkeypatch.setenv("FORCE_COLOR", "1")

        configure_logging()

        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_filters_below_explicit_level(self):
        configure_logging("warning")

        assert emitted_events("info", "warning") == ["warning_event"]

    def test_level_defaults_to_settings(self, monkeypatch):
        monkeypatch.setenv("IAM_LOG_LEVEL", "ERROR")

        configure_logging()

        assert emitted_events("warning", "error") == ["error_event"]


class TestAddDomainViolations:
    """Tests for the domain error processor."""

    def test_adds_every_aggregated_violation(self):
        error = DomainError.aggregate(
            [StateError("Parent is inactive"), NotFoundError("Tenant not found")]
        )

        event_dict = add_domain_violations(None, "warning", {"exc_info": error})

        assert event_dict["error_type"] == "StateError"
        assert event_dict["violations"] == ["Parent is inactive", "Tenant not found"]

    def test_reads_active_exception(self):
        try:
            raise StateError("Role is already active")
        except StateError:
            event_dict = add_domain_violations(None, "error", {"exc_info": True})

        assert event_dict["violations"] == ["Role is already active"]

    def test_ignores_other_exceptions(self):
        event_dict = add_domain_violations(
            None, "error", {"exc_info": (KeyError, KeyError("x"), None)}
        )

        assert "violations" not in event_dict

    def test_runs_before_exception_formatting(self):
        processors = build_processors(use_colors=False)

        assert processors.index(add_domain_violations) < processors.index(
            structlog.processors.format_exc_info
        )
