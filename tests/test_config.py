"""
Tests for Centralized Configuration
===================================
"""

import dataclasses

import pytest

from agent_swarm.config import (
    AGENT_TIMEOUT_OVERRIDES,
    HISTORY,
    RUNTIME,
    TRACING,
    get_timeout,
)


class TestConfigDefaults:
    """Tests for module-level config singletons."""

    @pytest.mark.unit
    def test_history_limits(self):
        assert HISTORY.MAX_ENTRIES >= 1
        assert HISTORY.RECENT_LIMIT == 10
        assert HISTORY.TASK_PREVIEW_CHARS == 200

    @pytest.mark.unit
    def test_runtime_values_are_sane(self):
        assert RUNTIME.DEFAULT_TIMEOUT_SECONDS > 0
        assert RUNTIME.DEFAULT_RETRIES >= 0
        assert RUNTIME.BACKOFF_BASE_SECONDS > 0

    @pytest.mark.unit
    def test_config_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            RUNTIME.DEFAULT_RETRIES = 99

    @pytest.mark.unit
    def test_tracing_service_name(self):
        assert TRACING.SERVICE_NAME == "agent-swarm"


class TestGetTimeout:
    """Tests for per-type timeout lookup."""

    @pytest.mark.unit
    def test_product_matcher_override(self):
        assert get_timeout("product_matcher") == 45.0

    @pytest.mark.unit
    def test_other_types_use_default(self):
        assert get_timeout("validator") == RUNTIME.DEFAULT_TIMEOUT_SECONDS
        assert get_timeout("custom_agent") == RUNTIME.DEFAULT_TIMEOUT_SECONDS

    @pytest.mark.unit
    def test_overrides_are_read_only(self):
        with pytest.raises(TypeError):
            AGENT_TIMEOUT_OVERRIDES["validator"] = 1.0
