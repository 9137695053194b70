"""Tests for agentic_trust.endpoints — A2A endpoint selection."""
from __future__ import annotations

import logging

import pytest

from agentic_trust.endpoints import AGENT_CARD_PATH, derive_agent_card_url, select_a2a_endpoint


class TestDeriveAgentCardUrl:
    def test_appends_well_known_path(self) -> None:
        assert derive_agent_card_url("https://agent.example") == "https://agent.example" + AGENT_CARD_PATH

    def test_strips_trailing_slash(self) -> None:
        assert derive_agent_card_url("https://agent.example/") == (
            "https://agent.example/.well-known/agent-card.json"
        )

    @pytest.mark.parametrize("url", ["", "   "])
    def test_blank(self, url: str) -> None:
        assert derive_agent_card_url(url) is None


class TestSelectA2aEndpoint:
    def test_explicit_entry_wins(self, caplog: pytest.LogCaptureFixture) -> None:
        endpoints = [
            {"name": "MCP", "endpoint": "https://agent.example/mcp"},
            {"name": "A2A", "endpoint": " https://cards.example/alice.json "},
        ]
        with caplog.at_level(logging.DEBUG, logger="agentic_trust.endpoints"):
            selected = select_a2a_endpoint(endpoints, agent_url="https://agent.example")
        assert selected == "https://cards.example/alice.json"
        assert "takes precedence" in caplog.text

    def test_type_key_and_case_insensitive(self) -> None:
        endpoints = [{"type": "a2a", "endpoint": "https://x.example/card"}]
        assert select_a2a_endpoint(endpoints) == "https://x.example/card"

    def test_first_non_empty_explicit_entry(self) -> None:
        endpoints = [
            {"name": "A2A", "endpoint": ""},
            {"name": "a2a", "endpoint": "https://second.example/card"},
        ]
        assert select_a2a_endpoint(endpoints) == "https://second.example/card"

    def test_derived_fallback(self) -> None:
        endpoints = [{"name": "MCP", "endpoint": "https://agent.example/mcp"}]
        assert select_a2a_endpoint(endpoints, agent_url="https://agent.example/") == (
            "https://agent.example/.well-known/agent-card.json"
        )

    def test_none_when_nothing_available(self) -> None:
        assert select_a2a_endpoint(None) is None
        assert select_a2a_endpoint([], agent_url="  ") is None
