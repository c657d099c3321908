"""
Tests for Task Extraction
=========================
"""

import pytest

from agent_swarm.agents.base import AgentType
from agent_swarm.agents.extraction import (
    FieldSpec,
    TaskExtractor,
    extract_task_for_agent,
    first_present,
)


class TestFirstPresent:
    """Tests for first_present helper."""

    @pytest.mark.unit
    def test_null_only_keeps_falsy_values(self):
        assert first_present({"a": 0, "b": 5}, ("a", "b")) == 0

    @pytest.mark.unit
    def test_truthy_mode_skips_falsy_values(self):
        assert first_present({"a": "", "b": "x"}, ("a", "b"), null_only=False) == "x"

    @pytest.mark.unit
    def test_default_when_missing(self):
        assert first_present({}, ("a",), default="d") == "d"
        assert first_present(None, ("a",), default="d") == "d"


class TestDefaultExtraction:
    """Tests for the default per-agent views."""

    @pytest.mark.unit
    def test_email_parser_aliases(self):
        view = extract_task_for_agent(
            {"emailContent": "", "content": "Hi from a@b.com", "sender": "a@b.com"},
            AgentType.EMAIL_PARSER,
        )
        assert view == {"email_content": "Hi from a@b.com", "sender_info": "a@b.com"}

    @pytest.mark.unit
    def test_price_analyzer_keeps_zero_price(self):
        view = extract_task_for_agent({"price": 0, "productId": "P1"}, "price_analyzer")
        assert view["current_price"] == 0
        assert view["product_id"] == "P1"
        assert view["historical_prices"] == []

    @pytest.mark.unit
    def test_price_analyzer_skips_null_price(self):
        view = extract_task_for_agent({"price": None, "currentPrice": 12}, "price_analyzer")
        assert view["current_price"] == 12

    @pytest.mark.unit
    def test_stock_checker_defaults(self):
        view = extract_task_for_agent({"productId": "P1", "stock": 40}, "stock_checker")
        assert view == {
            "product_id": "P1",
            "current_stock": 40,
            "daily_usage": 0,
            "minimum_stock": 0,
        }

    @pytest.mark.unit
    def test_product_matcher(self):
        view = extract_task_for_agent({"name": "bolt", "products": [{"id": 1}]}, "product_matcher")
        assert view == {"product_name": "bolt", "product_list": [{"id": 1}]}

    @pytest.mark.unit
    def test_validator_falls_back_to_whole_task(self):
        master = {"price": 10, "quantity": 3}
        view = extract_task_for_agent(master, "validator")
        assert view["data"] == master
        assert view["rules"] == "quotation"

    @pytest.mark.unit
    def test_validator_uses_data_field(self):
        view = extract_task_for_agent(
            {"data": {"price": 1}, "validationRules": "invoice"}, "validator"
        )
        assert view == {"data": {"price": 1}, "rules": "invoice"}

    @pytest.mark.unit
    def test_unknown_type_gets_whole_task(self):
        master = {"supplier": {"name": "ACME"}}
        view = extract_task_for_agent(master, "supplier_scorer")
        assert view == master
        assert view is not master


class TestTaskExtractor:
    """Tests for TaskExtractor isolation and custom rules."""

    @pytest.mark.unit
    def test_views_do_not_share_references(self):
        master = {"products": [{"id": 1}], "name": "bolt", "nested": {"a": [1]}}
        extractor = TaskExtractor()

        view = extractor.extract(master, "product_matcher")
        view["product_list"].append({"id": 2})

        passthrough = extractor.extract(master, "negotiator")
        passthrough["nested"]["a"].append(2)

        assert master["products"] == [{"id": 1}]
        assert master["nested"] == {"a": [1]}

    @pytest.mark.unit
    def test_register_custom_rules(self):
        extractor = TaskExtractor()
        assert not extractor.has_rules("negotiator")

        extractor.register("negotiator", [
            FieldSpec("target_price", ("targetPrice", "target_price"), null_only=True),
            FieldSpec("supplier", ("supplier",), default="unknown"),
        ])

        assert extractor.has_rules(AgentType.NEGOTIATOR)
        assert extractor.extract({"targetPrice": 9}, "negotiator") == {
            "target_price": 9,
            "supplier": "unknown",
        }

    @pytest.mark.unit
    def test_empty_rules_table(self):
        extractor = TaskExtractor(rules={})
        assert extractor.extract({"a": 1}, "validator") == {"a": 1}
