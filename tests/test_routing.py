"""
Tests for Task Routing
======================
"""

import pytest

from agent_swarm.agents.routing import Route, TaskRouter, infer_agent_type


class TestInferAgentType:
    """Tests for default route priority."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "task, expected",
        [
            ({"emailContent": "Quote attached"}, "email_parser"),
            ({"content": "reply to buyer@example.com"}, "email_parser"),
            ({"price": 12.5}, "price_analyzer"),
            ({"currentPrice": 3}, "price_analyzer"),
            ({"stock": 10}, "stock_checker"),
            ({"currentStock": 4}, "stock_checker"),
            ({"productName": "bolt"}, "product_matcher"),
            ({"matchQuery": "M8 bolt"}, "product_matcher"),
            ({"validate": True}, "validator"),
            ({"data": {"x": 1}}, "validator"),
            ({"unrelated": 1}, "validator"),
            ({}, "validator"),
        ],
    )
    def test_routes(self, task, expected):
        assert infer_agent_type(task) == expected

    @pytest.mark.unit
    def test_email_wins_over_price(self):
        assert infer_agent_type({"emailContent": "x", "price": 5, "stock": 1}) == "email_parser"

    @pytest.mark.unit
    def test_price_wins_over_stock(self):
        assert infer_agent_type({"price": 5, "stock": 1, "productName": "bolt"}) == "price_analyzer"

    @pytest.mark.unit
    def test_content_without_at_sign_is_not_email(self):
        assert infer_agent_type({"content": "plain text"}) == "validator"

    @pytest.mark.unit
    def test_falsy_values_do_not_match(self):
        assert infer_agent_type({"price": 0, "stock": 0}) == "validator"

    @pytest.mark.unit
    def test_non_mapping_task_falls_back(self):
        assert infer_agent_type(["not", "a", "dict"]) == "validator"


class TestTaskRouter:
    """Tests for custom routers."""

    @pytest.mark.unit
    def test_custom_fallback(self):
        router = TaskRouter(routes=[], fallback="negotiator")
        assert router.infer_agent_type({"price": 1}) == "negotiator"

    @pytest.mark.unit
    def test_add_route_with_priority(self):
        router = TaskRouter()
        router.add_route(Route("supplier_scorer", any_of=("supplierId",)), index=0)
        assert router.infer_agent_type({"supplierId": "S1", "price": 3}) == "supplier_scorer"

    @pytest.mark.unit
    def test_add_route_appends_lowest_priority(self):
        router = TaskRouter()
        router.add_route(Route("negotiator", any_of=("targetPrice",)))
        assert router.infer_agent_type({"targetPrice": 1}) == "negotiator"
        assert router.infer_agent_type({"targetPrice": 1, "data": {}}) == "negotiator"
        assert router.infer_agent_type({"targetPrice": 1, "validate": True}) == "validator"
