"""
tests/test_action_rules.py

Stakeholder rule evaluation.
"""

from __future__ import annotations

import pytest

from action_rules.delivery_rules import (
    ACTION_AUTOMATED,
    ACTION_ESCALATE,
    ACTION_PREP_EMAIL,
    ACTION_ROUTE_REVIEW,
    CustomerRefundRule,
    MerchantPrepRule,
)
from action_rules.evaluator import ActionRuleEvaluator
from app.domain.delivery import ActionItem, KPISettings, SchemaConfig, Stakeholder

SCHEMA = SchemaConfig(
    total_duration="mins",
    refund_amount="refund",
    prep_duration="prep",
    drive_duration="drive",
)
SETTINGS = KPISettings()


@pytest.fixture()
def evaluator() -> ActionRuleEvaluator:
    return ActionRuleEvaluator()


class TestCustomerRule:
    def test_high_refund_escalates(self, evaluator: ActionRuleEvaluator) -> None:
        items = evaluator.evaluate([{"id": "7", "refund": 60, "prep": 1, "drive": 1}], SETTINGS, SCHEMA)

        assert items == [
            ActionItem(
                order_id="7",
                stakeholder=Stakeholder.CUSTOMER,
                issue_type="Refund Processed",
                metric_value=60.0,
                suggested_action=ACTION_ESCALATE,
            )
        ]

    def test_small_refund_is_automated(self) -> None:
        item = CustomerRefundRule().evaluate({"refund": "20"}, "1", SETTINGS, SCHEMA)
        assert item is not None
        assert item.suggested_action == ACTION_AUTOMATED

    def test_refund_at_threshold_is_automated(self) -> None:
        item = CustomerRefundRule().evaluate({"refund": 50}, "1", SETTINGS, SCHEMA)
        assert item is not None
        assert item.suggested_action == ACTION_AUTOMATED

    @pytest.mark.parametrize("refund", [0, None, "", "n/a", -5])
    def test_no_refund_no_item(self, refund) -> None:
        assert CustomerRefundRule().evaluate({"refund": refund}, "1", SETTINGS, SCHEMA) is None


class TestDurationRules:
    def test_measured_values(self, evaluator: ActionRuleEvaluator) -> None:
        items = evaluator.evaluate([{"id": "1", "mins": 100, "prep": 25, "drive": 50}], SETTINGS, SCHEMA)

        assert [(item.stakeholder, item.metric_value) for item in items] == [
            (Stakeholder.MERCHANT, 25.0),
            (Stakeholder.DASHER, 50.0),
        ]
        assert items[0].suggested_action == ACTION_PREP_EMAIL
        assert items[1].suggested_action == ACTION_ROUTE_REVIEW

    def test_fallback_share_when_unmapped(self, evaluator: ActionRuleEvaluator) -> None:
        schema = SchemaConfig(total_duration="mins")
        items = evaluator.evaluate([{"mins": 80}], SETTINGS, schema)

        assert [item.stakeholder for item in items] == [Stakeholder.MERCHANT, Stakeholder.DASHER]
        assert items[0].metric_value == pytest.approx(24.0)
        assert items[1].metric_value == pytest.approx(56.0)

    def test_fallback_when_value_missing_or_zero(self, evaluator: ActionRuleEvaluator) -> None:
        items = evaluator.evaluate([{"mins": 80, "prep": 10, "drive": 0}], SETTINGS, SCHEMA)

        assert [item.stakeholder for item in items] == [Stakeholder.DASHER]
        assert items[0].metric_value == pytest.approx(56.0)

    def test_threshold_is_strict(self) -> None:
        assert MerchantPrepRule().evaluate({"prep": 20}, "1", SETTINGS, SCHEMA) is None

    def test_settings_snapshot_is_respected(self, evaluator: ActionRuleEvaluator) -> None:
        lenient = KPISettings(max_acceptable_prep_time=30, max_acceptable_drive_time=60)
        assert evaluator.evaluate([{"prep": 25, "drive": 50}], lenient, SCHEMA) == []


class TestEvaluator:
    def test_emission_order_and_ids(self, evaluator: ActionRuleEvaluator) -> None:
        records = [
            {"refund": 5, "prep": 1, "drive": 1},
            {"id": "B-2", "prep": 30, "drive": 60, "refund": 70},
        ]
        items = evaluator.evaluate(records, SETTINGS, SCHEMA)

        assert [(item.order_id, item.stakeholder) for item in items] == [
            ("1", Stakeholder.CUSTOMER),
            ("B-2", Stakeholder.MERCHANT),
            ("B-2", Stakeholder.DASHER),
            ("B-2", Stakeholder.CUSTOMER),
        ]
        assert items[1].item_id == "act-m-B-2"
        assert items[2].item_id == "act-d-B-2"
        assert items[3].item_id == "act-c-B-2"

    def test_custom_id_column(self) -> None:
        evaluator = ActionRuleEvaluator(id_column="order_ref")
        items = evaluator.evaluate([{"order_ref": 991, "refund": 1}], SETTINGS, SCHEMA)
        assert items[0].order_id == "991"

    def test_group_by_stakeholder(self, evaluator: ActionRuleEvaluator) -> None:
        items = evaluator.evaluate([{"refund": 5}, {"refund": 80}], SETTINGS, SCHEMA)
        grouped = evaluator.group_by_stakeholder(items)

        assert set(grouped) == set(Stakeholder)
        assert grouped[Stakeholder.MERCHANT] == []
        assert [item.order_id for item in grouped[Stakeholder.CUSTOMER]] == ["1", "2"]

    def test_empty_input(self, evaluator: ActionRuleEvaluator) -> None:
        assert evaluator.evaluate([], SETTINGS, SCHEMA) == []
