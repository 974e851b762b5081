"""
action_rules/delivery_rules.py

Deterministic stakeholder rules for delivery orders.

Rules (evaluated per order, in this order)
------------------------------------------
1. Merchant  – prep time above ``max_acceptable_prep_time``.
2. Dasher    – drive time above ``max_acceptable_drive_time``.
3. Customer  – any positive refund; escalated above ``high_refund_threshold``.

When an order carries no dedicated prep or drive measurement (role unmapped,
value missing, or zero), the split is approximated from the total delivery
time: 30% prep, 70% drive. This is a known approximation; no true
timestamp subtraction is attempted.
"""

from __future__ import annotations

from app.domain.cell_values import column_number
from app.domain.delivery import ActionItem, KPISettings, Record, SchemaConfig, Stakeholder
from action_rules.base import BaseActionRule

PREP_SHARE_OF_TOTAL = 0.3
DRIVE_SHARE_OF_TOTAL = 0.7

ISSUE_SLOW_PREP = "Slow Prep Time"
ISSUE_HIGH_DRIVE = "High Drive Time"
ISSUE_REFUND = "Refund Processed"

ACTION_PREP_EMAIL = "Send Process Improvement Email"
ACTION_ROUTE_REVIEW = "Flag for Route Review"
ACTION_ESCALATE = "Personal Follow-up Required"
ACTION_AUTOMATED = "Automated Apology Sent"


def _measured_or_share(record: Record, column: str, schema: SchemaConfig, share: float) -> float:
    measured = column_number(record, column)
    if measured:
        return measured
    return column_number(record, schema.total_duration) * share


class MerchantPrepRule(BaseActionRule):
    stakeholder = Stakeholder.MERCHANT

    def evaluate(
        self,
        record: Record,
        order_id: str,
        settings: KPISettings,
        schema: SchemaConfig,
    ) -> ActionItem | None:
        prep_time = _measured_or_share(record, schema.prep_duration, schema, PREP_SHARE_OF_TOTAL)
        if prep_time <= settings.max_acceptable_prep_time:
            return None
        return ActionItem(
            order_id=order_id,
            stakeholder=self.stakeholder,
            issue_type=ISSUE_SLOW_PREP,
            metric_value=prep_time,
            suggested_action=ACTION_PREP_EMAIL,
        )


class DasherDriveRule(BaseActionRule):
    stakeholder = Stakeholder.DASHER

    def evaluate(
        self,
        record: Record,
        order_id: str,
        settings: KPISettings,
        schema: SchemaConfig,
    ) -> ActionItem | None:
        drive_time = _measured_or_share(record, schema.drive_duration, schema, DRIVE_SHARE_OF_TOTAL)
        if drive_time <= settings.max_acceptable_drive_time:
            return None
        return ActionItem(
            order_id=order_id,
            stakeholder=self.stakeholder,
            issue_type=ISSUE_HIGH_DRIVE,
            metric_value=drive_time,
            suggested_action=ACTION_ROUTE_REVIEW,
        )


class CustomerRefundRule(BaseActionRule):
    stakeholder = Stakeholder.CUSTOMER

    def evaluate(
        self,
        record: Record,
        order_id: str,
        settings: KPISettings,
        schema: SchemaConfig,
    ) -> ActionItem | None:
        refund = column_number(record, schema.refund_amount)
        if refund <= 0:
            return None
        escalate = refund > settings.high_refund_threshold
        return ActionItem(
            order_id=order_id,
            stakeholder=self.stakeholder,
            issue_type=ISSUE_REFUND,
            metric_value=refund,
            suggested_action=ACTION_ESCALATE if escalate else ACTION_AUTOMATED,
        )
