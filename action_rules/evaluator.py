"""
action_rules/evaluator.py

Runs the stakeholder rules over a record set.
"""

from __future__ import annotations

import logging
from typing import Sequence

from app.domain.cell_values import is_missing, to_text
from app.domain.delivery import (
    DEFAULT_SCHEMA,
    ActionItem,
    KPISettings,
    Record,
    SchemaConfig,
    Stakeholder,
)
from action_rules.base import BaseActionRule
from action_rules.delivery_rules import CustomerRefundRule, DasherDriveRule, MerchantPrepRule

logger = logging.getLogger(__name__)

DEFAULT_ID_COLUMN = "id"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_DEFAULT_RULES: tuple[BaseActionRule, ...] = (
    MerchantPrepRule(),
    DasherDriveRule(),
    CustomerRefundRule(),
)


class ActionRuleEvaluator:
    """
    Applies every registered rule to every record.

    Items are emitted in record order, then rule order (merchant, dasher,
    customer) within a record. No ranking is applied. Rules are stateless,
    so the default instances are shared across evaluators.
    """

    def __init__(
        self,
        *,
        rules: Sequence[BaseActionRule] = _DEFAULT_RULES,
        id_column: str = DEFAULT_ID_COLUMN,
    ) -> None:
        self._rules = tuple(rules)
        self._id_column = id_column

    def evaluate(
        self,
        records: Sequence[Record],
        settings: KPISettings,
        schema: SchemaConfig = DEFAULT_SCHEMA,
    ) -> list[ActionItem]:
        """
        Return the actionable findings for *records* under *settings*.

        The order id is read from the id column; records without one are
        identified by their 1-based position.
        """
        items: list[ActionItem] = []
        for position, record in enumerate(records, start=1):
            order_id = self._order_id(record, position)
            for rule in self._rules:
                item = rule.evaluate(record, order_id, settings, schema)
                if item is not None:
                    items.append(item)

        logger.debug("Evaluated %d records -> %d action items", len(records), len(items))
        return items

    @staticmethod
    def group_by_stakeholder(items: Sequence[ActionItem]) -> dict[Stakeholder, list[ActionItem]]:
        """
        Split items per stakeholder, keeping source order inside each group.
        """
        grouped: dict[Stakeholder, list[ActionItem]] = {stakeholder: [] for stakeholder in Stakeholder}
        for item in items:
            grouped[item.stakeholder].append(item)
        return grouped

    def _order_id(self, record: Record, position: int) -> str:
        raw = record.get(self._id_column)
        if is_missing(raw):
            return str(position)
        return to_text(raw)
