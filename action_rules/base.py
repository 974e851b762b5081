"""
action_rules/base.py

Abstract base class for per-order stakeholder rules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.delivery import ActionItem, KPISettings, Record, SchemaConfig, Stakeholder


class BaseActionRule(ABC):
    """
    Contract for one stakeholder check applied to a single order.

    Rules are stateless. No I/O, no logging, and no side effects are
    permitted inside :meth:`evaluate`; the record must not be mutated.
    """

    stakeholder: Stakeholder

    @abstractmethod
    def evaluate(
        self,
        record: Record,
        order_id: str,
        settings: KPISettings,
        schema: SchemaConfig,
    ) -> ActionItem | None:
        """
        Return an :class:`ActionItem` when *record* violates the rule,
        otherwise ``None``.

        Parameters
        ----------
        record:
            One order, read-only.
        order_id:
            Identifier to stamp on the emitted item.
        settings:
            Threshold snapshot for this evaluation.
        schema:
            Role mapping used to locate the measured columns.
        """
