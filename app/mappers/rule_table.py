"""
app/mappers/rule_table.py

Data-driven keyword tables for column classification.

The tables are read from ``config/schema_rules.json`` (path overridable via
``SCHEMA_RULES_PATH``). Each section falls back to the built-in defaults
below when the file is missing, unreadable, or the section is malformed, so
classification never depends on the file being present.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from app.config import get_rules_path
from app.domain.delivery import ROLE_NAMES, Representation

logger = logging.getLogger(__name__)

# Roles are resolved in this order; a column claimed by an earlier role is
# not offered to later ones.
DEFAULT_ROLE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("date", ("date", "placed")),
    ("total_duration", ("total deliver", "duration", "mins")),
    ("refund_amount", ("refund", "return")),
    ("order_total", ("order total", "amount", "price")),
    ("restaurant_id", ("restaurant id", "store id")),
    ("driver_id", ("driver id", "dasher id")),
    ("prep_duration", ("prep",)),
    ("drive_duration", ("drive",)),
    ("region", ("region", "city", "zone")),
    ("time", ("time", "placed")),
)

DEFAULT_REPRESENTATION_KEYWORDS: tuple[tuple[Representation, tuple[str, ...]], ...] = (
    (Representation.TIMESTAMP, ("date", "time")),
    (Representation.NUMBER, ("amount", "total", "%", "minutes")),
)

DEFAULT_SUM_METRIC_KEYWORDS: tuple[str, ...] = ("amount", "total")


@dataclass(frozen=True)
class RuleTable:
    """
    Ordered (label, keywords) pairs evaluated first-match-wins.
    """

    role_keywords: tuple[tuple[str, tuple[str, ...]], ...] = DEFAULT_ROLE_KEYWORDS
    representation_keywords: tuple[tuple[Representation, tuple[str, ...]], ...] = (
        DEFAULT_REPRESENTATION_KEYWORDS
    )
    sum_metric_keywords: tuple[str, ...] = DEFAULT_SUM_METRIC_KEYWORDS


def _as_keywords(value: object) -> tuple[str, ...] | None:
    if not isinstance(value, list):
        return None
    keywords = tuple(item.strip().lower() for item in value if isinstance(item, str) and item.strip())
    return keywords or None


def _parse_roles(section: object) -> tuple[tuple[str, tuple[str, ...]], ...] | None:
    if not isinstance(section, list):
        return None
    parsed: list[tuple[str, tuple[str, ...]]] = []
    seen: set[str] = set()
    for entry in section:
        if not isinstance(entry, dict):
            return None
        role = entry.get("role")
        keywords = _as_keywords(entry.get("keywords"))
        if role not in ROLE_NAMES or role in seen or keywords is None:
            return None
        seen.add(role)
        parsed.append((role, keywords))
    return tuple(parsed) or None


def _parse_representations(
    section: object,
) -> tuple[tuple[Representation, tuple[str, ...]], ...] | None:
    if not isinstance(section, list):
        return None
    parsed: list[tuple[Representation, tuple[str, ...]]] = []
    for entry in section:
        if not isinstance(entry, dict):
            return None
        keywords = _as_keywords(entry.get("keywords"))
        try:
            representation = Representation(entry.get("representation"))
        except ValueError:
            return None
        if keywords is None:
            return None
        parsed.append((representation, keywords))
    return tuple(parsed) or None


def parse_rule_table(data: object) -> RuleTable:
    """
    Build a RuleTable from decoded JSON, section by section.
    """

    if not isinstance(data, dict):
        return RuleTable()

    roles = _parse_roles(data.get("roles"))
    representations = _parse_representations(data.get("representations"))
    sum_keywords = _as_keywords(data.get("sum_metric_keywords"))

    for name, parsed in (
        ("roles", roles),
        ("representations", representations),
        ("sum_metric_keywords", sum_keywords),
    ):
        if parsed is None and name in data:
            logger.warning("Ignoring malformed rule table section %r; using defaults.", name)

    return RuleTable(
        role_keywords=roles or DEFAULT_ROLE_KEYWORDS,
        representation_keywords=representations or DEFAULT_REPRESENTATION_KEYWORDS,
        sum_metric_keywords=sum_keywords or DEFAULT_SUM_METRIC_KEYWORDS,
    )


def read_rule_table(path: Path) -> RuleTable:
    try:
        raw = path.read_text(encoding="utf-8")
        data = json.loads(raw)
    except (OSError, ValueError) as exc:
        logger.warning("Rule table %s unavailable (%s); using defaults.", path, exc)
        return RuleTable()
    return parse_rule_table(data)


@lru_cache(maxsize=1)
def load_rule_table() -> RuleTable:
    """
    Return the cached rule table for this process.
    """

    return read_rule_table(get_rules_path())
