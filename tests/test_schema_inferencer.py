"""
tests/test_schema_inferencer.py

Keyword-driven role detection, reviewer overrides, and the rule table loader.
"""

from __future__ import annotations

import json

import pytest

from app.domain.delivery import NOT_FOUND_LABEL, ROLE_NAMES, SchemaConfig
from app.mappers.rule_table import (
    DEFAULT_ROLE_KEYWORDS,
    RuleTable,
    parse_rule_table,
    read_rule_table,
)
from app.mappers.schema_inferencer import SchemaInferencer
from app.validators.mapping_validator import SchemaMappingError


@pytest.fixture()
def inferencer() -> SchemaInferencer:
    return SchemaInferencer(rules=RuleTable())


class TestInferSchema:
    def test_minimal_export(self, inferencer: SchemaInferencer) -> None:
        schema = inferencer.infer_schema(
            ["Order Date", "City", "Total Deliver Time (minutes)", "Refund Amount"]
        )

        assert schema.date == "Order Date"
        assert schema.region == "City"
        assert schema.total_duration == "Total Deliver Time (minutes)"
        assert schema.refund_amount == "Refund Amount"
        assert schema.order_total == ""
        assert schema.time == ""
        assert schema.display("order_total") == NOT_FOUND_LABEL

    def test_no_columns_maps_nothing(self, inferencer: SchemaInferencer) -> None:
        assert inferencer.infer_schema([]) == SchemaConfig()

    def test_full_export(self, inferencer: SchemaInferencer) -> None:
        schema = inferencer.infer_schema(
            [
                "Customer placed order date",
                "Customer placed order time",
                "Delivery Region",
                "Restaurant ID",
                "Driver ID",
                "Order total",
                "Refunded amount",
                "Total Deliver Time (minutes)",
                "Prep Minutes",
                "Drive Minutes",
            ]
        )

        assert schema.date == "Customer placed order date"
        assert schema.time == "Customer placed order time"
        assert schema.region == "Delivery Region"
        assert schema.restaurant_id == "Restaurant ID"
        assert schema.driver_id == "Driver ID"
        assert schema.order_total == "Order total"
        assert schema.refund_amount == "Refunded amount"
        assert schema.total_duration == "Total Deliver Time (minutes)"
        assert schema.prep_duration == "Prep Minutes"
        assert schema.drive_duration == "Drive Minutes"

    def test_column_backs_at_most_one_role(self, inferencer: SchemaInferencer) -> None:
        schema = inferencer.infer_schema(["Order placed time"])

        assert schema.date == "Order placed time"
        assert schema.time == ""

    def test_first_matching_column_wins(self, inferencer: SchemaInferencer) -> None:
        schema = inferencer.infer_schema(["Pickup Zone", "Dropoff Zone"])
        assert schema.region == "Pickup Zone"

    def test_custom_rule_table(self) -> None:
        rules = RuleTable(role_keywords=(("region", ("market",)),))
        schema = SchemaInferencer(rules=rules).infer_schema(["Market", "City"])

        assert schema.region == "Market"
        assert schema.date == ""


class TestApplyOverrides:
    columns = ["Order Date", "City", "Total Deliver Time (minutes)", "Refund Amount", "Basket"]

    def test_override_and_unmap(self, inferencer: SchemaInferencer) -> None:
        inferred = inferencer.infer_schema(self.columns)
        schema = inferencer.apply_overrides(
            inferred,
            {"order_total": "Basket", "refund_amount": ""},
            self.columns,
        )

        assert schema.order_total == "Basket"
        assert schema.refund_amount == ""
        assert schema.region == "City"

    def test_unknown_column_rejected(self, inferencer: SchemaInferencer) -> None:
        inferred = inferencer.infer_schema(self.columns)
        with pytest.raises(SchemaMappingError) as excinfo:
            inferencer.apply_overrides(inferred, {"region": "Market"}, self.columns)

        assert [error.code for error in excinfo.value.errors] == ["unknown_source_column"]

    def test_duplicate_with_inferred_role_rejected(self, inferencer: SchemaInferencer) -> None:
        inferred = inferencer.infer_schema(self.columns)
        with pytest.raises(SchemaMappingError) as excinfo:
            inferencer.apply_overrides(inferred, {"time": "Order Date"}, self.columns)

        assert excinfo.value.errors[0].code == "duplicate_source_column"

    def test_unknown_role_rejected(self, inferencer: SchemaInferencer) -> None:
        with pytest.raises(SchemaMappingError):
            inferencer.apply_overrides(SchemaConfig(), {"weather": "City"}, self.columns)


class TestRuleTable:
    def test_malformed_sections_fall_back_to_defaults(self) -> None:
        table = parse_rule_table({"roles": "nope", "sum_metric_keywords": ["Revenue"]})

        assert table.role_keywords == DEFAULT_ROLE_KEYWORDS
        assert table.sum_metric_keywords == ("revenue",)

    def test_unknown_role_invalidates_section(self) -> None:
        table = parse_rule_table({"roles": [{"role": "weather", "keywords": ["rain"]}]})
        assert table.role_keywords == DEFAULT_ROLE_KEYWORDS

    def test_missing_file_uses_defaults(self, tmp_path) -> None:
        assert read_rule_table(tmp_path / "absent.json") == RuleTable()

    def test_reads_file(self, tmp_path) -> None:
        path = tmp_path / "rules.json"
        path.write_text(
            json.dumps({"roles": [{"role": "region", "keywords": ["Market"]}]}),
            encoding="utf-8",
        )

        assert read_rule_table(path).role_keywords == (("region", ("market",)),)

    def test_bundled_table_matches_defaults(self) -> None:
        from app.config import PROJECT_ROOT

        table = read_rule_table(PROJECT_ROOT / "config" / "schema_rules.json")
        assert [role for role, _ in table.role_keywords] == [role for role, _ in DEFAULT_ROLE_KEYWORDS]
        assert set(role for role, _ in table.role_keywords) == set(ROLE_NAMES)
