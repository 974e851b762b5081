"""
app/mappers package marker.
"""

from app.mappers.rule_table import RuleTable, load_rule_table, parse_rule_table
from app.mappers.schema_inferencer import SchemaInferencer

__all__ = [
    "RuleTable",
    "SchemaInferencer",
    "load_rule_table",
    "parse_rule_table",
]
