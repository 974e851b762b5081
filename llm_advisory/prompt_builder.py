"""Structured prompt builders for the advisory collaborators."""

import json
from typing import Any, Dict, List, Sequence

_COLUMN_SYSTEM_INSTRUCTIONS = """\
You are a Data Architect for a food-delivery logistics company.
Analyze the provided column headers and sample rows.

For EACH column, provide:
1. description: What the column represents.
2. kpiUtility: How it can be used for decision making or KPIs.
3. imputationTip: How to handle missing values.

STRICT RULES:
- Return a single JSON object keyed by the exact column header name.
- Do NOT include any text outside the JSON object.
- Do NOT wrap the JSON in markdown code fences.
"""

_COLUMN_EXAMPLE_OUTPUT = json.dumps(
    {
        "Customer placed order date": {
            "description": "Date the order was initiated.",
            "kpiUtility": "Critical for daily volume analysis and seasonality trends.",
            "imputationTip": "Cannot impute reliably; consider dropping row.",
        }
    },
    indent=2,
)

_QUERY_SYSTEM_INSTRUCTIONS = """\
You are a Senior Support Automation Analyst and SQL Expert.

Dataset table name: 'deliveries'.

Your task:
1. Answer the user's question analytically based on the sample data.
2. Generate a standard SQL query that would retrieve this answer from the table.

Return a JSON object ONLY:
{"answer": "Your analytical text here...", "sql": "SELECT ... FROM deliveries ..."}
"""

_SECTION_TEMPLATE = """\
## {title}
```json
{data}
```
"""


def _section(title: str, value: Any) -> str:
    body = json.dumps(value, indent=2, default=str)
    return _SECTION_TEMPLATE.format(title=title, data=body)


class ColumnInsightPromptBuilder:
    """Builds the column-annotation prompt from headers and a few sample rows.

    Only the sample rows given are included; callers decide how many rows
    leave the process.
    """

    system = _COLUMN_SYSTEM_INSTRUCTIONS

    def build_prompt(self, column_names: Sequence[str], samples: List[Dict[str, Any]]) -> str:
        """Build the user-turn content.

        Args:
            column_names: Source column headers, in file order.
            samples: Sample rows, already truncated.

        Returns:
            A formatted prompt string.
        """
        return (
            f"# PROVIDED DATA\n\n"
            f"{_section('Headers', list(column_names))}\n"
            f"{_section('Samples', samples)}\n"
            f"# EXAMPLE OUTPUT\n\n"
            f"```json\n{_COLUMN_EXAMPLE_OUTPUT}\n```\n"
        )


class QueryPromptBuilder:
    """Builds the natural-language query prompt."""

    def build_system(self, column_names: Sequence[str], samples: List[Dict[str, Any]]) -> str:
        return (
            f"{_QUERY_SYSTEM_INSTRUCTIONS}\n"
            f"{_section('Columns', list(column_names))}\n"
            f"{_section('Sample Data', samples)}"
        )

    def build_prompt(self, question: str) -> str:
        return question.strip()
