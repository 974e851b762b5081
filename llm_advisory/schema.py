"""Structured output schemas for the advisory collaborators."""

from pydantic import BaseModel, ConfigDict, Field


class ColumnInsight(BaseModel):
    """Business annotation for one source column.

    Accepts both snake_case and the camelCase keys models tend to emit.
    """

    model_config = ConfigDict(
        extra="ignore",
        frozen=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    description: str = ""
    kpi_utility: str = Field(default="", alias="kpiUtility")
    imputation_tip: str = Field(default="", alias="imputationTip")


class QueryAnswer(BaseModel):
    """Natural-language answer plus the SQL that would retrieve it."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    answer: str
    sql: str = ""

    @classmethod
    def failure(cls, reason: str) -> "QueryAnswer":
        return cls(answer=reason, sql="")
