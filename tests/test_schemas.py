"""Tests for the Table and Pandera schema definitions."""

import pandas as pd
from pandera.errors import SchemaError
import pytest

from mlchapters.schemas import (
    ColumnRole,
    CreditSchema,
    InsuranceSchema,
    SmsSpamSchema,
    Table,
)
from mlchapters.schemas.registry import SchemaRegistry, TargetKind


class TestTable:
    """Tests for the role-annotated Table."""

    def test_roles_inferred(self) -> None:
        """Numbers are numeric, strings become categoricals."""
        table = Table.from_frame(
            pd.DataFrame({"id": [1, 2], "x": [0.5, 1.5], "label": ["a", "b"]}),
            identifiers=["id"],
        )
        assert table.role("id") == ColumnRole.IDENTIFIER
        assert table.role("x") == ColumnRole.NUMERIC
        assert table.role("label") == ColumnRole.CATEGORICAL
        assert isinstance(table.frame["label"].dtype, pd.CategoricalDtype)

    def test_declared_categorical_numbers(self) -> None:
        """Numeric codes can be declared categorical."""
        table = Table.from_frame(pd.DataFrame({"code": [1, 2, 1]}), categorical=["code"])
        assert table.role("code") == ColumnRole.CATEGORICAL

    def test_text_columns(self) -> None:
        table = Table.from_frame(pd.DataFrame({"msg": ["hi", None]}), text=["msg"])
        assert table.role("msg") == ColumnRole.TEXT
        assert table.frame["msg"].tolist() == ["hi", ""]

    def test_roles_must_match_columns(self) -> None:
        with pytest.raises(ValueError, match="roles do not match"):
            Table(frame=pd.DataFrame({"a": [1]}), roles={"b": ColumnRole.NUMERIC})

    def test_with_column_returns_new_table(self) -> None:
        """Adding a column leaves the original untouched."""
        table = Table.from_frame(pd.DataFrame({"x": [1.0, 2.0]}))
        wider = table.with_column("x2", [1.0, 4.0], ColumnRole.NUMERIC)
        assert wider.columns == ["x", "x2"]
        assert table.columns == ["x"]

    def test_drop_and_select(self) -> None:
        table = Table.from_frame(pd.DataFrame({"a": [1], "b": [2], "c": ["z"]}))
        assert table.drop(["b", "missing"]).columns == ["a", "c"]
        selected = table.select(["c", "a"])
        assert selected.columns == ["c", "a"]
        assert selected.role("c") == ColumnRole.CATEGORICAL

    def test_take_keeps_roles(self) -> None:
        table = Table.from_frame(pd.DataFrame({"a": [10, 20, 30], "b": ["x", "y", "z"]}))
        rows = table.take([2, 0])
        assert rows.frame["a"].tolist() == [30, 10]
        assert rows.roles == table.roles

    def test_columns_with(self) -> None:
        table = Table.from_frame(
            pd.DataFrame({"a": [1], "b": ["x"], "c": [2.0]}), identifiers=["a"]
        )
        assert table.columns_with(ColumnRole.NUMERIC) == ["c"]
        assert table.columns_with(ColumnRole.NUMERIC, ColumnRole.IDENTIFIER) == ["a", "c"]


class TestCreditSchema:
    """Tests for CreditSchema."""

    def test_valid_data(self, credit_frame: pd.DataFrame) -> None:
        result = CreditSchema.validate(credit_frame)
        assert len(result) == 1000

    def test_invalid_default_label(self, credit_frame: pd.DataFrame) -> None:
        df = credit_frame.copy()
        df.loc[0, "default"] = "maybe"
        with pytest.raises(SchemaError):
            CreditSchema.validate(df)

    def test_missing_column(self, credit_frame: pd.DataFrame) -> None:
        with pytest.raises(SchemaError):
            CreditSchema.validate(credit_frame.drop(columns=["amount"]))


class TestOtherSchemas:
    """Spot checks for the remaining schemas."""

    def test_sms_spam_labels(self, sms_frame: pd.DataFrame) -> None:
        assert len(SmsSpamSchema.validate(sms_frame)) == len(sms_frame)

    def test_insurance_rejects_negative_expenses(self) -> None:
        df = pd.DataFrame(
            {
                "age": [30],
                "sex": ["male"],
                "bmi": [25.0],
                "children": [0],
                "smoker": ["no"],
                "region": ["northeast"],
                "expenses": [-1.0],
            }
        )
        with pytest.raises(SchemaError):
            InsuranceSchema.validate(df)


class TestSchemaRegistry:
    """Tests for SchemaRegistry."""

    def test_get_schema(self) -> None:
        assert SchemaRegistry.get("credit") is CreditSchema

    def test_unknown_schema(self) -> None:
        with pytest.raises(KeyError, match="Unknown schema"):
            SchemaRegistry.get("nonexistent")

    def test_list_schemas(self) -> None:
        schemas = SchemaRegistry.list_schemas()
        assert "credit" in schemas
        assert "whitewines" in schemas
        assert len(schemas) == 9

    def test_list_by_target_kind(self) -> None:
        numeric = SchemaRegistry.list_by_target_kind(TargetKind.NUMERIC)
        assert set(numeric) == {"concrete", "insurance", "whitewines"}
        assert SchemaRegistry.list_by_target_kind(TargetKind.NONE) == ["usedcars"]

    def test_validate(self, credit_frame: pd.DataFrame) -> None:
        assert len(SchemaRegistry.validate(credit_frame, "credit")) == 1000
