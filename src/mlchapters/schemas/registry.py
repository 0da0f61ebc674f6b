"""
Schema registry for dataset discovery.

Chapter configs refer to schemas by name; the loader resolves the name
here and validates raw rows against it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, ClassVar

import pandera.pandas as pa

from mlchapters.schemas.classification import (
    BreastCancerSchema,
    CreditSchema,
    LetterSchema,
    MushroomSchema,
    SmsSpamSchema,
)
from mlchapters.schemas.regression import (
    ConcreteSchema,
    InsuranceSchema,
    UsedCarSchema,
    WineSchema,
)

if TYPE_CHECKING:
    import pandas as pd


class TargetKind(Enum):
    """What the dataset's label column holds."""

    CLASS = "class"
    NUMERIC = "numeric"
    NONE = "none"  # exploratory data, no fixed target


@dataclass(frozen=True)
class SchemaInfo:
    """Metadata about a registered schema."""

    name: str
    schema: type[pa.DataFrameModel]
    target: str | None
    target_kind: TargetKind
    description: str


class SchemaRegistry:
    """Centralized registry of dataset schemas."""

    _schemas: ClassVar[dict[str, SchemaInfo]] = {
        "credit": SchemaInfo(
            name="credit",
            schema=CreditSchema,
            target="default",
            target_kind=TargetKind.CLASS,
            description="Loan applications and whether the borrower defaulted",
        ),
        "mushrooms": SchemaInfo(
            name="mushrooms",
            schema=MushroomSchema,
            target="type",
            target_kind=TargetKind.CLASS,
            description="Gilled mushroom features and edibility",
        ),
        "sms_spam": SchemaInfo(
            name="sms_spam",
            schema=SmsSpamSchema,
            target="type",
            target_kind=TargetKind.CLASS,
            description="SMS messages labelled ham or spam",
        ),
        "letters": SchemaInfo(
            name="letters",
            schema=LetterSchema,
            target="letter",
            target_kind=TargetKind.CLASS,
            description="Letter glyph statistics for OCR",
        ),
        "wisc_bc": SchemaInfo(
            name="wisc_bc",
            schema=BreastCancerSchema,
            target="diagnosis",
            target_kind=TargetKind.CLASS,
            description="Breast mass biopsy measurements and diagnosis",
        ),
        "concrete": SchemaInfo(
            name="concrete",
            schema=ConcreteSchema,
            target="strength",
            target_kind=TargetKind.NUMERIC,
            description="Concrete mixtures and compressive strength",
        ),
        "insurance": SchemaInfo(
            name="insurance",
            schema=InsuranceSchema,
            target="expenses",
            target_kind=TargetKind.NUMERIC,
            description="Insurance beneficiaries and medical expenses",
        ),
        "whitewines": SchemaInfo(
            name="whitewines",
            schema=WineSchema,
            target="quality",
            target_kind=TargetKind.NUMERIC,
            description="White wine chemistry and quality ratings",
        ),
        "usedcars": SchemaInfo(
            name="usedcars",
            schema=UsedCarSchema,
            target=None,
            target_kind=TargetKind.NONE,
            description="Used car listings for exploratory analysis",
        ),
    }

    @classmethod
    def get(cls, name: str) -> type[pa.DataFrameModel]:
        """
        Get a schema by name.

        Raises:
            KeyError: If schema not found.
        """
        return cls.get_info(name).schema

    @classmethod
    def get_info(cls, name: str) -> SchemaInfo:
        """
        Get full schema metadata by name.

        Raises:
            KeyError: If schema not found.
        """
        if name not in cls._schemas:
            available = ", ".join(cls._schemas.keys())
            msg = f"Unknown schema '{name}'. Available: {available}"
            raise KeyError(msg)
        return cls._schemas[name]

    @classmethod
    def list_schemas(cls) -> list[str]:
        """List all registered schema names."""
        return list(cls._schemas.keys())

    @classmethod
    def list_by_target_kind(cls, kind: TargetKind) -> list[str]:
        """List schemas whose target has the given kind."""
        return [name for name, info in cls._schemas.items() if info.target_kind == kind]

    @classmethod
    def validate(cls, df: "pd.DataFrame", schema_name: str) -> "pd.DataFrame":
        """
        Validate a DataFrame against a registered schema.

        Raises:
            KeyError: If schema not found.
            pandera.errors.SchemaError: If validation fails.
        """
        return cls.get(schema_name).validate(df)
