"""
Data contracts: the role-annotated Table and Pandera dataset schemas.
"""

from mlchapters.schemas.classification import (
    BreastCancerSchema,
    CreditSchema,
    LetterSchema,
    MushroomSchema,
    SmsSpamSchema,
)
from mlchapters.schemas.registry import SchemaInfo, SchemaRegistry, TargetKind
from mlchapters.schemas.regression import (
    ConcreteSchema,
    InsuranceSchema,
    UsedCarSchema,
    WineSchema,
)
from mlchapters.schemas.table import ColumnRole, Table

__all__ = [
    "BreastCancerSchema",
    "ColumnRole",
    "ConcreteSchema",
    "CreditSchema",
    "InsuranceSchema",
    "LetterSchema",
    "MushroomSchema",
    "SchemaInfo",
    "SchemaRegistry",
    "SmsSpamSchema",
    "Table",
    "TargetKind",
    "UsedCarSchema",
    "WineSchema",
]
