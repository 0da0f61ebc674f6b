"""
Pandera schemas for the classification datasets.

Schemas are checked on raw rows, before label columns are coerced to
categoricals. Extra columns are allowed so trimmed or extended copies
of a dataset still load.
"""

import pandera.pandas as pa
from pandera.typing import Series


class CreditSchema(pa.DataFrameModel):
    """German credit applications with a binary default label."""

    checking_balance: Series[str] = pa.Field(nullable=True)
    months_loan_duration: Series[int] = pa.Field(ge=0)
    credit_history: Series[str]
    purpose: Series[str]
    amount: Series[int] = pa.Field(ge=0, description="Loan amount in DM")
    savings_balance: Series[str] = pa.Field(nullable=True)
    age: Series[int] = pa.Field(ge=18, le=120)
    default: Series[str] = pa.Field(isin=["yes", "no"])

    class Config:
        """Schema configuration."""

        name = "CreditSchema"
        strict = False
        coerce = True


class MushroomSchema(pa.DataFrameModel):
    """Mushroom physical characteristics with an edibility label."""

    type: Series[str] = pa.Field(isin=["edible", "poisonous", "e", "p"])
    cap_shape: Series[str]
    odor: Series[str]

    class Config:
        """Schema configuration."""

        name = "MushroomSchema"
        strict = False
        coerce = True


class SmsSpamSchema(pa.DataFrameModel):
    """SMS messages labelled ham or spam."""

    type: Series[str] = pa.Field(isin=["ham", "spam"])
    text: Series[str] = pa.Field(nullable=True)

    class Config:
        """Schema configuration."""

        name = "SmsSpamSchema"
        strict = False
        coerce = True


class LetterSchema(pa.DataFrameModel):
    """Glyph measurements for optical character recognition."""

    letter: Series[str] = pa.Field(str_length={"min_value": 1, "max_value": 1})
    xbox: Series[int] = pa.Field(ge=0, le=15)
    ybox: Series[int] = pa.Field(ge=0, le=15)
    width: Series[int] = pa.Field(ge=0, le=15)
    height: Series[int] = pa.Field(ge=0, le=15)
    onpix: Series[int] = pa.Field(ge=0, le=15)

    class Config:
        """Schema configuration."""

        name = "LetterSchema"
        strict = False
        coerce = True


class BreastCancerSchema(pa.DataFrameModel):
    """Wisconsin breast cancer biopsy measurements."""

    id: Series[int]
    diagnosis: Series[str] = pa.Field(isin=["B", "M", "Benign", "Malignant"])
    radius_mean: Series[float] = pa.Field(gt=0)
    texture_mean: Series[float] = pa.Field(gt=0)
    area_mean: Series[float] = pa.Field(gt=0)
    smoothness_mean: Series[float] = pa.Field(gt=0)

    class Config:
        """Schema configuration."""

        name = "BreastCancerSchema"
        strict = False
        coerce = True
