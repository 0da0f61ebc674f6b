"""Pandera schemas for the numeric-target datasets."""

import pandera.pandas as pa
from pandera.typing import Series


class ConcreteSchema(pa.DataFrameModel):
    """Concrete mixture components and compressive strength."""

    cement: Series[float] = pa.Field(ge=0)
    slag: Series[float] = pa.Field(ge=0)
    ash: Series[float] = pa.Field(ge=0)
    water: Series[float] = pa.Field(ge=0)
    superplastic: Series[float] = pa.Field(ge=0)
    coarseagg: Series[float] = pa.Field(ge=0)
    fineagg: Series[float] = pa.Field(ge=0)
    age: Series[int] = pa.Field(ge=0, description="Curing time in days")
    strength: Series[float] = pa.Field(ge=0, description="Compressive strength (MPa)")

    class Config:
        """Schema configuration."""

        name = "ConcreteSchema"
        strict = False
        coerce = True


class InsuranceSchema(pa.DataFrameModel):
    """Insurance beneficiaries and their yearly medical expenses."""

    age: Series[int] = pa.Field(ge=0, le=120)
    sex: Series[str] = pa.Field(isin=["male", "female"])
    bmi: Series[float] = pa.Field(gt=0)
    children: Series[int] = pa.Field(ge=0)
    smoker: Series[str] = pa.Field(isin=["yes", "no"])
    region: Series[str]
    expenses: Series[float] = pa.Field(ge=0)

    class Config:
        """Schema configuration."""

        name = "InsuranceSchema"
        strict = False
        coerce = True


class WineSchema(pa.DataFrameModel):
    """Physicochemical wine measurements and a 0-10 quality rating."""

    fixed_acidity: Series[float] = pa.Field(ge=0)
    volatile_acidity: Series[float] = pa.Field(ge=0)
    citric_acid: Series[float] = pa.Field(ge=0)
    residual_sugar: Series[float] = pa.Field(ge=0)
    chlorides: Series[float] = pa.Field(ge=0)
    free_sulfur_dioxide: Series[float] = pa.Field(ge=0)
    total_sulfur_dioxide: Series[float] = pa.Field(ge=0)
    density: Series[float] = pa.Field(gt=0)
    pH: Series[float] = pa.Field(ge=0, le=14)
    sulphates: Series[float] = pa.Field(ge=0)
    alcohol: Series[float] = pa.Field(ge=0)
    quality: Series[int] = pa.Field(ge=0, le=10)

    class Config:
        """Schema configuration."""

        name = "WineSchema"
        strict = False
        coerce = True


class UsedCarSchema(pa.DataFrameModel):
    """Used car listings."""

    year: Series[int] = pa.Field(ge=1900, le=2100)
    model: Series[str]
    price: Series[int] = pa.Field(ge=0)
    mileage: Series[int] = pa.Field(ge=0)
    color: Series[str]
    transmission: Series[str]

    class Config:
        """Schema configuration."""

        name = "UsedCarSchema"
        strict = False
        coerce = True
