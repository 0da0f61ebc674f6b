"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import pytest

from mlchapters.schemas.table import Table


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def credit_frame() -> pd.DataFrame:
    """1,000 synthetic loan applications whose default depends on two columns."""
    rng = np.random.default_rng(7)
    n = 1000
    checking = rng.choice(["< 0 DM", "1 - 200 DM", "> 200 DM", "unknown"], size=n)
    months = rng.integers(6, 60, size=n)
    amount = rng.integers(500, 15000, size=n)
    risky = (checking == "< 0 DM") | (months > 40)
    default = np.where(risky, "yes", "no")
    # Flip a few labels so the classes are not perfectly separable
    flip = rng.random(n) < 0.05
    default = np.where(flip, np.where(default == "yes", "no", "yes"), default)
    return pd.DataFrame(
        {
            "checking_balance": checking,
            "months_loan_duration": months,
            "credit_history": rng.choice(["good", "critical", "poor"], size=n),
            "purpose": rng.choice(["car", "furniture", "education"], size=n),
            "amount": amount,
            "savings_balance": rng.choice(["< 100 DM", "unknown"], size=n),
            "age": rng.integers(19, 75, size=n),
            "default": default,
        }
    )


@pytest.fixture
def credit_table(credit_frame: pd.DataFrame) -> Table:
    """Credit applications as a Table."""
    return Table.from_frame(credit_frame, source="synthetic credit")


@pytest.fixture
def mushroom_frame() -> pd.DataFrame:
    """Mushrooms whose odor decides edibility."""
    rng = np.random.default_rng(3)
    n = 400
    odor = rng.choice(["none", "almond", "foul", "spicy"], size=n)
    kind = np.where(np.isin(odor, ["foul", "spicy"]), "poisonous", "edible")
    return pd.DataFrame(
        {
            "type": kind,
            "cap_shape": rng.choice(["convex", "flat", "bell"], size=n),
            "odor": odor,
            "veil_type": "partial",
        }
    )


@pytest.fixture
def regression_frame() -> pd.DataFrame:
    """Numeric features with a linear target plus noise."""
    rng = np.random.default_rng(11)
    n = 300
    x1 = rng.uniform(0, 10, size=n)
    x2 = rng.uniform(-5, 5, size=n)
    y = 3.0 * x1 - 2.0 * x2 + 1.0 + rng.normal(0, 0.5, size=n)
    return pd.DataFrame({"x1": x1, "x2": x2, "y": y})


@pytest.fixture
def regression_table(regression_frame: pd.DataFrame) -> Table:
    """Regression rows as a Table."""
    return Table.from_frame(regression_frame)


@pytest.fixture
def sms_frame() -> pd.DataFrame:
    """Short messages where spam mentions prizes."""
    ham = [
        "see you at lunch",
        "are we still meeting tonight",
        "call me when you get home",
        "running late, sorry",
        "thanks for dinner yesterday",
    ]
    spam = [
        "win a free prize now",
        "claim your free cash prize",
        "urgent you won a prize call 0800",
        "free entry to win cash",
        "prize draw winner call now",
    ]
    texts = (ham + spam) * 6
    labels = (["ham"] * 5 + ["spam"] * 5) * 6
    return pd.DataFrame({"type": labels, "text": texts})


@pytest.fixture
def groceries_lines() -> list[str]:
    """Basket file lines, one transaction each."""
    return [
        "whole milk,bread,butter",
        "whole milk,bread",
        "berries,whipped cream",
        "berries,whipped cream,whole milk",
        "bread,butter",
        "whole milk,bread,butter,berries",
        "whipped cream,berries",
        "whole milk,butter",
    ]


def write_csv(path: Path, frame: pd.DataFrame) -> Path:
    """Write a frame to CSV and return the path."""
    frame.to_csv(path, index=False)
    return path


@pytest.fixture
def chapter_dict(tmp_path: Path, credit_frame: pd.DataFrame) -> dict[str, Any]:
    """A complete credit chapter configuration mapping with data on disk."""
    write_csv(tmp_path / "credit.csv", credit_frame)
    return {
        "chapter": "credit-test",
        "title": "Credit test chapter",
        "data": {"root": str(tmp_path), "path": "credit.csv", "schema": "credit"},
        "split": {"strategy": "sample", "train_size": 900, "seed": 123},
        "model": {
            "algorithm": "decision_tree",
            "target": "default",
            "hyperparameters": {"trials": 1, "max_depth": 4},
        },
        "evaluation": {"positive_class": "yes", "plots": False},
        "output": {"root": str(tmp_path / "output")},
    }
