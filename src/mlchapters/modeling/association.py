"""
Frequent itemsets and association rules via mlxtend's Apriori.
"""

from dataclasses import dataclass

import pandas as pd
from mlxtend.frequent_patterns import apriori, association_rules

from mlchapters.utils.logging import get_logger

log = get_logger(__name__)

RULE_COLUMNS = [
    "antecedents",
    "consequents",
    "support",
    "confidence",
    "lift",
    "count",
]


@dataclass
class AssociationRules:
    """
    Mined rules with their quality measures.

    Attributes:
        itemsets: Frequent itemsets with support.
        rules: One row per rule: antecedents and consequents as frozensets,
            support, confidence, lift and the number of supporting
            transactions.
        n_transactions: Number of transactions mined.
    """

    itemsets: pd.DataFrame
    rules: pd.DataFrame
    n_transactions: int

    def __len__(self) -> int:
        return len(self.rules)

    def sorted_by(self, metric: str = "lift") -> pd.DataFrame:
        """Rules ordered by a quality measure, best first."""
        return self.rules.sort_values(metric, ascending=False, kind="stable")

    def containing(self, item: str) -> pd.DataFrame:
        """Rules mentioning an item on either side."""
        mask = self.rules["antecedents"].apply(lambda s: item in s) | self.rules[
            "consequents"
        ].apply(lambda s: item in s)
        return self.rules[mask]


class AprioriMiner:
    """
    Apriori with arules-style thresholds.

    ``min_length`` and ``max_length`` count all items in a rule,
    antecedent and consequent together.
    """

    def __init__(
        self,
        support: float = 0.1,
        confidence: float = 0.8,
        min_length: int = 1,
        max_length: int | None = None,
    ) -> None:
        self.support = support
        self.confidence = confidence
        self.min_length = min_length
        self.max_length = max_length

    def fit(self, items: pd.DataFrame) -> AssociationRules:
        """
        Mine rules from a boolean item matrix.

        Args:
            items: One row per transaction, one bool column per item.

        Returns:
            Mined rules (possibly empty).
        """
        n = len(items)
        itemsets = apriori(
            items.astype(bool),
            min_support=self.support,
            use_colnames=True,
            max_len=self.max_length,
        )
        log.info("Frequent itemsets mined", itemsets=len(itemsets), support=self.support)

        if itemsets.empty or itemsets["itemsets"].apply(len).max() < 2:
            return AssociationRules(
                itemsets=itemsets,
                rules=pd.DataFrame(columns=RULE_COLUMNS),
                n_transactions=n,
            )

        rules = association_rules(
            itemsets,
            num_itemsets=n,
            metric="confidence",
            min_threshold=self.confidence,
        )
        sizes = rules["antecedents"].apply(len) + rules["consequents"].apply(len)
        rules = rules[sizes >= self.min_length].copy()
        rules["count"] = (rules["support"] * n).round().astype(int)
        rules = rules[RULE_COLUMNS].reset_index(drop=True)

        log.info(
            "Association rules derived",
            rules=len(rules),
            confidence=self.confidence,
            min_length=self.min_length,
        )
        return AssociationRules(itemsets=itemsets, rules=rules, n_transactions=n)


def format_itemset(items: frozenset) -> str:
    """Render an itemset as ``{a, b}`` with items sorted."""
    return "{" + ", ".join(sorted(map(str, items))) + "}"
