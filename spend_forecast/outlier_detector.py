"""
Outlier Detection Module
Flags unusually large transactions before they skew a forecast
"""

from typing import List, Optional, Sequence

from .models import OutlierFlag, TransactionRecord
from .statistics_core import robust_z_score, z_score


class OutlierDetector:
    """Detects spending outliers using statistical and budget-based rules"""

    def __init__(self, zscore_threshold: float = 2.0, budget_percentage: float = 0.2, robust: bool = False):
        """
        Initialize outlier detector

        Args:
            zscore_threshold: Score above which a transaction is an outlier (default 2.0)
            budget_percentage: Share of the monthly budget above which a transaction is an outlier (default 20%)
            robust: Score against the median/MAD instead of mean/stdev
        """
        self.zscore_threshold = zscore_threshold
        self.budget_percentage = budget_percentage
        self.robust = robust

    def score(self, amount: float, history: Sequence[float]) -> float:
        if self.robust:
            return robust_z_score(amount, history)
        return z_score(amount, history)

    def detect_outliers(self,
                        transactions: Sequence[TransactionRecord],
                        monthly_budget: Optional[float] = None) -> List[OutlierFlag]:
        """
        Detect outliers using statistical and budget-based rules

        Rules:
        1. Transaction score > zscore_threshold
        2. Transaction > budget_percentage * monthly_budget (only when a budget is given)

        Args:
            transactions: Transaction records to screen
            monthly_budget: Optional monthly budget for the budget rule

        Returns:
            One OutlierFlag per outlier, in input order
        """
        if not transactions:
            return []

        amounts = [t.amount for t in transactions]
        budget_threshold = monthly_budget * self.budget_percentage if monthly_budget else None

        outliers = []
        for transaction in transactions:
            score = self.score(transaction.amount, amounts)
            reasons = []

            if score > self.zscore_threshold:
                label = "robust" if self.robust else "statistical"
                reasons.append(f"{label} (score {score:.2f})")

            if budget_threshold is not None and transaction.amount > budget_threshold:
                reasons.append(f"budget (>{budget_threshold:.0f})")

            if reasons:
                outliers.append(OutlierFlag(record=transaction, score=score, reasons=reasons))

        return outliers

    def exclude_outliers(self,
                         transactions: Sequence[TransactionRecord],
                         monthly_budget: Optional[float] = None) -> List[TransactionRecord]:
        """Transactions with the flagged outliers removed"""
        flagged = {id(flag.record) for flag in self.detect_outliers(transactions, monthly_budget)}
        return [t for t in transactions if id(t) not in flagged]
