"""Ordered membership test against the selected pair."""

from typing import Optional

from ..data.models import BestPair


class PairMembershipEvaluator:
    """Check whether (asset1, asset2) is exactly the selected pair, in order."""

    @staticmethod
    def evaluate(
        best_pair: Optional[BestPair],
        asset1: str,
        asset2: str,
    ) -> bool:
        """
        Check an ordered pair against the best pair.

        (B, A) does not match a best pair of (A, B).

        Args:
            best_pair: Currently selected pair (None if never selected)
            asset1: First asset of the candidate
            asset2: Second asset of the candidate

        Returns:
            True on an exact ordered match
        """
        if best_pair is None:
            return False
        return asset1 == best_pair.asset1 and asset2 == best_pair.asset2

    def __call__(
        self,
        best_pair: Optional[BestPair],
        asset1: str,
        asset2: str,
    ) -> bool:
        return self.evaluate(best_pair, asset1, asset2)
