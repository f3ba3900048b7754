"""Pick the most correlated pair from a correlation matrix."""

import math
from typing import List, Optional, Tuple

from loguru import logger

from ..data.models import BestPair
from .correlation_matrix import CorrelationMatrix


class BestPairSelector:
    """
    Select the highest off-diagonal correlation above a minimum.

    Only the strict upper triangle is scanned, row by row with increasing
    column index, so each unordered pair is seen once and exact ties go to
    the first cell in that order. NaN entries are never candidates. By
    default entries with |r| == 1 are skipped too, which also drops
    perfectly collinear duplicates; allow_perfect_correlation keeps them.
    """

    def __init__(self, allow_perfect_correlation: bool = False):
        """
        Initialize selector.

        Args:
            allow_perfect_correlation: Treat off-diagonal |r| == 1 as a candidate
        """
        self.allow_perfect_correlation = allow_perfect_correlation

    def is_candidate(self, value: float) -> bool:
        """Check whether a matrix entry may be selected."""
        if math.isnan(value):
            return False
        if self.allow_perfect_correlation:
            return True
        return abs(value) < 1

    def candidates(self, matrix: CorrelationMatrix) -> List[Tuple[str, str, float]]:
        """
        List eligible upper-triangle cells in scan order.

        Args:
            matrix: Correlation matrix

        Returns:
            List of (asset1, asset2, correlation) tuples
        """
        symbols = matrix.symbols
        cells = []
        for i in range(len(symbols)):
            for j in range(i + 1, len(symbols)):
                value = float(matrix.values[i, j])
                if self.is_candidate(value):
                    cells.append((symbols[i], symbols[j], value))
        return cells

    def find_maximum(self, matrix: CorrelationMatrix) -> Optional[BestPair]:
        """
        Find the highest eligible correlation regardless of any minimum.

        Returns:
            BestPair for the maximum cell, or None if nothing is eligible
        """
        best: Optional[Tuple[str, str, float]] = None
        for cell in self.candidates(matrix):
            if best is None or cell[2] > best[2]:
                best = cell

        if best is None:
            return None
        return BestPair(asset1=best[0], asset2=best[1], correlation=best[2])

    def select(
        self,
        matrix: CorrelationMatrix,
        minimum_correlation: float,
    ) -> Optional[BestPair]:
        """
        Select the best pair if it meets the minimum correlation.

        Args:
            matrix: Correlation matrix
            minimum_correlation: Lowest acceptable correlation

        Returns:
            BestPair, or None when nothing qualifies
        """
        best = self.find_maximum(matrix)
        if best is None:
            logger.debug("No eligible correlations in matrix")
            return None

        if best.correlation < minimum_correlation:
            logger.debug(
                f"Best correlation {best.correlation:.4f} for {best.pair} "
                f"below minimum {minimum_correlation}"
            )
            return None

        return best
