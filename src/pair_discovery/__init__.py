"""Pair discovery modules for correlation-based pair selection."""

from .aligner import AlignedSeries, PriceSeriesAligner
from .best_pair import BestPairSelector
from .correlation_matrix import CorrelationMatrix, CorrelationMatrixBuilder
from .membership import PairMembershipEvaluator

__all__ = [
    "AlignedSeries",
    "PriceSeriesAligner",
    "CorrelationMatrix",
    "CorrelationMatrixBuilder",
    "BestPairSelector",
    "PairMembershipEvaluator",
]
