"""Pearson correlation matrix over aligned return vectors."""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from .aligner import AlignedSeries


@dataclass(frozen=True)
class CorrelationMatrix:
    """Symmetric correlation matrix with a fixed symbol ordering."""

    symbols: Tuple[str, ...]
    values: np.ndarray

    def __len__(self) -> int:
        return len(self.symbols)

    def get(self, symbol1: str, symbol2: str) -> float:
        """Correlation between two symbols (NaN when undefined)."""
        i = self.symbols.index(symbol1)
        j = self.symbols.index(symbol2)
        return float(self.values[i, j])

    @property
    def undefined_entries(self) -> int:
        """Number of off-diagonal upper-triangle entries that are NaN."""
        upper = np.triu_indices(len(self.symbols), k=1)
        return int(np.isnan(self.values[upper]).sum())

    def to_frame(self) -> pd.DataFrame:
        """Matrix as a labelled DataFrame."""
        return pd.DataFrame(self.values, index=self.symbols, columns=self.symbols)


class CorrelationMatrixBuilder:
    """Compute Pearson correlations between every pair of aligned vectors."""

    def __init__(
        self,
        zero_variance_tolerance: float = 1e-12,
        unit_tolerance: float = 1e-12,
    ):
        """
        Initialize builder.

        Args:
            zero_variance_tolerance: Standard deviation at or below which a
                vector is treated as constant (correlations undefined)
            unit_tolerance: Distance from +/-1 within which a correlation is
                snapped to exactly +/-1 (absorbs corrcoef rounding)
        """
        self.zero_variance_tolerance = zero_variance_tolerance
        self.unit_tolerance = unit_tolerance

    def build(self, aligned: AlignedSeries) -> Optional[CorrelationMatrix]:
        """
        Build the correlation matrix.

        Constant vectors get NaN in their row and column; the diagonal is
        always exactly 1. Entries within unit_tolerance of +/-1 become exactly
        +/-1, so identical or mirrored vectors read as perfectly correlated.

        Args:
            aligned: Equal-length return vectors

        Returns:
            CorrelationMatrix, or None with fewer than two usable vectors
        """
        symbols = tuple(aligned.symbols)
        if len(symbols) < 2:
            logger.debug(f"No correlation matrix: {len(symbols)} aligned symbol(s)")
            return None

        data = np.vstack([aligned[s] for s in symbols])
        if data.shape[1] < 2:
            logger.debug("No correlation matrix: vectors shorter than 2")
            return None

        constant = data.std(axis=1) <= self.zero_variance_tolerance

        with np.errstate(divide="ignore", invalid="ignore"):
            values = np.corrcoef(data)

        values[constant, :] = np.nan
        values[:, constant] = np.nan
        values = (values + values.T) / 2
        values = np.clip(values, -1.0, 1.0)  # NaN passes through
        with np.errstate(invalid="ignore"):
            unit = np.abs(np.abs(values) - 1.0) <= self.unit_tolerance
        values[unit] = np.sign(values[unit])
        np.fill_diagonal(values, 1.0)

        if constant.any():
            logger.warning(
                f"Zero-variance returns for {[s for s, c in zip(symbols, constant) if c]}; "
                f"correlations undefined"
            )

        return CorrelationMatrix(symbols=symbols, values=values)
