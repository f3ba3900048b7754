"""Correlation pair selection engine."""

import itertools
import math
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import (
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from loguru import logger

from .config import Config
from .data import BestPair, HistoryProvider, Resolution, Security, is_valid_time_zone
from .pair_discovery import (
    BestPairSelector,
    CorrelationMatrixBuilder,
    PairMembershipEvaluator,
    PriceSeriesAligner,
)
from .utils.logging import SELECTION_TAG


class SelectionOutcome(Enum):
    """How a selection cycle ended."""

    SELECTED = "SELECTED"  # Best pair replaced
    NO_ALIGNED_DATA = "NO_ALIGNED_DATA"  # No symbol has a complete series
    INSUFFICIENT_SYMBOLS = "INSUFFICIENT_SYMBOLS"  # Fewer than two aligned symbols
    NO_CANDIDATES = "NO_CANDIDATES"  # Every correlation undefined or excluded
    NO_QUALIFYING_PAIR = "NO_QUALIFYING_PAIR"  # Maximum below minimum correlation
    UPSTREAM_FAILURE = "UPSTREAM_FAILURE"  # History request raised


@dataclass
class SelectionResult:
    """Summary of one selection cycle."""

    outcome: SelectionOutcome
    best_pair: Optional[BestPair]  # Stored pair after the cycle
    maximum_correlation: Optional[float] = None
    aligned_symbols: int = 0
    aligned_length: int = 0
    undefined_entries: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def updated(self) -> bool:
        """Whether this cycle replaced the best pair."""
        return self.outcome == SelectionOutcome.SELECTED

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "outcome": self.outcome.value,
            "best_pair": self.best_pair.to_dict() if self.best_pair else None,
            "maximum_correlation": self.maximum_correlation,
            "aligned_symbols": self.aligned_symbols,
            "aligned_length": self.aligned_length,
            "undefined_entries": self.undefined_entries,
            "timestamp": self.timestamp.isoformat(),
        }


@runtime_checkable
class PairSelectionModel(Protocol):
    """Capabilities a pair selection strategy exposes to the trading logic."""

    @property
    def best_pair(self) -> Optional[BestPair]:
        ...

    def on_universe_changed(
        self,
        added: Iterable[Security] = (),
        removed: Iterable[Union[Security, str]] = (),
    ) -> SelectionResult:
        ...

    def evaluate(self, pair: Tuple[str, str]) -> bool:
        ...

    def has_passed_test(self, asset1: str, asset2: str) -> bool:
        ...


class PearsonCorrelationPairEngine:
    """
    Track a universe and keep the pair with the highest Pearson
    correlation of log returns.

    Every universe change runs one selection cycle: fetch history,
    align it, build the correlation matrix and select the best pair.
    A cycle that cannot produce a qualifying pair leaves the previous
    one in place. Cycles are serialized; the best pair is immutable and
    swapped in a single assignment, so concurrent readers always see a
    whole pair.
    """

    def __init__(
        self,
        history_provider: HistoryProvider,
        lookback: int,
        resolution: Union[Resolution, str] = Resolution.DAILY,
        minimum_correlation: float = 0.5,
        threshold: float = 1.0,
        allow_perfect_correlation: bool = False,
        aligner: Optional[PriceSeriesAligner] = None,
        builder: Optional[CorrelationMatrixBuilder] = None,
        selector: Optional[BestPairSelector] = None,
        evaluator: Optional[PairMembershipEvaluator] = None,
    ):
        """
        Initialize the engine.

        Args:
            history_provider: Source of historical price slices
            lookback: Number of bars requested per cycle
            resolution: Bar resolution
            minimum_correlation: Lowest correlation for a tradable pair
            threshold: Ratio deviation percent, passed through to the strategy
            allow_perfect_correlation: Accept off-diagonal |r| == 1
            aligner: Custom aligner (default PriceSeriesAligner)
            builder: Custom matrix builder (default CorrelationMatrixBuilder)
            selector: Custom selector (overrides allow_perfect_correlation)
            evaluator: Custom membership evaluator
        """
        if isinstance(lookback, bool) or not isinstance(lookback, int) or lookback <= 0:
            raise ValueError(f"lookback must be a positive integer, got {lookback!r}")

        minimum_correlation = float(minimum_correlation)
        if math.isnan(minimum_correlation):
            raise ValueError("minimum_correlation must be a real number")

        self.history_provider = history_provider
        self.lookback = lookback
        self.resolution = Resolution.parse(resolution)
        self.minimum_correlation = minimum_correlation
        self.threshold = float(threshold)

        self.aligner = aligner or PriceSeriesAligner()
        self.builder = builder or CorrelationMatrixBuilder()
        self.selector = selector or BestPairSelector(
            allow_perfect_correlation=allow_perfect_correlation
        )
        self.evaluator = evaluator or PairMembershipEvaluator()

        self._securities: Dict[str, Security] = {}
        self._best_pair: Optional[BestPair] = None
        self._cycle_lock = threading.Lock()

        logger.info(
            f"PearsonCorrelationPairEngine initialized (lookback={lookback}, "
            f"resolution={self.resolution.value}, "
            f"minimum_correlation={minimum_correlation})"
        )

    @classmethod
    def from_config(
        cls,
        config: Config,
        history_provider: HistoryProvider,
    ) -> "PearsonCorrelationPairEngine":
        """Create an engine from configuration."""
        return cls(
            history_provider=history_provider,
            lookback=config.lookback,
            resolution=config.resolution,
            minimum_correlation=config.minimum_correlation,
            threshold=config.threshold,
            allow_perfect_correlation=config.allow_perfect_correlation,
        )

    @property
    def best_pair(self) -> Optional[BestPair]:
        """Currently selected pair (None until the first qualifying cycle)."""
        return self._best_pair

    @property
    def tracked_symbols(self) -> List[str]:
        """Tracked symbols in insertion order."""
        return list(self._securities)

    def candidate_pairs(self) -> List[Tuple[str, str]]:
        """All ordered pairs of tracked symbols, both orientations."""
        return list(itertools.permutations(self._securities, 2))

    def on_universe_changed(
        self,
        added: Iterable[Security] = (),
        removed: Iterable[Union[Security, str]] = (),
    ) -> SelectionResult:
        """
        Apply universe changes and run a selection cycle.

        Args:
            added: Securities entering the universe
            removed: Securities (or symbols) leaving the universe

        Returns:
            SelectionResult for the cycle
        """
        with self._cycle_lock:
            for item in removed:
                symbol = item.symbol if isinstance(item, Security) else item
                self._securities.pop(symbol, None)
            for security in added:
                if not is_valid_time_zone(security.time_zone):
                    logger.warning(
                        f"Ignoring {security.symbol}: unknown time zone "
                        f"{security.time_zone!r}"
                    )
                    continue
                self._securities[security.symbol] = security

            logger.debug(f"Universe now {len(self._securities)} securities")
            return self._run_cycle()

    def run_selection_cycle(self) -> SelectionResult:
        """Re-run selection over the current universe."""
        with self._cycle_lock:
            return self._run_cycle()

    def evaluate(self, pair: Tuple[str, str]) -> bool:
        """Check whether an ordered pair is the selected pair."""
        asset1, asset2 = pair
        return self.evaluator(self._best_pair, asset1, asset2)

    def has_passed_test(self, asset1: str, asset2: str) -> bool:
        """Check whether (asset1, asset2) is the selected pair, in order."""
        return self.evaluator(self._best_pair, asset1, asset2)

    def _set_best_pair(self, best_pair: BestPair) -> None:
        previous = self._best_pair
        self._best_pair = best_pair

        if previous is None or previous.pair != best_pair.pair:
            logger.info(f"{SELECTION_TAG}: best pair {best_pair} (was {previous})")
        else:
            logger.debug(f"Best pair {best_pair} refreshed")

    def _result(self, outcome: SelectionOutcome, **kwargs) -> SelectionResult:
        return SelectionResult(outcome=outcome, best_pair=self._best_pair, **kwargs)

    def _run_cycle(self) -> SelectionResult:
        securities = list(self._securities.values())
        symbols = [sec.symbol for sec in securities]

        if not securities:
            logger.info("No tracked securities; skipping pair selection")
            return self._result(SelectionOutcome.NO_ALIGNED_DATA)

        try:
            slices = self.history_provider.history(
                symbols, self.lookback, self.resolution
            )
        except Exception as e:
            logger.error(f"History request failed for {len(symbols)} symbols: {e}")
            return self._result(SelectionOutcome.UPSTREAM_FAILURE)

        aligned = self.aligner.align(securities, self.resolution, slices)
        if len(aligned) == 0:
            logger.warning(
                "The requested historical data does not have series of prices "
                "with the same date/time. Please consider increasing the lookback "
                f"period. Current lookback: {self.lookback}"
            )
            return self._result(SelectionOutcome.NO_ALIGNED_DATA)

        stats = {"aligned_symbols": len(aligned), "aligned_length": aligned.length}

        matrix = self.builder.build(aligned)
        if matrix is None:
            logger.info(
                f"Only {len(aligned)} aligned symbol(s) from {len(symbols)} tracked; "
                f"need two to select a pair"
            )
            return self._result(SelectionOutcome.INSUFFICIENT_SYMBOLS, **stats)

        stats["undefined_entries"] = matrix.undefined_entries
        logger.debug(f"Correlation matrix:\n{matrix.to_frame().round(4)}")

        selected = self.selector.select(matrix, self.minimum_correlation)
        if selected is not None:
            self._set_best_pair(selected)
            return self._result(
                SelectionOutcome.SELECTED,
                maximum_correlation=selected.correlation,
                **stats,
            )

        maximum = self.selector.find_maximum(matrix)
        if maximum is None:
            logger.info("No defined correlations to select from")
            return self._result(SelectionOutcome.NO_CANDIDATES, **stats)

        logger.info(
            f"Highest correlation {maximum.correlation:.4f} ({maximum.asset1}/"
            f"{maximum.asset2}) below minimum {self.minimum_correlation}; "
            f"keeping {self._best_pair}"
        )
        return self._result(
            SelectionOutcome.NO_QUALIFYING_PAIR,
            maximum_correlation=maximum.correlation,
            **stats,
        )
