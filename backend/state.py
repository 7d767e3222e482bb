"""
Session state: the global parameters and the editable lot sequence.

The lot sequence always has exactly ``num_steps`` entries.  Changing the step
count goes through :func:`resize`; editing one lot never changes the length.
Step records and summary statistics are projections of this state and are
recomputed wholesale after any mutation.
"""
from __future__ import annotations

import logging
import threading
from numbers import Integral
from typing import List, Optional, Sequence, Tuple

from engine import compute
from models import CalculationResult, GlobalParams
from settings import Settings

logger = logging.getLogger(__name__)

# Fill value used when growing an empty sequence.
_EMPTY_FILL = 1.0

_MONEY_PARAMS = ("stop_per_lot", "profit_per_lot", "cost_per_lot")


class LotIndexError(IndexError):
    """Raised when a lot edit targets a step outside the sequence."""

    def __init__(self, index: int, num_steps: int) -> None:
        super().__init__(f"Lot index {index} out of range for {num_steps} steps.")
        self.index = index
        self.num_steps = num_steps


def _check_step_count(n: float) -> int:
    if isinstance(n, bool) or not isinstance(n, (Integral, float)) or not float(n).is_integer():
        raise ValueError(f"Step count must be an integer, got {n!r}.")
    if n < 0:
        raise ValueError(f"Step count must be non-negative, got {n}.")
    return int(n)


def resize(seq: Sequence[float], n: int) -> List[float]:
    """
    Return a copy of ``seq`` with exactly ``n`` entries.

    Longer sequences are truncated from the tail.  Shorter ones are padded
    with copies of their last element, or with 1 when empty.
    """
    n = _check_step_count(n)
    values = list(seq)
    if len(values) >= n:
        return values[:n]
    fill = values[-1] if values else _EMPTY_FILL
    return values + [fill] * (n - len(values))


class MoneyManagementState:
    """
    Single-session calculator state with lazily recomputed results.

    Reads and mutations hold one re-entrant lock, so a recompute never races an
    edit and a snapshot never mixes parameters from different edits.
    """

    def __init__(
        self,
        stop_per_lot: float,
        profit_per_lot: float,
        cost_per_lot: float,
        lots: Sequence[float],
        num_steps: Optional[int] = None,
    ) -> None:
        if num_steps is None:
            num_steps = len(lots)
        self._params = GlobalParams(
            stop_per_lot=stop_per_lot,
            profit_per_lot=profit_per_lot,
            cost_per_lot=cost_per_lot,
            num_steps=_check_step_count(num_steps),
        )
        self._lots = resize(lots, self._params.num_steps)
        self._result: Optional[CalculationResult] = None
        self._lock = threading.RLock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "MoneyManagementState":
        return cls(
            stop_per_lot=settings.default_stop_per_lot,
            profit_per_lot=settings.default_profit_per_lot,
            cost_per_lot=settings.default_cost_per_lot,
            lots=settings.default_lots,
        )

    # ── Read side ─────────────────────────────────────────────────────────────────

    @property
    def params(self) -> GlobalParams:
        with self._lock:
            return self._params

    @property
    def lots(self) -> List[float]:
        with self._lock:
            return list(self._lots)

    @property
    def result(self) -> CalculationResult:
        with self._lock:
            if self._result is None:
                self._result = compute(list(self._lots), self._params)
            return self._result

    def snapshot(self) -> Tuple[GlobalParams, List[float], CalculationResult]:
        """Parameters, lots and result taken together under the lock."""
        with self._lock:
            return self._params, list(self._lots), self.result


    # ── Mutations ─────────────────────────────────────────────────────────────────

    def _invalidate(self) -> None:
        self._result = None

    def set_param(self, name: str, value: float) -> None:
        """Replace one global parameter.  ``num_steps`` also resizes the lots."""
        if name == "num_steps":
            self.set_num_steps(value)
            return
        if name not in _MONEY_PARAMS:
            raise KeyError(f"Unknown parameter: {name!r}")
        with self._lock:
            self._params = self._params.model_copy(update={name: float(value)})
            self._invalidate()
        logger.info("Parameter %s set to %s", name, value)

    def set_num_steps(self, n: float) -> None:
        n = _check_step_count(n)
        with self._lock:
            if n == self._params.num_steps:
                return
            self._lots = resize(self._lots, n)
            self._params = self._params.model_copy(update={"num_steps": n})
            self._invalidate()
        logger.info("Step count set to %d", n)

    def set_lot(self, index: int, value: float) -> None:
        """
        Replace the lot size at ``index`` (0-based).

        Raises:
            LotIndexError: If ``index`` is outside the sequence.  State is
                left untouched.
        """
        with self._lock:
            if not 0 <= index < len(self._lots):
                raise LotIndexError(index, len(self._lots))
            self._lots[index] = value
            self._invalidate()
        logger.info("Lot %d set to %s", index, value)

    def replace_lots(self, values: Sequence[float]) -> None:
        """Replace the whole lot sequence; the step count follows its length."""
        lots = list(values)
        with self._lock:
            self._lots = lots
            self._params = self._params.model_copy(update={"num_steps": len(lots)})
            self._invalidate()
        logger.info("Lot sequence replaced (%d steps)", len(lots))

    def reset(self, settings: Settings) -> None:
        defaults = MoneyManagementState.from_settings(settings)
        with self._lock:
            self._params = defaults._params
            self._lots = defaults._lots
            self._invalidate()
        logger.info("State reset to defaults")
