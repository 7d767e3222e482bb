"""
Step calculation engine.

Methodology
-----------
The lot sequence is folded left to right into one StepRecord per step:

    stop_money      = lots × stop_per_lot
    profit          = lots × profit_per_lot
    total_spend     = lots × cost_per_lot
    cumulative_loss = running sum of stop_money, this step included
    cumulative_cost = running sum of total_spend, this step included
    total_capital   = cumulative_loss + cumulative_cost
    net             = profit − running loss *before* this step

The running sums are NumPy cumulative sums, which accumulate sequentially, so
integer-valued inputs give exactly the same numbers as an explicit loop.  The
"before" loss is the cumulative loss shifted right by one and seeded with 0;
it is never derived by subtracting this step's stop back out.

Input hygiene is the caller's job: NaN and infinity are propagated through the
arithmetic as-is, and negative values simply produce negative outputs.
"""
from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from analytics import compute_summary
from models import CalculationResult, GlobalParams, StepRecord, SummaryStats

logger = logging.getLogger(__name__)


def compute_steps(lots: Sequence[float], params: GlobalParams) -> List[StepRecord]:
    """
    Build the per-step records for a lot sequence.

    Args:
        lots:   Lot size for each step, in order.
        params: Per-lot stop, profit and cost values.

    Returns:
        One StepRecord per lot, empty for an empty sequence.
    """
    lot_array = np.asarray(lots, dtype=np.float64)
    if lot_array.size == 0:
        return []

    # ── Per-step amounts ──────────────────────────────────────────────────────────
    stop_money = lot_array * params.stop_per_lot
    profit = lot_array * params.profit_per_lot
    total_spend = lot_array * params.cost_per_lot

    # ── Running totals after each step ────────────────────────────────────────────
    cumulative_loss = np.cumsum(stop_money)
    cumulative_cost = np.cumsum(total_spend)
    total_capital = cumulative_loss + cumulative_cost

    # ── Net: this step's profit against the losses accrued before it ──────────────
    prior_loss = np.concatenate(([0.0], cumulative_loss[:-1]))
    net = profit - prior_loss

    columns = zip(
        lot_array.tolist(),
        stop_money.tolist(),
        cumulative_loss.tolist(),
        profit.tolist(),
        total_spend.tolist(),
        cumulative_cost.tolist(),
        total_capital.tolist(),
        net.tolist(),
    )
    return [
        StepRecord(
            step=index + 1,
            lots=lot,
            stop_money=stop,
            cumulative_loss=cum_loss,
            profit=gain,
            total_spend=spend,
            cumulative_cost=cum_cost,
            total_capital=capital,
            net=step_net,
        )
        for index, (lot, stop, cum_loss, gain, spend, cum_cost, capital, step_net) in enumerate(columns)
    ]


def compute(lots: Sequence[float], params: GlobalParams) -> CalculationResult:
    """Run the full calculation: step records plus summary statistics."""
    records = compute_steps(lots, params)
    summary = SummaryStats(**compute_summary(records, params))
    logger.debug(
        "Computed %d steps, max_drawdown=%s, max_capital_needed=%s",
        len(records),
        summary.max_drawdown,
        summary.max_capital_needed,
    )
    return CalculationResult(records=records, summary=summary)
