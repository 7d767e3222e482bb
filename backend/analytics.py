"""
Summary statistics over a computed step sequence.

All functions are recomputed from scratch on every call.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np

from models import GlobalParams, StepRecord


def risk_reward_ratio(params: GlobalParams) -> Optional[float]:
    """
    Stop-to-profit ratio per lot, rounded to 2 decimals.

    Returns None ("not applicable") when profit_per_lot is zero.
    """
    if params.profit_per_lot == 0:
        return None
    return round(params.stop_per_lot / params.profit_per_lot, 2)


def compute_summary(records: List[StepRecord], params: GlobalParams) -> Dict[str, Any]:
    """
    Derive the headline figures shown above the strategy table.

    Args:
        records: Step records in step order.
        params:  Parameters the records were computed with.

    Returns:
        Dictionary compatible with the SummaryStats Pydantic model.  An empty
        sequence reports 0 drawdown and capital, and None for the best net.
    """
    summary: Dict[str, Any] = {
        "risk_reward_ratio": risk_reward_ratio(params),
        "max_drawdown": 0.0,
        "max_capital_needed": 0.0,
        "max_net": None,
        "max_net_step": None,
    }
    if not records:
        return summary

    # Both prefix sums only grow for non-negative lots, so the last row is the peak.
    last = records[-1]
    summary["max_drawdown"] = last.cumulative_loss
    summary["max_capital_needed"] = last.total_capital

    # argmax returns the first index on ties.
    net = np.array([r.net for r in records], dtype=np.float64)
    best = int(np.argmax(net))
    summary["max_net"] = float(net[best])
    summary["max_net_step"] = records[best].step

    return summary
