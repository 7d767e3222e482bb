"""
Pydantic data models for the Money Management API.
"""
from pydantic import BaseModel, ConfigDict, Field, FiniteFloat
from enum import Enum
from typing import List, Optional


class ParamName(str, Enum):
    stop_per_lot = "stop_per_lot"
    profit_per_lot = "profit_per_lot"
    cost_per_lot = "cost_per_lot"
    num_steps = "num_steps"


class GlobalParams(BaseModel):
    """Per-lot money values and the number of steps in the sequence."""
    stop_per_lot: float
    profit_per_lot: float
    cost_per_lot: float
    num_steps: int


class StepRecord(BaseModel):
    """One row of the strategy table.  Rebuilt wholesale, never edited."""
    model_config = ConfigDict(frozen=True)

    step: int                  # 1-based position
    lots: float
    stop_money: float
    cumulative_loss: float     # stops of steps 1..step
    profit: float
    total_spend: float
    cumulative_cost: float     # costs of steps 1..step
    total_capital: float       # cumulative_loss + cumulative_cost
    net: float                 # profit minus stops of strictly prior steps


class SummaryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk_reward_ratio: Optional[float]   # None when profit_per_lot == 0
    max_drawdown: float
    max_capital_needed: float
    max_net: Optional[float]             # None for an empty sequence
    max_net_step: Optional[int]


class CalculationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    records: List[StepRecord]
    summary: SummaryStats


# ── Requests ─────────────────────────────────────────────────────────────────

class ComputeRequest(BaseModel):
    stop_per_lot: float = Field(9.0, allow_inf_nan=False)
    profit_per_lot: float = Field(21.0, allow_inf_nan=False)
    cost_per_lot: float = Field(75.0, allow_inf_nan=False)
    num_steps: Optional[int] = None      # defaults to len(lots)
    lots: List[FiniteFloat] = Field(default_factory=list)


class ValueUpdate(BaseModel):
    value: float = Field(..., allow_inf_nan=False)


# ── Responses ────────────────────────────────────────────────────────────────

class StateResponse(BaseModel):
    params: GlobalParams
    lots: List[float]
    records: List[StepRecord]
    summary: SummaryStats


class ChartSeries(BaseModel):
    """Series for the net-performance and capital-requirement charts."""
    steps: List[int]
    net: List[float]
    total_capital: List[float]
    cumulative_loss: List[float]
