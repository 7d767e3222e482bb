"""
Money Management API — FastAPI backend.

Endpoints
---------
GET  /health                 Health check.
POST /compute                Stateless calculation from a full request.
GET  /state                  Current parameters, lots, step records and summary.
PUT  /state/params/{name}    Set one global parameter.
PUT  /state/lots/{index}     Set the lot size of one step (0-based index).
POST /state/reset            Restore the configured defaults.
GET  /state/charts           Net-per-step and capital-vs-loss chart series.
GET  /state/export.csv       Download the step table as CSV.
POST /state/lots/upload      Replace the lot sequence from a CSV file.

Input handling lives here: non-finite numbers are rejected by the request
models and every value is clamped to the configured bounds before it reaches
the calculator state.
"""
from __future__ import annotations

import io
import logging
from typing import Dict, List, Optional

import pandas as pd
from fastapi import Depends, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from engine import compute
from models import (
    CalculationResult,
    ChartSeries,
    ComputeRequest,
    GlobalParams,
    ParamName,
    StateResponse,
    StepRecord,
    ValueUpdate,
)
from settings import Settings, get_settings
from state import LotIndexError, MoneyManagementState, resize

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(levelname)s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Money Management API",
    description="Step-by-step capital, loss and net projections for a lot-size progression.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Column normalisation ──────────────────────────────────────────────────────────
# Header names accepted for the lot-size column of an uploaded sequence.
_LOT_COLUMN_ALIASES: List[str] = ["lots", "lot", "lot size", "lots (adj)", "size", "quantity", "qty"]

_state: Optional[MoneyManagementState] = None


def get_state(settings: Settings = Depends(get_settings)) -> MoneyManagementState:
    """Return the process-wide calculator session, creating it on first use."""
    global _state
    if _state is None:
        _state = MoneyManagementState.from_settings(settings)
    return _state


def _clamp(value: float, upper: float) -> float:
    return min(max(value, 0.0), upper)


def _clamp_steps(value: float, settings: Settings) -> int:
    if not float(value).is_integer():
        raise HTTPException(status_code=422, detail=f"Step count must be an integer, got {value}.")
    return int(_clamp(value, settings.max_steps))


def _state_response(state: MoneyManagementState) -> StateResponse:
    params, lots, result = state.snapshot()
    return StateResponse(
        params=params,
        lots=lots,
        records=result.records,
        summary=result.summary,
    )


def _find_lot_column(df: pd.DataFrame) -> str:
    """Return the name of the lot-size column, matching headers case-insensitively."""
    for col in df.columns:
        if str(col).strip().lower() in _LOT_COLUMN_ALIASES:
            return col
    raise ValueError(
        f"CSV has no lot-size column. Expected one of {_LOT_COLUMN_ALIASES}, "
        f"found columns: {[str(c) for c in df.columns]}"
    )


def _parse_lots(df: pd.DataFrame, settings: Settings) -> List[float]:
    """
    Extract a clamped lot sequence from an uploaded table.

    Blank cells are skipped.  Sequences longer than ``max_steps`` are cut.

    Raises:
        ValueError: If no lot column exists or a cell is not numeric.
    """
    column = df[_find_lot_column(df)].dropna()
    try:
        values = pd.to_numeric(column, errors="raise")
    except (ValueError, TypeError) as exc:
        raise ValueError(f"Lot column contains non-numeric values: {exc}") from exc

    lots = [_clamp(float(v), settings.max_value) for v in values.tolist()]
    if len(lots) > settings.max_steps:
        logger.warning("Uploaded sequence has %d steps; keeping the first %d", len(lots), settings.max_steps)
        lots = lots[: settings.max_steps]
    return lots


# ── Routes ─────────────────────────────────────────────────────────────────────────

@app.get("/health")
def health() -> Dict[str, str]:
    """Simple liveness probe."""
    return {"status": "ok"}


@app.post("/compute", response_model=CalculationResult)
def compute_sequence(
    request: ComputeRequest,
    settings: Settings = Depends(get_settings),
) -> CalculationResult:
    """
    Compute step records and summary for an explicit lot sequence.

    Stateless and idempotent.  The lots are resized to ``num_steps`` (or their
    own length) capped at ``max_steps``, with the same rule the session state uses.
    """
    lots = [_clamp(v, settings.max_value) for v in request.lots]
    requested_steps = len(lots) if request.num_steps is None else request.num_steps
    num_steps = _clamp_steps(requested_steps, settings)
    params = GlobalParams(
        stop_per_lot=_clamp(request.stop_per_lot, settings.max_value),
        profit_per_lot=_clamp(request.profit_per_lot, settings.max_value),
        cost_per_lot=_clamp(request.cost_per_lot, settings.max_value),
        num_steps=num_steps,
    )
    return compute(resize(lots, num_steps), params)


@app.get("/state", response_model=StateResponse)
def read_state(state: MoneyManagementState = Depends(get_state)) -> StateResponse:
    return _state_response(state)


@app.put("/state/params/{name}", response_model=StateResponse)
def update_param(
    name: ParamName,
    update: ValueUpdate,
    state: MoneyManagementState = Depends(get_state),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    """Set one global parameter; ``num_steps`` resizes the lot sequence."""
    if name is ParamName.num_steps:
        state.set_num_steps(_clamp_steps(update.value, settings))
    else:
        state.set_param(name.value, _clamp(update.value, settings.max_value))
    return _state_response(state)


@app.put("/state/lots/{index}", response_model=StateResponse)
def update_lot(
    index: int,
    update: ValueUpdate,
    state: MoneyManagementState = Depends(get_state),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    try:
        state.set_lot(index, _clamp(update.value, settings.max_value))
    except LotIndexError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return _state_response(state)


@app.post("/state/reset", response_model=StateResponse)
def reset_state(
    state: MoneyManagementState = Depends(get_state),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    state.reset(settings)
    return _state_response(state)


@app.get("/state/charts", response_model=ChartSeries)
def read_charts(state: MoneyManagementState = Depends(get_state)) -> ChartSeries:
    """Series for the net performance curve and the capital requirement chart."""
    records = state.result.records
    return ChartSeries(
        steps=[r.step for r in records],
        net=[r.net for r in records],
        total_capital=[r.total_capital for r in records],
        cumulative_loss=[r.cumulative_loss for r in records],
    )


@app.get("/state/export.csv")
def export_csv(state: MoneyManagementState = Depends(get_state)) -> Response:
    """Download the current step table, one row per step."""
    rows = [r.model_dump() for r in state.result.records]
    df = pd.DataFrame(rows, columns=list(StepRecord.model_fields))
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="money_management.csv"'},
    )


@app.post("/state/lots/upload", response_model=StateResponse)
async def upload_lots(
    file: UploadFile = File(...),
    state: MoneyManagementState = Depends(get_state),
    settings: Settings = Depends(get_settings),
) -> StateResponse:
    """
    Replace the lot sequence with the values of a CSV lot column.

    The step count follows the number of rows read.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Only CSV files are accepted.")

    raw = await file.read()

    try:
        df = pd.read_csv(io.StringIO(raw.decode("utf-8")))
    except Exception as exc:
        raise HTTPException(status_code=400, detail=f"Failed to parse CSV: {exc}")

    try:
        lots = _parse_lots(df, settings)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))

    if not lots:
        raise HTTPException(status_code=422, detail="The CSV contains no lot sizes.")

    state.replace_lots(lots)
    logger.info("Uploaded lot sequence from %s (%d steps)", file.filename, len(lots))
    return _state_response(state)
