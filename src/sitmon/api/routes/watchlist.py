"""Watchlist CRUD endpoints."""

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from sitmon.core.dependencies import AnalyzerDep, SignalStoreDep, WatchlistDep
from sitmon.core.exceptions import AnalysisError, InvalidInputError, PositionNotFoundError
from sitmon.processing.analysis import to_ai_analysis
from sitmon.processing.models import PositionSentiment, WatchlistPosition

router = APIRouter()


class AddPositionRequest(BaseModel):
    ticker: str = Field(..., description="Ticker symbol (e.g. AAPL or $aapl)")
    sentiment: PositionSentiment
    notes: str | None = None
    source_signal_id: str | None = None
    source_post_url: str | None = None
    entry_price: float | None = Field(default=None, gt=0)


class UpdatePositionRequest(BaseModel):
    sentiment: PositionSentiment | None = None
    notes: str | None = None
    entry_price: float | None = Field(default=None, gt=0)


@router.get("/", response_model=list[WatchlistPosition])
async def list_positions(watchlist: WatchlistDep) -> list[WatchlistPosition]:
    return watchlist.list()


@router.post("/", response_model=WatchlistPosition, status_code=201)
async def add_position(body: AddPositionRequest, watchlist: WatchlistDep) -> WatchlistPosition:
    try:
        return await watchlist.add_position(
            body.ticker,
            body.sentiment,
            notes=body.notes,
            source_signal_id=body.source_signal_id,
            source_post_url=body.source_post_url,
            entry_price=body.entry_price,
        )
    except InvalidInputError as e:
        raise HTTPException(400, detail=e.message)


@router.get("/{ticker}", response_model=WatchlistPosition)
async def get_position(ticker: str, watchlist: WatchlistDep) -> WatchlistPosition:
    position = watchlist.get_position_by_ticker(ticker)
    if position is None:
        raise HTTPException(404, detail=f"Ticker '{ticker.upper()}' not on watchlist")
    return position


@router.patch("/{position_id}", response_model=WatchlistPosition)
async def update_position(
    position_id: str, body: UpdatePositionRequest, watchlist: WatchlistDep
) -> WatchlistPosition:
    updates = body.model_dump(exclude_unset=True)
    if updates.get("sentiment") is None:
        updates.pop("sentiment", None)
    try:
        return await watchlist.update_position(position_id, **updates)
    except PositionNotFoundError as e:
        raise HTTPException(404, detail=e.message)


@router.delete("/{position_id}", status_code=204)
async def remove_position(position_id: str, watchlist: WatchlistDep) -> Response:
    removed = await watchlist.remove_position(position_id)
    if not removed:
        raise HTTPException(404, detail=f"Position '{position_id}' not found")
    return Response(status_code=204)


@router.post("/{position_id}/analysis", response_model=WatchlistPosition)
async def analyze_position(
    position_id: str,
    watchlist: WatchlistDep,
    signals: SignalStoreDep,
    analyzer: AnalyzerDep,
) -> WatchlistPosition:
    """Run deep analysis on the post behind a position and store it."""
    position = watchlist.get(position_id)
    if position is None:
        raise HTTPException(404, detail=f"Position '{position_id}' not found")

    # Prefer the originating signal's post; it may have been deleted since
    signal = signals.get(position.source_signal_id) if position.source_signal_id else None
    if signal is not None:
        content, author = signal.content, signal.account_handle
    else:
        content, author = position.notes or f"${position.ticker}", None

    try:
        analysis = await analyzer.analyze(content, [position.ticker], author)
    except AnalysisError as e:
        raise HTTPException(502, detail=e.message)
    return await watchlist.update_ai_analysis(position_id, to_ai_analysis(analysis))
