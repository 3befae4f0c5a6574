from fastapi import APIRouter, Depends, Response, status

from pickleball.services.match_progression import MatchProgressionEngine
from pickleball.schemas import match_schemas
from pickleball.api.dependencies import get_engine

router = APIRouter()

@router.post("/{match_id}/start", response_model=match_schemas.MatchRead)
async def start_match_endpoint(
    match_id: int,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.start_match(match_id)

@router.put("/{match_id}/score", response_model=match_schemas.ScoreUpdateResult)
async def update_score_endpoint(
    match_id: int,
    score_in: match_schemas.ScoreUpdate,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.update_score(match_id, score_in.score_a, score_in.score_b)

@router.post("/{match_id}/complete", response_model=match_schemas.CompletionResult)
async def complete_match_endpoint(
    match_id: int,
    score_in: match_schemas.ScoreUpdate,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.complete_match(match_id, score_in.score_a, score_in.score_b)

@router.post("/{match_id}/cancel", response_model=match_schemas.MatchRead)
async def cancel_match_endpoint(
    match_id: int,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.cancel_match(match_id)

@router.post("/{match_id}/reactivate", response_model=match_schemas.MatchRead)
async def reactivate_match_endpoint(
    match_id: int,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.reactivate_match(match_id)

@router.patch("/{match_id}", response_model=match_schemas.MatchRead)
async def edit_match_endpoint(
    match_id: int,
    match_in: match_schemas.MatchEdit,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.edit_match(match_id, match_in.model_dump(exclude_unset=True))

@router.delete("/{match_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_match_endpoint(
    match_id: int,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    engine.delete_match(match_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
