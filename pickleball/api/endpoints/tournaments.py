from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from pickleball.services import tournament_service
from pickleball.services.match_progression import MatchProgressionEngine
from pickleball.models.enums import MatchStatus, TournamentFormat
from pickleball.schemas import fixture_schemas, match_schemas, participant_schemas, tournament_schemas
from pickleball.schemas.round_schemas import RoundSummary
from pickleball.schemas.standings_schemas import GroupStandings, Standing
from pickleball.api.dependencies import get_db, get_engine

router = APIRouter()

@router.post("/", response_model=tournament_schemas.TournamentRead, status_code=status.HTTP_201_CREATED)
async def create_tournament_endpoint(
    tournament_in: tournament_schemas.TournamentCreate,
    db: Session = Depends(get_db),
):
    return tournament_service.create_tournament(db=db, tournament=tournament_in)

@router.get("/", response_model=List[tournament_schemas.TournamentRead])
async def list_public_tournaments_endpoint(db: Session = Depends(get_db)):
    return tournament_service.list_public_tournaments(db=db)

@router.get("/{tournament_id}", response_model=tournament_schemas.TournamentRead)
async def get_tournament_endpoint(
    tournament_id: int,
    db: Session = Depends(get_db),
):
    return tournament_service.get_tournament(db=db, tournament_id=tournament_id)

# --- Participants ---

@router.post("/{tournament_id}/participants", response_model=participant_schemas.ParticipantRead,
             status_code=status.HTTP_201_CREATED)
async def add_participant_endpoint(
    tournament_id: int,
    participant_in: participant_schemas.ParticipantCreate,
    db: Session = Depends(get_db),
):
    return tournament_service.add_participant(db=db, tournament_id=tournament_id, participant=participant_in)

@router.get("/{tournament_id}/participants", response_model=List[participant_schemas.ParticipantRead])
async def list_participants_endpoint(
    tournament_id: int,
    db: Session = Depends(get_db),
):
    return tournament_service.list_participants(db=db, tournament_id=tournament_id)

@router.delete("/{tournament_id}/participants/{participant_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_participant_endpoint(
    tournament_id: int,
    participant_id: int,
    db: Session = Depends(get_db),
):
    tournament_service.delete_participant(db=db, tournament_id=tournament_id, participant_id=participant_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# --- Fixtures and rounds ---

@router.post("/{tournament_id}/fixtures", response_model=fixture_schemas.FixtureResult,
             status_code=status.HTTP_201_CREATED)
async def generate_fixtures_endpoint(
    tournament_id: int,
    format: TournamentFormat,
    options: Optional[fixture_schemas.FixtureOptions] = None,
    db: Session = Depends(get_db),
):
    return tournament_service.generate_fixtures(db=db, tournament_id=tournament_id, format=format, options=options)

@router.post("/{tournament_id}/rounds", response_model=List[match_schemas.MatchRead],
             status_code=status.HTTP_201_CREATED)
async def create_custom_round_endpoint(
    tournament_id: int,
    round_in: fixture_schemas.CustomRoundCreate,
    db: Session = Depends(get_db),
):
    return tournament_service.create_custom_round(
        db=db, tournament_id=tournament_id, round_name=round_in.round_name, participant_ids=round_in.participant_ids
    )

@router.get("/{tournament_id}/rounds", response_model=List[RoundSummary])
async def list_rounds_endpoint(
    tournament_id: int,
    db: Session = Depends(get_db),
):
    return tournament_service.get_rounds(db=db, tournament_id=tournament_id)

@router.get("/{tournament_id}/matches", response_model=List[match_schemas.MatchRead])
async def list_matches_endpoint(
    tournament_id: int,
    round: Optional[str] = None,
    match_status: Optional[MatchStatus] = None,
    db: Session = Depends(get_db),
):
    tournament_service.get_tournament(db=db, tournament_id=tournament_id)
    return tournament_service.list_matches(db=db, tournament_id=tournament_id, round_label=round, status=match_status)

# --- Standings ---

@router.get("/{tournament_id}/standings", response_model=List[Standing])
async def get_standings_endpoint(
    tournament_id: int,
    db: Session = Depends(get_db),
):
    return tournament_service.get_standings(db=db, tournament_id=tournament_id)

@router.get("/{tournament_id}/group-standings", response_model=List[GroupStandings])
async def get_group_standings_endpoint(
    tournament_id: int,
    db: Session = Depends(get_db),
):
    return tournament_service.get_group_standings(db=db, tournament_id=tournament_id)

@router.post("/{tournament_id}/knockout", response_model=match_schemas.Progression,
             status_code=status.HTTP_201_CREATED)
async def start_knockout_stage_endpoint(
    tournament_id: int,
    engine: MatchProgressionEngine = Depends(get_engine),
):
    return engine.start_knockout_stage(tournament_id)
