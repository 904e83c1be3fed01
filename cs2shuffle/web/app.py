"""
FastAPI application for the shuffle tournament admin API.
"""
import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cs2shuffle.config import get_settings
from cs2shuffle.exceptions import NotFoundError, ShuffleError
from cs2shuffle.tournament.models import ShuffleTournamentConfig
from cs2shuffle.tournament.scheduler import RoundResult
from cs2shuffle.tournament.service import ShuffleTournamentService
from cs2shuffle.web.models import (
    AdvanceResponse, BalanceRequest, BalanceResponse, BalancedTeamResponse, ErrorResponse,
    LeaderboardEntryResponse, MatchResponse, MatchResultRequest, MatchStatusRequest,
    PlayerIdsRequest, PlayerResponse, RatingTemplateCreateRequest, RatingTemplateResponse,
    RatingUpdateResponse, RegistrationResponse,
    RoundResponse, RoundStatusResponse, StandingsResponse, TournamentCreateRequest,
    TournamentResponse
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="CS2 Shuffle",
    description="Round orchestration and team balancing for CS2 shuffle tournaments",
    version="1.0.0",
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}
)

# Global service (initialized in startup unless configured first)
service: Optional[ShuffleTournamentService] = None


def configure(new_service: ShuffleTournamentService):
    """Install the service used by the endpoints."""
    global service
    service = new_service


def get_service() -> ShuffleTournamentService:
    global service
    if service is None:
        service = ShuffleTournamentService.from_settings(get_settings())
    return service


@app.on_event("startup")
async def startup():
    """Initialize the global service on startup."""
    svc = get_service()
    logger.info(f"Shuffle API using database {svc.db.db_path}")


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content=ErrorResponse(detail=str(exc)).model_dump())


@app.exception_handler(ShuffleError)
async def shuffle_error_handler(request: Request, exc: ShuffleError):
    return JSONResponse(status_code=400, content=ErrorResponse(detail=str(exc)).model_dump())


def _round_response(result: RoundResult) -> RoundResponse:
    return RoundResponse(
        round_number=result.round_number,
        map_name=result.map_name,
        matches=[MatchResponse(**m.to_dict()) for m in result.matches],
        sit_outs=[p.id for p in result.sit_outs]
    )


# =============================================================================
# Tournament Endpoints
# =============================================================================

@app.post("/api/shuffle/tournaments", response_model=TournamentResponse)
def create_tournament(request: TournamentCreateRequest):
    """Create a shuffle tournament (replacing earlier ones by default)."""
    config = ShuffleTournamentConfig(
        name=request.name,
        map_sequence=request.map_sequence,
        team_size=request.team_size,
        round_limit_type=request.round_limit_type,
        max_rounds=request.max_rounds,
        overtime_mode=request.overtime_mode,
        rating_template_id=request.rating_template_id
    )
    tournament = get_service().create_shuffle_tournament(config, replace_existing=request.replace_existing)
    return TournamentResponse(**tournament.to_dict())


@app.get("/api/shuffle/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int):
    """Get a shuffle tournament."""
    return TournamentResponse(**get_service().get_tournament(tournament_id).to_dict())


# =============================================================================
# Registration Endpoints
# =============================================================================

@app.get("/api/shuffle/tournaments/{tournament_id}/players", response_model=List[PlayerResponse])
def list_registered_players(tournament_id: int):
    """List registered players."""
    players = get_service().get_registered_players(tournament_id)
    return [
        PlayerResponse(
            id=p.id, name=p.name, avatar_url=p.avatar_url,
            current_elo=p.current_elo, starting_elo=p.starting_elo, match_count=p.match_count
        )
        for p in players
    ]


@app.post("/api/shuffle/tournaments/{tournament_id}/players", response_model=RegistrationResponse)
def register_players(tournament_id: int, request: PlayerIdsRequest):
    """Register players (per-item outcomes)."""
    result = get_service().register_players(tournament_id, request.player_ids)
    return RegistrationResponse(**result.to_dict())


@app.put("/api/shuffle/tournaments/{tournament_id}/players", response_model=RegistrationResponse)
def set_registered_players(tournament_id: int, request: PlayerIdsRequest):
    """Replace the registration list."""
    result = get_service().set_registered_players(tournament_id, request.player_ids)
    return RegistrationResponse(**result.to_dict())


@app.delete("/api/shuffle/tournaments/{tournament_id}/players", response_model=RegistrationResponse)
def unregister_players(tournament_id: int, request: PlayerIdsRequest):
    """Unregister players (per-item outcomes)."""
    result = get_service().unregister_players(tournament_id, request.player_ids)
    return RegistrationResponse(**result.to_dict())


# =============================================================================
# Round Endpoints
# =============================================================================

@app.post("/api/shuffle/tournaments/{tournament_id}/rounds/{round_number}/generate",
          response_model=RoundResponse)
def generate_round(tournament_id: int, round_number: int):
    """Generate the matches of a round."""
    result = get_service().generate_round_matches(tournament_id, round_number)
    return _round_response(result)


@app.get("/api/shuffle/tournaments/{tournament_id}/rounds/{round_number}",
         response_model=RoundStatusResponse)
def get_round_status(tournament_id: int, round_number: int):
    """Get progress of a round."""
    status = get_service().get_round_status(tournament_id, round_number)
    return RoundStatusResponse(**status.to_dict())


@app.post("/api/shuffle/tournaments/{tournament_id}/advance", response_model=AdvanceResponse)
def advance(tournament_id: int):
    """Advance to the next round if the current one is complete."""
    outcome = get_service().advance_to_next_round(tournament_id)
    if outcome is None:
        return AdvanceResponse(advanced=False)

    return AdvanceResponse(
        advanced=True,
        round_number=outcome.round_number,
        tournament_complete=outcome.tournament_complete,
        round=_round_response(outcome.round_result) if outcome.round_result else None
    )


# =============================================================================
# Results & Standings Endpoints
# =============================================================================

@app.post("/api/shuffle/tournaments/{tournament_id}/matches/{match_slug}/result",
          response_model=List[RatingUpdateResponse])
def record_result(tournament_id: int, match_slug: str, request: MatchResultRequest):
    """Record the winner (and optional stats) of a match."""
    stats = {sid: line.model_dump() for sid, line in request.player_stats.items()}
    updates = get_service().record_match_result(tournament_id, match_slug, request.winner, stats)
    return [
        RatingUpdateResponse(
            player_id=u.player_id, elo_before=u.elo_before,
            elo_after=u.elo_after, elo_change=u.elo_change,
            stat_adjustment=u.stat_adjustment, template_id=u.template_id
        )
        for u in updates
    ]


@app.post("/api/shuffle/tournaments/{tournament_id}/matches/{match_slug}/status",
          response_model=MatchResponse)
def update_match_status(tournament_id: int, match_slug: str, request: MatchStatusRequest):
    """Move a match along its lifecycle."""
    match = get_service().update_match_status(tournament_id, match_slug, request.status)
    return MatchResponse(**match.to_dict())


@app.get("/api/shuffle/tournaments/{tournament_id}/leaderboard",
         response_model=List[LeaderboardEntryResponse])
def get_leaderboard(tournament_id: int):
    """Get the player leaderboard."""
    entries = get_service().get_player_leaderboard(tournament_id)
    return [LeaderboardEntryResponse(**e.to_dict()) for e in entries]


@app.get("/api/shuffle/tournaments/{tournament_id}/standings", response_model=StandingsResponse)
def get_standings(tournament_id: int):
    """Get leaderboard plus current round progress."""
    standings = get_service().get_tournament_standings(tournament_id)
    return StandingsResponse(**standings.to_dict())


# =============================================================================
# Rating Template Endpoints
# =============================================================================

@app.get("/api/shuffle/rating-templates", response_model=List[RatingTemplateResponse])
def list_rating_templates():
    """List rating templates (the default one is created on first use)."""
    return [RatingTemplateResponse(**t.to_dict()) for t in get_service().list_rating_templates()]


@app.post("/api/shuffle/rating-templates", response_model=RatingTemplateResponse)
def create_rating_template(request: RatingTemplateCreateRequest):
    """Create a rating template."""
    template = get_service().create_rating_template(
        request.name,
        weights=request.weights,
        enabled=request.enabled,
        description=request.description,
        min_adjustment=request.min_adjustment,
        max_adjustment=request.max_adjustment,
        template_id=request.id
    )
    return RatingTemplateResponse(**template.to_dict())


@app.get("/api/shuffle/rating-templates/{template_id}", response_model=RatingTemplateResponse)
def get_rating_template(template_id: str):
    """Get a rating template."""
    return RatingTemplateResponse(**get_service().get_rating_template(template_id).to_dict())


@app.delete("/api/shuffle/rating-templates/{template_id}")
def delete_rating_template(template_id: str):
    """Delete a rating template."""
    get_service().delete_rating_template(template_id)
    return {"deleted": template_id}


# =============================================================================
# Balance Preview
# =============================================================================

@app.post("/api/shuffle/balance", response_model=BalanceResponse)
def preview_balance(request: BalanceRequest):
    """Balance players into teams without persisting anything."""
    result = get_service().preview_balance(request.player_ids, request.team_size)
    q = result.quality
    return BalanceResponse(
        teams=[
            BalancedTeamResponse(
                player_ids=t.player_ids,
                average_elo=t.average_skill,
                average_ordinal=t.average_ordinal
            )
            for t in result.teams
        ],
        unassigned=[rp.id for rp in result.unassigned],
        skill_variance=q.skill_variance,
        ordinal_variance=q.ordinal_variance,
        max_skill_difference=q.max_skill_difference,
        max_ordinal_difference=q.max_ordinal_difference,
        initial_ordinal_variance=result.initial_ordinal_variance,
        swaps_applied=result.swaps_applied
    )
