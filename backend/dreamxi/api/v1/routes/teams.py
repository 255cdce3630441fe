import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Body, HTTPException, Query, Response
from fastapi.responses import JSONResponse

from dreamxi.core.config import get_settings
from dreamxi.services.team_service import delete_team, get_team, list_teams, submit_team, summarize_teams
from dreamxi.services.team_store import StoreError
from dreamxi.services.validator import rules

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/rules")
def team_rules() -> Dict[str, Any]:
    """Position-count rules, so the browser form can pre-validate the same way."""
    settings = get_settings()
    return rules(settings.formations, strict_formation=settings.strict_formation)


@router.post("", status_code=201)
def create_team(payload: Optional[Dict[str, Any]] = Body(None, description="Lineup fields as submitted by the form")) -> Any:
    try:
        stored, defects = submit_team(payload)
    except StoreError as exc:
        logger.error("Failed to save team: %s", exc)
        return JSONResponse(status_code=500, content={"message": "Failed to save team", "error": str(exc)})
    if stored is None:
        return JSONResponse(status_code=400, content={"message": "Invalid team", "details": defects})
    return {"message": "Team saved successfully", "team": stored.to_json()}


@router.get("")
def get_teams(
    order: Literal["oldest", "newest"] = Query("oldest", description="Insertion order or newest first"),
    formation: Optional[str] = Query(None, description="Only lineups declared with this formation"),
    player: Optional[str] = Query(None, description="Only lineups that include this player"),
) -> List[Dict[str, Any]]:
    try:
        return [t.to_json() for t in list_teams(order=order, formation=formation, player=player)]
    except StoreError as exc:
        logger.error("Failed to load teams: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to load teams")


@router.get("/summary")
def teams_summary() -> Dict[str, Any]:
    try:
        return summarize_teams()
    except StoreError as exc:
        logger.error("Failed to summarize teams: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to load teams")


@router.get("/{team_id}")
def get_team_by_id(team_id: str) -> Dict[str, Any]:
    try:
        team = get_team(team_id)
    except StoreError as exc:
        logger.error("Failed to load team %s: %s", team_id, exc)
        raise HTTPException(status_code=500, detail="Failed to load team")
    if team is None:
        raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
    return team.to_json()


@router.delete("/{team_id}", status_code=204)
def delete_team_by_id(team_id: str) -> Response:
    try:
        deleted = delete_team(team_id)
    except StoreError as exc:
        logger.error("Failed to delete team %s: %s", team_id, exc)
        raise HTTPException(status_code=500, detail="Failed to delete team")
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Team {team_id} not found")
    return Response(status_code=204)
