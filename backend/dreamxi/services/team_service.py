from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from dreamxi.core.config import get_settings
from dreamxi.schemas.lineup import StoredLineup
from dreamxi.services.team_store import get_store
from dreamxi.services.validator import POSITIONS, validate

logger = logging.getLogger(__name__)

SUMMARY_TOP_N = 5


def submit_team(payload: Optional[Mapping[str, Any]]) -> Tuple[Optional[StoredLineup], List[str]]:
    """Validate a submission and persist it when accepted.

    Returns ``(stored, [])`` on success or ``(None, defects)`` on rejection.
    Storage failures propagate as ``StoreError``.
    """
    settings = get_settings()
    result = validate(
        payload or {},
        formations=settings.formations,
        strict_formation=settings.strict_formation,
    )
    if not result.accepted:
        logger.info("Rejected team submission: %s", "; ".join(result.defects))
        return None, result.defects

    stored = get_store().add(result.lineup)
    logger.info(
        "Saved team %s for %s (%s)",
        stored.id,
        stored.submitter_name,
        stored.formation or "no formation",
    )
    return stored, []


def list_teams(order: str = "oldest", formation: Optional[str] = None, player: Optional[str] = None) -> List[StoredLineup]:
    if order not in ("oldest", "newest"):
        raise ValueError("order must be 'oldest' or 'newest'")
    teams = get_store().all()
    if formation:
        teams = [t for t in teams if t.formation == formation.strip()]
    if player and player.strip():
        teams = [t for t in teams if t.has_player(player)]
    if order == "newest":
        teams = list(reversed(teams))
    return teams


def get_team(team_id: str) -> Optional[StoredLineup]:
    return get_store().get(team_id)


def delete_team(team_id: str) -> bool:
    deleted = get_store().delete(team_id)
    if deleted:
        logger.info("Deleted team %s", team_id)
    return deleted


def _pick_rows(teams: List[StoredLineup]) -> pd.DataFrame:
    rows = []
    for team in teams:
        rows.append({"position": "goalkeeper", "player": team.goalkeeper})
        for position in POSITIONS:
            rows.extend({"position": position, "player": name} for name in getattr(team, position))
    return pd.DataFrame(rows, columns=["position", "player"])


def _top_players(picks: pd.DataFrame, top_n: int = SUMMARY_TOP_N) -> Dict[str, List[Dict[str, Any]]]:
    out: Dict[str, List[Dict[str, Any]]] = {p: [] for p in ("goalkeeper",) + POSITIONS}
    if picks.empty:
        return out
    counts = picks.groupby(["position", "player"]).size().reset_index(name="picks")
    counts = counts.sort_values(["position", "picks", "player"], ascending=[True, False, True])
    for position, group in counts.groupby("position", sort=False):
        out[str(position)] = [
            {"player": str(row["player"]), "picks": int(row["picks"])}
            for _, row in group.head(top_n).iterrows()
        ]
    return out


def summarize_teams() -> Dict[str, Any]:
    """Formation usage and most-picked players across every stored lineup."""
    teams = get_store().all()
    formations = pd.Series([t.formation or "none" for t in teams], dtype="object")
    formation_counts = {str(k): int(v) for k, v in formations.value_counts().sort_index().items()}
    return {
        "total": len(teams),
        "formations": formation_counts,
        "topPlayers": _top_players(_pick_rows(teams)),
    }
