"""Lineup validation.

``validate`` turns a raw submission (a deserialized JSON object) into either a
normalized :class:`Lineup` or an ordered list of human-readable defects. It
never raises for malformed input: wrong types are normalized away and show up
as count defects.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from dreamxi.schemas.lineup import Lineup

DEFAULT_FORMATIONS = ("4-4-2", "4-3-3", "3-5-2", "4-2-3-1")

POSITIONS = ("defenders", "midfielders", "forwards")

# Inclusive (min, max) per position group when no formation applies
GENERIC_BOUNDS: Dict[str, tuple] = {
    "defenders": (3, 5),
    "midfielders": (3, 5),
    "forwards": (1, 3),
}

SUBMITTER_REQUIRED = "submitter name is required"
GOALKEEPER_REQUIRED = "goalkeeper is required"


@dataclass(frozen=True)
class Formation:
    defenders: int
    midfielders: int
    forwards: int

    def count_for(self, position: str) -> int:
        return getattr(self, position)

    def as_dict(self) -> Dict[str, int]:
        return {p: self.count_for(p) for p in POSITIONS}


@dataclass
class ValidationResult:
    lineup: Optional[Lineup] = None
    defects: List[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.lineup is not None and not self.defects


class _MonotonicClock:
    """UTC clock that never goes backwards across calls in this process."""

    def __init__(self) -> None:
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        now = datetime.now(timezone.utc)
        with self._lock:
            if self._last is not None and now < self._last:
                now = self._last
            self._last = now
            return now


lineup_clock = _MonotonicClock()


def parse_formation(value: Any) -> Optional[Formation]:
    """Parse ``D-M-F`` (or ``D-M1-M2-F``) into required counts, else None.

    With more than three segments the middle ones are all midfield lines.
    """
    if not isinstance(value, str):
        return None
    parts = value.strip().split("-")
    if len(parts) < 3:
        return None
    counts: List[int] = []
    for part in parts:
        part = part.strip()
        if not part.isdecimal():
            return None
        n = int(part)
        if n <= 0:
            return None
        counts.append(n)
    return Formation(defenders=counts[0], midfielders=sum(counts[1:-1]), forwards=counts[-1])


def resolve_formation(value: Any, formations: Iterable[str] = DEFAULT_FORMATIONS) -> Optional[Formation]:
    """Return the counts for a recognised formation, or None to use generic bounds."""
    if not isinstance(value, str) or value.strip() not in set(formations):
        return None
    return parse_formation(value)


def _clean_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _clean_group(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return []
    names = (str(v).strip() for v in value if v is not None)
    return [n for n in names if n]


def _declared_formation(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _count_defect(position: str, count: int, formation: Optional[Formation], label: str) -> Optional[str]:
    if formation is not None:
        expected = formation.count_for(position)
        if count != expected:
            return f"formation {label} requires exactly {expected} {position} (got {count})"
        return None
    lo, hi = GENERIC_BOUNDS[position]
    if not lo <= count <= hi:
        return f"{position} must number between {lo} and {hi} (got {count})"
    return None


def validate(
    candidate: Mapping[str, Any],
    *,
    formations: Optional[Sequence[str]] = None,
    strict_formation: bool = False,
    now: Optional[datetime] = None,
) -> ValidationResult:
    if not isinstance(candidate, Mapping):
        raise TypeError("candidate must be a mapping of lineup fields")
    allowed = tuple(formations) if formations is not None else DEFAULT_FORMATIONS

    submitter = _clean_text(candidate.get("submitterName"))
    goalkeeper = _clean_text(candidate.get("goalkeeper"))
    groups = {p: _clean_group(candidate.get(p)) for p in POSITIONS}
    declared = _declared_formation(candidate.get("formation"))
    formation = resolve_formation(declared, allowed) if declared else None

    defects: List[str] = []
    if not submitter:
        defects.append(SUBMITTER_REQUIRED)
    if not goalkeeper:
        defects.append(GOALKEEPER_REQUIRED)
    if strict_formation and declared and formation is None:
        defects.append(f"formation must be one of {', '.join(allowed)}")
    for position in POSITIONS:
        defect = _count_defect(position, len(groups[position]), formation, declared)
        if defect:
            defects.append(defect)

    if defects:
        return ValidationResult(defects=defects)

    lineup = Lineup(
        submitter_name=submitter,
        goalkeeper=goalkeeper,
        formation=declared if formation is not None else None,
        created_at=now or lineup_clock(),
        **groups,
    )
    return ValidationResult(lineup=lineup)


def rules(formations: Optional[Sequence[str]] = None, strict_formation: bool = False) -> Dict[str, Any]:
    """Rule set for clients that pre-validate before submitting."""
    allowed = tuple(formations) if formations is not None else DEFAULT_FORMATIONS
    exact: Dict[str, Dict[str, int]] = {}
    for name in allowed:
        parsed = parse_formation(name)
        if parsed is not None:
            exact[name] = parsed.as_dict()
    return {
        "generic": {p: {"min": lo, "max": hi} for p, (lo, hi) in GENERIC_BOUNDS.items()},
        "formations": exact,
        "strictFormation": strict_formation,
    }
