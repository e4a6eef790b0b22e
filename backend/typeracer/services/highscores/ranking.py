"""Leaderboard ordering rules.

Entries are plain mappings shaped like ``ScoreEntry.to_dict()``; only
``cps``, ``timestamp``, ``email`` and ``name`` are looked at.
"""
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional

DEFAULT_LIMIT = 10
CPS_TIE_EPSILON = 1e-9
PLACEMENT_EPSILON = 1e-6


def _timestamp_key(entry: Mapping[str, Any]) -> float:
    raw = entry.get('timestamp')
    if isinstance(raw, datetime):
        return raw.timestamp()
    if not raw:
        # Unknown timestamps sort after every known one
        return float('inf')
    try:
        return datetime.fromisoformat(str(raw).replace('Z', '+00:00')).timestamp()
    except ValueError:
        return float('inf')


def sort_scores(scores: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Highest cps first; equal cps keeps the earlier submission first."""
    return sorted(scores, key=lambda s: (-float(s.get('cps') or 0.0), _timestamp_key(s)))


def identity_key(entry: Mapping[str, Any]) -> str:
    email = (entry.get('email') or '').strip().lower()
    if email:
        return email
    return 'name:' + (entry.get('name') or '').strip().lower()


def _is_better(candidate: Mapping[str, Any], current: Mapping[str, Any]) -> bool:
    a = float(candidate.get('cps') or 0.0)
    b = float(current.get('cps') or 0.0)
    if abs(a - b) < CPS_TIE_EPSILON:
        return _timestamp_key(candidate) < _timestamp_key(current)
    return a > b


def unique_best_by_email(scores: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    """Keep one entry per player: the best cps, earliest on ties.

    Players are identified by their lowercased email, or by name when the
    entry carries no email.
    """
    best = {}
    for entry in scores:
        key = identity_key(entry)
        current = best.get(key)
        if current is None or _is_better(entry, current):
            best[key] = entry
    return list(best.values())


def select_top(scores: List[Mapping[str, Any]], limit: Optional[int] = DEFAULT_LIMIT) -> List[Mapping[str, Any]]:
    if limit is None or limit <= 0:
        return list(scores)
    return list(scores[:limit])


def rank_highscores(scores: Iterable[Mapping[str, Any]], limit: Optional[int] = DEFAULT_LIMIT,
                    unique_email: bool = False) -> List[Mapping[str, Any]]:
    entries = list(scores)
    if unique_email:
        entries = unique_best_by_email(entries)
    return select_top(sort_scores(entries), limit)


def compute_placement(entries: Iterable[Mapping[str, Any]], name: str, cps: float,
                      candidate: Optional[Mapping[str, Any]] = None) -> Optional[int]:
    """1-based rank of a finished race inside a leaderboard snapshot.

    The local result is added as a synthetic row unless the snapshot already
    holds an entry with the same name and cps. Returns None when the result
    cannot be located.
    """
    def matches(entry):
        try:
            return entry.get('name') == name and abs(float(entry.get('cps')) - cps) < PLACEMENT_EPSILON
        except (TypeError, ValueError):
            return False

    rows = list(entries)
    if not any(matches(e) for e in rows):
        rows.append(candidate or {'id': 'local', 'name': name, 'cps': cps, 'timestamp': ''})
    rows.sort(key=lambda e: -float(e.get('cps') or 0.0))
    for index, entry in enumerate(rows):
        if matches(entry):
            return index + 1
    return None
