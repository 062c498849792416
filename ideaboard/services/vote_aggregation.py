"""
Per-mode aggregation of a round's votes.

Votes are expected in insertion order. Groups keep the order in which their
idea first appears and the final sort is stable, so ties stay in encounter
order.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Tuple

VoteRow = Tuple[str, Any]  # (idea_id, stored value)


def _group(rows: Iterable[VoteRow]) -> Dict[str, List[Any]]:
    grouped: Dict[str, List[Any]] = {}
    for idea_id, value in rows:
        grouped.setdefault(idea_id, []).append(value)
    return grouped


def aggregate_dot_votes(rows: Iterable[VoteRow]) -> List[Dict[str, Any]]:
    """Total points per idea, highest first."""
    results = [
        {"idea_id": idea_id, "total": sum(values)}
        for idea_id, values in _group(rows).items()
    ]
    return sorted(results, key=lambda entry: entry["total"], reverse=True)


def aggregate_stock_rank_votes(rows: Iterable[VoteRow]) -> List[Dict[str, Any]]:
    """Mean rank per idea, best (lowest) first."""
    results = []
    for idea_id, values in _group(rows).items():
        ranks = [value["rank"] for value in values]
        results.append(
            {
                "idea_id": idea_id,
                "avg_rank": sum(ranks) / len(ranks),
                "times_ranked": len(ranks),
            }
        )
    return sorted(results, key=lambda entry: entry["avg_rank"])


def aggregate_matrix_votes(rows: Iterable[VoteRow]) -> List[Dict[str, Any]]:
    """Mean position on both axes per idea, most rated first."""
    results = []
    for idea_id, values in _group(rows).items():
        count = len(values)
        results.append(
            {
                "idea_id": idea_id,
                "avg_x": sum(value["x"] for value in values) / count,
                "avg_y": sum(value["y"] for value in values) / count,
                "count": count,
            }
        )
    return sorted(results, key=lambda entry: entry["count"], reverse=True)
