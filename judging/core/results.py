"""Results Aggregation — pure scoring summaries computed from a snapshot.

Invariants:
    - Only criteria present in the snapshot contribute; values keyed by deleted criteria
      are counted as orphaned, never averaged
    - weightedTotal = Σ(avg_c · weight_c) / Σ(weight_c) over criteria with at least one value
    - Projects without any usable value get weightedTotal=None and rank=None, listed last
    - Ranks are dense: equal totals share a rank; ties ordered by name, then id

Design Decisions:
    - Computed on read from the snapshot (no stored aggregates): scores change constantly
      during judging and a snapshot is already in hand (ADR: no cache invalidation)
    - Non-numeric values are ignored rather than rejected: payload validation happens at
      the API boundary, aggregation must never raise
"""

from judging.core.domain_types import Snapshot


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _criterion_weight(criterion: dict) -> float:
    weight = criterion.get("weight", 1.0)
    return float(weight) if _is_number(weight) and weight > 0 else 1.0


def summarize_project(project: dict, scores: list[dict], criteria: list[dict]) -> dict:
    """Aggregate the scores of one project. Pure, no IO."""
    known = {c["id"] for c in criteria}
    averages: dict[str, float | None] = {}
    for criterion in criteria:
        values = [
            s["criteria"][criterion["id"]]
            for s in scores
            if _is_number((s.get("criteria") or {}).get(criterion["id"]))
        ]
        averages[criterion["id"]] = (
            round(sum(values) / len(values), 4) if values else None
        )

    numerator = 0.0
    denominator = 0.0
    for criterion in criteria:
        avg = averages[criterion["id"]]
        if avg is None:
            continue
        weight = _criterion_weight(criterion)
        numerator += avg * weight
        denominator += weight

    orphaned = sum(
        1
        for s in scores
        for key in (s.get("criteria") or {})
        if key not in known
    )
    return {
        "projectId": project["id"],
        "name": project.get("name", ""),
        "track": project.get("track"),
        "judgeCount": len({s.get("judgeId") for s in scores}),
        "scoreCount": len(scores),
        "criteriaAverages": averages,
        "weightedTotal": round(numerator / denominator, 4) if denominator else None,
        "orphanedValues": orphaned,
        "rank": None,
    }


def compute_results(snapshot: Snapshot) -> list[dict]:
    """Summaries for every project, ranked by weighted total (desc)."""
    by_project: dict[str, list[dict]] = {}
    for score in snapshot["scores"]:
        by_project.setdefault(score.get("projectId"), []).append(score)

    summaries = [
        summarize_project(p, by_project.get(p["id"], []), snapshot["criteria"])
        for p in snapshot["projects"]
    ]
    summaries.sort(key=lambda s: (
        s["weightedTotal"] is None,
        -(s["weightedTotal"] or 0.0),
        str(s["name"]).lower(),
        s["projectId"],
    ))

    rank = 0
    previous: float | None = None
    for summary in summaries:
        total = summary["weightedTotal"]
        if total is None:
            continue
        if total != previous:
            rank += 1
            previous = total
        summary["rank"] = rank
    return summaries


def judge_assignments(snapshot: Snapshot, judge_id: str) -> dict | None:
    """Projects a judge may score (track match) plus the judge's own scores.

    Returns None when the judge is not in the snapshot.
    """
    judge = next((j for j in snapshot["judges"] if j["id"] == judge_id), None)
    if judge is None:
        return None
    tracks = set(judge.get("tracks") or [])
    return {
        "judge": judge,
        "projects": [p for p in snapshot["projects"] if p.get("track") in tracks],
        "criteria": snapshot["criteria"],
        "scores": [s for s in snapshot["scores"] if s.get("judgeId") == judge_id],
    }
