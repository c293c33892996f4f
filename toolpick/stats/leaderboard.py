# ABOUTME: Leaderboard, player and admin summary statistics over scored responses
# ABOUTME: Pure aggregation; callers fetch responses and codenames from the store

import statistics
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Mapping

from toolpick.config import Config
from toolpick.scoring.calculator import round2
from toolpick.store.responses import ResponseRecord


@dataclass(frozen=True)
class LeaderboardEntry:
    """One player's row on the leaderboard"""
    codename: str
    avg_score: float      # 2 decimals
    picks: int
    avg_latency_ms: int

    def to_dict(self) -> dict:
        return {
            "codename": self.codename,
            "avgScore": self.avg_score,
            "picks": self.picks,
            "avgLatencyMs": self.avg_latency_ms,
        }


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def build_leaderboard(
    responses: Iterable[ResponseRecord],
    codenames: Mapping[str, str],
    limit: int = None
) -> list[LeaderboardEntry]:
    """
    Rank players by average score.

    Responses from players missing in codenames are left out.

    Args:
        responses: Scored responses
        codenames: player_id -> codename
        limit: Max rows (defaults to Config.LEADERBOARD_LIMIT)

    Returns:
        Entries sorted by average score, highest first
    """
    limit = Config.LEADERBOARD_LIMIT if limit is None else limit

    scores = defaultdict(list)
    latencies = defaultdict(list)
    for response in responses:
        codename = codenames.get(response.player_id)
        if not codename:
            continue
        scores[codename].append(response.score)
        latencies[codename].append(response.latency_ms)

    ranked = sorted(scores, key=lambda name: _mean(scores[name]), reverse=True)
    return [
        LeaderboardEntry(
            codename=name,
            avg_score=round2(_mean(scores[name])),
            picks=len(scores[name]),
            avg_latency_ms=round(_mean(latencies[name])),
        )
        for name in ranked[:limit]
    ]


def team_average(responses: Iterable[ResponseRecord]) -> float:
    """Mean score over all responses, 0 when there are none."""
    return round2(_mean([r.score for r in responses]))


def player_stats(responses: Iterable[ResponseRecord]) -> dict:
    """Totals for a single player's responses."""
    responses = list(responses)
    return {
        "totalResponses": len(responses),
        "avgScore": round2(_mean([r.score for r in responses])),
        "avgLatency": round(_mean([r.latency_ms for r in responses])),
    }


def admin_summary(
    responses: Iterable[ResponseRecord],
    codenames: Mapping[str, str],
    now: datetime,
    window_minutes: int = None,
    top_limit: int = None
) -> dict:
    """
    Live facilitator metrics.

    Args:
        responses: Every scored response
        codenames: player_id -> codename
        now: Reference time for the recent-activity window
        window_minutes: Recent-activity window (defaults to Config.SUMMARY_WINDOW_MINUTES)
        top_limit: Rows in topPlayers (defaults to Config.TOP_PLAYERS_LIMIT)

    Returns:
        {"metrics": {...}, "topPlayers": [...], "lastUpdated": iso}
    """
    window_minutes = Config.SUMMARY_WINDOW_MINUTES if window_minutes is None else window_minutes
    top_limit = Config.TOP_PLAYERS_LIMIT if top_limit is None else top_limit

    responses = list(responses)
    window_start = now - timedelta(minutes=window_minutes)
    recent = [r for r in responses if r.submitted_at >= window_start]

    # Upper median, matching a sorted-list midpoint pick
    scores = [r.score for r in responses]
    latencies = [r.latency_ms for r in responses]
    median_score = statistics.median_high(scores) if scores else 0
    median_latency = statistics.median_high(latencies) if latencies else 0

    top_players = [
        {"codename": e.codename, "avgScore": e.avg_score, "count": e.picks}
        for e in build_leaderboard(responses, codenames, limit=top_limit)
    ]

    return {
        "metrics": {
            "submissionsPerMin": round2(len(recent) / window_minutes) if window_minutes else 0,
            "activePlayers": len({r.player_id for r in recent}),
            "totalResponses": len(responses),
            "medianScore": round2(median_score),
            "medianLatency": round(median_latency),
        },
        "topPlayers": top_players,
        "lastUpdated": now.isoformat(),
    }
