# ABOUTME: Game orchestrator coordinating content, scoring, storage and statistics
# ABOUTME: Backs the join / next-scenario / pick / leaderboard / heatmap endpoints

import logging
from datetime import datetime, timezone
from typing import Optional

from toolpick.config import Config
from toolpick.content.provider import ContentProvider
from toolpick.debug import debug_log
from toolpick.scoring.calculator import ScoreCalculator
from toolpick.scoring.errors import InputError
from toolpick.scoring.heatmap import calculate_attribute_heatmap, heatmap_to_dict
from toolpick.scoring.models import Scenario, ScoredResponse
from toolpick.stats.leaderboard import admin_summary, build_leaderboard, player_stats, team_average
from toolpick.store.responses import (
    Player,
    ResponseRecord,
    ResponseStore,
    create_store,
    parse_timestamp,
)

log = logging.getLogger(__name__)

CODENAME_MAX_LENGTH = 50


class NotFoundError(LookupError):
    """Referenced player, tool or scenario doesn't exist"""


def _parse_pick_time(value, label: str) -> datetime:
    """Parse a client timestamp; naive values are taken as UTC."""
    try:
        parsed = parse_timestamp(value)
    except ValueError as e:
        raise InputError(f"Invalid {label}: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class GameOrchestrator:
    """Orchestrates content lookups, scoring and persistence for the game"""

    def __init__(
        self,
        content: Optional[ContentProvider] = None,
        store: Optional[ResponseStore] = None,
        calculator: Optional[ScoreCalculator] = None,
        session_id: Optional[str] = None
    ):
        self.content = content or ContentProvider()
        self.store = store or create_store()
        self.calculator = calculator or ScoreCalculator()
        self.session_id = session_id or Config.DEFAULT_SESSION_ID

    def _require_player(self, player_id: str) -> Player:
        player = self.store.get_player(player_id)
        if player is None:
            raise NotFoundError(f"Player not found: {player_id}")
        return player

    def _codenames(self) -> dict[str, str]:
        return {p.id: p.codename for p in self.store.list_players()}

    def join(self, codename: str) -> Player:
        """
        Register a player in the current session.

        Raises:
            InputError: codename empty or longer than 50 characters
            CodenameTakenError: codename already used in this session
        """
        codename = (codename or "").strip()
        if not 1 <= len(codename) <= CODENAME_MAX_LENGTH:
            raise InputError(f"Codename must be 1-{CODENAME_MAX_LENGTH} characters")

        player = self.store.create_player(codename, self.session_id)
        debug_log(f"Player joined: {codename} ({player.id})", "ORCHESTRATOR")
        return player

    def next_scenario(self, player_id: str) -> tuple[Scenario, datetime]:
        """
        Random scenario the player hasn't answered yet, with its start time.

        Raises:
            NotFoundError: unknown player, or no unanswered scenario left
        """
        self._require_player(player_id)

        answered = {r.scenario_id for r in self.store.list_responses(player_id=player_id)}
        scenario = self.content.get_random_scenario(exclude_ids=answered)
        if scenario is None:
            raise NotFoundError("No more scenarios available")

        debug_log(f"Next scenario for {player_id}: {scenario.id}", "ORCHESTRATOR")
        return scenario, datetime.now(timezone.utc)

    def submit_pick(
        self,
        player_id: str,
        scenario_id: str,
        tool_id: str,
        presented_at,
        submitted_at,
        rationale: Optional[str] = None
    ) -> ScoredResponse:
        """
        Score a pick and persist it.

        Args:
            player_id: Player making the pick
            scenario_id: Scenario being answered
            tool_id: Chosen tool
            presented_at: datetime or ISO-8601 string
            submitted_at: datetime or ISO-8601 string
            rationale: Optional free-text reasoning

        Returns:
            The ScoredResponse that was stored

        Raises:
            NotFoundError: tool, scenario or player doesn't exist
            ScoringError: bad timestamps or unscorable scenario
            StoreError: persisting failed
        """
        presented = _parse_pick_time(presented_at, "presentedAt")
        submitted = _parse_pick_time(submitted_at, "submittedAt")

        tool = self.content.get_tool_by_id(tool_id)
        if tool is None:
            raise NotFoundError(f"Tool not found: {tool_id}")
        scenario = self.content.get_scenario_by_id(scenario_id)
        if scenario is None:
            raise NotFoundError(f"Scenario not found: {scenario_id}")

        scored = self.calculator.score_response(tool, scenario, presented, submitted)
        player = self._require_player(player_id)

        self.store.add_response(ResponseRecord(
            session_id=player.session_id,
            player_id=player.id,
            scenario_id=scenario.id,
            tool_id=tool.id,
            presented_at=presented,
            submitted_at=submitted,
            latency_ms=scored.latency_ms,
            accuracy=scored.accuracy,
            time_score=scored.time_score,
            score=scored.score,
            rationale=rationale,
        ))
        debug_log(f"Pick {player.codename}: {tool.id} for {scenario.id} -> {scored.score}", "ORCHESTRATOR")
        return scored

    def heatmap(self) -> dict:
        """
        Attribute heatmap over every stored response.

        Pairs whose tool or scenario is no longer in the content deck are skipped.

        Returns:
            {"heatmap": {attribute: {"avgDifference", "count"}}, "totalResponses": int}
        """
        pairs = []
        skipped = 0
        for tool_id, scenario_id in self.store.list_response_pairs():
            tool = self.content.get_tool_by_id(tool_id)
            scenario = self.content.get_scenario_by_id(scenario_id)
            if tool is None or scenario is None:
                skipped += 1
                continue
            pairs.append((tool, scenario))

        if skipped:
            log.warning(f"Heatmap skipped {skipped} responses with unknown tool/scenario")

        return {
            "heatmap": heatmap_to_dict(calculate_attribute_heatmap(pairs)),
            "totalResponses": len(pairs),
        }

    def leaderboard(self, limit: Optional[int] = None) -> dict:
        responses = self.store.list_responses()
        codenames = self._codenames()
        entries = build_leaderboard(responses, codenames, limit=limit)
        return {
            "leaderboard": [e.to_dict() for e in entries],
            "teamAverage": team_average(responses),
            "totalPlayers": len({r.player_id for r in responses if r.player_id in codenames}),
            "totalResponses": len(responses),
        }

    def player_summary(self, player_id: str) -> dict:
        """Player profile, aggregate stats and their responses (newest first)."""
        player = self._require_player(player_id)
        responses = self.store.list_responses(player_id=player_id)
        return {
            "player": {
                "id": player.id,
                "codename": player.codename,
                "createdAt": player.created_at.isoformat(),
            },
            "stats": player_stats(responses),
            "responses": [
                {
                    "id": r.id,
                    "scenario_id": r.scenario_id,
                    "tool_id": r.tool_id,
                    "submitted_at": r.submitted_at.isoformat(),
                    "latency_ms": r.latency_ms,
                    "accuracy": r.accuracy,
                    "time_score": r.time_score,
                    "score": r.score,
                }
                for r in responses
            ],
        }

    def admin_summary(self, now: Optional[datetime] = None) -> dict:
        now = now or datetime.now(timezone.utc)
        return admin_summary(self.store.list_responses(), self._codenames(), now)

    def reload_content(self) -> None:
        self.content.reload()
