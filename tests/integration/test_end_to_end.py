# ABOUTME: End-to-end integration tests over the packaged content deck
# ABOUTME: Validates join -> next scenario -> pick -> leaderboard/heatmap flows

from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from toolpick.content.provider import ContentProvider
from toolpick.orchestrator import GameOrchestrator, NotFoundError
from toolpick.scoring.attributes import ATTRIBUTES
from toolpick.scoring.calculator import ScoreCalculator, calculate_accuracy, round2
from toolpick.store.responses import InMemoryResponseStore, SupabaseResponseStore


def create_game() -> GameOrchestrator:
    return GameOrchestrator(
        content=ContentProvider(),
        store=InMemoryResponseStore(),
        calculator=ScoreCalculator(accuracy_weight=0.7, speed_weight=0.3),
    )


def play_every_scenario(game: GameOrchestrator, player_id: str, tool_id: str, seconds: float):
    """Answer scenarios until none are left; returns the scored picks"""
    picks = []
    while True:
        try:
            scenario, started_at = game.next_scenario(player_id)
        except NotFoundError:
            return picks
        submitted_at = started_at + timedelta(seconds=seconds)
        picks.append((scenario, game.submit_pick(
            player_id, scenario.id, tool_id, started_at.isoformat(), submitted_at.isoformat()
        )))


@pytest.mark.integration
def test_full_game_flow():
    game = create_game()
    scenario_count = len(game.content.list_scenarios())
    maverick = game.join("Maverick")
    goose = game.join("Goose")

    maverick_picks = play_every_scenario(game, maverick.id, "glide", seconds=5)
    goose_picks = play_every_scenario(game, goose.id, "django", seconds=40)

    assert len(maverick_picks) == scenario_count
    assert len(goose_picks) == scenario_count
    assert {s.id for s, _ in maverick_picks} == {s.id for s in game.content.list_scenarios()}

    for scenario, scored in maverick_picks + goose_picks:
        assert 0.0 <= scored.accuracy <= 1.0
        assert 0.0 <= scored.score <= 100.0
    # Goose always runs out the clock
    assert all(scored.time_score == 0.0 for _, scored in goose_picks)

    board = game.leaderboard()
    assert board["totalPlayers"] == 2
    assert board["totalResponses"] == 2 * scenario_count
    assert {row["picks"] for row in board["leaderboard"]} == {scenario_count}

    heatmap = game.heatmap()
    assert heatmap["totalResponses"] == 2 * scenario_count
    assert set(heatmap["heatmap"]) == {a.value for a in ATTRIBUTES}
    for entry in heatmap["heatmap"].values():
        assert entry["count"] == 2 * scenario_count
        assert 0.0 <= entry["avgDifference"] <= 4.0


@pytest.mark.integration
def test_instant_pick_scores_accuracy_plus_full_speed():
    game = create_game()
    player = game.join("Iceman")
    scenario = game.content.get_scenario_by_id("ops-dashboard")
    tool = game.content.get_tool_by_id("retool")

    scored = game.submit_pick(
        player.id, scenario.id, tool.id, "2025-11-26T14:30:00Z", "2025-11-26T14:30:00Z"
    )

    accuracy = calculate_accuracy(tool, scenario)
    assert scored.latency_ms == 0
    assert scored.time_score == 1.0
    assert scored.accuracy == accuracy
    assert scored.score == round2(100 * (0.7 * accuracy + 0.3 * 1.0))


@pytest.mark.integration
def test_scenario_without_tmax_uses_default_budget():
    game = create_game()
    player = game.join("Viper")

    scored = game.submit_pick(
        player.id, "ops-dashboard", "retool", "2025-11-26T14:30:00Z", "2025-11-26T14:30:12.500Z"
    )

    assert scored.time_score == 0.5


@pytest.mark.integration
def test_heatmap_over_supabase_rows_skips_retired_content():
    rows = Mock()
    rows.status_code = 200
    rows.json.return_value = [
        {"tool_id": "glide", "scenario_id": "event-checkin"},
        {"tool_id": "retired-tool", "scenario_id": "event-checkin"},
    ]

    with patch("toolpick.store.responses.requests.request", return_value=rows) as mock_request:
        game = GameOrchestrator(
            content=ContentProvider(),
            store=SupabaseResponseStore("https://example.supabase.co/", "anon-key"),
        )
        result = game.heatmap()

    assert result["totalResponses"] == 1
    assert result["heatmap"]["ease"]["count"] == 1
    method, url = mock_request.call_args.args
    assert method == "GET"
    assert url == "https://example.supabase.co/rest/v1/responses"
    assert mock_request.call_args.kwargs["params"] == {"select": "tool_id,scenario_id"}
