# ABOUTME: Main NiceGUI web application entry point
# ABOUTME: JSON game API plus live leaderboard and admin heatmap pages

import logging
from typing import Optional

from fastapi import HTTPException
from nicegui import app, ui
from pydantic import BaseModel

from toolpick.config import Config
from toolpick.orchestrator import GameOrchestrator, NotFoundError
from toolpick.scoring.errors import ScoringError
from toolpick.store.responses import CodenameTakenError, StoreError

log = logging.getLogger(__name__)

# Initialize orchestrator
orchestrator = GameOrchestrator()


class JoinRequest(BaseModel):
    codename: str


class NextScenarioRequest(BaseModel):
    playerId: str


class PickRequest(BaseModel):
    playerId: str
    scenarioId: str
    toolId: str
    presentedAt: str
    submittedAt: str
    rationale: Optional[str] = None


def _call(fn, *args, **kwargs):
    """Run an orchestrator call, mapping domain errors to HTTP status codes."""
    try:
        return fn(*args, **kwargs)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CodenameTakenError:
        raise HTTPException(status_code=400, detail="Codename already taken")
    except ScoringError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StoreError as e:
        log.error(f"Store error in {fn.__name__}: {e}")
        raise HTTPException(status_code=500, detail="Storage unavailable")


# ==================== JSON API ====================

@app.post('/api/join')
def api_join(body: JoinRequest):
    player = _call(orchestrator.join, body.codename)
    return {"playerId": player.id}


@app.post('/api/scenario/next')
def api_next_scenario(body: NextScenarioRequest):
    scenario, started_at = _call(orchestrator.next_scenario, body.playerId)
    return {"scenario": scenario.to_dict(), "startedAt": started_at.isoformat()}


@app.post('/api/pick')
def api_pick(body: PickRequest):
    scored = _call(
        orchestrator.submit_pick,
        player_id=body.playerId,
        scenario_id=body.scenarioId,
        tool_id=body.toolId,
        presented_at=body.presentedAt,
        submitted_at=body.submittedAt,
        rationale=body.rationale,
    )
    return scored.to_dict()


@app.get('/api/leaderboard')
def api_leaderboard(limit: int = Config.LEADERBOARD_LIMIT):
    return _call(orchestrator.leaderboard, limit)


@app.get('/api/heatmap')
def api_heatmap():
    return _call(orchestrator.heatmap)


@app.get('/api/me')
def api_me(playerId: str):
    return _call(orchestrator.player_summary, playerId)


@app.get('/api/admin/summary')
def api_admin_summary():
    return _call(orchestrator.admin_summary)


@app.get('/api/content/tools')
def api_tools():
    return {"tools": [tool.to_dict() for tool in orchestrator.content.list_tools()]}


# ==================== Pages ====================

PAGE_STYLE = """
<style>
    body {
        background-color: #FFFFFF;
        color: #000000;
        font-family: Arial, sans-serif;
    }
    .title {
        font-size: clamp(24px, 6vw, 48px);
        font-weight: bold;
        margin-top: 2vh;
        text-align: center;
    }
    .subtitle {
        font-size: clamp(14px, 3vw, 18px);
        margin-top: 1vh;
        text-align: center;
    }
    .heat-row {
        display: flex;
        align-items: center;
        gap: 12px;
        font-family: monospace;
        font-size: 16px;
    }
    .heat-bar {
        height: 16px;
        background-color: #000000;
        border: 2px solid black;
    }
</style>
"""

LEADERBOARD_COLUMNS = [
    {'name': 'rank', 'label': '#', 'field': 'rank'},
    {'name': 'codename', 'label': 'CODENAME', 'field': 'codename', 'align': 'left'},
    {'name': 'avgScore', 'label': 'AVG SCORE', 'field': 'avgScore'},
    {'name': 'picks', 'label': 'PICKS', 'field': 'picks'},
    {'name': 'avgLatencyMs', 'label': 'AVG MS', 'field': 'avgLatencyMs'},
]

# Widest possible gap on a 1-5 attribute, for bar scaling
MAX_DIFFERENCE = 4
REFRESH_SECONDS = 5.0


@ui.page('/')
def leaderboard_page():
    """Live leaderboard"""
    ui.add_head_html(PAGE_STYLE)

    with ui.column().classes('w-full items-center'):
        ui.html('<div class="title">LEADERBOARD</div>', sanitize=False)
        team_label = ui.html('<div class="subtitle">Team average: --</div>', sanitize=False)
        table = ui.table(columns=LEADERBOARD_COLUMNS, rows=[], row_key='codename') \
            .style('border: 2px solid black; min-width: 60vw;')

    def refresh():
        try:
            data = orchestrator.leaderboard()
        except StoreError as e:
            log.error(f"Leaderboard refresh failed: {e}")
            return
        table.rows = [
            {"rank": i + 1, **row} for i, row in enumerate(data["leaderboard"])
        ]
        table.update()
        team_label.content = (
            f'<div class="subtitle">Team average: {data["teamAverage"]:.2f} '
            f'({data["totalResponses"]} picks)</div>'
        )

    refresh()
    ui.timer(REFRESH_SECONDS, refresh)


@ui.page('/admin')
def admin_page():
    """Facilitator view: live metrics and the attribute heatmap"""
    ui.add_head_html(PAGE_STYLE)

    with ui.column().classes('w-full items-center'):
        ui.html('<div class="title">WHERE PLAYERS MISS</div>', sanitize=False)
        metrics_label = ui.html('<div class="subtitle">--</div>', sanitize=False)
        heatmap_container = ui.column().style('margin-top: 2vh;')
        ui.button('RELOAD CONTENT', on_click=lambda: reload_content()) \
            .style('border: 2px solid black; margin-top: 3vh;')

    def refresh():
        try:
            summary = orchestrator.admin_summary()
            heatmap = orchestrator.heatmap()
        except StoreError as e:
            log.error(f"Admin refresh failed: {e}")
            return

        metrics = summary["metrics"]
        metrics_label.content = (
            f'<div class="subtitle">{metrics["totalResponses"]} picks | '
            f'{metrics["activePlayers"]} active | '
            f'{metrics["submissionsPerMin"]}/min | '
            f'median {metrics["medianScore"]} pts, {metrics["medianLatency"]} ms</div>'
        )

        heatmap_container.clear()
        with heatmap_container:
            for attribute, entry in heatmap["heatmap"].items():
                width = int(200 * min(entry["avgDifference"], MAX_DIFFERENCE) / MAX_DIFFERENCE)
                ui.html(
                    f'<div class="heat-row"><span style="width: 120px;">{attribute}</span>'
                    f'<div class="heat-bar" style="width: {width}px;"></div>'
                    f'<span>{entry["avgDifference"]:.2f} (n={entry["count"]})</span></div>',
                    sanitize=False
                )

    def reload_content():
        try:
            orchestrator.reload_content()
            ui.notify('Content reloaded')
        except Exception as e:
            log.error(f"Content reload failed: {e}")
            ui.notify(f'Reload failed: {e}', type='negative')
        refresh()

    refresh()
    ui.timer(REFRESH_SECONDS, refresh)


if __name__ in {"__main__", "__mp_main__"}:
    import os
    port = int(os.environ.get('PORT', 8080))
    ui.run(
        title='Tool Pick Trivia',
        host='0.0.0.0',
        port=port,
        reload=False  # Disable reload in production
    )
