# ABOUTME: Persistence for players and scored responses
# ABOUTME: In-memory store for development, Supabase (PostgREST over HTTP) for live games

import logging
import threading
import uuid
from dataclasses import asdict, dataclass, replace
from datetime import datetime, timezone
from typing import Any, Optional

import requests

from toolpick.config import Config

log = logging.getLogger(__name__)


class StoreError(Exception):
    """Backing store request failed"""


class CodenameTakenError(StoreError):
    """Codename already used in this session"""


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp (trailing "Z" allowed) into a datetime.

    Raises:
        ValueError: not a datetime or ISO-8601 string
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected ISO-8601 timestamp, got {value!r}")
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass(frozen=True)
class Player:
    """A participant in a session"""
    id: str
    session_id: str
    codename: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict) -> "Player":
        return cls(
            id=str(row["id"]),
            session_id=str(row["session_id"]),
            codename=row["codename"],
            created_at=parse_timestamp(row["created_at"]),
        )


@dataclass(frozen=True)
class ResponseRecord:
    """One scored pick, stored exactly as scored"""
    session_id: str
    player_id: str
    scenario_id: str
    tool_id: str
    presented_at: datetime
    submitted_at: datetime
    latency_ms: int
    accuracy: float
    time_score: float
    score: float
    rationale: Optional[str] = None
    id: Optional[str] = None  # assigned by the store

    def to_row(self) -> dict:
        row = asdict(self)
        row["presented_at"] = self.presented_at.isoformat()
        row["submitted_at"] = self.submitted_at.isoformat()
        if row["id"] is None:
            del row["id"]
        return row

    @classmethod
    def from_row(cls, row: dict) -> "ResponseRecord":
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            session_id=str(row["session_id"]),
            player_id=str(row["player_id"]),
            scenario_id=row["scenario_id"],
            tool_id=row["tool_id"],
            presented_at=parse_timestamp(row["presented_at"]),
            submitted_at=parse_timestamp(row["submitted_at"]),
            latency_ms=int(row["latency_ms"]),
            accuracy=float(row["accuracy"]),
            time_score=float(row["time_score"]),
            score=float(row["score"]),
            rationale=row.get("rationale"),
        )


class ResponseStore:
    """Interface shared by the store backends"""

    def create_player(self, codename: str, session_id: str) -> Player:
        raise NotImplementedError

    def get_player(self, player_id: str) -> Optional[Player]:
        raise NotImplementedError

    def list_players(self) -> list[Player]:
        raise NotImplementedError

    def add_response(self, record: ResponseRecord) -> ResponseRecord:
        raise NotImplementedError

    def list_responses(
        self,
        player_id: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> list[ResponseRecord]:
        """Responses, newest first, optionally for one player / after a time."""
        raise NotImplementedError

    def list_response_pairs(self) -> list[tuple[str, str]]:
        """(tool_id, scenario_id) for every stored response."""
        return [(r.tool_id, r.scenario_id) for r in self.list_responses()]


class InMemoryResponseStore(ResponseStore):
    """Process-local store used when Supabase isn't configured"""

    def __init__(self):
        self._players: dict[str, Player] = {}
        self._responses: list[ResponseRecord] = []
        self._lock = threading.Lock()

    def create_player(self, codename: str, session_id: str) -> Player:
        # Codename check and insert are one step
        with self._lock:
            for player in self._players.values():
                if player.session_id == session_id and player.codename == codename:
                    raise CodenameTakenError(f"Codename already taken: {codename}")

            player = Player(
                id=str(uuid.uuid4()),
                session_id=session_id,
                codename=codename,
                created_at=datetime.now(timezone.utc),
            )
            self._players[player.id] = player
        return player

    def get_player(self, player_id: str) -> Optional[Player]:
        return self._players.get(player_id)

    def list_players(self) -> list[Player]:
        return list(self._players.values())

    def add_response(self, record: ResponseRecord) -> ResponseRecord:
        stored = replace(record, id=record.id or str(uuid.uuid4()))
        with self._lock:
            self._responses.append(stored)
        return stored

    def list_responses(
        self,
        player_id: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> list[ResponseRecord]:
        rows = [
            r for r in self._responses
            if (player_id is None or r.player_id == player_id)
            and (since is None or r.submitted_at >= since)
        ]
        return sorted(rows, key=lambda r: r.submitted_at, reverse=True)

    def clear(self) -> None:
        self._players.clear()
        self._responses.clear()


class SupabaseResponseStore(ResponseStore):
    """
    Store backed by Supabase's PostgREST API.

    Tables:
        players(id, session_id, codename, created_at)
        responses(id, session_id, player_id, scenario_id, tool_id, presented_at,
                  submitted_at, latency_ms, accuracy, time_score, score, rationale)
    """

    PLAYER_COLUMNS = "id,session_id,codename,created_at"

    def __init__(self, url: str, key: str, timeout: int = None):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self.key = key
        self.timeout = timeout or Config.SUPABASE_TIMEOUT_SECONDS

    def _headers(self) -> dict:
        return {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
            "Prefer": "return=representation",
        }

    def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict] = None,
        payload: Optional[dict] = None
    ) -> list[dict]:
        url = f"{self.base_url}/{table}"
        try:
            response = requests.request(
                method,
                url,
                params=params,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout
            )
        except requests.RequestException as e:
            log.error(f"Supabase request failed: {method} {table}: {e}")
            raise StoreError(f"Supabase request failed: {e}") from e

        if response.status_code not in (200, 201):
            log.error(f"Supabase HTTP error: {response.status_code} - {response.text}")
            raise StoreError(f"Supabase {method} {table} returned {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            log.error(f"Supabase returned non-JSON body for {method} {table}: {response.text}")
            raise StoreError("Supabase returned an invalid response") from e

    def create_player(self, codename: str, session_id: str) -> Player:
        existing = self._request("GET", "players", params={
            "select": "id",
            "session_id": f"eq.{session_id}",
            "codename": f"eq.{codename}",
        })
        if existing:
            raise CodenameTakenError(f"Codename already taken: {codename}")

        rows = self._request("POST", "players", payload={
            "session_id": session_id,
            "codename": codename,
        })
        return Player.from_row(rows[0])

    def get_player(self, player_id: str) -> Optional[Player]:
        rows = self._request("GET", "players", params={
            "select": self.PLAYER_COLUMNS,
            "id": f"eq.{player_id}",
        })
        return Player.from_row(rows[0]) if rows else None

    def list_players(self) -> list[Player]:
        rows = self._request("GET", "players", params={"select": self.PLAYER_COLUMNS})
        return [Player.from_row(row) for row in rows]

    def add_response(self, record: ResponseRecord) -> ResponseRecord:
        rows = self._request("POST", "responses", payload=record.to_row())
        return ResponseRecord.from_row(rows[0])

    def list_responses(
        self,
        player_id: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> list[ResponseRecord]:
        params = {"select": "*", "order": "submitted_at.desc"}
        if player_id is not None:
            params["player_id"] = f"eq.{player_id}"
        if since is not None:
            params["submitted_at"] = f"gte.{since.isoformat()}"
        rows = self._request("GET", "responses", params=params)
        return [ResponseRecord.from_row(row) for row in rows]

    def list_response_pairs(self) -> list[tuple[str, str]]:
        rows = self._request("GET", "responses", params={"select": "tool_id,scenario_id"})
        return [(row["tool_id"], row["scenario_id"]) for row in rows]


def create_store() -> ResponseStore:
    """Supabase when configured, in-memory otherwise."""
    if Config.SUPABASE_URL and Config.SUPABASE_KEY:
        return SupabaseResponseStore(Config.SUPABASE_URL, Config.SUPABASE_KEY)

    print("[STORE] Supabase not configured - using in-memory store", flush=True)
    return InMemoryResponseStore()
