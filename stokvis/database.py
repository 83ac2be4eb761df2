"""aiosqlite database setup and the hunt store: teams, routes, stops, runs and progress."""
import logging
import secrets
import string
import uuid
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from stokvis.config import settings
from stokvis.models.credential import parse_credential
from stokvis.models.hunt import Progress, RouteView, StopCredential

logger = logging.getLogger(__name__)

_db: aiosqlite.Connection | None = None

_JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits
_TEAM_NAME_MAX = 80

DEMO_ROUTE_TITLE = "demo-route"

# (order_index, title, lat, lon, radius_m, qr_code, puzzle, credential, hint, hint_penalty)
DEMO_STOPS = [
    (1, "De Waag", 52.255918, 6.160769, 40, "stokvis://stop/waag",
     "Hoe heet dit historische gebouw?", "plain:de waag", "Kijk naar de gevelsteen.", 10),
    (2, "Lebuinuskerk", 52.255058, 6.160061, 40, "stokvis://stop/lebuinus",
     "Welke heilige hoort bij deze kerk?", "plain:lebuinus", "Zoek naar een plaquette.", 10),
    (3, "Brink", 52.255749, 6.161822, 40, "stokvis://stop/brink",
     "Noem het plein waar je staat.", "plain:de brink", "Het plein is beroemd om de markt.", 10),
    (4, "Bergkerk", 52.254028, 6.162908, 40, "stokvis://stop/bergkerk",
     "Wat is de hoogte in letters (kerk op de ___)?", "plain:berg", "Denk aan de straatnaam.", 10),
    (5, "IJsselboulevard", 52.252646, 6.165752, 50, "stokvis://stop/ijssel",
     "Welke rivier zie je?", "plain:ijssel", "Grote rivier oost NL.", 10),
    (6, "Bier & Spijs", 52.255600, 6.162700, 30, "stokvis://stop/pils",
     "Bestel een lokale speciaalbier: welk biermerk (naam) noem je?", "plain:deventer koekbier",
     "Vraag het aan de bar. ;)", 10),
]


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_id() -> str:
    return str(uuid.uuid4())


async def connect(database_url: str) -> aiosqlite.Connection:
    db = await aiosqlite.connect(database_url)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA foreign_keys = ON")
    await create_tables(db)
    return db


async def get_db() -> aiosqlite.Connection:
    global _db
    if _db is None:
        _db = await connect(settings.database_url)
    return _db


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None


async def create_tables(db: aiosqlite.Connection) -> None:
    await db.execute("""
        CREATE TABLE IF NOT EXISTS teams (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            join_code TEXT UNIQUE NOT NULL,
            created_at TEXT NOT NULL
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS players (
            id TEXT PRIMARY KEY,
            team_id TEXT REFERENCES teams(id) ON DELETE CASCADE,
            display_name TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS routes (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            city TEXT,
            is_published INTEGER NOT NULL DEFAULT 0
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS stops (
            id TEXT PRIMARY KEY,
            route_id TEXT REFERENCES routes(id) ON DELETE CASCADE,
            order_index INTEGER NOT NULL,
            title TEXT NOT NULL,
            lat REAL NOT NULL,
            lon REAL NOT NULL,
            radius_m INTEGER NOT NULL DEFAULT 40,
            qr_code TEXT UNIQUE NOT NULL,
            puzzle_markdown TEXT NOT NULL,
            answer_hash TEXT NOT NULL,
            hint_markdown TEXT,
            hint_penalty INTEGER NOT NULL DEFAULT 10
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS runs (
            id TEXT PRIMARY KEY,
            route_id TEXT REFERENCES routes(id) ON DELETE CASCADE,
            team_id TEXT REFERENCES teams(id) ON DELETE CASCADE,
            started_at TEXT NOT NULL,
            finished_at TEXT,
            total_penalty INTEGER NOT NULL DEFAULT 0
        )
    """)
    await db.execute("""
        CREATE TABLE IF NOT EXISTS progress (
            id TEXT PRIMARY KEY,
            team_id TEXT REFERENCES teams(id) ON DELETE CASCADE,
            stop_id TEXT REFERENCES stops(id) ON DELETE CASCADE,
            solved_at TEXT,
            used_hint INTEGER NOT NULL DEFAULT 0,
            UNIQUE(team_id, stop_id)
        )
    """)
    await db.execute("""
        CREATE INDEX IF NOT EXISTS idx_stops_route_id
        ON stops(route_id, order_index)
    """)
    await db.commit()


class HuntStore:
    """Data access for the hunt. Every write commits before returning."""

    def __init__(self, db: aiosqlite.Connection):
        self.db = db

    # ------------------------------------------------------------------
    # Reads used by the answer and hint flows
    # ------------------------------------------------------------------

    async def get_stop_credential(self, stop_id: str) -> Optional[StopCredential]:
        cursor = await self.db.execute(
            "SELECT id, answer_hash, hint_markdown, hint_penalty FROM stops WHERE id = ?",
            (stop_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return StopCredential(
            stop_id=row["id"],
            credential=parse_credential(row["answer_hash"]),
            hint_text=row["hint_markdown"],
            hint_penalty=row["hint_penalty"],
        )

    async def get_run_team(self, run_id: str) -> Optional[str]:
        cursor = await self.db.execute("SELECT team_id FROM runs WHERE id = ?", (run_id,))
        row = await cursor.fetchone()
        return row["team_id"] if row else None

    # ------------------------------------------------------------------
    # Progress upserts; UNIQUE(team_id, stop_id) keeps one row per pair
    # ------------------------------------------------------------------

    async def upsert_progress_solved(self, team_id: str, stop_id: str, now: str) -> None:
        await self.db.execute(
            """INSERT INTO progress (id, team_id, stop_id, solved_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT (team_id, stop_id) DO UPDATE SET solved_at = excluded.solved_at""",
            (_new_id(), team_id, stop_id, now),
        )
        await self.db.commit()

    async def upsert_progress_hint_used(self, team_id: str, stop_id: str) -> None:
        await self.db.execute(
            """INSERT INTO progress (id, team_id, stop_id, used_hint)
               VALUES (?, ?, ?, 1)
               ON CONFLICT (team_id, stop_id) DO UPDATE SET used_hint = 1""",
            (_new_id(), team_id, stop_id),
        )
        await self.db.commit()

    async def get_progress(self, team_id: str, stop_id: str) -> Optional[Progress]:
        cursor = await self.db.execute(
            "SELECT team_id, stop_id, solved_at, used_hint FROM progress WHERE team_id = ? AND stop_id = ?",
            (team_id, stop_id),
        )
        row = await cursor.fetchone()
        return _progress(row) if row else None

    async def list_run_progress(self, run_id: str) -> Optional[list[Progress]]:
        """Progress of the run's team on the run's route, in stop order. None for an unknown run."""
        cursor = await self.db.execute("SELECT team_id, route_id FROM runs WHERE id = ?", (run_id,))
        run = await cursor.fetchone()
        if run is None:
            return None
        cursor = await self.db.execute(
            """SELECT p.team_id, p.stop_id, p.solved_at, p.used_hint
               FROM progress p JOIN stops s ON s.id = p.stop_id
               WHERE p.team_id = ? AND s.route_id = ?
               ORDER BY s.order_index ASC""",
            (run["team_id"], run["route_id"]),
        )
        return [_progress(r) for r in await cursor.fetchall()]

    # ------------------------------------------------------------------
    # Teams, routes and runs
    # ------------------------------------------------------------------

    async def create_team(self, name: Optional[str] = None) -> dict:
        team = {
            "id": _new_id(),
            "name": (name or "Team")[:_TEAM_NAME_MAX],
            "join_code": "".join(secrets.choice(_JOIN_CODE_ALPHABET) for _ in range(6)),
            "created_at": utcnow(),
        }
        await self.db.execute(
            "INSERT INTO teams (id, name, join_code, created_at) VALUES (?, ?, ?, ?)",
            (team["id"], team["name"], team["join_code"], team["created_at"]),
        )
        await self.db.commit()
        return team

    async def find_route(self, ref: str) -> Optional[dict]:
        """Look up a route by id, title or city."""
        cursor = await self.db.execute(
            "SELECT id, title, city FROM routes WHERE id = ? OR title = ? OR city = ? LIMIT 1",
            (ref, ref, ref),
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def list_stops(self, route_id: str) -> list[dict]:
        cursor = await self.db.execute(
            """SELECT id, title, lat, lon, radius_m, order_index, qr_code, puzzle_markdown
               FROM stops WHERE route_id = ? ORDER BY order_index ASC""",
            (route_id,),
        )
        return [dict(r) for r in await cursor.fetchall()]

    async def get_route_view(self, ref: str) -> Optional[RouteView]:
        route = await self.find_route(ref)
        if route is None:
            return None
        stops = await self.list_stops(route["id"])
        return RouteView(id=route["id"], title=route["title"], city=route["city"], stops=stops)

    async def start_run(self, team_id: str, route_id: str) -> dict:
        run = {"id": _new_id(), "started_at": utcnow()}
        await self.db.execute(
            "INSERT INTO runs (id, route_id, team_id, started_at) VALUES (?, ?, ?, ?)",
            (run["id"], route_id, team_id, run["started_at"]),
        )
        await self.db.commit()
        return run

    async def finish_run(self, run_id: str) -> Optional[dict]:
        """Stamp finished_at and total the hint penalties the team took on this route."""
        await self.db.execute(
            """UPDATE runs SET finished_at = ?, total_penalty = (
                   SELECT COALESCE(SUM(s.hint_penalty), 0)
                   FROM progress p JOIN stops s ON s.id = p.stop_id
                   WHERE p.team_id = runs.team_id AND s.route_id = runs.route_id AND p.used_hint = 1
               )
               WHERE id = ?""",
            (utcnow(), run_id),
        )
        await self.db.commit()
        cursor = await self.db.execute(
            "SELECT id, finished_at, total_penalty FROM runs WHERE id = ?", (run_id,)
        )
        row = await cursor.fetchone()
        return dict(row) if row else None

    # ------------------------------------------------------------------
    # Authoring helpers
    # ------------------------------------------------------------------

    async def create_route(self, title: str, city: Optional[str] = None, is_published: bool = True) -> str:
        route_id = _new_id()
        await self.db.execute(
            "INSERT INTO routes (id, title, city, is_published) VALUES (?, ?, ?, ?)",
            (route_id, title, city, int(is_published)),
        )
        await self.db.commit()
        return route_id

    async def create_stop(
        self,
        route_id: str,
        order_index: int,
        title: str,
        lat: float,
        lon: float,
        qr_code: str,
        puzzle_markdown: str,
        answer_hash: str,
        hint_markdown: Optional[str] = None,
        hint_penalty: int = 10,
        radius_m: int = 40,
    ) -> str:
        stop_id = _new_id()
        await self.db.execute(
            """INSERT INTO stops
               (id, route_id, order_index, title, lat, lon, radius_m, qr_code,
                puzzle_markdown, answer_hash, hint_markdown, hint_penalty)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (stop_id, route_id, order_index, title, lat, lon, radius_m, qr_code,
             puzzle_markdown, answer_hash, hint_markdown, hint_penalty),
        )
        await self.db.commit()
        return stop_id

    async def seed_demo_route(self) -> Optional[str]:
        """Insert the Deventer demo route unless it already exists."""
        if await self.find_route(DEMO_ROUTE_TITLE) is not None:
            return None
        route_id = await self.create_route(DEMO_ROUTE_TITLE, city="Deventer")
        for order_index, title, lat, lon, radius_m, qr, puzzle, answer, hint, penalty in DEMO_STOPS:
            await self.create_stop(
                route_id, order_index, title, lat, lon, qr, puzzle, answer,
                hint_markdown=hint, hint_penalty=penalty, radius_m=radius_m,
            )
        logger.info("Seeded demo route %s with %d stops", route_id, len(DEMO_STOPS))
        return route_id


def _progress(row: aiosqlite.Row) -> Progress:
    return Progress(
        team_id=row["team_id"],
        stop_id=row["stop_id"],
        solved_at=row["solved_at"],
        used_hint=bool(row["used_hint"]),
    )
