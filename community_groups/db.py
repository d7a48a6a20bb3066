import json
import sqlite3 as sql
from pathlib import Path
from typing import Any, Optional

from .checkpoint import TrackResult, parse_track_result
from .errors import ResumeMismatchError

def truncate_track_results(conn: sql.Connection) -> None:
  """Truncate the track results tables."""
  conn.execute("DROP TABLE IF EXISTS track_results")
  conn.execute("DROP TABLE IF EXISTS community")
  create_tables(conn)

def create_tables(conn: sql.Connection) -> None:
  conn.execute("""CREATE TABLE IF NOT EXISTS track_results (
    track TEXT PRIMARY KEY,
    score REAL,
    result TEXT,
    community TEXT
  )""")
  conn.execute("""CREATE TABLE IF NOT EXISTS community (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    key TEXT,
    value TEXT,
    CONSTRAINT community_key_unique UNIQUE (key)
  )""")
  conn.commit()

def upsert_track_result(conn: sql.Connection, result: TrackResult, community: dict[str, Any]) -> None:
  conn.execute(
    """INSERT INTO track_results (track, score, result, community) VALUES (?, ?, ?, ?)
    ON CONFLICT(track) DO UPDATE
    SET score = excluded.score, result = excluded.result, community = excluded.community""",
    (result.track, result.score.score, json.dumps(result.to_dict(), ensure_ascii=False), json.dumps(community)),
  )

def insert_community(conn: sql.Connection, community: dict[str, Any]) -> None:
  conn.executemany(
    """INSERT INTO community (key, value) VALUES (?, ?)
    ON CONFLICT(key) DO UPDATE
    SET value = excluded.value""",
    [(key, json.dumps(value)) for key, value in community.items()],
  )

def decode_track_result(track: str, result: str) -> TrackResult:
  try:
    data = json.loads(result)
  except (TypeError, ValueError) as e:
    raise ResumeMismatchError(track, f"the stored result is not valid JSON ({e})")
  return parse_track_result(track, data, "the database")

def fetch_track_result(conn: sql.Connection, track: str) -> Optional[TrackResult]:
  row = conn.execute("SELECT result FROM track_results WHERE track = ?", (track,)).fetchone()
  return decode_track_result(track, row[0]) if row else None

def fetch_track_results(conn: sql.Connection) -> dict[str, TrackResult]:
  rows = conn.execute("SELECT track, result FROM track_results ORDER BY track").fetchall()
  return {track: decode_track_result(track, result) for track, result in rows}

def load_community(conn: sql.Connection) -> dict[str, Any]:
  return {row[0]: json.loads(row[1]) for row in conn.execute("SELECT key, value FROM community").fetchall()}

class SqliteCheckpointStore:
  """Keeps the best result of every track in a sqlite database, one row per track."""

  def __init__(self, path: Path):
    self.path = Path(path)

  def _connect(self) -> sql.Connection:
    conn = sql.connect(self.path)
    create_tables(conn)
    return conn

  def load(self, track_name: str) -> Optional[TrackResult]:
    conn = self._connect()
    try:
      return fetch_track_result(conn, track_name)
    finally:
      conn.close()

  def load_all(self) -> dict[str, TrackResult]:
    conn = self._connect()
    try:
      return fetch_track_results(conn)
    finally:
      conn.close()

  def reset(self) -> None:
    conn = self._connect()
    try:
      truncate_track_results(conn)
    finally:
      conn.close()

  def save(self, result: TrackResult, community: dict[str, Any]) -> None:
    conn = self._connect()
    try:
      # Both writes land in the same transaction, or none does
      with conn:
        upsert_track_result(conn, result, community)
        insert_community(conn, community)
    finally:
      conn.close()
