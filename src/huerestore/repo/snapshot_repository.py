import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, Optional

from huerestore.errors import StorageError
from huerestore.models.light import LightIdentity, LightMetadata, LightSnapshot, LightState

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS light (
  light_id INTEGER PRIMARY KEY,
  uniqueid TEXT NOT NULL UNIQUE,
  modelid TEXT NOT NULL,
  type TEXT NOT NULL,
  time TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS meta (
  meta_id INTEGER PRIMARY KEY,
  light_id INTEGER NOT NULL REFERENCES light(light_id),
  id INTEGER NOT NULL,
  name TEXT NOT NULL,
  swversion TEXT NOT NULL,
  time TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS state (
  state_id INTEGER PRIMARY KEY,
  light_id INTEGER NOT NULL REFERENCES light(light_id),
  reachable INTEGER NOT NULL,
  "on" INTEGER NOT NULL,
  colormode TEXT,
  ct INTEGER,
  x REAL,
  y REAL,
  hue INTEGER,
  sat INTEGER,
  bri INTEGER,
  effect TEXT,
  alert TEXT,
  time TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_meta_light ON meta(light_id, meta_id DESC);
CREATE INDEX IF NOT EXISTS idx_state_light ON state(light_id, state_id DESC);

-- Rows are append-only, so the highest row id per light is the latest one
CREATE VIEW IF NOT EXISTS latest_meta AS
SELECT light.uniqueid, meta.*
FROM light JOIN meta ON meta.light_id = light.light_id
WHERE meta.meta_id = (SELECT MAX(m.meta_id) FROM meta m WHERE m.light_id = light.light_id);

CREATE VIEW IF NOT EXISTS latest_state AS
SELECT light.uniqueid, state.*
FROM light JOIN state ON state.light_id = light.light_id
WHERE state.state_id = (SELECT MAX(s.state_id) FROM state s WHERE s.light_id = light.light_id);
"""


def _time(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


class SnapshotRepository:
    """Append-only history of light identities, metadata and states in SQLite."""

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self.conn.row_factory = sqlite3.Row

    @classmethod
    def open(cls, path: Path) -> "SnapshotRepository":
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Unable to create directory {path.parent}: {e}") from e

        try:
            # Transactions are handled explicitly in transaction()
            conn = sqlite3.connect(path, isolation_level=None)
            conn.execute("PRAGMA foreign_keys=ON;")
            conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise StorageError(f"Unable to open or create the database file {path}: {e}") from e
        return cls(conn)

    def close(self) -> None:
        self.conn.close()

    @contextmanager
    def transaction(self) -> Iterator["SnapshotRepository"]:
        self.conn.execute("BEGIN")
        try:
            yield self
        except BaseException:
            self.conn.execute("ROLLBACK")
            raise
        self.conn.execute("COMMIT")

    def insert_identity(self, identity: LightIdentity, observed_at: Optional[datetime] = None) -> int:
        observed_at = observed_at or datetime.now(timezone.utc)
        cur = self.conn.execute(
            "INSERT INTO light (uniqueid, modelid, type, time) VALUES (?, ?, ?, ?)",
            (identity.uniqueid, identity.modelid, identity.type, _time(observed_at)),
        )
        logger.info('New light: uniqueid="%s" modelid="%s" type="%s"', identity.uniqueid, identity.modelid, identity.type)
        return cur.lastrowid

    def insert_metadata(self, row_id: int, metadata: LightMetadata) -> None:
        self.conn.execute(
            "INSERT INTO meta (light_id, id, name, swversion, time) VALUES (?, ?, ?, ?, ?)",
            (row_id, metadata.index, metadata.name, metadata.swversion, _time(metadata.observed_at)),
        )
        logger.info(
            'New meta: light_id=%d id=%d name="%s" swversion="%s"',
            row_id, metadata.index, metadata.name, metadata.swversion,
        )

    def insert_state(self, row_id: int, state: LightState) -> None:
        self.conn.execute(
            """
            INSERT INTO state (light_id, reachable, "on", colormode, ct, x, y, hue, sat, bri, effect, alert, time)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                row_id,
                int(state.reachable),
                int(state.on),
                state.colormode,
                state.ct,
                state.x,
                state.y,
                state.hue,
                state.sat,
                state.bri,
                state.effect,
                state.alert,
                _time(state.observed_at),
            ),
        )
        logger.info("New state: light_id=%d reachable=%s %s", row_id, str(state.reachable).lower(), state.describe())

    def get_all_latest(self) -> dict[str, LightSnapshot]:
        """Latest identity, metadata and state per light, keyed by uniqueid.

        Lights without a recorded metadata or state row are left out.
        """
        metas = {row["uniqueid"]: row for row in self.conn.execute("SELECT * FROM latest_meta")}
        states = {row["uniqueid"]: row for row in self.conn.execute("SELECT * FROM latest_state")}

        snapshots: dict[str, LightSnapshot] = {}
        for row in self.conn.execute("SELECT light_id, uniqueid, modelid, type FROM light"):
            uniqueid = row["uniqueid"]
            meta, state = metas.get(uniqueid), states.get(uniqueid)
            if meta is None or state is None:
                logger.warning('Light uniqueid="%s" has no recorded metadata or state', uniqueid)
                continue

            snapshots[uniqueid] = LightSnapshot(
                row_id=row["light_id"],
                identity=LightIdentity(uniqueid=uniqueid, modelid=row["modelid"], type=row["type"]),
                metadata=LightMetadata(
                    index=meta["id"],
                    name=meta["name"],
                    swversion=meta["swversion"],
                    observed_at=datetime.fromisoformat(meta["time"]),
                ),
                state=LightState(
                    reachable=bool(state["reachable"]),
                    on=bool(state["on"]),
                    colormode=state["colormode"],
                    ct=state["ct"],
                    x=state["x"],
                    y=state["y"],
                    hue=state["hue"],
                    sat=state["sat"],
                    bri=state["bri"],
                    effect=state["effect"],
                    alert=state["alert"],
                    observed_at=datetime.fromisoformat(state["time"]),
                ),
            )
        return snapshots

    def count_rows(self, table: str) -> int:
        """Number of rows in one history table; used for inspection and in tests."""
        if table not in ("light", "meta", "state"):
            raise ValueError(f"unknown table {table!r}")
        return self.conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
