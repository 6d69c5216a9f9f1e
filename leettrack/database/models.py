"""SQLite database schema and initialization."""

from __future__ import annotations

import aiosqlite

SCHEMA = """
CREATE TABLE IF NOT EXISTS friends (
    handle TEXT PRIMARY KEY,
    display_name TEXT NOT NULL DEFAULT '',
    avatar TEXT DEFAULT '',
    has_stats INTEGER DEFAULT 0,
    total_solved INTEGER DEFAULT 0,
    easy_solved INTEGER DEFAULT 0,
    medium_solved INTEGER DEFAULT 0,
    hard_solved INTEGER DEFAULT 0,
    ranking INTEGER DEFAULT 0,
    contest_rating INTEGER DEFAULT 0,
    streak INTEGER DEFAULT 0,
    recent_submissions TEXT DEFAULT '[]',
    scraping_status TEXT DEFAULT 'pending',
    last_scraped_at TEXT,
    last_error TEXT,
    scraping_errors TEXT DEFAULT '[]',
    is_active INTEGER DEFAULT 1,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS sweeps (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    started_at TEXT NOT NULL,
    finished_at TEXT,
    total INTEGER DEFAULT 0,
    succeeded INTEGER DEFAULT 0,
    not_found INTEGER DEFAULT 0,
    failed INTEGER DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_friends_active ON friends(is_active);
CREATE INDEX IF NOT EXISTS idx_friends_scraped ON friends(last_scraped_at);
"""


async def initialize_db(db: aiosqlite.Connection):
    """Create tables and indexes if they don't exist."""
    await db.executescript(SCHEMA)
    await db.commit()
