import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from flask import current_app, g

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS companies (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        legal_name TEXT,
        tax_code TEXT NOT NULL UNIQUE,
        code TEXT UNIQUE,
        email TEXT,
        address TEXT NOT NULL,
        contact_phone TEXT,
        logo_url TEXT,
        status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'accepted', 'rejected')),
        reviewed_by_user_id INTEGER,
        review_note TEXT,
        reviewed_at REAL,
        created_at REAL NOT NULL,
        updated_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        full_name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        account_type TEXT NOT NULL DEFAULT 'candidate' CHECK (account_type IN ('candidate', 'company', 'admin')),
        bio TEXT DEFAULT '',
        address TEXT,
        avatar_url TEXT,
        company_id INTEGER REFERENCES companies(id),
        created_at REAL NOT NULL,
        updated_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS cvs (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        name TEXT,
        file_url TEXT NOT NULL,
        text_url TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS posts (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        company_id INTEGER REFERENCES companies(id),
        post_type TEXT NOT NULL CHECK (post_type IN ('find_job', 'find_candidate')),
        title TEXT NOT NULL,
        description TEXT,
        attached_cv_id INTEGER REFERENCES cvs(id) ON DELETE SET NULL,
        start_at REAL,
        end_at REAL,
        created_at REAL NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS applications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        post_id INTEGER NOT NULL REFERENCES posts(id) ON DELETE CASCADE,
        cv_id INTEGER REFERENCES cvs(id) ON DELETE SET NULL,
        applicant_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'reviewed', 'accepted', 'rejected')),
        created_at REAL NOT NULL,
        UNIQUE (post_id, applicant_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS follows (
        follower_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        following_id INTEGER NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        created_at REAL NOT NULL,
        PRIMARY KEY (follower_id, following_id)
    )
    """,
    'CREATE INDEX IF NOT EXISTS idx_posts_created ON posts(created_at)',
    'CREATE INDEX IF NOT EXISTS idx_cvs_user ON cvs(user_id)',
)

BOOL_COLUMNS = frozenset({'is_active', 'is_expired', 'is_following_author'})


def connect(path: Path) -> sqlite3.Connection:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    con = sqlite3.connect(str(path))
    con.row_factory = sqlite3.Row
    con.execute('PRAGMA foreign_keys = ON')
    return con


def connect_readonly(path: Path) -> sqlite3.Connection:
    con = sqlite3.connect(f'file:{Path(path).as_posix()}?mode=ro', uri=True)
    con.row_factory = sqlite3.Row
    return con


def init_db(path: Path):
    con = connect(path)
    try:
        for stmt in SCHEMA:
            con.execute(stmt)
        con.commit()
    finally:
        con.close()


def db() -> sqlite3.Connection:
    """Connection for the current request, opened on first use."""
    if 'db' not in g:
        g.db = connect(current_app.config['JOBOOK_SETTINGS'].db_path)
    return g.db


def close_db(_exc=None):
    con = g.pop('db', None)
    if con is not None:
        con.close()


def row_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    if row is None:
        return None
    out = dict(row)
    for key in BOOL_COLUMNS & out.keys():
        if out[key] is not None:
            out[key] = bool(out[key])
    return out


def rows_dicts(rows: Iterable[sqlite3.Row]) -> List[Dict[str, Any]]:
    return [row_dict(r) for r in rows]


Params = Union[Sequence[Any], Mapping[str, Any]]


def _params(params: Params):
    # named (:name) placeholders take a mapping as is
    return params if isinstance(params, Mapping) else tuple(params)


def fetch_one(sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
    return db().execute(sql, _params(params)).fetchone()


def fetch_all(sql: str, params: Params = ()) -> List[sqlite3.Row]:
    return db().execute(sql, _params(params)).fetchall()


def execute(sql: str, params: Params = ()) -> sqlite3.Cursor:
    con = db()
    cur = con.execute(sql, _params(params))
    con.commit()
    return cur
