"""Apply migrations/*.sql to the SQLite database the app is configured for.

The target comes from `settings.DATABASE_URL`, so the runner and the
application always agree on the file. Usage:
    python run_migrations.py [--db PATH]
"""
from pathlib import Path
import argparse
import sqlite3
from typing import List, Optional

from sqlalchemy.engine import make_url

from roster.config import settings

BASE = Path(__file__).parent
MIGRATIONS_DIR = BASE / "migrations"


def sqlite_path(database_url: str) -> Path:
    """Return the file behind a `sqlite:///...` URL.

    Raises ValueError for other backends and for in-memory databases,
    which SQL files cannot usefully be applied to.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        raise ValueError(f"migrations only target SQLite, got {url.get_backend_name()}")
    if not url.database or url.database == ":memory:":
        raise ValueError("cannot migrate an in-memory SQLite database")
    return Path(url.database)


def run(db_path: Optional[Path] = None, migrations_dir: Path = MIGRATIONS_DIR) -> List[str]:
    """Execute every SQL file in `migrations_dir` in lexical order.

    Statements use `IF NOT EXISTS`, so re-running is harmless. Returns
    the names of the applied files.
    """
    db_path = db_path or sqlite_path(settings.DATABASE_URL)
    applied = []
    print("Using database:", db_path)
    conn = sqlite3.connect(db_path)
    try:
        for m in sorted(migrations_dir.glob("*.sql")):
            print("Applying:", m.name)
            conn.executescript(m.read_text(encoding="utf-8"))
            applied.append(m.name)
        conn.commit()
    finally:
        conn.close()
    print("Migrations applied.")
    return applied

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--db', type=Path, help='SQLite file to migrate instead of DATABASE_URL')
    args = parser.parse_args()
    run(args.db)
