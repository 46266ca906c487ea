"""Create the QR attendance tables, optionally with demo data.

    python scripts/init_db.py           # schema only
    python scripts/init_db.py --seed    # schema + demo event/employees
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.qr_attendance.qr_attendance.database.bootstrap import apply_schema, list_tables, seed_demo_data

REQUIRED_TABLES = (
    "events",
    "employees",
    "scan_tokens",
    "attendance_sessions",
    "leave_requests",
    "notifications",
    "audit_logs",
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", action="store_true", help="also insert the demo event and employees")
    args = parser.parse_args(argv)

    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)
    target = f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    if args.seed:
        seed_demo_data(db_config)

    tables = set(list_tables(db_config))
    missing = [t for t in REQUIRED_TABLES if t not in tables]
    if missing:
        print(f"FAILED: {target} is missing tables: {', '.join(missing)}")
        return 1

    print(f"OK: {target} has all {len(REQUIRED_TABLES)} QR attendance tables" + (" (demo data seeded)" if args.seed else ""))
    return 0


if __name__ == "__main__":
    sys.exit(main())
