#!/usr/bin/env python
"""
Table numbering / judge rotation from the command line.

Usage:
    # Renumber every project 0..n-1 in current table order
    python scripts/reassign_tables.py --in-order

    # Renumber into the configured judging groups
    python scripts/reassign_tables.py --by-group

    # Move every judge to their next group
    python scripts/reassign_tables.py --rotate-judges

Environment:
    DATABASE_URL: database connection string
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.jury.db import DataAccessError
from app.jury.modules.judges.service import increment_judge_group_num
from app.jury.modules.options.service import GroupConfigError
from app.jury.modules.projects.service import reassign_nums_by_group, reassign_nums_in_order
from scripts._db_utils import script_session


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Renumber project tables or rotate judge groups.")
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--in-order", action="store_true", help="renumber tables sequentially from 0")
    action.add_argument("--by-group", action="store_true", help="renumber tables into judging groups")
    action.add_argument("--rotate-judges", action="store_true", help="advance every judge to the next group")
    parser.add_argument("--database-url", default=None, help="defaults to $DATABASE_URL")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    db_url = (args.database_url or os.environ.get("DATABASE_URL") or "sqlite:///jury.db").strip()

    try:
        with script_session(db_url) as s:
            if args.in_order:
                count = reassign_nums_in_order(s)
                print(f"Renumbered {count} projects in order.")
            elif args.by_group:
                count = reassign_nums_by_group(s)
                print(f"Renumbered {count} projects by group.")
            else:
                switches = increment_judge_group_num(s)
                print(f"Rotated judge groups (manual switches: {switches}).")
    except GroupConfigError as e:
        print(f"ERROR: invalid group configuration: {e}", file=sys.stderr)
        return 2
    except DataAccessError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
