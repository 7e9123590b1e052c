#!/usr/bin/env python3
"""
Migrate a JSON-file store into a SQLite store.

Usage:
    python scripts/migrate_json_to_db.py --json data/afgjobs.json --db data/afgjobs.db
"""

import argparse
from pathlib import Path
import sys

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from afgjobs.repository import JsonFileRepository, SQLiteRepository, RepositoryError, copy_repository
from afgjobs.storage import JOBS_KEY, parse_job_list


def migrate(json_path: Path, db_path: Path, dry_run: bool = False, overwrite: bool = False) -> bool:
    """
    Copy every key of a JSON-file store into a SQLite store.

    Args:
        json_path: Path to JSON store file
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database
        overwrite: Replace keys that already exist in the database
    """
    source = JsonFileRepository(json_path, quota_chars=None)
    keys = source.keys()
    print(f"Found {len(keys)} keys in {json_path}")

    jobs, error = parse_job_list(source.get(JOBS_KEY))
    if jobs is not None:
        print(f"  {JOBS_KEY}: {len(jobs)} jobs")
    else:
        print(f"  {JOBS_KEY}: not migrated as jobs ({error})")

    if dry_run:
        print("\n[DRY RUN] Would copy the following keys:")
        for key in keys:
            print(f"  - {key}")
        return True

    print(f"\nInitializing database at {db_path}...")
    try:
        target = SQLiteRepository(db_path, quota_chars=None)
        counts = copy_repository(source, target, overwrite=overwrite)
    except RepositoryError as e:
        print(f"❌ Migration failed: {e}")
        return False

    print(f"\n✅ Migration complete!")
    print(f"   Copied:  {counts['copied']}")
    print(f"   Skipped: {counts['skipped']}")
    return True


def main():
    parser = argparse.ArgumentParser(description="Migrate a JSON-file store to SQLite")
    parser.add_argument("--json", type=Path, default=Path("data/afgjobs.json"),
                       help="Path to JSON store file")
    parser.add_argument("--db", type=Path, default=Path("data/afgjobs.db"),
                       help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                       help="Show what would be migrated without writing")
    parser.add_argument("--overwrite", action="store_true",
                       help="Replace keys that already exist in the database")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    if not migrate(args.json, args.db, dry_run=args.dry_run, overwrite=args.overwrite):
        sys.exit(1)


if __name__ == "__main__":
    main()
