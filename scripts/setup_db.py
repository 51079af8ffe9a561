#!/usr/bin/env python3
"""Create the alert_state table in PostgreSQL.

Needed only for STORAGE_BACKEND=postgres.

Usage:
    python scripts/setup_db.py [--list]
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from smart_alerts.infrastructure.database import (
    MIGRATIONS_DIR,
    apply_migrations,
    close_pool,
)


async def main():
    parser = argparse.ArgumentParser(description='Apply alert storage migrations')
    parser.add_argument('--list', action='store_true', help='List migration files and exit')
    args = parser.parse_args()

    if args.list:
        for migration in sorted(MIGRATIONS_DIR.glob('*.sql')):
            print(f'  {migration.stem}')
        return 0

    try:
        print('Connecting to PostgreSQL...')
        applied = await apply_migrations()
    except RuntimeError as e:
        print(f'Cannot set up database: {e}')
        return 1
    finally:
        await close_pool()

    if applied:
        for version in applied:
            print(f'Applied {version}')
    else:
        print('Database is up to date.')
    return 0


if __name__ == '__main__':
    sys.exit(asyncio.run(main()))
