#!/usr/bin/env python3
"""
UAS Ops KML Importer

Imports every usable polygon from one or more KML files straight into the
database, bypassing the API. Files are processed in order; a file that
fails does not stop the others.
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path for ``src`` imports
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.core.exceptions import DashboardError  # noqa: E402
from src.services import plots  # noqa: E402
from src.services.storage.database import close_db, init_db  # noqa: E402


async def import_files(paths: list[Path]) -> int:
    """Import each file and print a per-file summary.

    Returns:
        Exit code: 0 if every file imported at least one plot, else 1.
    """
    await init_db()
    failures = 0
    try:
        for path in paths:
            try:
                result = await plots.import_kml(path.read_text(encoding="utf-8-sig"))
            except (DashboardError, OSError) as exc:
                detail = getattr(exc, "detail", str(exc))
                print(f"  FAIL  {path.name}: {detail}")
                failures += 1
                continue
            print(f"  ADD   {path.name}: {result.imported} plot(s) ({', '.join(result.names)})")
    finally:
        await close_db()

    print(f"\nDone: {len(paths) - failures} imported, {failures} failed.")
    return 1 if failures else 0


def main() -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(description="Import field plots from KML files.")
    parser.add_argument("files", nargs="+", type=Path, help="KML files to import")
    args = parser.parse_args()

    print("UAS Ops KML Importer\n")
    return asyncio.run(import_files(args.files))


if __name__ == "__main__":
    sys.exit(main())
