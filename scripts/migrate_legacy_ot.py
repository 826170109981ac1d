from __future__ import annotations

import logging

from attendance_engine.container import build_container
from attendance_engine.main import load_settings
from attendance_engine.overtime.migration import migrate_legacy_ot


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
    container = build_container(settings=load_settings())
    summary = migrate_legacy_ot(container.conn)
    print(f"OK: migrated={summary.processed} skipped={summary.skipped} scanned={summary.scanned}")


if __name__ == "__main__":
    main()
