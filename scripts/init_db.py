from __future__ import annotations

from pathlib import Path

from attendance_engine.container import build_container
from attendance_engine.database.bootstrap import apply_schema, list_tables
from attendance_engine.main import load_settings


def main() -> None:
    settings = load_settings()
    container = build_container(settings=settings)
    db_config = dict(settings.DB_CONFIG)

    schema_path = Path(__file__).resolve().parents[1] / "database" / "schema.sql"
    apply_schema(container.conn, schema_path=schema_path)
    tables = list_tables(container.conn)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
