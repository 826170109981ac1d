import os


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "attendance_engine.config.production"

    if env in {"test", "testing"}:
        return "attendance_engine.config.testing"

    return "attendance_engine.config.development"
