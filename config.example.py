# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "POMO_APP_NAME": "App display name (default: pomotodo).",
    "POMO_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "POMO_DATA_DIR": "Local data directory for the database and pomotodo.log (default: .local/pomotodo).",
    # Database
    "POMO_DB_NAME": "Database name; the file is <data_dir>/<name>.sqlite3 (default: Pomodoro1).",
    "POMO_DB_VERSION": "Expected schema version; empty accepts any (default: 1.0).",
    "POMO_DB_DISPLAY_NAME": "Human-readable database name (default: Pomodoro BBM).",
    "POMO_DB_SIZE_BYTES": "Storage quota in bytes (default: 2097152, i.e. 2 MiB).",
    # Timer
    "POMO_POMODORO_MINUTES": "Length of one pomodoro in minutes (default: 45).",
    "POMO_TICK_SECONDS": (
        "Wall-clock seconds between ticks; each tick counts one second (default: 1.0). "
        "Lower it to fast-forward a session in demos."
    ),
}
