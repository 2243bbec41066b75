# config.example.py

"""
Documentation-only module (safe to commit).

Configuration is read from environment variables, optionally through a
local .env file loaded by python-dotenv. Local overrides that should not be
committed go into config_local.py (see config_local.example.py).
"""

ENV_VARS = {
    # App / logging
    "TASKBOARD_APP_NAME": "App display name (default: taskboard).",
    "TASKBOARD_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "TASKBOARD_CONSOLE_ENABLED": "Run the console REPL (true/false, default: true).",
    # Paths (gitignored)
    "TASKBOARD_DATA_DIR": "Local data directory, also holds taskboard.log (default: .local/taskboard).",
    "TASKBOARD_DB_PATH": "SQLite database with tasks, history and users (default: <data_dir>/tasks.sqlite3).",
    # List / feed tuning
    "TASKBOARD_PAGE_SIZE": "Tasks shown per page of the list; /more adds another page (default: 50, mobile lists use 9).",
    "TASKBOARD_LATEST_CHANGES_LIMIT": "Entries shown by /changes (default: 15).",
}
