# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Only PAGE_SIZE and DB_PATH are read from here; everything else comes from env.
"""

# Example: phone-sized list pages
# PAGE_SIZE = 9

# Example: keep the database somewhere else
# from pathlib import Path
# DB_PATH = Path("~/taskboard/tasks.sqlite3").expanduser()
