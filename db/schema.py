from __future__ import annotations

import sqlite3


def bootstrap(conn: sqlite3.Connection) -> None:
    """Create session and lead tables plus indexes (idempotent)."""
    cur = conn.cursor()

    # One row per session key: at most one live session per key
    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS external_sessions (\n"
            "  session_key TEXT PRIMARY KEY,\n"
            "  artifacts_json TEXT NOT NULL,\n"
            "  expires_at TEXT NOT NULL,\n"
            "  last_used_at TEXT,\n"
            "  created_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )

    cur.execute(
        (
            "CREATE TABLE IF NOT EXISTS leads (\n"
            "  id INTEGER PRIMARY KEY AUTOINCREMENT,\n"
            "  name TEXT,\n"
            "  first_name TEXT,\n"
            "  last_name TEXT,\n"
            "  email TEXT,\n"
            "  phone TEXT,\n"
            "  title TEXT,\n"
            "  company TEXT,\n"
            "  company_domain TEXT,\n"
            "  company_website TEXT,\n"
            "  company_size TEXT,\n"
            "  company_industry TEXT,\n"
            "  company_founded_year INTEGER,\n"
            "  company_phone TEXT,\n"
            "  company_linkedin TEXT,\n"
            "  city TEXT,\n"
            "  state TEXT,\n"
            "  country TEXT,\n"
            "  linkedin_url TEXT UNIQUE,\n"
            "  twitter_url TEXT,\n"
            "  facebook_url TEXT,\n"
            "  status TEXT NOT NULL DEFAULT 'new',\n"
            "  score INTEGER NOT NULL DEFAULT 0,\n"
            "  source_name TEXT,\n"
            "  created_at TEXT NOT NULL DEFAULT (datetime('now')),\n"
            "  updated_at TEXT NOT NULL DEFAULT (datetime('now'))\n"
            ")"
        )
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_leads_email ON leads(email);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_leads_company_domain ON leads(company_domain);")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_leads_last_first ON leads(last_name, first_name);")

    conn.commit()
