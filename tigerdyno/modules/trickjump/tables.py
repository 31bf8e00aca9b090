"""Tables owned by the trickjump module."""

TABLES = {
    "trickjump_guilds": """
        CREATE TABLE IF NOT EXISTS trickjump_guilds (
            server TEXT PRIMARY KEY,
            jumprole_channel TEXT NOT NULL
        )
    """,
    "trickjump_tiers": """
        CREATE TABLE IF NOT EXISTS trickjump_tiers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            ordinal INTEGER NOT NULL,
            server TEXT NOT NULL,
            UNIQUE (name, server),
            UNIQUE (ordinal, server)
        )
    """,
    "trickjump_jumps": """
        CREATE TABLE IF NOT EXISTS trickjump_jumps (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            kingdom TEXT,
            location TEXT,
            jump_type TEXT,
            link TEXT,
            description TEXT NOT NULL,
            tier_id INTEGER NOT NULL REFERENCES trickjump_tiers (id),
            added_by TEXT NOT NULL,
            server TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            UNIQUE (name, server)
        )
    """,
}

GET_SERVER_JUMPROLE_CHANNEL = "SELECT jumprole_channel FROM trickjump_guilds WHERE server = ?"
UPSERT_SERVER_JUMPROLE_CHANNEL = """
    INSERT INTO trickjump_guilds (server, jumprole_channel) VALUES (?, ?)
    ON CONFLICT (server) DO UPDATE SET jumprole_channel = excluded.jumprole_channel
"""
