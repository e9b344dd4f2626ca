import os
import secrets
import sqlite3
from datetime import datetime, timedelta

# Configurable defaults via environment variables
DATABASE_PATH = os.environ.get("MOCK_DATABASE_PATH", "/tmp/mymobile_mock_gateway.db")
TOKEN_TTL_MINUTES = int(os.environ.get("MOCK_TOKEN_TTL_MINUTES", "20"))


def init_db(database_path=DATABASE_PATH):
    conn = sqlite3.connect(database_path)
    cursor = conn.cursor()

    # Enable Write-Ahead Logging for better concurrency
    cursor.execute("PRAGMA journal_mode=WAL;")

    cursor.execute('''CREATE TABLE IF NOT EXISTS tokens
                 (id INTEGER PRIMARY KEY,
                    token TEXT NOT NULL UNIQUE,
                    client_id TEXT NOT NULL,
                    expire_time TEXT NOT NULL)''')
    conn.commit()
    conn.close()


def issue_token(client_id, database_path=DATABASE_PATH, ttl_minutes=TOKEN_TTL_MINUTES):
    # generates a bearer token for a client and stores it
    # in the token db
    token = secrets.token_urlsafe(32)
    conn = sqlite3.connect(database_path)
    cursor = conn.cursor()
    expiretime = datetime.now() + timedelta(minutes=ttl_minutes)
    cursor.execute('INSERT INTO tokens (token, client_id, expire_time) VALUES (?, ?, ?)',
                   (token, client_id, expiretime.isoformat()))
    conn.commit()
    conn.close()
    return token


def get_client_for_token(token, database_path=DATABASE_PATH):
    """Return the client ID a token was issued to, or None if the token is
    unknown or expired"""
    conn = sqlite3.connect(database_path)
    cursor = conn.cursor()

    cursor.execute(
            'SELECT client_id, expire_time FROM tokens WHERE token = ?',
            (token,))
    result = cursor.fetchone()
    conn.close()

    if not result:
        return None

    client_id, expire_time_str = result
    expire_time = datetime.fromisoformat(expire_time_str)

    if datetime.now() >= expire_time:
        # Token has expired
        return None

    return client_id


def clean_expired_tokens(database_path=DATABASE_PATH):
    """Remove expired tokens from the database"""
    conn = sqlite3.connect(database_path)
    cursor = conn.cursor()

    current_time = datetime.now().isoformat()
    cursor.execute('DELETE FROM tokens WHERE expire_time < ?',
                   (current_time,))

    conn.commit()
    conn.close()
