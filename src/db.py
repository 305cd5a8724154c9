from __future__ import annotations

from contextlib import contextmanager
from typing import Optional

import psycopg
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from .config import PostgresConfig


def get_engine(cfg: Optional[PostgresConfig] = None) -> Engine:
    cfg = cfg or PostgresConfig()
    return create_engine(cfg.sqlalchemy_url(), future=True, pool_pre_ping=True)


@contextmanager
def get_conn(cfg: Optional[PostgresConfig] = None):
    cfg = cfg or PostgresConfig()
    conn = psycopg.connect(cfg.dsn())
    try:
        conn.execute("SET TIME ZONE 'UTC';", prepare=False)
        yield conn
    finally:
        conn.close()
