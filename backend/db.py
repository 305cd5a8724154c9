from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import Dict, Iterator

import psycopg
from dotenv import load_dotenv
from fastapi import HTTPException


load_dotenv()

_log = logging.getLogger("bigandbest.db")

SCHEMA_HINT = "Run: python3 -m src.run_sql --sql sql/00_schema.sql"


def _dsn() -> str:
    url = (os.getenv("DATABASE_URL", "") or "").strip()
    if url:
        return url

    host = os.getenv("PGHOST", "localhost")
    port = int(os.getenv("PGPORT", "5432"))
    database = os.getenv("PGDATABASE", "bigandbest")
    user = os.getenv("PGUSER", "bigandbest")
    password = os.getenv("PGPASSWORD", "bigandbest")
    dsn = f"host={host} port={port} dbname={database} user={user} password={password}"
    sslmode = (os.getenv("PGSSLMODE", "") or "").strip()
    if sslmode:
        dsn += f" sslmode={sslmode}"
    return dsn


@contextmanager
def get_conn():
    conn = psycopg.connect(_dsn())
    try:
        conn.execute("SET TIME ZONE 'UTC';", prepare=False)
        yield conn
    finally:
        conn.close()


@contextmanager
def db_errors(what: str) -> Iterator[None]:
    """Translate data store failures into HTTP errors.

    HTTPExceptions raised inside the block pass through untouched.
    """
    try:
        yield
    except psycopg.OperationalError:
        raise HTTPException(
            status_code=503,
            detail=(
                "PostgreSQL connection failed. Set DATABASE_URL (or PGHOST/PGPORT/PGDATABASE/PGUSER/PGPASSWORD) "
                "in .env and ensure the database is reachable."
            ),
        )
    except (psycopg.errors.UndefinedTable, psycopg.errors.InvalidSchemaName, psycopg.errors.UndefinedFunction):
        raise HTTPException(status_code=500, detail=f"{what} tables not found. {SCHEMA_HINT}")
    except psycopg.errors.UniqueViolation as e:
        raise HTTPException(status_code=409, detail=f"{what} already exists: {e.diag.message_detail or e}")
    except psycopg.errors.ForeignKeyViolation as e:
        raise HTTPException(status_code=400, detail=f"Invalid reference for {what}: {e.diag.message_detail or e}")
    except psycopg.errors.CheckViolation as e:
        raise HTTPException(status_code=409, detail=e.diag.message_primary or str(e))
    except psycopg.errors.NoDataFound as e:
        raise HTTPException(status_code=404, detail=e.diag.message_primary or str(e))
    except psycopg.errors.InvalidParameterValue as e:
        raise HTTPException(status_code=400, detail=e.diag.message_primary or str(e))
    except psycopg.Error:
        _log.exception("database error in %s", what)
        raise HTTPException(status_code=500, detail=f"Failed to process {what}")


def page_window(page: int, limit: int) -> tuple[int, int]:
    page = max(1, int(page))
    limit = max(1, int(limit))
    return limit, (page - 1) * limit


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": (total + limit - 1) // limit if limit else 0,
    }
