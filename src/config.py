from __future__ import annotations

import os
from pathlib import Path
from dataclasses import dataclass, field

from dotenv import load_dotenv


_PROJECT_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_PROJECT_ROOT / ".env")


@dataclass(frozen=True)
class PostgresConfig:
    url: str = field(default_factory=lambda: (os.getenv("DATABASE_URL", "") or "").strip())
    host: str = os.getenv("PGHOST", "localhost")
    port: int = int(os.getenv("PGPORT", "5432"))
    database: str = os.getenv("PGDATABASE", "bigandbest")
    user: str = os.getenv("PGUSER", "bigandbest")
    password: str = os.getenv("PGPASSWORD", "bigandbest")
    sslmode: str = (os.getenv("PGSSLMODE", "") or "").strip()

    def dsn(self) -> str:
        if self.url:
            return self.url
        dsn = (
            f"host={self.host} port={self.port} dbname={self.database} "
            f"user={self.user} password={self.password}"
        )
        if self.sslmode:
            dsn += f" sslmode={self.sslmode}"
        return dsn

    def sqlalchemy_url(self) -> str:
        if self.url:
            scheme, sep, rest = self.url.partition("://")
            if sep and scheme in ("postgres", "postgresql"):
                return f"postgresql+psycopg://{rest}"
            return self.url
        url = f"postgresql+psycopg://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"
        if self.sslmode:
            url += f"?sslmode={self.sslmode}"
        return url


@dataclass(frozen=True)
class Paths:
    project_root: str

    @property
    def samples_dir(self) -> str:
        return os.path.join(self.project_root, "samples")
