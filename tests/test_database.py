"""Tests for database URL handling."""

import pytest

from carscout.database import engine_options, normalize_database_url


class TestDatabaseUrl:

    @pytest.mark.parametrize(
        "url, expected",
        [
            ("postgres://u:p@db.example:5432/carscout", "postgresql://u:p@db.example:5432/carscout"),
            ("postgresql://localhost:5432/carscout", "postgresql://localhost:5432/carscout"),
            ("sqlite://", "sqlite://"),
        ],
    )
    def test_normalize(self, url, expected):
        assert normalize_database_url(url) == expected

    def test_sqlite_allows_threadpool_access(self):
        assert engine_options("sqlite:///carscout.db") == {"connect_args": {"check_same_thread": False}}

    def test_postgres_pings_pooled_connections(self):
        assert engine_options("postgresql://localhost/carscout") == {"pool_pre_ping": True}
