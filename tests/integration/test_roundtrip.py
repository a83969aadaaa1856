"""Integration tests: round trips, aggregates and writes against PostgreSQL."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from pgfluent import StatementError, UsageError
from tests.conftest import App


pytestmark = pytest.mark.integration

T0 = datetime(2024, 3, 20, 14, 30, tzinfo=timezone.utc)


def _apps(n: int) -> list[App]:
    return [
        App(
            name=f"app-{i}",
            desc=f"description {i}",
            address=f"{i} Main St",
            created_date=T0 + timedelta(days=i),
            changed_date=T0 + timedelta(days=i, hours=1),
            is_first=i == 0,
            visits=i * 10,
            score=i / 2,
        )
        for i in range(n)
    ]


class TestRoundTrip:
    def test_insert_then_read_back(self, pg):
        app = _apps(1)[0]
        app.deleted_date = T0 + timedelta(days=30)
        assert pg.table("app").insert(app, returning=True) == 1
        assert app.id == 1

        loaded = pg.table("app").where("id=?", app.id).fetch_one(App)
        assert loaded == app

    def test_bulk_insert_returning(self, pg):
        apps = _apps(3)
        assert pg.table("app").insert(apps, returning=True) == 3
        assert [a.id for a in apps] == [1, 2, 3]

        dest: list[App] = []
        assert pg.table("app").sort("id").find(dest, App) == 3
        assert dest == apps

    def test_partial_projection(self, pg):
        pg.table("app").insert(_apps(2))
        dest: list[App] = []
        pg.table("app").select("id,name").sort("id", "DESC").limit(1).find(dest, App)
        assert [(a.id, a.name, a.visits) for a in dest] == [(2, "app-1", 0)]

    def test_find_single_record(self, pg):
        pg.table("app").insert(_apps(3))
        app = App()
        assert pg.table("app").where("visits>?", 5).sort("id").find(app) == 1
        assert app.name == "app-1"

    def test_offset(self, pg):
        pg.table("app").insert(_apps(4))
        names = [a.name for a in pg.table("app").sort("id").offset(2).fetch_all(App)]
        assert names == ["app-2", "app-3"]


class TestAggregates:
    def test_count_idempotent(self, pg):
        pg.table("app").insert(_apps(4))
        first = pg.table("app").where("visits>=?", 10).count()
        second = pg.table("app").where("visits>=?", 10).count()
        assert first == second == 3

    def test_or_chain(self, pg):
        pg.table("app").insert(_apps(4))
        assert pg.table("app").where("id=?", 1).where_or("id=?", 3).count() == 2

    def test_sum_and_avg(self, pg):
        pg.table("app").insert(_apps(4))
        assert pg.table("app").select("visits").sum() == 60
        assert pg.table("app").select("score").avg() == pytest.approx(0.75)

    def test_sum_no_rows_is_none(self, pg):
        assert pg.table("app").select("id").where("id=?", -1).sum() is None

    def test_sum_default_projection(self, pg):
        with pytest.raises(UsageError):
            pg.table("app").sum()


class TestWrites:
    def test_update_mapping(self, pg):
        pg.table("app").insert(_apps(2))
        assert pg.table("app").where("id=?", 2).update({"name": "renamed", "visits": 99}) == 1
        app = pg.table("app").where("id=?", 2).fetch_one(App)
        assert (app.name, app.visits) == ("renamed", 99)

    def test_update_single_column(self, pg):
        pg.table("app").insert(_apps(1))
        assert pg.table("app").where("id=?", 1).update({"address": "elsewhere"}) == 1
        assert pg.table("app").where("address=?", "elsewhere").count() == 1

    def test_update_record(self, pg):
        apps = _apps(1)
        pg.table("app").insert(apps, returning=True)
        app = apps[0]
        app.name = "changed"
        app.deleted_date = T0
        assert pg.table("app").where("id=?", app.id).update(app) == 1
        assert pg.table("app").where("id=?", app.id).fetch_one(App) == app

    def test_increment_and_decrement(self, pg):
        pg.table("app").insert(_apps(2))
        assert pg.table("app").where("id=?", 2).increment("visits") == 1
        assert pg.table("app").where("id=?", 2).increment("visits") == 1
        assert pg.table("app").where("id=?", 1).decrement("visits") == 1
        visits = [a.visits for a in pg.table("app").sort("id").fetch_all(App)]
        assert visits == [-1, 12]

    def test_delete(self, pg):
        pg.table("app").insert(_apps(3))
        assert pg.table("app").where("visits<?", 15).delete() == 2
        assert pg.table("app").count() == 1


class TestStatementErrors:
    def test_unknown_column(self, pg):
        with pytest.raises(StatementError, match="^count: statement execution failed$") as exc:
            pg.table("app").where("missing=?", 1).count()
        assert "missing" in exc.value.internal()

    def test_statement_timeout(self, pg):
        pg.table("app").insert(_apps(1))
        with pytest.raises(StatementError):
            pg.table("app", timeout=0.05).select("pg_sleep(1)").fetch_all(App)
