"""Tests for the /recipes and /crawl API endpoints.

All tests use an in-memory SQLite database via the FastAPI TestClient.
``run_crawl`` is replaced by a stub for /crawl, so no HTTP requests are made.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from recipe_crawler.api.app import create_app
from recipe_crawler.crawler.frontier import CrawlStats
from recipe_crawler.crawler.runner import CrawlResult
from recipe_crawler.db.connection import get_connection
from recipe_crawler.db.migrations import init_db
from recipe_crawler.db.recipes import count_recipes, save_recipe
from recipe_crawler.scraper.models import Rating, RecipeRecord


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def conn():
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def client(conn, tmp_path, monkeypatch):
    """Return a TestClient backed by an isolated in-memory DB.

    The lifespan opens its own connection under the (patched) workspace;
    it is replaced with the in-memory one once the client has started.
    """
    monkeypatch.setattr("recipe_crawler.config.settings.workspace_dir", tmp_path)
    app = create_app()
    with TestClient(app, raise_server_exceptions=True) as c:
        c.app.state.db = conn
        yield c


def _record(n: int, **kwargs) -> RecipeRecord:
    values = dict(
        source_url=f"https://www.allrecipes.com/recipe/{n}/dish-{n}/",
        scraped_at="2024-01-01T00:00:00+00:00",
        name=f"Dish {n}",
    )
    values.update(kwargs)
    return RecipeRecord(**values)


# ---------------------------------------------------------------------------
# /recipes
# ---------------------------------------------------------------------------

class TestListRecipes:
    def test_empty_list(self, client: TestClient):
        resp = client.get("/recipes")
        assert resp.status_code == 200
        assert resp.json() == []

    def test_returns_stored_recipes(self, client: TestClient, conn):
        save_recipe(conn, _record(1))
        save_recipe(conn, _record(2))
        resp = client.get("/recipes")
        assert resp.status_code == 200
        assert {r["name"] for r in resp.json()} == {"Dish 1", "Dish 2"}

    def test_limit(self, client: TestClient, conn):
        for n in range(3):
            save_recipe(conn, _record(n))
        assert len(client.get("/recipes", params={"limit": 2}).json()) == 2

    def test_invalid_limit_returns_422(self, client: TestClient):
        assert client.get("/recipes", params={"limit": 0}).status_code == 422

    def test_search(self, client: TestClient, conn):
        save_recipe(conn, _record(1, name="Beef Stew", ingredients=["beef"]))
        save_recipe(conn, _record(2, name="Fruit Salad", ingredients=["apples"]))
        resp = client.get("/recipes", params={"q": "apples"})
        assert resp.status_code == 200
        assert [r["name"] for r in resp.json()] == ["Fruit Salad"]


class TestGetRecipe:
    def test_returns_full_record(self, client: TestClient, conn):
        stored = save_recipe(
            conn,
            _record(1, ingredients=["salt"], rating=Rating("4.8", "90", "75"), nutrition={"Fat": "3g"}),
        )
        resp = client.get(f"/recipes/{stored.id}")
        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == stored.id
        assert data["source_url"] == stored.record.source_url
        assert data["ingredients"] == ["salt"]
        assert data["rating"] == {"rating_value": "4.8", "rating_count": "90", "review_count": "75"}
        assert data["nutrition"] == {"Fat": "3g"}

    def test_unknown_id_returns_404(self, client: TestClient):
        assert client.get("/recipes/no-such-id").status_code == 404


class TestDeleteRecipe:
    def test_delete_returns_204(self, client: TestClient, conn):
        stored = save_recipe(conn, _record(1))
        resp = client.delete(f"/recipes/{stored.id}")
        assert resp.status_code == 204
        assert count_recipes(conn) == 0

    def test_delete_unknown_returns_404(self, client: TestClient):
        assert client.delete("/recipes/no-such-id").status_code == 404


# ---------------------------------------------------------------------------
# /crawl
# ---------------------------------------------------------------------------

class TestCrawl:
    def test_runs_crawl_and_stores_records(self, client: TestClient, conn, monkeypatch):
        captured = {}

        def fake_run_crawl(config, sink):
            captured["config"] = config
            sink.emit(_record(7))
            return CrawlResult(stats=CrawlStats(pages_fetched=2, records_emitted=1), seeds=config.start_urls())

        monkeypatch.setattr("recipe_crawler.api.routers.crawl.run_crawl", fake_run_crawl)

        resp = client.post(
            "/crawl",
            json={"query": "stew", "max_records": 5, "max_pages": 2, "concurrency": 3},
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["seeds"] == ["https://www.allrecipes.com/search?q=stew"]
        assert data["stats"]["records_emitted"] == 1
        assert data["source_urls"] == ["https://www.allrecipes.com/recipe/7/dish-7/"]
        assert count_recipes(conn) == 1

        config = captured["config"]
        assert (config.max_records, config.max_list_pages, config.max_concurrency) == (5, 2, 3)

    def test_crawl_writes_under_the_app_lock(self, client: TestClient, monkeypatch):
        locks = []

        def fake_run_crawl(config, sink):
            locks.append(sink.sinks[0].lock)
            return CrawlResult(stats=CrawlStats(), seeds=config.start_urls())

        monkeypatch.setattr("recipe_crawler.api.routers.crawl.run_crawl", fake_run_crawl)

        client.post("/crawl", json={"query": "a"})
        client.post("/crawl", json={"query": "b"})

        assert locks[0] is locks[1] is client.app.state.db_lock

    def test_start_urls_override_query(self, client: TestClient, monkeypatch):
        def fake_run_crawl(config, sink):
            return CrawlResult(stats=CrawlStats(), seeds=config.start_urls())

        monkeypatch.setattr("recipe_crawler.api.routers.crawl.run_crawl", fake_run_crawl)

        url = "https://www.allrecipes.com/recipes/80/main-dish/"
        resp = client.post("/crawl", json={"query": "stew", "start_urls": [url]})
        assert resp.json()["seeds"] == [url]

    def test_invalid_body_returns_422(self, client: TestClient):
        assert client.post("/crawl", json={"max_records": 0}).status_code == 422

    def test_crawl_error_returns_502(self, client: TestClient, monkeypatch):
        def broken(config, sink):
            raise RuntimeError("proxy refused")

        monkeypatch.setattr("recipe_crawler.api.routers.crawl.run_crawl", broken)

        resp = client.post("/crawl", json={"query": "x"})
        assert resp.status_code == 502
        assert "proxy refused" in resp.json()["detail"]
