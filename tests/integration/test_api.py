"""HTTP tests: routes, status codes and error bodies."""

import pytest
import pytest_asyncio


@pytest_asyncio.fixture
async def refs(client):
    """Reference rows created through the API."""
    competition = (await client.post("/api/entities/competitions", json={"name": "Série A"})).json()
    home = (await client.post("/api/entities/teams", json={"name": "Flamengo"})).json()
    away = (await client.post("/api/entities/teams", json={"name": "Palmeiras"})).json()
    market = (await client.post("/api/entities/markets", json={"name": "Match Odds"})).json()
    strategy = (
        await client.post(
            "/api/entities/strategies", json={"name": "Lay 0-1", "market_id": market["id"]}
        )
    ).json()
    return {
        "competition": competition,
        "home": home,
        "away": away,
        "market": market,
        "strategy": strategy,
    }


@pytest_asyncio.fixture
async def match(client, refs):
    response = await client.post(
        "/api/matches",
        json={
            "match_date": "2026-03-14",
            "match_time": "16:00",
            "competition_id": refs["competition"]["id"],
            "home_team_id": refs["home"]["id"],
            "away_team_id": refs["away"]["id"],
            "home_odds": "1.85",
        },
    )
    assert response.status_code == 201
    return response.json()


def item_body(refs, **overrides):
    body = {
        "market_id": refs["market"]["id"],
        "strategy_id": refs["strategy"]["id"],
        "stake": "100",
        "entry_odds": "2.10",
        "close_type": "Manual",
        "exit_odds": "1.90",
        "financial_result": "20",
        "followed_plan": True,
        "emotional_state": "Calmo",
    }
    body.update(overrides)
    return body


class TestHealth:
    """Test health endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_ready(self, client, match):
        response = await client.get("/ready")
        body = response.json()
        assert body["ready"] is True
        assert body["checks"]["db"]["message"] == "1 matches"
        assert body["checks"]["options"]["status"] == "ok"


class TestEntities:
    """Test reference data routes."""

    @pytest.mark.asyncio
    async def test_duplicate_team_returns_409(self, client):
        first = await client.post("/api/entities/teams", json={"name": "Flamengo"})
        assert first.status_code == 201
        second = await client.post("/api/entities/teams", json={"name": "flamengo "})
        assert second.status_code == 409
        body = second.json()
        assert body["code"] == "DUPLICATE_NAME"
        assert "detail" in body

    @pytest.mark.asyncio
    async def test_search_and_get(self, client, refs):
        response = await client.get("/api/entities/teams", params={"search": "palm"})
        assert [t["name"] for t in response.json()] == ["Palmeiras"]
        response = await client.get(f"/api/entities/teams/{refs['home']['id']}")
        assert response.json()["name"] == "Flamengo"

    @pytest.mark.asyncio
    async def test_missing_id_returns_404(self, client):
        response = await client.get("/api/entities/markets/999")
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_empty_name_returns_422(self, client):
        response = await client.post("/api/entities/competitions", json={"name": "  "})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_rename(self, client, refs):
        response = await client.put(
            f"/api/entities/teams/{refs['away']['id']}", json={"name": "Palmeiras SP"}
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Palmeiras SP"

    @pytest.mark.asyncio
    async def test_strategy_scoped_by_market(self, client, refs):
        duplicate = await client.post(
            "/api/entities/strategies",
            json={"name": "lay 0-1", "market_id": refs["market"]["id"]},
        )
        assert duplicate.status_code == 409

        other = (await client.post("/api/entities/markets", json={"name": "Correct Score"})).json()
        created = await client.post(
            "/api/entities/strategies", json={"name": "Lay 0-1", "market_id": other["id"]}
        )
        assert created.status_code == 201

        listed = await client.get("/api/entities/strategies", params={"market_id": other["id"]})
        assert [s["market_id"] for s in listed.json()] == [other["id"]]

    @pytest.mark.asyncio
    async def test_referenced_team_delete_returns_409(self, client, refs, match):
        response = await client.delete(f"/api/entities/teams/{refs['home']['id']}")
        assert response.status_code == 409
        assert response.json()["code"] == "REFERENCE_IN_USE"

    @pytest.mark.asyncio
    async def test_delete_unreferenced(self, client):
        team = (await client.post("/api/entities/teams", json={"name": "Bangu"})).json()
        response = await client.delete(f"/api/entities/teams/{team['id']}")
        assert response.status_code == 204
        assert (await client.get(f"/api/entities/teams/{team['id']}")).status_code == 404


class TestMatches:
    """Test match routes and lifecycle endpoints."""

    @pytest.mark.asyncio
    async def test_created_in_pre_analysis(self, client, match):
        assert match["status"] == "PRE_ANALYSIS"
        assert match["match_time"] == "16:00:00"

    @pytest.mark.asyncio
    async def test_odds_below_minimum_returns_422(self, client, refs):
        response = await client.post(
            "/api/matches",
            json={
                "match_date": "2026-03-14",
                "match_time": "16:00",
                "competition_id": refs["competition"]["id"],
                "home_team_id": refs["home"]["id"],
                "away_team_id": refs["away"]["id"],
                "draw_odds": "1.00",
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_bad_date_returns_422(self, client, refs):
        response = await client.post(
            "/api/matches",
            json={
                "match_date": "14/03/2026",
                "match_time": "16:00",
                "competition_id": refs["competition"]["id"],
                "home_team_id": refs["home"]["id"],
                "away_team_id": refs["away"]["id"],
            },
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_list_with_filters(self, client, match):
        response = await client.get("/api/matches", params={"date_from": "2026-03-15"})
        assert response.json() == []
        response = await client.get("/api/matches", params={"date_to": "2026-03-14"})
        assert [m["id"] for m in response.json()] == [match["id"]]

    @pytest.mark.asyncio
    async def test_mark_not_operated(self, client, match):
        empty = await client.patch(
            f"/api/matches/{match['id']}/mark-not-operated", json={"justification": ""}
        )
        assert empty.status_code == 422

        response = await client.patch(
            f"/api/matches/{match['id']}/mark-not-operated",
            json={"justification": "Line-ups changed"},
        )
        assert response.status_code == 200
        assert response.json()["status"] == "NOT_OPERATED"

        again = await client.patch(
            f"/api/matches/{match['id']}/mark-not-operated",
            json={"justification": "Twice"},
        )
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_mark_verified_removes_from_queue(self, client, match):
        # The match kicked off well before the current date, so it is due
        pending = await client.get("/api/matches/pending-verification")
        assert [m["id"] for m in pending.json()] == [match["id"]]

        response = await client.patch(f"/api/matches/{match['id']}/mark-verified")
        assert response.status_code == 200
        assert response.json()["not_operated_verified_at"] is not None

        pending = await client.get("/api/matches/pending-verification")
        assert pending.json() == []

    @pytest.mark.asyncio
    async def test_pre_analysis_routes(self, client, match):
        created = await client.post(
            "/api/pre-analyses",
            json={"match_id": match["id"], "home_rank": "1", "away_rank": "4"},
        )
        assert created.status_code == 201
        duplicate = await client.post("/api/pre-analyses", json={"match_id": match["id"]})
        assert duplicate.status_code == 409

        too_long = await client.put(
            f"/api/pre-analyses/{match['id']}", json={"home_rank": "123"}
        )
        assert too_long.status_code == 422

        updated = await client.put(
            f"/api/pre-analyses/{match['id']}", json={"key_highlight": "Derby"}
        )
        assert updated.json()["home_rank"] == "1"
        assert updated.json()["key_highlight"] == "Derby"

        joined = await client.get("/api/pre-analyses/with-matches")
        assert joined.json()[0]["match"]["id"] == match["id"]

        blocked = await client.delete(f"/api/matches/{match['id']}")
        assert blocked.status_code == 409


class TestOperations:
    """Test the operation flow over HTTP."""

    @pytest.mark.asyncio
    async def test_full_flow(self, client, refs, match):
        created = await client.post("/api/operations", json={"match_id": match["id"]})
        assert created.status_code == 201
        operation = created.json()
        assert operation["status"] == "PENDING"
        assert (await client.get(f"/api/matches/{match['id']}")).json()["status"] == (
            "OPERATION_PENDING"
        )

        item = await client.post(
            f"/api/operations/{operation['id']}/items",
            json=item_body(refs, financial_result=None),
        )
        assert item.status_code == 201
        item_id = item.json()["id"]

        blocked = await client.patch(f"/api/operations/{operation['id']}/complete")
        assert blocked.status_code == 409
        assert blocked.json()["code"] == "OPERATION_INCOMPLETE"

        settled = await client.put(f"/api/operations/items/{item_id}", json={"financial_result": "20"})
        assert settled.status_code == 200
        assert float(settled.json()["financial_result"]) == 20.0

        completed = await client.patch(f"/api/operations/{operation['id']}/complete")
        assert completed.status_code == 200
        assert completed.json()["status"] == "COMPLETED"
        assert (await client.get(f"/api/matches/{match['id']}")).json()["status"] == (
            "OPERATION_COMPLETED"
        )

        listed = await client.get("/api/operations", params={"status": "COMPLETED"})
        assert [o["id"] for o in listed.json()] == [operation["id"]]

    @pytest.mark.asyncio
    async def test_item_validation(self, client, refs, match):
        operation = (await client.post("/api/operations", json={"match_id": match["id"]})).json()
        url = f"/api/operations/{operation['id']}/items"

        assert (await client.post(url, json=item_body(refs, stake="0"))).status_code == 422
        assert (await client.post(url, json=item_body(refs, entry_odds="1.00"))).status_code == 422
        assert (await client.post(url, json=item_body(refs, exit_odds=None))).status_code == 422

        automatic = await client.post(url, json=item_body(refs, close_type="Automatic"))
        assert automatic.status_code == 201
        assert automatic.json()["exit_odds"] is None

    @pytest.mark.asyncio
    async def test_second_operation_returns_409(self, client, match):
        await client.post("/api/operations", json={"match_id": match["id"]})
        again = await client.post("/api/operations", json={"match_id": match["id"]})
        assert again.status_code == 409

    @pytest.mark.asyncio
    async def test_delete_operation_reverts_match(self, client, refs, match):
        operation = (await client.post("/api/operations", json={"match_id": match["id"]})).json()
        await client.post(f"/api/operations/{operation['id']}/items", json=item_body(refs))

        response = await client.delete(f"/api/operations/{operation['id']}")
        assert response.status_code == 204
        assert (await client.get(f"/api/operations/{operation['id']}")).status_code == 404
        assert (await client.get(f"/api/matches/{match['id']}")).json()["status"] == "PRE_ANALYSIS"


class TestCashAndOptions:
    """Test cash transaction and option routes."""

    @pytest.mark.asyncio
    async def test_cash_crud(self, client):
        body = {
            "transaction_date": "2026-01-05",
            "transaction_time": "10:30",
            "amount": "500",
            "transaction_type": "DEPOSIT",
        }
        created = await client.post("/api/cash-transactions", json=body)
        assert created.status_code == 201
        transaction_id = created.json()["id"]

        later = {**body, "transaction_date": "2026-02-01", "amount": "100", "transaction_type": "WITHDRAWAL"}
        await client.post("/api/cash-transactions", json=later)
        listed = await client.get("/api/cash-transactions")
        assert [t["transaction_date"] for t in listed.json()] == ["2026-02-01", "2026-01-05"]

        updated = await client.put(
            f"/api/cash-transactions/{transaction_id}", json={**body, "amount": "750"}
        )
        assert float(updated.json()["amount"]) == 750.0

        bad = await client.post("/api/cash-transactions", json={**body, "amount": "-5"})
        assert bad.status_code == 422

        deleted = await client.delete(f"/api/cash-transactions/{transaction_id}")
        assert deleted.status_code == 204

    @pytest.mark.asyncio
    async def test_options(self, client):
        listed = await client.get("/api/options/emotional_state")
        defaults = [o for o in listed.json() if o["is_default"]]
        assert "Calmo" in [o["value"] for o in defaults]

        created = await client.post("/api/options/emotional_state", json={"value": "Confiante"})
        assert created.status_code == 201
        assert created.json()["is_default"] is False

        duplicate = await client.post("/api/options/emotional_state", json={"value": "calmo"})
        assert duplicate.status_code == 409

        default_removal = await client.delete(
            "/api/options/emotional_state", params={"value": "Calmo"}
        )
        assert default_removal.status_code == 422

        removed = await client.delete(
            "/api/options/emotional_state", params={"value": "Confiante"}
        )
        assert removed.status_code == 204
        values = [o["value"] for o in (await client.get("/api/options/emotional_state")).json()]
        assert "Confiante" not in values


class TestReports:
    """Test reporting routes."""

    @pytest.mark.asyncio
    async def test_dashboard_and_annual(self, client, refs, match):
        operation = (await client.post("/api/operations", json={"match_id": match["id"]})).json()
        url = f"/api/operations/{operation['id']}/items"
        await client.post(url, json=item_body(refs))
        await client.post(url, json=item_body(refs, stake="50", financial_result="-10"))
        completed = await client.patch(f"/api/operations/{operation['id']}/complete")
        assert completed.status_code == 200
        await client.post(
            "/api/cash-transactions",
            json={
                "transaction_date": "2025-12-01",
                "transaction_time": "09:00",
                "amount": "1000",
                "transaction_type": "DEPOSIT",
            },
        )

        dashboard = await client.get("/api/reports/dashboard", params={"today": "2026-03-20"})
        assert dashboard.status_code == 200
        data = dashboard.json()
        assert data["totals"]["roi"] == pytest.approx(6.67)
        assert data["bankroll"] == 1010.0
        assert data["trailing_days"][-1]["date"] == "2026-03-20"

        report = await client.get(
            "/api/reports", params={"market_id": refs["market"]["id"]}
        )
        assert report.json()["totals"]["count"] == 2

        raw = await client.get("/api/reports/aggregate")
        assert len(raw.json()["items"]) == 2

        annual = await client.get("/api/annual-summary/2026")
        months = annual.json()["months"]
        assert len(months) == 12
        assert months[0]["opening_balance"] == 1000.0
        assert months[11]["closing_balance"] == 1010.0
