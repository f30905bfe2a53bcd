"""Integration tests for category and rule endpoints."""

from datetime import date

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pfinance.models import CategoryRule, Transaction


async def create_category(client: AsyncClient, name: str, **kw) -> dict:
    response = await client.post("/api/v1/categories", json={"name": name, **kw})
    assert response.status_code == 201, response.text
    return response.json()


async def create_rule(client: AsyncClient, category_id: int, pattern: str, **kw) -> dict:
    response = await client.post(
        "/api/v1/category-rules", json={"category_id": category_id, "pattern": pattern, **kw}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCategories:
    @pytest.mark.asyncio
    async def test_create_and_list(self, client: AsyncClient, db_session):
        created = await create_category(client, "Viaggi", type="expense", color="#123abc")

        assert created["name"] == "Viaggi"
        assert created["is_active"] is True

        listed = (await client.get("/api/v1/categories")).json()
        assert [c["name"] for c in listed] == ["Viaggi"]

    @pytest.mark.asyncio
    async def test_duplicate_name_rejected(self, client: AsyncClient, db_session):
        await create_category(client, "Viaggi")

        response = await client.post("/api/v1/categories", json={"name": "Viaggi"})

        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_003"

    @pytest.mark.asyncio
    async def test_invalid_payload(self, client: AsyncClient, db_session):
        response = await client.post(
            "/api/v1/categories", json={"name": "X", "type": "savings", "color": "red"}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_001"

    @pytest.mark.asyncio
    async def test_rename_carries_over_to_transactions(self, client: AsyncClient, db_session: AsyncSession):
        cat = await create_category(client, "Spesa")
        txn = Transaction(
            txn_date=date(2024, 3, 1), amount=100, description="CONAD",
            type="expense", hash="h", category="Spesa",
        )
        db_session.add(txn)
        await db_session.commit()

        response = await client.put(f"/api/v1/categories/{cat['id']}", json={"name": "Alimenti"})

        assert response.status_code == 200
        assert response.json()["name"] == "Alimenti"
        await db_session.refresh(txn)
        assert txn.category == "Alimenti"

    @pytest.mark.asyncio
    async def test_update_unknown_is_404(self, client: AsyncClient, db_session):
        response = await client.put("/api/v1/categories/999", json={"color": "#000000"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "NF_002"

    @pytest.mark.asyncio
    async def test_delete_cascades_rules(self, client: AsyncClient, db_session: AsyncSession):
        cat = await create_category(client, "Casa")
        await create_rule(client, cat["id"], "mutuo")

        response = await client.delete(f"/api/v1/categories/{cat['id']}")

        assert response.status_code == 204
        rules = (await db_session.execute(select(CategoryRule))).scalars().all()
        assert rules == []

    @pytest.mark.asyncio
    async def test_bulk_update(self, client: AsyncClient, db_session):
        a = await create_category(client, "A")
        b = await create_category(client, "B")

        response = await client.put(
            "/api/v1/categories/bulk",
            json={"ids": [a["id"], b["id"], 999], "updates": {"is_active": False}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["affected"] == 2
        assert data["skipped"] == ["999: category not found"]
        listed = (await client.get("/api/v1/categories")).json()
        assert all(c["is_active"] is False for c in listed)

    @pytest.mark.asyncio
    async def test_bulk_update_without_fields(self, client: AsyncClient, db_session):
        a = await create_category(client, "A")
        response = await client.put(
            "/api/v1/categories/bulk", json={"ids": [a["id"]], "updates": {}}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_005"

    @pytest.mark.asyncio
    async def test_bulk_delete(self, client: AsyncClient, db_session):
        a = await create_category(client, "A")
        b = await create_category(client, "B")
        await create_category(client, "C")

        response = await client.request(
            "DELETE", "/api/v1/categories/bulk", json={"ids": [a["id"], b["id"]]}
        )

        assert response.json()["affected"] == 2
        listed = (await client.get("/api/v1/categories")).json()
        assert [c["name"] for c in listed] == ["C"]


class TestRules:
    @pytest.mark.asyncio
    async def test_create_and_list_in_evaluation_order(self, client: AsyncClient, db_session):
        cat = await create_category(client, "Trasporti")
        await create_rule(client, cat["id"], "eni", priority=10)
        await create_rule(client, cat["id"], "telepedaggio", priority=5)

        rules = (await client.get("/api/v1/category-rules")).json()

        assert [r["pattern"] for r in rules] == ["telepedaggio", "eni"]
        assert rules[0]["category_name"] == "Trasporti"
        assert rules[0]["match_type"] == "contains"

    @pytest.mark.asyncio
    async def test_invalid_regex_rejected(self, client: AsyncClient, db_session):
        cat = await create_category(client, "X")

        response = await client.post(
            "/api/v1/category-rules",
            json={"category_id": cat["id"], "pattern": "([", "match_type": "regex"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_004"

    @pytest.mark.asyncio
    async def test_rule_for_unknown_category(self, client: AsyncClient, db_session):
        response = await client.post(
            "/api/v1/category-rules", json={"category_id": 999, "pattern": "x"}
        )
        assert response.status_code == 404
        assert response.json()["error_code"] == "NF_002"

    @pytest.mark.asyncio
    async def test_update_rule_moves_category(self, client: AsyncClient, db_session):
        a = await create_category(client, "A")
        b = await create_category(client, "B")
        rule = await create_rule(client, a["id"], "shop")

        response = await client.put(
            f"/api/v1/category-rules/{rule['id']}",
            json={"category_id": b["id"], "priority": 1},
        )

        assert response.status_code == 200
        assert response.json()["category_name"] == "B"
        assert response.json()["priority"] == 1

    @pytest.mark.asyncio
    async def test_update_to_regex_validates_existing_pattern(self, client: AsyncClient, db_session):
        cat = await create_category(client, "A")
        rule = await create_rule(client, cat["id"], "h&m (")

        response = await client.put(
            f"/api/v1/category-rules/{rule['id']}", json={"match_type": "regex"}
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "VAL_004"

    @pytest.mark.asyncio
    async def test_delete_rule(self, client: AsyncClient, db_session):
        cat = await create_category(client, "A")
        rule = await create_rule(client, cat["id"], "shop")

        assert (await client.delete(f"/api/v1/category-rules/{rule['id']}")).status_code == 204
        assert (await client.delete(f"/api/v1/category-rules/{rule['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_bulk_update_skips_patterns_invalid_for_new_match_type(self, client: AsyncClient, db_session):
        cat = await create_category(client, "A")
        good = await create_rule(client, cat["id"], "conad")
        bad = await create_rule(client, cat["id"], "((")

        response = await client.put(
            "/api/v1/category-rules/bulk",
            json={"ids": [good["id"], bad["id"]], "updates": {"match_type": "regex"}},
        )

        data = response.json()
        assert data["affected"] == 1
        assert data["skipped"][0].startswith(f"{bad['id']}:")

    @pytest.mark.asyncio
    async def test_bulk_delete_rules(self, client: AsyncClient, db_session):
        cat = await create_category(client, "A")
        r1 = await create_rule(client, cat["id"], "a1")
        r2 = await create_rule(client, cat["id"], "a2")

        response = await client.request(
            "DELETE", "/api/v1/category-rules/bulk", json={"ids": [r1["id"], r2["id"], 999]}
        )

        assert response.json()["affected"] == 2
        assert (await client.get("/api/v1/category-rules")).json() == []

    @pytest.mark.asyncio
    async def test_preview_does_not_touch_transactions(self, client: AsyncClient, db_session: AsyncSession):
        cat = await create_category(client, "Alimenti")
        await create_rule(client, cat["id"], "conad")
        txn = Transaction(
            txn_date=date(2024, 3, 1), amount=100, description="CONAD",
            type="expense", hash="h", category="Altro",
        )
        db_session.add(txn)
        await db_session.commit()

        response = await client.post(
            "/api/v1/category-rules/preview",
            json={"descriptions": ["CONAD CITY", "BAR SPORT"]},
        )

        assert response.json()["results"] == [
            {"description": "CONAD CITY", "category": "Alimenti"},
            {"description": "BAR SPORT", "category": "Altro"},
        ]
        await db_session.refresh(txn)
        assert txn.category == "Altro"

    @pytest.mark.asyncio
    async def test_preview_with_candidate_rule(self, client: AsyncClient, db_session):
        food = await create_category(client, "Alimenti")
        bar = await create_category(client, "Bar")
        await create_rule(client, food["id"], "sport", priority=10)

        response = await client.post(
            "/api/v1/category-rules/preview",
            json={
                "descriptions": ["BAR SPORT"],
                "candidate": {"category_id": bar["id"], "pattern": "^bar", "match_type": "regex", "priority": 1},
            },
        )

        assert response.json()["results"][0]["category"] == "Bar"
        assert len((await client.get("/api/v1/category-rules")).json()) == 1
