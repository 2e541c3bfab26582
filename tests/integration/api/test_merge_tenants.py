"""
Integration tests for the tenant merge pass
Runs the Acme duplicate scenario end to end against SQLite.
"""

import pytest
from decimal import Decimal
from uuid import UUID

from httpx import AsyncClient
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.domain.entities import (
    AppSetting,
    AuditEvent,
    Expense,
    Location,
    MembershipRole,
    Sale,
    Tenant,
    TenantMembership,
    UserProfile,
)

ADMIN_HEADERS = {"X-Admin-API-Key": "test-admin-key-12345"}


async def _seed_acme(db_session: AsyncSession, test_data) -> None:
    db_session.add_all(test_data.entities("acme_tenants", Tenant))
    await db_session.commit()

    db_session.add_all(test_data.entities("acme_users", UserProfile))
    db_session.add_all(test_data.entities("acme_memberships", TenantMembership))
    db_session.add_all(test_data.entities("acme_settings", AppSetting))
    db_session.add(Location(tenant_id=2, name="Downtown"))
    db_session.add(Sale(tenant_id=3, total=Decimal("12.50")))
    db_session.add(Expense(tenant_id=2, description="Paper rolls", amount=Decimal("4.99")))
    await db_session.commit()


async def _all(db_session: AsyncSession, stmt):
    result = await db_session.exec(stmt)
    return result.all()


@pytest.mark.asyncio
async def test_merge_acme_duplicates(client: AsyncClient, db_session: AsyncSession, test_data):
    """
    Given tenants "Acme Pos" (oldest), "acme" and "Acme's Company"
    When the merge pass runs
    Then all three normalize to "Acme", tenant 1 is kept and renamed
    And tenants 2 and 3 are removed after every reference moved to tenant 1
    """
    # Arrange
    await _seed_acme(db_session, test_data)

    # Act
    response = await client.post("/admin/merge-tenants", headers=ADMIN_HEADERS)

    # Assert
    assert response.status_code == 200
    data = response.json()
    assert data["dry_run"] is False
    assert data["removed_total"] == 2
    assert data["failed_total"] == 0
    assert len(data["groups"]) == 1
    group = data["groups"][0]
    assert group["normalized_name"] == "Acme"
    assert group["keeper_id"] == 1
    assert group["removed_ids"] == [2, 3]

    tenants = await _all(db_session, select(Tenant).order_by(Tenant.id))
    assert [(t.id, t.name) for t in tenants] == [(1, "Acme"), (4, "Beta Bakery")]

    # Memberships: colliding row dropped (keeper's wins), the rest moved
    memberships = await _all(db_session, select(TenantMembership))
    assert {m.tenant_id for m in memberships} == {1}
    assert len(memberships) == 3
    owner = [m for m in memberships if m.user_id == UUID(test_data.get("acme_users")[0]["id"])]
    assert len(owner) == 1
    assert owner[0].role == MembershipRole.owner

    # Settings: keeper's value wins on key collisions
    settings = await _all(db_session, select(AppSetting).order_by(AppSetting.key))
    assert [(s.tenant_id, s.key, s.value) for s in settings] == [
        (1, "currency", "USD"),
        (1, "receipt_footer", "Thanks!"),
    ]

    profiles = await _all(db_session, select(UserProfile))
    assert {p.tenant_id for p in profiles} == {1}
    for model in (Location, Sale, Expense):
        rows = await _all(db_session, select(model))
        assert {r.tenant_id for r in rows} == {1}

    merged = await _all(db_session, select(AuditEvent).where(AuditEvent.action == "tenant_merged"))
    assert sorted(e.tenant_id for e in merged) == [2, 3]
    assert all(e.event_metadata["keeper_id"] == 1 for e in merged)


@pytest.mark.asyncio
async def test_merge_is_idempotent(client: AsyncClient, db_session: AsyncSession, test_data):
    # Arrange
    await _seed_acme(db_session, test_data)
    first = await client.post("/admin/merge-tenants", headers=ADMIN_HEADERS)
    assert first.status_code == 200

    # Act
    second = await client.post("/admin/merge-tenants", headers=ADMIN_HEADERS)

    # Assert
    assert second.status_code == 200
    data = second.json()
    assert data["groups"] == []
    assert data["removed_total"] == 0
    tenants = await _all(db_session, select(Tenant))
    assert len(tenants) == 2


@pytest.mark.asyncio
async def test_merge_dry_run(client: AsyncClient, db_session: AsyncSession, test_data):
    # Arrange
    await _seed_acme(db_session, test_data)

    # Act
    response = await client.post("/admin/merge-tenants?dry_run=true", headers=ADMIN_HEADERS)

    # Assert
    assert response.status_code == 200
    group = response.json()["groups"][0]
    assert group["duplicate_ids"] == [2, 3]
    assert group["removed_ids"] == []

    tenants = await _all(db_session, select(Tenant))
    assert len(tenants) == 4
    memberships = await _all(db_session, select(TenantMembership).where(TenantMembership.tenant_id == 2))
    assert len(memberships) == 2


@pytest.mark.asyncio
async def test_no_references_left_on_removed_tenants(client: AsyncClient, db_session: AsyncSession, test_data):
    # Arrange
    await _seed_acme(db_session, test_data)
    before = await client.get("/admin/references/tenants/2", headers=ADMIN_HEADERS)
    assert before.json()["total_references"] > 0

    # Act
    await client.post("/admin/merge-tenants", headers=ADMIN_HEADERS)

    # Assert
    for tenant_id in (2, 3):
        response = await client.get(f"/admin/references/tenants/{tenant_id}", headers=ADMIN_HEADERS)
        assert response.status_code == 200
        report = response.json()
        assert report["clean"] is True
        assert report["total_references"] == 0

    keeper = await client.get("/admin/references/tenants/1", headers=ADMIN_HEADERS)
    by_table = {t["table"]: t["count"] for t in keeper.json()["tables"]}
    assert by_table["tenant_memberships"] == 3
    assert by_table["sales"] == 1


@pytest.mark.asyncio
async def test_merge_requires_admin_key(client: AsyncClient):
    response = await client.post("/admin/merge-tenants")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    response = await client.post("/admin/merge-tenants", headers={"X-Admin-API-Key": "wrong"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_API_KEY"
