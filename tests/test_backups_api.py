# tests/test_backups_api.py
import pytest

from madrasah_admin.models import Student

from .conftest import add_member, auth_headers, count_rows, create_madrasah, seed_business_data

pytestmark = pytest.mark.anyio


@pytest.fixture
async def tenant(db):
    madrasah = await create_madrasah(db)
    await seed_business_data(db, madrasah, students=3, teachers=2)
    admin_id = await add_member(db, madrasah, "admin")
    return madrasah, admin_id


async def test_create_and_list_backups(client, tenant):
    madrasah, admin_id = tenant
    headers = auth_headers(admin_id)

    created = await client.post("/api/v1/backups/", json={"notes": "end of term"}, headers=headers)
    assert created.status_code == 201
    assert created.json()["table_counts"]["students"] == 3

    listing = await client.get("/api/v1/backups/", headers=headers)
    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 1
    assert body["items"][0]["notes"] == "end of term"
    assert body["items"][0]["is_complete"] is True
    assert body["items"][0]["total_records"] > 0


async def test_get_and_delete_backup(client, tenant):
    madrasah, admin_id = tenant
    headers = auth_headers(admin_id)
    backup_id = (await client.post("/api/v1/backups/", json={}, headers=headers)).json()["id"]

    fetched = await client.get(f"/api/v1/backups/{backup_id}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["backup_type"] == "manual"

    deleted = await client.delete(f"/api/v1/backups/{backup_id}", headers=headers)
    assert deleted.status_code == 200

    missing = await client.get(f"/api/v1/backups/{backup_id}", headers=headers)
    assert missing.status_code == 404
    assert missing.json() == {"error": "Backup not found", "type": "NotFoundError"}


async def test_restore_through_admin_api(client, db, tenant):
    madrasah, admin_id = tenant
    headers = auth_headers(admin_id)
    backup_id = (await client.post("/api/v1/backups/", json={}, headers=headers)).json()["id"]
    db.add(Student(madrasah_id=madrasah.id, name="Extra", father_name="F", roll_number="77", class_name="Hifz A"))
    await db.commit()

    response = await client.post(f"/api/v1/backups/{backup_id}/restore", headers=headers)

    assert response.status_code == 200
    body = response.json()
    assert body["restored_tables"]["students"] == 3
    assert body["pre_restore_backup_id"]
    assert await count_rows(db, Student, madrasah) == 3


async def test_restore_of_missing_backup_reports_safety_backup(client, tenant):
    madrasah, admin_id = tenant

    response = await client.post("/api/v1/backups/not-a-backup/restore", headers=auth_headers(admin_id))

    assert response.status_code == 404
    assert response.json()["preRestoreBackupId"]


@pytest.mark.parametrize("role", ["teacher", "manager", "parent"])
async def test_backup_routes_are_admin_only(client, db, tenant, role):
    madrasah, _ = tenant
    user_id = await add_member(db, madrasah, role)

    response = await client.get("/api/v1/backups/", headers=auth_headers(user_id))

    assert response.status_code == 403
    assert response.json()["type"] == "PermissionDenied"


async def test_backups_of_other_madrasahs_are_invisible(client, db, tenant):
    madrasah, admin_id = tenant
    other = await create_madrasah(db, code="MDR2")
    other_admin = await add_member(db, other, "admin")
    backup_id = (await client.post("/api/v1/backups/", json={}, headers=auth_headers(admin_id))).json()["id"]

    response = await client.get(f"/api/v1/backups/{backup_id}", headers=auth_headers(other_admin))

    assert response.status_code == 404


async def test_madrasah_header_must_match_a_membership(client, db, tenant):
    madrasah, admin_id = tenant
    other = await create_madrasah(db, code="MDR2")

    response = await client.get("/api/v1/backups/", headers=auth_headers(admin_id, other.id))

    assert response.status_code == 403
