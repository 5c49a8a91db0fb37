# tests/test_backup_service.py
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from madrasah_admin.core.config import settings
from madrasah_admin.core.exceptions import NotFoundError, PermissionDenied, StoreError, ValidationException
from madrasah_admin.core.permissions import UserRole
from madrasah_admin.models import Backup, BackupType, Student
from madrasah_admin.services.access_control import SessionContext
from madrasah_admin.services.backup_service import BackupService, summarize_backup
from madrasah_admin.services.backup_tables import BACKUP_TABLES
from madrasah_admin.services.data_store import TenantDataStore

from .conftest import create_madrasah, seed_business_data

pytestmark = pytest.mark.anyio


class BrokenSession:
    async def execute(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))


async def backup_count(db, madrasah_id=None, backup_type=None):
    stmt = select(func.count()).select_from(Backup)
    if madrasah_id is not None:
        stmt = stmt.where(Backup.madrasah_id == madrasah_id)
    if backup_type is not None:
        stmt = stmt.where(Backup.backup_type == backup_type.value)
    return (await db.execute(stmt)).scalar()


async def test_manual_backup_captures_every_table(db):
    madrasah = await create_madrasah(db)
    await seed_business_data(db, madrasah, students=3, teachers=2, attendance=0)

    backup = await BackupService(db).create_backup(madrasah.id, "manual")

    data = backup.backup_data
    assert set(data) == set(BACKUP_TABLES)
    assert len(data["students"]) == 3
    assert len(data["teachers"]) == 2
    assert data["attendance"] == []
    assert backup.backup_type == "manual"
    assert backup.notes == "manual backup"
    assert backup.backup_date is not None


async def test_rows_are_json_safe(db):
    madrasah = await create_madrasah(db)
    await seed_business_data(db, madrasah, students=1, teachers=1)

    backup = await BackupService(db).create_backup(str(madrasah.id), notes="before term")

    student = backup.backup_data["students"][0]
    assert student["madrasah_id"] == str(madrasah.id)
    assert student["date_of_birth"] == "2012-01-01"
    assert student["class"] == "Hifz A"
    assert isinstance(backup.backup_data["income"][0]["amount"], str)
    assert backup.notes == "before term"


async def test_backup_never_contains_other_tenants_rows(db):
    first = await create_madrasah(db, code="MDR1")
    second = await create_madrasah(db, code="MDR2")
    await seed_business_data(db, first, students=2, teachers=1, attendance=2)
    await seed_business_data(db, second, students=4, teachers=3, attendance=3)

    service = BackupService(db)
    first_backup = await service.create_backup(first.id)
    second_backup = await service.create_backup(second.id)

    for backup, owner in ((first_backup, first), (second_backup, second)):
        for table in BACKUP_TABLES:
            assert all(row["madrasah_id"] == str(owner.id) for row in backup.backup_data[table])
    assert len(first_backup.backup_data["students"]) == 2
    assert len(second_backup.backup_data["students"]) == 4


@pytest.mark.parametrize("missing", [None, "", "   "])
async def test_missing_madrasah_id_writes_nothing(db, missing):
    with pytest.raises(ValidationException, match="Madrasah ID is required"):
        await BackupService(db).create_backup(missing)
    assert await backup_count(db) == 0


async def test_malformed_madrasah_id_is_rejected(db):
    with pytest.raises(ValidationException, match="valid UUID"):
        await BackupService(db).create_backup("T1")


async def test_unknown_backup_type_is_rejected(db):
    madrasah = await create_madrasah(db)
    with pytest.raises(ValidationException, match="Invalid backup type"):
        await BackupService(db).create_backup(madrasah.id, "weekly")
    assert await backup_count(db) == 0


async def test_read_failure_aborts_without_partial_backup(db, monkeypatch):
    madrasah = await create_madrasah(db)
    await seed_business_data(db, madrasah)
    original = TenantDataStore.fetch_rows

    async def failing_fetch(self, table_name):
        if table_name == "fees":
            raise StoreError(table_name, "read", RuntimeError("timeout"))
        return await original(self, table_name)

    monkeypatch.setattr(TenantDataStore, "fetch_rows", failing_fetch)

    with pytest.raises(StoreError) as exc_info:
        await BackupService(db).create_backup(madrasah.id)

    assert exc_info.value.table == "fees"
    assert await backup_count(db) == 0


async def test_actor_from_another_madrasah_is_refused(db):
    first = await create_madrasah(db, code="MDR1")
    second = await create_madrasah(db, code="MDR2")
    actor = SessionContext(user_id=uuid.uuid4(), madrasah_id=second.id, role=UserRole.ADMIN)

    with pytest.raises(PermissionDenied):
        await BackupService(db).create_backup(first.id, actor=actor)
    assert await backup_count(db) == 0


async def test_retention_prunes_only_oldest_automatic_backups(db, monkeypatch):
    monkeypatch.setattr(settings, "backup_retention_count", 2)
    madrasah = await create_madrasah(db)
    service = BackupService(db)

    manual = [await service.create_backup(madrasah.id, "manual") for _ in range(3)]
    autos = [await service.create_backup(madrasah.id, "auto") for _ in range(4)]

    remaining = (await db.execute(
        select(Backup.id).where(Backup.madrasah_id == madrasah.id, Backup.backup_type == "auto")
    )).scalars().all()
    assert set(remaining) == {autos[-1].id, autos[-2].id}
    assert await backup_count(db, madrasah.id, BackupType.MANUAL) == len(manual)


async def test_retention_is_per_madrasah(db, monkeypatch):
    monkeypatch.setattr(settings, "backup_retention_count", 1)
    first = await create_madrasah(db, code="MDR1")
    second = await create_madrasah(db, code="MDR2")
    service = BackupService(db)

    await service.create_backup(first.id, "auto")
    await service.create_backup(second.id, "auto")
    await service.create_backup(first.id, "auto")

    assert await backup_count(db, first.id, BackupType.AUTO) == 1
    assert await backup_count(db, second.id, BackupType.AUTO) == 1


async def test_zero_retention_keeps_everything(db, monkeypatch):
    monkeypatch.setattr(settings, "backup_retention_count", 0)
    madrasah = await create_madrasah(db)
    service = BackupService(db)
    for _ in range(3):
        await service.create_backup(madrasah.id, "auto")
    assert await backup_count(db, madrasah.id) == 3


async def test_get_backup_is_scoped_to_the_madrasah(db):
    first = await create_madrasah(db, code="MDR1")
    second = await create_madrasah(db, code="MDR2")
    service = BackupService(db)
    backup = await service.create_backup(first.id)

    assert (await service.get_backup(first.id, str(backup.id))).id == backup.id
    with pytest.raises(NotFoundError, match="Backup not found"):
        await service.get_backup(second.id, backup.id)
    with pytest.raises(NotFoundError, match="Backup not found"):
        await service.get_backup(first.id, "nonexistent-id")


async def test_list_backups_is_newest_first_with_counts(db):
    madrasah = await create_madrasah(db)
    await seed_business_data(db, madrasah, students=3, teachers=2)
    service = BackupService(db)
    older = await service.create_backup(madrasah.id, notes="first")
    newer = await service.create_backup(madrasah.id, notes="second")

    page = await service.list_backups(madrasah.id, page=1, size=1)

    assert page["total"] == 2
    assert page["has_next"] is True
    item = page["items"][0]
    assert item["id"] == str(newer.id)
    assert "backup_data" not in item
    assert item["table_counts"]["students"] == 3
    assert item["is_complete"] is True
    second_page = await service.list_backups(madrasah.id, page=2, size=1)
    assert second_page["items"][0]["id"] == str(older.id)


async def test_summary_flags_incomplete_payloads(db):
    madrasah = await create_madrasah(db)
    backup = Backup(madrasah_id=madrasah.id, backup_type="manual", backup_data={"students": []})
    db.add(backup)
    await db.commit()

    summary = summarize_backup(backup)

    assert summary["is_complete"] is False
    assert summary["total_records"] == 0


async def test_delete_backup(db):
    madrasah = await create_madrasah(db)
    service = BackupService(db)
    backup = await service.create_backup(madrasah.id)

    await service.delete_backup(madrasah.id, backup.id)

    assert await backup_count(db, madrasah.id) == 0
    with pytest.raises(NotFoundError):
        await service.delete_backup(madrasah.id, backup.id)


async def test_students_of_other_tenant_untouched_by_backup(db):
    first = await create_madrasah(db, code="MDR1")
    second = await create_madrasah(db, code="MDR2")
    await seed_business_data(db, second, students=2)

    backup = await BackupService(db).create_backup(first.id)

    assert backup.backup_data["students"] == []
    total = (await db.execute(select(func.count()).select_from(Student))).scalar()
    assert total == 2


async def test_read_failure_is_logged_and_raised(caplog):
    madrasah_id = uuid.uuid4()
    store = TenantDataStore(BrokenSession(), madrasah_id)

    with caplog.at_level("ERROR", logger="madrasah_admin.services.data_store"):
        with pytest.raises(StoreError):
            await store.fetch_rows("students")

    assert f"Error reading students for madrasah {madrasah_id}: " in caplog.text
    assert "disk I/O error" in caplog.text
