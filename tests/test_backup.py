from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from database import Base
from models import Owner
from schemas import ReceiptIn
from services import BACKUP_VERSION, BackupService, ReceiptService


def _engine():
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    return engine


def test_backup_then_restore_into_empty_store() -> None:
    source = _engine()
    with Session(source) as session:
        ReceiptService(session).create(
            ReceiptIn.model_validate(
                {
                    "merchant_name": "Shell",
                    "date": "2024-02-10",
                    "amount": "50.00",
                    "tax": "10.00",
                    "category": "Travel & Transportation",
                    "owner": "user2",
                }
            )
        )
        backup = BackupService(session).backup()

    assert backup["version"] == BACKUP_VERSION
    assert backup["receipts"][0]["amount"] == "50.00"
    assert backup["receipts"][0]["tax"] == "10.00"

    target = _engine()
    with Session(target) as session:
        imported, skipped = BackupService(session).restore(backup["receipts"])
        assert (imported, skipped) == (1, 0)
        restored = ReceiptService(session).list()
        assert restored[0].merchant_name == "Shell"
        assert restored[0].owner == Owner.user2
        assert restored[0].tax_cents == 1000


def test_restore_skips_incomplete_entries_and_fills_defaults() -> None:
    engine = _engine()
    entries = [
        {"merchantName": "Hilton", "date": "2024-04-01", "amount": "300.00"},
        {"merchantName": "No date", "amount": "1.00"},
        {"date": "2024-04-02", "amount": "1.00"},
        {"merchantName": "No amount", "date": "2024-04-03"},
        {"merchantName": "Bad tax", "date": "2024-04-04", "amount": "1.00", "tax": "2.00"},
        "not an object",
    ]
    with Session(engine) as session:
        imported, skipped = BackupService(session).restore(entries)
        assert (imported, skipped) == (1, 5)
        (receipt,) = ReceiptService(session).list()
        assert receipt.category == "Other"
        assert receipt.owner == Owner.user1


def test_restore_owner_override_wins() -> None:
    engine = _engine()
    entries = [
        {"merchant_name": "Cafe", "date": "2024-04-01", "amount": "3.00", "owner": "user1"},
    ]
    with Session(engine) as session:
        BackupService(session).restore(entries, Owner.user2)
        assert ReceiptService(session).list()[0].owner == Owner.user2


def test_backup_is_owner_scoped() -> None:
    engine = _engine()
    with Session(engine) as session:
        for owner in ("user1", "user2"):
            ReceiptService(session).create(
                ReceiptIn.model_validate(
                    {
                        "merchant_name": f"Store {owner}",
                        "date": "2024-01-01",
                        "amount": "1.00",
                        "category": "Other",
                        "owner": owner,
                    }
                )
            )
        backup = BackupService(session).backup(Owner.user1)
    assert backup["owner"] == "user1"
    assert [r["merchant_name"] for r in backup["receipts"]] == ["Store user1"]
