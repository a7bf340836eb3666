"""
Tests for the receipt store.
"""
import pytest
from sqlalchemy.exc import OperationalError

from receipt_splitter.core.exceptions import InternalError, NotFoundError
from receipt_splitter.models.receipt import Modifier, Receipt, ReceiptItem
from receipt_splitter.models.user import User
from receipt_splitter.schemas import ReceiptCreate
from receipt_splitter.services.receipt_service import receipt_service

pytestmark = pytest.mark.unit


@pytest.fixture
def alice(test_db):
    user = User(name="Alice", email="a@x.com", password="hash")
    test_db.add(user)
    test_db.commit()
    return user


@pytest.fixture
def bob(test_db):
    user = User(name="Bob", email="b@x.com", password="hash")
    test_db.add(user)
    test_db.commit()
    return user


class TestCreateReceipt:
    def test_create_then_fetch(self, test_db, alice):
        data = ReceiptCreate(items=[{"item": "Milk", "price": 1.5, "qty": 2}])
        created = receipt_service.create_receipt(test_db, alice.id, data)

        fetched = receipt_service.get_receipt(test_db, created.id)
        assert len(fetched.items) == 1
        assert fetched.items[0].item == "Milk"
        assert float(fetched.items[0].price) == 1.5
        assert fetched.items[0].qty == 2
        assert fetched.items[0].id
        assert fetched.modifiers == []

    def test_children_keep_request_order(self, test_db, alice):
        data = ReceiptCreate(
            name="Dinner",
            reason="Friday team dinner",
            monzo_id="acc_1",
            items=[{"item": name, "price": 2, "qty": 1} for name in ["Soup", "Pasta", "Tiramisu"]],
            modifiers=[
                {"type": "Service Charge", "value": 1.2, "percentage": 12.5},
                {"type": "Discount", "value": -2, "include": False},
            ],
        )
        created = receipt_service.create_receipt(test_db, alice.id, data)

        assert [i.item for i in created.items] == ["Soup", "Pasta", "Tiramisu"]
        assert [m.type for m in created.modifiers] == ["Service Charge", "Discount"]
        assert float(created.modifiers[0].percentage) == 12.5
        assert created.modifiers[1].include is False
        assert created.modifiers[1].percentage is None
        assert created.name == "Dinner"
        assert created.monzo_id == "acc_1"

    def test_out_of_range_values_are_stored_as_sent(self, test_db, alice):
        data = ReceiptCreate(items=[{"item": "Refund", "price": -3.5, "qty": -1}])
        created = receipt_service.create_receipt(test_db, alice.id, data)
        assert float(created.items[0].price) == -3.5
        assert created.items[0].qty == -1

    def test_amounts_come_back_unrounded(self, test_db, alice):
        data = ReceiptCreate(
            items=[{"item": "Slice", "price": 3.3333, "qty": 3}],
            modifiers=[{"type": "Service Charge", "value": 0.125, "percentage": 12.34567}],
        )
        created = receipt_service.create_receipt(test_db, alice.id, data)
        test_db.expire_all()

        fetched = receipt_service.get_receipt(test_db, created.id)
        assert fetched.items[0].price == 3.3333
        assert fetched.modifiers[0].value == 0.125
        assert fetched.modifiers[0].percentage == 12.34567

    def test_unknown_price_is_null(self, test_db, alice):
        data = ReceiptCreate(items=[{"item": "Mystery", "qty": 1}])
        created = receipt_service.create_receipt(test_db, alice.id, data)
        assert created.items[0].price is None

    def test_failed_commit_leaves_nothing_behind(self, test_db, alice, monkeypatch):
        def broken_commit():
            raise OperationalError("INSERT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(test_db, "commit", broken_commit)
        data = ReceiptCreate(
            items=[{"item": "Milk", "price": 1.5, "qty": 2}],
            modifiers=[{"type": "Tax", "value": 0.3}],
        )
        with pytest.raises(InternalError):
            receipt_service.create_receipt(test_db, alice.id, data)

        monkeypatch.undo()
        assert test_db.query(Receipt).count() == 0
        assert test_db.query(ReceiptItem).count() == 0
        assert test_db.query(Modifier).count() == 0


class TestListReceipts:
    def test_only_owner_receipts(self, test_db, alice, bob):
        mine = receipt_service.create_receipt(test_db, alice.id, ReceiptCreate(name="mine"))
        theirs = receipt_service.create_receipt(test_db, bob.id, ReceiptCreate(name="theirs"))

        alice_ids = {r.id for r in receipt_service.list_receipts(test_db, alice.id)}
        bob_ids = {r.id for r in receipt_service.list_receipts(test_db, bob.id)}
        assert alice_ids == {mine.id}
        assert bob_ids == {theirs.id}

    def test_empty(self, test_db, alice):
        assert receipt_service.list_receipts(test_db, alice.id) == []


class TestGetReceipt:
    def test_missing(self, test_db):
        with pytest.raises(NotFoundError):
            receipt_service.get_receipt(test_db, "nope")

    def test_not_scoped_to_owner(self, test_db, alice, bob):
        created = receipt_service.create_receipt(test_db, alice.id, ReceiptCreate(name="x"))
        assert receipt_service.get_receipt(test_db, created.id).user_id == alice.id


class TestCascade:
    def test_deleting_user_removes_receipts_and_children(self, test_db, alice):
        receipt_service.create_receipt(
            test_db,
            alice.id,
            ReceiptCreate(
                items=[{"item": "Milk", "price": 1.5, "qty": 2}],
                modifiers=[{"type": "Tax", "value": 0.3}],
            ),
        )
        test_db.delete(alice)
        test_db.commit()

        assert test_db.query(Receipt).count() == 0
        assert test_db.query(ReceiptItem).count() == 0
        assert test_db.query(Modifier).count() == 0
