"""
Inventory ledger: signed deltas, non-negative stock, low stock and expiry
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from clinic.domain.inventory.schemas import (
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryTransactionCreate,
)
from clinic.domain.inventory.service import InventoryService, signed_delta
from clinic.exceptions import BusinessRuleError, NotFoundError
from clinic.models_inventory import InventoryTransaction, InventoryTransactionType
from clinic.shared.time_utils import utcnow


@pytest.fixture
def service(db):
    return InventoryService(db)


@pytest.fixture
def gloves(service):
    return service.create_item(
        InventoryItemCreate(
            name="Nitrile gloves",
            category="Consumables",
            unit="box",
            current_stock=5,
            min_stock_level=10,
            unit_price=Decimal("250.00"),
        )
    )


def movement(kind: InventoryTransactionType, quantity: int, **extra) -> InventoryTransactionCreate:
    return InventoryTransactionCreate(type=kind, quantity=quantity, **extra)


class TestSignedDelta:
    @pytest.mark.parametrize(
        "kind,expected",
        [
            (InventoryTransactionType.PURCHASE, 4),
            (InventoryTransactionType.ADJUSTMENT, 4),
            (InventoryTransactionType.SALE, -4),
            (InventoryTransactionType.USAGE, -4),
            (InventoryTransactionType.EXPIRED, -4),
        ],
    )
    def test_sign_by_type(self, kind, expected):
        assert signed_delta(kind, 4) == expected


class TestTransactions:
    def test_low_stock_flag(self, gloves):
        assert gloves.is_low_stock

    def test_sale_reduces_stock(self, service, gloves):
        transaction = service.apply_transaction(gloves.id, movement(InventoryTransactionType.SALE, 3))

        assert transaction.stock_after == 2
        assert service.get_item(gloves.id).current_stock == 2

    def test_insufficient_stock_leaves_item_untouched(self, db, service, gloves):
        service.apply_transaction(gloves.id, movement(InventoryTransactionType.SALE, 3))

        with pytest.raises(BusinessRuleError) as exc_info:
            service.apply_transaction(gloves.id, movement(InventoryTransactionType.SALE, 10))

        assert exc_info.value.message == "Insufficient stock"
        assert exc_info.value.context == {
            "currentStock": 2,
            "delta": -10,
            "quantity": 10,
            "type": "SALE",
        }
        assert service.get_item(gloves.id).current_stock == 2
        assert db.query(InventoryTransaction).filter_by(inventory_id=gloves.id).count() == 1

    def test_stock_may_reach_exactly_zero(self, service, gloves):
        transaction = service.apply_transaction(gloves.id, movement(InventoryTransactionType.USAGE, 5))
        assert transaction.stock_after == 0

    def test_purchase_and_adjustment_add_stock(self, service, gloves):
        service.apply_transaction(gloves.id, movement(InventoryTransactionType.PURCHASE, 20))
        service.apply_transaction(gloves.id, movement(InventoryTransactionType.ADJUSTMENT, 2))

        item = service.get_item(gloves.id)
        assert item.current_stock == 27
        assert not item.is_low_stock

    def test_total_amount_from_unit_price(self, service, gloves):
        transaction = service.apply_transaction(
            gloves.id,
            movement(InventoryTransactionType.PURCHASE, 4, unit_price=Decimal("199.99")),
        )
        assert transaction.total_amount == Decimal("799.96")

    def test_unpriced_movement_has_no_total(self, service, gloves):
        transaction = service.apply_transaction(gloves.id, movement(InventoryTransactionType.EXPIRED, 1))
        assert transaction.total_amount is None

    def test_inactive_item_rejects_movements(self, service, gloves):
        service.delete_item(gloves.id)

        with pytest.raises(NotFoundError):
            service.apply_transaction(gloves.id, movement(InventoryTransactionType.PURCHASE, 1))

    def test_unknown_item(self, service):
        with pytest.raises(NotFoundError):
            service.apply_transaction(9999, movement(InventoryTransactionType.PURCHASE, 1))

    def test_update_never_touches_stock(self, service, gloves):
        item = service.update_item(gloves.id, InventoryItemUpdate(name="Gloves (M)", min_stock_level=2))

        assert item.name == "Gloves (M)"
        assert item.current_stock == 5
        assert not item.is_low_stock


class TestQueries:
    def test_low_stock_listing(self, service, gloves):
        service.create_item(
            InventoryItemCreate(name="Masks", category="Consumables", unit="box", current_stock=50, min_stock_level=10)
        )

        assert [i.name for i in service.get_low_stock_items()] == ["Nitrile gloves"]

    def test_expiring_soon_includes_already_expired(self, service):
        today = utcnow().date()
        for name, expiry in [
            ("Expired", today - timedelta(days=1)),
            ("Soon", today + timedelta(days=10)),
            ("Later", today + timedelta(days=90)),
            ("No expiry", None),
        ]:
            service.create_item(
                InventoryItemCreate(name=name, category="Drugs", unit="vial", current_stock=1, expiry_date=expiry)
            )

        assert [i.name for i in service.get_expiring_items(30)] == ["Expired", "Soon"]


class TestInventoryApi:
    def create(self, client, headers, **overrides):
        payload = {
            "name": "Composite resin",
            "category": "Restorative",
            "unit": "syringe",
            "currentStock": 5,
            "minStockLevel": 10,
            "unitPrice": 1200,
            "expiryDate": (date.today() + timedelta(days=7)).isoformat(),
            **overrides,
        }
        response = client.post("/api/inventory", json=payload, headers=headers)
        assert response.status_code == 201
        return response.json()["data"]

    def test_create_flags(self, client, headers):
        item = self.create(client, headers)

        assert item["isLowStock"] is True
        assert item["isExpiringSoon"] is True
        assert item["unitPrice"] == 1200.0

    def test_transaction_and_rejection(self, client, headers):
        item = self.create(client, headers)

        sale = client.post(
            f"/api/inventory/{item['id']}/transaction", json={"type": "SALE", "quantity": 3}, headers=headers
        )
        assert sale.status_code == 201
        assert sale.json()["data"]["stockAfter"] == 2

        rejected = client.post(
            f"/api/inventory/{item['id']}/transaction", json={"type": "SALE", "quantity": 10}, headers=headers
        )
        assert rejected.status_code == 400
        assert rejected.json()["message"] == "Insufficient stock"
        assert rejected.json()["currentStock"] == 2

        detail = client.get(f"/api/inventory/{item['id']}", headers=headers).json()["data"]
        assert detail["currentStock"] == 2
        assert len(detail["transactions"]) == 1
        assert detail["transactions"][0]["type"] == "SALE"

    def test_quantity_must_be_positive(self, client, headers):
        item = self.create(client, headers)

        response = client.post(
            f"/api/inventory/{item['id']}/transaction", json={"type": "PURCHASE", "quantity": 0}, headers=headers
        )
        assert response.status_code == 422

    def test_list_with_low_stock_filter(self, client, headers):
        self.create(client, headers)
        self.create(client, headers, name="Burs", currentStock=100)

        data = client.get("/api/inventory?lowStock=true", headers=headers).json()["data"]
        assert data["pagination"]["total"] == 1
        assert data["items"][0]["name"] == "Composite resin"

        everything = client.get("/api/inventory", headers=headers).json()["data"]
        assert [i["name"] for i in everything["items"]] == ["Burs", "Composite resin"]

    def test_low_stock_and_expiring_endpoints(self, client, headers):
        self.create(client, headers)

        low = client.get("/api/inventory/low-stock", headers=headers).json()["data"]
        expiring = client.get("/api/inventory/expiring-soon?days=3", headers=headers).json()["data"]

        assert len(low) == 1
        assert expiring == []

    def test_delete_hides_item(self, client, headers):
        item = self.create(client, headers)

        response = client.delete(f"/api/inventory/{item['id']}", headers=headers)
        assert response.json()["data"]["message"] == "Inventory item deleted"

        listing = client.get("/api/inventory", headers=headers).json()["data"]
        assert listing["items"] == []


def test_stock_equals_initial_plus_accepted_deltas(service, gloves):
    moves = [
        (InventoryTransactionType.PURCHASE, 10),
        (InventoryTransactionType.USAGE, 4),
        (InventoryTransactionType.SALE, 20),  # rejected
        (InventoryTransactionType.EXPIRED, 1),
        (InventoryTransactionType.ADJUSTMENT, 3),
    ]
    accepted = []
    for kind, quantity in moves:
        try:
            transaction = service.apply_transaction(gloves.id, movement(kind, quantity))
        except BusinessRuleError:
            continue
        accepted.append(signed_delta(kind, quantity))
        assert transaction.stock_after >= 0

    assert service.get_item(gloves.id).current_stock == 5 + sum(accepted) == 13
