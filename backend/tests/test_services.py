"""Service functions driven directly against the test database"""

from datetime import date, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from evm_dealer.core.config import settings
from evm_dealer.models import DistributionOrder, Inventory, OrderStatus, SalesOrder, User
from evm_dealer.schemas.inventory import InventoryCreate
from evm_dealer.schemas.sales_order import PaymentCreate
from evm_dealer.schemas.sell_in import SellInItem, SellInRequestCreate
from evm_dealer.services import inventory_service, payment_service, quotation_service, scheduler, sell_in_service


async def _admin(db) -> User:
    result = await db.execute(select(User).where(User.username == settings.FIRST_ADMIN_USERNAME))
    return result.scalars().first()


def _stock(total=5, reserved=0, in_transit=0) -> Inventory:
    return Inventory(
        total_quantity=total,
        reserved_quantity=reserved,
        available_quantity=total - reserved - in_transit,
        in_transit_quantity=in_transit,
    )


class TestStockMovements:

    def test_reserve_and_release(self):
        inventory = _stock(total=5)
        inventory_service.apply_reserve(inventory, 3)
        assert (inventory.available_quantity, inventory.reserved_quantity) == (2, 3)
        inventory_service.apply_release(inventory, 1)
        assert (inventory.available_quantity, inventory.reserved_quantity) == (3, 2)

    def test_reserve_more_than_available(self):
        with pytest.raises(HTTPException) as exc:
            inventory_service.apply_reserve(_stock(total=2), 3)
        assert exc.value.status_code == 400

    def test_adjustment_cannot_go_negative(self):
        inventory = _stock(total=4, reserved=3)
        with pytest.raises(HTTPException):
            inventory_service.apply_adjustment(inventory, -2)
        inventory_service.apply_adjustment(inventory, -1)
        assert (inventory.total_quantity, inventory.available_quantity) == (3, 0)

    async def test_receive_stock_creates_missing_row(self, db, product, make_dealer):
        dealer = make_dealer()
        await inventory_service.receive_stock(db, product["id"], dealer["id"], 3)
        await inventory_service.receive_stock(db, product["id"], dealer["id"], 2)
        await db.commit()

        row = await inventory_service.find_inventory(db, product["id"], dealer["id"])
        assert (row.total_quantity, row.available_quantity, row.reserved_quantity) == (5, 5, 0)

    async def test_transfer_to_same_dealer_is_rejected(self, db, product, make_dealer):
        dealer = make_dealer()
        source = await inventory_service.create_inventory(db, InventoryCreate(
            product_id=product["id"], dealer_id=dealer["id"], total_quantity=4, available_quantity=4
        ))
        with pytest.raises(HTTPException) as exc:
            await inventory_service.transfer_inventory(db, source.id, dealer["id"], 1)
        assert exc.value.status_code == 400

    async def test_transfer_marks_units_in_transit(self, db, product, make_dealer):
        source = await inventory_service.create_inventory(db, InventoryCreate(
            product_id=product["id"], total_quantity=6, available_quantity=6
        ))
        destination_dealer = make_dealer()
        source = await inventory_service.transfer_inventory(db, source.id, destination_dealer["id"], 2)
        assert (source.total_quantity, source.available_quantity, source.in_transit_quantity) == (4, 4, 2)

        destination = await inventory_service.find_inventory(db, product["id"], destination_dealer["id"])
        assert (destination.total_quantity, destination.in_transit_quantity) == (0, 2)


class TestSellInDelivery:

    async def test_delivery_books_stock_and_closes_shipment(self, db, product, make_dealer):
        dealer = make_dealer()
        admin = await _admin(db)
        request = await sell_in_service.create_request(db, SellInRequestCreate(
            dealer_id=dealer["id"],
            expected_delivery_date=date.today() + timedelta(days=2),
            items=[SellInItem(product_id=product["id"], color="Red", quantity=3)],
        ), admin)

        await sell_in_service.approve_request(db, request.id, None, admin)
        await sell_in_service.mark_in_transit(db, request.id, "TRK-9")
        delivered = await sell_in_service.mark_delivered(db, request.id)

        assert delivered.status == "DELIVERED"
        assert delivered.details[0].delivered_quantity == 3
        row = await inventory_service.find_inventory(db, product["id"], dealer["id"])
        assert (row.total_quantity, row.available_quantity) == (3, 3)

        shipments = (await db.execute(
            select(DistributionOrder).where(DistributionOrder.request_id == request.id)
        )).scalars().all()
        assert [s.status for s in shipments] == ["DELIVERED"]
        assert shipments[0].tracking_number == "TRK-9"

    async def test_delivery_requires_transit(self, db, product, make_dealer):
        admin = await _admin(db)
        request = await sell_in_service.create_request(db, SellInRequestCreate(
            dealer_id=make_dealer()["id"],
            items=[SellInItem(product_id=product["id"], quantity=1)],
        ), admin)
        with pytest.raises(HTTPException) as exc:
            await sell_in_service.mark_delivered(db, request.id)
        assert exc.value.status_code == 400


class TestPaymentSettlement:

    @pytest.fixture
    def order(self, customer, product, make_order):
        return make_order(customer["id"], product_id=product["id"], base_price=100000)

    async def _status(self, db, order_id) -> str:
        result = await db.execute(
            select(SalesOrder.status).where(SalesOrder.id == order_id).execution_options(populate_existing=True)
        )
        return result.scalar()

    async def test_refunds_walk_status_back(self, db, order):
        first = await payment_service.create_payment(
            db, PaymentCreate(order_id=order["id"], amount=50000, status="COMPLETED")
        )
        assert await self._status(db, order["id"]) == OrderStatus.PENDING
        second = await payment_service.create_payment(
            db, PaymentCreate(order_id=order["id"], amount=60000, status="COMPLETED")
        )
        assert await self._status(db, order["id"]) == OrderStatus.PAID
        assert await payment_service.total_paid(db, order["id"]) == 110000

        await payment_service.refund_payment(db, second.id, "duplicate")
        assert await self._status(db, order["id"]) == OrderStatus.CONFIRMED

        await payment_service.refund_payment(db, first.id)
        assert await self._status(db, order["id"]) == OrderStatus.PENDING
        assert await payment_service.total_paid(db, order["id"]) == 0

    async def test_revert_leaves_finished_orders_alone(self, db, order):
        stored = await db.get(SalesOrder, order["id"])
        stored.status = OrderStatus.DELIVERED
        await payment_service._revert_after_refund(db, stored)
        assert stored.status == OrderStatus.DELIVERED
        await db.rollback()


class TestScheduledJobs:

    async def test_cron_expiry_logs_and_survives_failures(self, client, monkeypatch):
        async def broken(db, today=None):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(quotation_service, "auto_expire", broken)
        assert await scheduler.expire_quotations() == 0
