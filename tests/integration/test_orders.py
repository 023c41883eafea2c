"""Integration tests for store checkout and admin order management."""

import pytest
from services.store_service.models import Order, OrderStatus
from sqlalchemy import select

from tests.factories import CardFactory, OrderFactory, shipping_info


def _checkout_body(**overrides) -> dict:
    body = {
        "productType": "NFC_CARD",
        "quantity": 2,
        "material": "metal",
        "paymentMethod": "PAYFAST",
        "shippingInfo": shipping_info(),
    }
    body.update(overrides)
    return body


# ---------------------------------------------------------------------------
# Checkout
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_payfast_requires_payment(store_client):
    response = await store_client.post("/orders", json=_checkout_body())

    assert response.status_code == 201, response.text
    body = response.json()
    assert body["success"] is True
    assert body["requiresPayment"] is True
    order = body["order"]
    assert order["amount"] == 1000.0
    assert order["currency"] == "PKR"
    assert order["paymentStatus"] == "pending"
    assert order["status"] == "pending"
    assert order["orderNumber"].startswith("TC-")
    assert order["shippingInfo"]["postalCode"] == "54000"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_cod_needs_no_payment(store_client):
    response = await store_client.post(
        "/orders",
        json=_checkout_body(
            productType="QR_STICKER", quantity=10, material=None, paymentMethod="COD"
        ),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["requiresPayment"] is False
    assert body["order"]["amount"] == 500.0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_ignores_client_supplied_amount(store_client):
    response = await store_client.post("/orders", json=_checkout_body(amount=1))

    assert response.json()["order"]["amount"] == 1000.0


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "overrides",
    [
        {"quantity": 0},
        {"productType": "MUG"},
        {"paymentMethod": "CARD"},
        {"shippingInfo": shipping_info(email="not-an-email")},
    ],
)
async def test_checkout_validation(store_client, overrides):
    response = await store_client.post("/orders", json=_checkout_body(**overrides))

    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_for_own_card(store_client, db_session):
    card = CardFactory.create()
    db_session.add(card)
    await db_session.commit()

    response = await store_client.post("/orders", json=_checkout_body(cardId=str(card.id)))

    assert response.status_code == 201
    assert response.json()["order"]["cardId"] == str(card.id)


@pytest.mark.asyncio
@pytest.mark.integration
async def test_checkout_for_someone_elses_card(store_client, db_session):
    card = CardFactory.create(user_id="someone-else")
    db_session.add(card)
    await db_session.commit()

    response = await store_client.post("/orders", json=_checkout_body(cardId=str(card.id)))

    assert response.status_code == 403
    count = (await db_session.execute(select(Order.id))).all()
    assert count == []


# ---------------------------------------------------------------------------
# Order history
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_and_get_own_orders(store_client, db_session):
    mine = OrderFactory.create()
    theirs = OrderFactory.create(user_id="someone-else")
    db_session.add_all([mine, theirs])
    await db_session.commit()

    listed = await store_client.get("/orders")
    assert [o["id"] for o in listed.json()] == [str(mine.id)]

    assert (await store_client.get(f"/orders/{mine.id}")).status_code == 200
    assert (await store_client.get(f"/orders/{theirs.id}")).status_code == 404


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_updates_status(store_client, db_session, auth):
    order = OrderFactory.create()
    db_session.add(order)
    await db_session.commit()
    auth.login("admin-1", role="admin")

    response = await store_client.patch(
        f"/admin/orders/{order.id}", json={"status": "shipped", "trackingNo": "TRK123"}
    )

    assert response.status_code == 200
    assert response.json()["status"] == "shipped"
    assert response.json()["trackingNo"] == "TRK123"
    stored = (
        await db_session.execute(select(Order.status).where(Order.id == order.id))
    ).scalar_one()
    assert stored == OrderStatus.SHIPPED


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_lists_with_filters(store_client, db_session, auth):
    db_session.add_all(
        [
            OrderFactory.create(status=OrderStatus.SHIPPED),
            OrderFactory.create(user_id="someone-else"),
        ]
    )
    await db_session.commit()
    auth.login("admin-1", role="admin")

    everything = await store_client.get("/admin/orders")
    shipped = await store_client.get("/admin/orders", params={"status": "shipped"})

    assert len(everything.json()) == 2
    assert [o["status"] for o in shipped.json()] == ["shipped"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_routes_need_admin_role(store_client, db_session):
    order = OrderFactory.create()
    db_session.add(order)
    await db_session.commit()

    assert (await store_client.get("/admin/orders")).status_code == 403
    assert (
        await store_client.patch(f"/admin/orders/{order.id}", json={"status": "shipped"})
    ).status_code == 403
