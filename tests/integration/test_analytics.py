"""Integration tests for event tracking and analytics summaries."""

import uuid
from datetime import timedelta

import pytest
from services.analytics_service.models import CardEvent, EventType
from services.cards_service.models import Card
from sqlalchemy import select

from tests.factories import CardEventFactory, CardFactory


async def _published_card(db_session, **overrides):
    card = CardFactory.create(is_published=True, **overrides)
    db_session.add(card)
    await db_session.commit()
    return card


async def _cached_analytics(db_session, card_id):
    result = await db_session.execute(select(Card.analytics).where(Card.id == card_id))
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Tracking
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_records_and_refreshes(analytics_client, db_session, auth):
    card = await _published_card(db_session)
    auth.logout()

    response = await analytics_client.post(
        "/analytics/events",
        json={
            "cardId": str(card.id),
            "eventType": "link_click",
            "metadata": {"linkId": "gh", "source": "nfc"},
        },
        headers={
            "User-Agent": "pytest-agent",
            "Referer": "https://ref.test/",
            "X-Forwarded-For": "198.51.100.4, 10.0.0.1",
        },
    )

    assert response.status_code == 201
    assert response.json() == {"success": True, "message": "Event tracked successfully"}

    event = (
        await db_session.execute(select(CardEvent).where(CardEvent.card_id == card.id))
    ).scalar_one()
    assert event.event_type == EventType.LINK_CLICK
    assert event.event_metadata["linkId"] == "gh"
    assert event.event_metadata["userAgent"] == "pytest-agent"
    assert event.event_metadata["referrer"] == "https://ref.test/"
    assert "198.51.100.4" not in event.ip_hash

    # the background refresh has already written the cached summary
    analytics = await _cached_analytics(db_session, card.id)
    assert analytics["total"] == 1
    assert analytics["byType"] == {"link_click": 1}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_on_unpublished_card(analytics_client, db_session):
    card = CardFactory.create(is_published=False)
    db_session.add(card)
    await db_session.commit()

    response = await analytics_client.post(
        "/analytics/events", json={"cardId": str(card.id), "eventType": "view"}
    )

    assert response.status_code == 400
    assert response.json()["message"] == "Card is not published"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_unknown_card(analytics_client):
    response = await analytics_client.post(
        "/analytics/events", json={"cardId": str(uuid.uuid4()), "eventType": "view"}
    )

    assert response.status_code == 404


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_rejects_unknown_type(analytics_client, db_session):
    card = await _published_card(db_session)

    response = await analytics_client.post(
        "/analytics/events", json={"cardId": str(card.id), "eventType": "purchase"}
    )

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_FAILED"


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_counts_windows(analytics_client, db_session, clock):
    card = await _published_card(db_session)
    for event_type, age in [
        (EventType.VIEW, timedelta(hours=2)),
        (EventType.VIEW, timedelta(days=2)),
        (EventType.QR_SCAN, timedelta(days=12)),
        (EventType.SHARE, timedelta(days=60)),
    ]:
        db_session.add(
            CardEventFactory.create(
                card_id=card.id, event_type=event_type, occurred_at=clock.now - age
            )
        )
    await db_session.commit()

    response = await analytics_client.get(f"/analytics/cards/{card.id}/summary")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["cached"] is False
    summary = body["analytics"]
    assert summary["total"] == 4
    assert summary["last24h"] == 1
    assert summary["last7d"] == 2
    assert summary["last30d"] == 3
    assert summary["byType"] == {"view": 2, "qr_scan": 1, "share": 1}
    assert summary["lastUpdated"].endswith("Z")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_served_from_cache_until_ttl(analytics_client, db_session, clock):
    card = await _published_card(db_session)
    db_session.add(CardEventFactory.create(card_id=card.id, occurred_at=clock.now))
    await db_session.commit()

    first = await analytics_client.get(f"/analytics/cards/{card.id}/summary")
    assert first.json()["cached"] is False

    # an event written behind the cache is not visible until expiry
    db_session.add(CardEventFactory.create(card_id=card.id, occurred_at=clock.now))
    await db_session.commit()

    clock.advance(minutes=1)
    second = await analytics_client.get(f"/analytics/cards/{card.id}/summary")
    assert second.json()["cached"] is True
    assert second.json()["analytics"]["total"] == 1

    clock.advance(minutes=6)
    third = await analytics_client.get(f"/analytics/cards/{card.id}/summary")
    assert third.json()["cached"] is False
    assert third.json()["analytics"]["total"] == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_refresh_keeps_updated_at(analytics_client, db_session):
    card = await _published_card(db_session)
    before = (
        await db_session.execute(select(Card.updated_at).where(Card.id == card.id))
    ).scalar_one()

    await analytics_client.get(f"/analytics/cards/{card.id}/summary")

    after = (
        await db_session.execute(select(Card.updated_at).where(Card.id == card.id))
    ).scalar_one()
    assert after == before


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_for_other_users_card(analytics_client, db_session):
    card = await _published_card(db_session, user_id="someone-else")

    response = await analytics_client.get(f"/analytics/cards/{card.id}/summary")

    assert response.status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_requires_auth(analytics_client, db_session, auth):
    card = await _published_card(db_session)
    auth.logout()

    response = await analytics_client.get(f"/analytics/cards/{card.id}/summary")

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_summary_unknown_card(analytics_client):
    response = await analytics_client.get(f"/analytics/cards/{uuid.uuid4()}/summary")

    assert response.status_code == 404
