"""Integration tests for the cards service API."""

import pytest
from services.analytics_service.models import CardEvent
from services.cards_service.models import Card
from sqlalchemy import select

from tests.factories import CardEventFactory, CardFactory

CARD_DATA = {
    "personal": {
        "firstName": "Jane",
        "lastName": "Doe",
        "jobTitle": "Engineer",
        "email": "jane@example.com",
        "profileImage": "https://img.test/jane.png",
    },
    "links": [
        {"id": "gh", "title": "GitHub", "url": "https://github.com/jane", "order": 0}
    ],
}


async def _create(cards_client, title="Jane Doe", **extra):
    response = await cards_client.post("/cards", json={"title": title, **extra})
    assert response.status_code == 201, response.text
    return response.json()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_card_assigns_slug_from_title(cards_client):
    card = await _create(cards_client, data=CARD_DATA)

    assert card["slug"] == "jane-doe"
    assert card["userId"] == "user-owner"
    assert card["isPublished"] is False
    assert card["data"]["personal"]["firstName"] == "Jane"
    assert card["publicUrl"] is None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_card_suffixes_taken_slug(cards_client):
    first = await _create(cards_client)
    second = await _create(cards_client)
    third = await _create(cards_client)

    assert [first["slug"], second["slug"], third["slug"]] == [
        "jane-doe",
        "jane-doe-1",
        "jane-doe-2",
    ]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_card_without_title(cards_client):
    response = await cards_client.post("/cards", json={})

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Untitled Card"
    assert body["slug"].startswith("card-")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_create_card_rejects_bad_link_url(cards_client):
    data = {"links": [{"id": "x", "title": "X", "url": "not a url", "order": 0}]}

    response = await cards_client.post("/cards", json={"title": "X", "data": data})

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_FAILED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_get_update_card(cards_client):
    card = await _create(cards_client, data=CARD_DATA)

    listed = await cards_client.get("/cards")
    assert [c["id"] for c in listed.json()] == [card["id"]]

    updated = await cards_client.patch(
        f"/cards/{card['id']}",
        json={"title": "Jane D.", "theme": {"primaryColor": "#112233"}},
    )
    assert updated.status_code == 200
    assert updated.json()["title"] == "Jane D."
    assert updated.json()["theme"] == {"primaryColor": "#112233"}
    # slug is stable across edits
    assert updated.json()["slug"] == card["slug"]

    fetched = await cards_client.get(f"/cards/{card['id']}")
    assert fetched.json()["title"] == "Jane D."


@pytest.mark.asyncio
@pytest.mark.integration
async def test_other_users_card_is_forbidden(cards_client, db_session):
    card = CardFactory.create(user_id="someone-else")
    db_session.add(card)
    await db_session.commit()

    assert (await cards_client.get(f"/cards/{card.id}")).status_code == 403
    assert (
        await cards_client.patch(f"/cards/{card.id}", json={"title": "mine"})
    ).status_code == 403
    assert (await cards_client.delete(f"/cards/{card.id}")).status_code == 403


@pytest.mark.asyncio
@pytest.mark.integration
async def test_anonymous_requests_rejected(cards_client, auth):
    auth.logout()

    response = await cards_client.get("/cards")

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_delete_card_removes_events(cards_client, db_session):
    card = CardFactory.create(is_published=True)
    db_session.add(card)
    await db_session.flush()
    db_session.add(CardEventFactory.create(card_id=card.id))
    db_session.add(CardEventFactory.create(card_id=card.id))
    await db_session.commit()

    response = await cards_client.delete(f"/cards/{card.id}")

    assert response.status_code == 204
    remaining = await db_session.execute(
        select(CardEvent.id).where(CardEvent.card_id == card.id)
    )
    assert remaining.all() == []
    assert (await db_session.execute(select(Card.id).where(Card.id == card.id))).all() == []


# ---------------------------------------------------------------------------
# Publishing
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_publish_card_generates_qr_and_meta(cards_client, storage):
    card = await _create(cards_client, data=CARD_DATA)

    response = await cards_client.post(
        f"/cards/{card['id']}/publish", json={"slug": "jane-the-engineer"}
    )

    assert response.status_code == 200, response.text
    body = response.json()
    assert body["success"] is True
    published = body["card"]
    assert published["isPublished"] is True
    assert published["slug"] == "jane-the-engineer"
    assert published["publicUrl"] == "https://tapcard.test/card/jane-the-engineer"
    assert published["qrCodeUrl"] == (
        f"https://storage.tapcard.test/qr-codes/qr-{card['id']}.png"
    )
    assert published["publishedAt"] is not None
    assert published["data"]["meta"] == {
        "title": "Jane Doe",
        "description": "View my digital business card",
        "image": "https://img.test/jane.png",
    }
    png = storage.uploads[f"qr-codes/qr-{card['id']}.png"]
    assert png.startswith(b"\x89PNG")


@pytest.mark.asyncio
@pytest.mark.integration
async def test_publish_uses_supplied_meta(cards_client):
    card = await _create(cards_client)

    response = await cards_client.post(
        f"/cards/{card['id']}/publish",
        json={"slug": "jane-doe", "metaTitle": "Jane", "metaDescription": "Hi"},
    )

    meta = response.json()["card"]["data"]["meta"]
    assert meta["title"] == "Jane"
    assert meta["description"] == "Hi"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_publish_with_taken_slug_conflicts(cards_client, db_session):
    db_session.add(CardFactory.create(user_id="someone-else", slug="popular"))
    await db_session.commit()
    card = await _create(cards_client)

    response = await cards_client.post(
        f"/cards/{card['id']}/publish", json={"slug": "popular"}
    )

    assert response.status_code == 409
    assert response.json()["message"] == (
        "This slug is already in use. Please choose another."
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_publish_with_invalid_slug(cards_client):
    card = await _create(cards_client)

    response = await cards_client.post(f"/cards/{card['id']}/publish", json={"slug": "No"})

    assert response.status_code == 422
    assert response.json()["message"] == (
        "Slug can only contain lowercase letters, numbers, and hyphens"
    )


@pytest.mark.asyncio
@pytest.mark.integration
async def test_publish_requires_slug(cards_client):
    card = await _create(cards_client)

    response = await cards_client.post(
        f"/cards/{card['id']}/publish", json={"metaTitle": "Jane"}
    )

    assert response.status_code == 422
    assert response.json()["details"][0]["field"] == "slug"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_qr_failure_does_not_block_publish(cards_client, db_session, storage):
    card = CardFactory.create(
        qr_code_url="https://storage.tapcard.test/qr-codes/old.png"
    )
    db_session.add(card)
    await db_session.commit()
    storage.fail = True

    response = await cards_client.post(
        f"/cards/{card.id}/publish", json={"slug": "still-published"}
    )

    assert response.status_code == 200
    published = response.json()["card"]
    assert published["isPublished"] is True
    assert published["qrCodeUrl"] == "https://storage.tapcard.test/qr-codes/old.png"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_regenerate_qr(cards_client, db_session, storage):
    card = CardFactory.create(is_published=True)
    db_session.add(card)
    await db_session.commit()

    response = await cards_client.post(f"/cards/{card.id}/qr")

    assert response.status_code == 200
    assert response.json()["qrCodeUrl"].endswith(f"qr-{card.id}.png")

    storage.fail = True
    assert (await cards_client.post(f"/cards/{card.id}/qr")).status_code == 500


@pytest.mark.asyncio
@pytest.mark.integration
async def test_regenerate_qr_requires_published(cards_client):
    card = await _create(cards_client)

    response = await cards_client.post(f"/cards/{card['id']}/qr")

    assert response.status_code == 400


@pytest.mark.asyncio
@pytest.mark.integration
async def test_unpublish_hides_public_card(cards_client):
    card = await _create(cards_client)
    await cards_client.post(f"/cards/{card['id']}/publish", json={"slug": "jane-doe"})

    response = await cards_client.post(f"/cards/{card['id']}/unpublish")

    assert response.status_code == 200
    assert response.json()["isPublished"] is False
    assert (await cards_client.get("/public/cards/jane-doe")).status_code == 404


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_public_card_is_cacheable(cards_client, db_session, auth):
    card = CardFactory.create(is_published=True, slug="public-jane")
    db_session.add(card)
    await db_session.commit()
    auth.logout()

    response = await cards_client.get("/public/cards/public-jane")

    assert response.status_code == 200
    assert response.headers["cache-control"] == (
        "public, s-maxage=60, stale-while-revalidate=300"
    )
    body = response.json()
    assert body["slug"] == "public-jane"
    assert "userId" not in body
    assert "analytics" not in body


@pytest.mark.asyncio
@pytest.mark.integration
async def test_public_card_unpublished_is_not_found(cards_client, db_session):
    db_session.add(CardFactory.create(is_published=False, slug="draft-card"))
    await db_session.commit()

    response = await cards_client.get("/public/cards/draft-card")

    assert response.status_code == 404
    assert response.json()["error"] == "NOT_FOUND"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_public_qr_png(cards_client, db_session):
    db_session.add(CardFactory.create(is_published=True, slug="qr-jane"))
    await db_session.commit()

    response = await cards_client.get("/q/qr-jane.png")

    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert response.content.startswith(b"\x89PNG")


@pytest.mark.asyncio
@pytest.mark.integration
@pytest.mark.parametrize(
    "slug, available, message",
    [
        ("fresh-slug", True, "Slug is available"),
        ("taken-slug", False, "This slug is already taken"),
        ("ab", False, "Slug must be at least 3 characters"),
        ("Bad_Slug", False, "Slug can only contain lowercase letters, numbers, and hyphens"),
    ],
)
async def test_slug_check(cards_client, db_session, slug, available, message):
    db_session.add(CardFactory.create(slug="taken-slug"))
    await db_session.commit()

    response = await cards_client.get("/cards/slug-check", params={"slug": slug})

    assert response.status_code == 200
    assert response.json() == {"available": available, "message": message}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_slug_check_requires_slug(cards_client):
    response = await cards_client.get("/cards/slug-check")

    assert response.status_code == 422
