# Listing API tests: creation, search filters/sort/pagination, read model, merge rules, ownership and audit trail.
from __future__ import annotations

from typing import Tuple

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from estatefinder import listings, models
from estatefinder.db import SessionLocal


def register(client: TestClient, email: str, role: str = "agent") -> Tuple[str, dict]:
    r = client.post(
        "/api/auth/register",
        json={"email": email, "password": "secret123", "first_name": "Agent", "last_name": "Smith", "role": role},
    )
    assert r.status_code == 200, r.text
    data = r.json()
    return data["token"], data["user"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def listing_body(**overrides) -> dict:
    body = {
        "title": "Sunny loft",
        "description": "Bright open-plan loft near the park",
        "property_type": "apartment",
        "price": 250000,
        "address": "1 Main St",
        "city": "Springfield",
        "zip_code": "12345",
        "bedrooms": 2,
        "bathrooms": 1,
        "area": 85.5,
        "amenities": ["parking", "balcony"],
    }
    body.update(overrides)
    return body


def create_listing(client: TestClient, token: str, **overrides) -> dict:
    r = client.post("/api/properties", headers=auth_headers(token), json=listing_body(**overrides))
    assert r.status_code == 200, r.text
    return r.json()


def audits_for(listing_id: int) -> list:
    db = SessionLocal()
    try:
        rows = (
            db.query(models.ListingAudit)
            .filter(models.ListingAudit.property_listing_id == listing_id)
            .order_by(models.ListingAudit.id.asc())
            .all()
        )
        return [(a.action, a.change_details, a.performed_by) for a in rows]
    finally:
        db.close()


# Creation always publishes, ignores client status, and records an audit entry
def test_create_publishes_and_audits(client: TestClient):
    token, agent = register(client, "agent@example.com")
    listing = create_listing(client, token, status="draft")

    assert listing["status"] == "published"
    assert listing["published_at"] is not None
    assert listing["agent_id"] == agent["id"]
    assert listing["amenities"] == ["parking", "balcony"]
    assert "images" not in listing

    audits = audits_for(listing["id"])
    assert len(audits) == 1
    action, details, performed_by = audits[0]
    assert action == "created"
    assert performed_by == agent["id"]
    assert "title" in details["fields_changed"] and "status" in details["fields_changed"]
    assert "images" not in details["fields_changed"]


def test_create_missing_required_field_writes_nothing(client: TestClient):
    token, _ = register(client, "agent@example.com")
    body = listing_body()
    del body["zip_code"]
    r = client.post("/api/properties", headers=auth_headers(token), json=body)
    assert r.status_code == 400
    assert r.json() == {"error": "Missing required property listing fields"}

    r2 = client.post("/api/properties", headers=auth_headers(token), json=listing_body(title="   "))
    assert r2.status_code == 400

    db = SessionLocal()
    try:
        assert db.query(models.PropertyListing).count() == 0
        assert db.query(models.ListingAudit).count() == 0
    finally:
        db.close()


def test_create_rejects_non_positive_price(client: TestClient):
    token, _ = register(client, "agent@example.com")
    for price in (0, -5):
        r = client.post("/api/properties", headers=auth_headers(token), json=listing_body(price=price))
        assert r.status_code == 400
        assert r.json() == {"error": "Price must be greater than zero"}

    listing = create_listing(client, token)
    r2 = client.put(f"/api/properties/{listing['id']}", headers=auth_headers(token), json={"price": -1})
    assert r2.status_code == 400
    assert client.get(f"/api/properties/{listing['id']}").json()["price"] == 250000

    db = SessionLocal()
    try:
        assert db.query(models.PropertyListing).count() == 1
        assert db.query(models.ListingAudit).count() == 1
    finally:
        db.close()


def _failing_audit(*args, **kwargs):
    raise OperationalError("INSERT INTO listing_audits", {}, Exception("disk I/O error"))


# A failure on the last write of a mutation leaves no partial rows behind
def test_create_rolls_back_when_audit_write_fails(client: TestClient, monkeypatch):
    token, _ = register(client, "agent@example.com")
    monkeypatch.setattr(listings, "_audit", _failing_audit)

    r = client.post(
        "/api/properties",
        headers=auth_headers(token),
        json=listing_body(images=[{"image_url": "http://img/a.jpg"}]),
    )
    assert r.status_code == 500
    assert r.json() == {"error": "Internal server error"}

    db = SessionLocal()
    try:
        assert db.query(models.PropertyListing).count() == 0
        assert db.query(models.PropertyImage).count() == 0
        assert db.query(models.ListingAudit).count() == 0
    finally:
        db.close()


def test_update_rolls_back_image_replacement_when_audit_write_fails(client: TestClient, monkeypatch):
    token, _ = register(client, "agent@example.com")
    listing = create_listing(client, token, images=[{"image_url": "http://img/old.jpg"}])
    monkeypatch.setattr(listings, "_audit", _failing_audit)

    r = client.put(
        f"/api/properties/{listing['id']}",
        headers=auth_headers(token),
        json={"title": "Half-written", "images": [{"image_url": "http://img/new.jpg"}]},
    )
    assert r.status_code == 500

    detail = client.get(f"/api/properties/{listing['id']}").json()
    assert detail["title"] == "Sunny loft"
    assert [img["image_url"] for img in detail["images"]] == ["http://img/old.jpg"]
    assert [a[0] for a in audits_for(listing["id"])] == ["created"]


def test_create_requires_agent_role(client: TestClient):
    seeker_token, _ = register(client, "seeker@example.com", role="seeker")
    assert client.post("/api/properties", json=listing_body()).status_code == 401
    r = client.post("/api/properties", headers=auth_headers(seeker_token), json=listing_body())
    assert r.status_code == 403


# Round trip: N images come back in ascending display_order, ties in insertion order
def test_detail_read_model_orders_images_and_hides_password(client: TestClient):
    token, agent = register(client, "agent@example.com")
    listing = create_listing(
        client,
        token,
        images=[
            {"image_url": "http://img/c.jpg", "display_order": 2},
            {"image_url": "http://img/a.jpg", "display_order": 0, "alt_text": "front"},
            {"image_url": "http://img/b1.jpg", "display_order": 1},
            {"image_url": "http://img/b2.jpg", "display_order": 1},
            {"image_url": "http://img/z.jpg"},
        ],
    )

    r = client.get(f"/api/properties/{listing['id']}")
    assert r.status_code == 200
    detail = r.json()
    assert [img["image_url"] for img in detail["images"]] == [
        "http://img/a.jpg",
        "http://img/z.jpg",
        "http://img/b1.jpg",
        "http://img/b2.jpg",
        "http://img/c.jpg",
    ]
    assert detail["images"][0]["alt_text"] == "front"
    assert detail["agent"]["id"] == agent["id"]
    assert detail["agent"]["email"] == "agent@example.com"
    assert "password_hash" not in detail["agent"]
    assert detail["title"] == "Sunny loft"


def test_detail_not_found(client: TestClient):
    r = client.get("/api/properties/9999")
    assert r.status_code == 404
    assert r.json() == {"error": "Property listing not found"}


def test_search_filters_compose(client: TestClient):
    token, _ = register(client, "agent@example.com")
    create_listing(client, token, title="Cheap studio", price=90000, bedrooms=1, city="Springfield", property_type="apartment")
    create_listing(client, token, title="Family house", price=400000, bedrooms=4, bathrooms=2, city="Shelbyville", property_type="house")
    create_listing(client, token, title="Mid condo", description="Quiet CONDO with pool", price=150000, bedrooms=2, city="springfield heights", property_type="condo")

    def titles(query: str) -> set:
        r = client.get(f"/api/properties?{query}")
        assert r.status_code == 200, r.text
        return {row["title"] for row in r.json()}

    assert titles("price_min=100000") == {"Family house", "Mid condo"}
    assert titles("price_min=90000&price_max=150000") == {"Cheap studio", "Mid condo"}
    assert titles("bedrooms=4") == {"Family house"}
    assert titles("bathrooms=2") == {"Family house"}
    assert titles("property_type=condo") == {"Mid condo"}
    assert titles("city=SPRINGFIELD") == {"Cheap studio", "Mid condo"}
    assert titles("keywords=condo") == {"Mid condo"}
    assert titles("keywords=family&city=shelby") == {"Family house"}
    assert titles("keywords=100%25") == set()


def test_search_drops_malformed_numeric_filters(client: TestClient):
    token, _ = register(client, "agent@example.com")
    create_listing(client, token, title="One", price=100)
    create_listing(client, token, title="Two", price=200)

    r = client.get("/api/properties?price_min=abc&bedrooms=two&price_max=")
    assert r.status_code == 200
    assert len(r.json()) == 2


def test_search_sort_and_pagination(client: TestClient):
    token, _ = register(client, "agent@example.com")
    prices = [300, 100, 500, 200, 400]
    for i, price in enumerate(prices):
        create_listing(client, token, title=f"L{i}", price=price)

    asc = client.get("/api/properties?sort=price_asc").json()
    assert [row["price"] for row in asc] == [100, 200, 300, 400, 500]

    desc = client.get("/api/properties?sort=price_desc").json()
    assert [row["price"] for row in desc] == [500, 400, 300, 200, 100]

    # Default, "newest" and unknown sort values all order by published_at descending
    newest = [row["title"] for row in client.get("/api/properties?sort=newest").json()]
    assert newest == ["L4", "L3", "L2", "L1", "L0"]
    assert [row["title"] for row in client.get("/api/properties").json()] == newest
    assert [row["title"] for row in client.get("/api/properties?sort=bogus").json()] == newest

    page1 = client.get("/api/properties?sort=price_asc&limit=2&page=1").json()
    page2 = client.get("/api/properties?sort=price_asc&limit=2&page=2").json()
    page3 = client.get("/api/properties?sort=price_asc&limit=2&page=3").json()
    assert [r["price"] for r in page1] == [100, 200]
    assert [r["price"] for r in page2] == [300, 400]
    assert [r["price"] for r in page3] == [500]

    # Non-numeric or non-positive page falls back to page 1; bad limit falls back to 10
    assert client.get("/api/properties?sort=price_asc&limit=2&page=0").json() == page1
    assert client.get("/api/properties?sort=price_asc&limit=2&page=x").json() == page1
    assert len(client.get("/api/properties?limit=abc").json()) == 5

    # Same query twice without writes returns identical results
    assert client.get("/api/properties?sort=price_desc&limit=3").json() == client.get(
        "/api/properties?sort=price_desc&limit=3"
    ).json()


def test_search_primary_image_url(client: TestClient):
    token, _ = register(client, "agent@example.com")
    create_listing(
        client,
        token,
        title="With images",
        images=[{"image_url": "http://img/second.jpg", "display_order": 5}, {"image_url": "http://img/first.jpg", "display_order": 1}],
    )
    create_listing(client, token, title="No images")

    rows = {row["title"]: row for row in client.get("/api/properties").json()}
    assert rows["With images"]["primary_image_url"] == "http://img/first.jpg"
    assert rows["No images"]["primary_image_url"] is None


def test_update_merge_rules_and_image_replace(client: TestClient):
    token, agent = register(client, "agent@example.com")
    listing = create_listing(client, token, images=[{"image_url": "http://img/old.jpg"}])

    r = client.put(
        f"/api/properties/{listing['id']}",
        headers=auth_headers(token),
        json={
            "title": "Renovated loft",
            "bedrooms": 0,
            "price": 0,
            "city": "",
            "amenities": [],
            "images": [{"image_url": "http://img/new1.jpg", "display_order": 1}, {"image_url": "http://img/new0.jpg"}],
        },
    )
    assert r.status_code == 200, r.text
    updated = r.json()
    assert updated["title"] == "Renovated loft"
    # Falsy values mean "not provided": the stored values stay
    assert updated["bedrooms"] == 2
    assert updated["price"] == 250000
    assert updated["city"] == "Springfield"
    # amenities overwrite whenever supplied
    assert updated["amenities"] == []
    assert updated["updated_at"] != listing["updated_at"]

    detail = client.get(f"/api/properties/{listing['id']}").json()
    assert [img["image_url"] for img in detail["images"]] == ["http://img/new0.jpg", "http://img/new1.jpg"]

    # An empty images array clears the set; omitting images leaves it alone
    client.put(f"/api/properties/{listing['id']}", headers=auth_headers(token), json={"description": "Updated"})
    assert len(client.get(f"/api/properties/{listing['id']}").json()["images"]) == 2
    client.put(f"/api/properties/{listing['id']}", headers=auth_headers(token), json={"images": []})
    assert client.get(f"/api/properties/{listing['id']}").json()["images"] == []

    actions = [a[0] for a in audits_for(listing["id"])]
    assert actions == ["created", "updated", "updated", "updated"]
    _, details, performed_by = audits_for(listing["id"])[1]
    assert performed_by == agent["id"]
    assert set(details["fields_changed"]) == {"title", "bedrooms", "price", "city", "amenities", "images"}


def test_update_ignores_status_field(client: TestClient):
    token, _ = register(client, "agent@example.com")
    listing = create_listing(client, token)
    r = client.put(f"/api/properties/{listing['id']}", headers=auth_headers(token), json={"status": "draft"})
    assert r.status_code == 200
    assert r.json()["status"] == "published"


def test_ownership_is_enforced_for_update_and_delete(client: TestClient):
    owner_token, _ = register(client, "owner@example.com")
    other_token, _ = register(client, "other@example.com")
    listing = create_listing(client, owner_token)

    r = client.put(f"/api/properties/{listing['id']}", headers=auth_headers(other_token), json={"title": "Mine now"})
    assert r.status_code == 403
    assert r.json() == {"error": "You are not authorized to update this listing"}
    r2 = client.delete(f"/api/properties/{listing['id']}", headers=auth_headers(other_token))
    assert r2.status_code == 403

    assert client.put(f"/api/properties/{listing['id']}", json={"title": "anon"}).status_code == 401
    assert client.delete(f"/api/properties/{listing['id']}").status_code == 401

    assert client.put("/api/properties/9999", headers=auth_headers(owner_token), json={"title": "x"}).status_code == 404
    assert client.delete("/api/properties/9999", headers=auth_headers(owner_token)).status_code == 404

    assert client.get(f"/api/properties/{listing['id']}").json()["title"] == "Sunny loft"
    assert [a[0] for a in audits_for(listing["id"])] == ["created"]


# Soft delete hides the listing from search but keeps it readable by id
def test_soft_delete_hides_from_search_only(client: TestClient):
    token, _ = register(client, "agent@example.com")
    listing = create_listing(client, token, images=[{"image_url": "http://img/a.jpg"}])
    create_listing(client, token, title="Keep me")

    r = client.delete(f"/api/properties/{listing['id']}", headers=auth_headers(token))
    assert r.status_code == 200
    assert r.json() == {"message": "Property listing deleted successfully."}

    for query in ("", "?keywords=sunny", "?city=springfield", "?price_min=0", "?sort=price_asc&limit=100"):
        ids = [row["id"] for row in client.get(f"/api/properties{query}").json()]
        assert listing["id"] not in ids

    detail = client.get(f"/api/properties/{listing['id']}").json()
    assert detail["status"] == "deleted"
    assert len(detail["images"]) == 1

    audits = audits_for(listing["id"])
    assert audits[-1][0] == "deleted"
    assert audits[-1][1] == {}


def test_search_by_agent_id(client: TestClient):
    token_a, agent_a = register(client, "a@example.com")
    token_b, _ = register(client, "b@example.com")
    create_listing(client, token_a, title="A1")
    create_listing(client, token_b, title="B1")

    rows = client.get(f"/api/properties?agent_id={agent_a['id']}").json()
    assert [row["title"] for row in rows] == ["A1"]


def test_search_survives_out_of_range_numbers(client: TestClient):
    token, _ = register(client, "agent@example.com")
    create_listing(client, token)

    huge = "99999999999999999999"
    for query in (f"page={huge}", f"bedrooms={huge}", f"agent_id={huge}", f"limit={huge}"):
        r = client.get(f"/api/properties?{query}")
        assert r.status_code == 200, query
        assert len(r.json()) == 1

    far = client.get("/api/properties?limit=5&page=9223372036854775807")
    assert far.status_code == 200
    assert far.json() == []

    # Decimal numbers read their integer part
    assert len(client.get("/api/properties?bedrooms=2.0").json()) == 1
