import config
from models import SREFCode, STATUS_DELETED, STATUS_PENDING


def test_list_only_active_with_pagination(client, make_sref):
    for i in range(3):
        make_sref(f"20{i}")
    make_sref("299", status=STATUS_PENDING)

    body = client.get("/api/sref", params={"limit": 2}).json()

    assert len(body["data"]) == 2
    assert body["pagination"] == {
        "page": 1, "limit": 2, "total": 3, "totalPages": 2, "hasNext": True, "hasPrev": False,
    }


def test_list_limit_capped_at_100(client, make_sref):
    make_sref("200")

    body = client.get("/api/sref", params={"limit": 1000}).json()

    assert body["pagination"]["limit"] == 100


def test_list_filters(client, make_category, make_tag, make_sref):
    anime = make_category("Anime")
    dark = make_tag("dark")
    make_sref("301", title="Neon Nights", category=anime, tags=[dark], featured=True)
    make_sref("302", title="Soft Pastel", category=anime, premium=True)
    make_sref("303", title="Neon Desert")

    def codes(**params):
        return sorted(s["code"] for s in client.get("/api/sref", params=params).json()["data"])

    assert codes(category="anime") == ["301", "302"]
    assert codes(tag="dark") == ["301"]
    assert codes(featured="true") == ["301"]
    assert codes(premium="true") == ["302"]
    assert codes(search="neon") == ["301", "303"]


def test_list_sorting(client, make_sref):
    make_sref("401", title="Bravo", view_count=5)
    make_sref("402", title="Alpha", view_count=50)

    by_views = client.get("/api/sref", params={"sort": "views"}).json()["data"]
    by_title = client.get("/api/sref", params={"sort": "title", "order": "asc"}).json()["data"]

    assert [s["code"] for s in by_views] == ["402", "401"]
    assert [s["code"] for s in by_title] == ["402", "401"]


def test_create_sref_is_pending_with_tags_and_images(client, db, make_user, make_category, make_tag, auth_headers):
    author = make_user()
    category = make_category("Anime")
    tag = make_tag("dreamy")

    response = client.post(
        "/api/sref",
        headers=auth_headers(author),
        json={
            "code": "5551234",
            "title": "Dreamy Anime!",
            "category_id": category.id,
            "tag_ids": [tag.id],
            "image_urls": ["/a.webp", "/b.webp"],
            "prompt_examples": ["a castle"],
        },
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == STATUS_PENDING
    assert data["slug"] == "dreamy-anime"
    assert data["category"]["id"] == category.id
    assert [t["name"] for t in data["tags"]] == ["dreamy"]
    assert [i["url"] for i in data["images"]] == ["/a.webp", "/b.webp"]
    assert data["submitted_by"]["id"] == author.id

    db.expire_all()
    assert db.get(type(tag), tag.id).usage_count == 1


def test_create_sref_conflicts(client, make_user, make_sref, auth_headers):
    author = make_user()
    make_sref("777", title="Taken Title")
    headers = auth_headers(author)

    duplicate = client.post("/api/sref", headers=headers, json={"code": "777", "title": "Other"})
    same_title = client.post("/api/sref", headers=headers, json={"code": "778", "title": "Taken Title"})

    assert duplicate.status_code == 409
    assert same_title.status_code == 201
    assert same_title.json()["data"]["slug"] == "taken-title-1"


def test_create_sref_requires_session(client):
    response = client.post("/api/sref", json={"code": "1", "title": "x"})

    assert response.status_code == 401


def test_get_sref_counts_views(client, db, make_sref):
    sref = make_sref("888", view_count=10)

    first = client.get(f"/api/sref/{sref.id}")
    client.get(f"/api/sref/{sref.id}")

    assert first.status_code == 200
    assert first.json()["data"]["view_count"] == 11
    db.expire_all()
    assert db.get(SREFCode, sref.id).view_count == 12


def test_get_pending_sref_is_not_found(client, make_sref):
    sref = make_sref("889", status=STATUS_PENDING)

    response = client.get(f"/api/sref/{sref.id}")

    assert response.status_code == 404
    assert response.json()["error"] == "SREF not found"


def test_update_is_owner_only(client, make_user, make_sref, make_tag, auth_headers):
    owner = make_user()
    other = make_user(email="other@mail.com", username="other")
    tag = make_tag("fresh")
    sref = make_sref("990", owner=owner)

    forbidden = client.put(f"/api/sref/{sref.id}", headers=auth_headers(other), json={"title": "Hijack"})
    updated = client.put(
        f"/api/sref/{sref.id}",
        headers=auth_headers(owner),
        json={"title": "Renamed", "tag_ids": [tag.id], "image_urls": ["/new.webp"]},
    )

    assert forbidden.status_code == 403
    assert updated.status_code == 200
    data = updated.json()["data"]
    assert data["title"] == "Renamed"
    assert [t["name"] for t in data["tags"]] == ["fresh"]
    assert [i["url"] for i in data["images"]] == ["/new.webp"]


def test_delete_is_soft(client, db, make_user, make_sref, auth_headers):
    owner = make_user()
    sref = make_sref("991", owner=owner)

    response = client.delete(f"/api/sref/{sref.id}", headers=auth_headers(owner))

    assert response.status_code == 200
    db.expire_all()
    stored = db.get(SREFCode, sref.id)
    assert stored.status == STATUS_DELETED
    assert stored.deleted_at is not None
    assert client.get(f"/api/sref/{sref.id}").status_code == 404


def test_delete_unknown_sref(client, make_user, auth_headers):
    response = client.delete("/api/sref/12345", headers=auth_headers(make_user()))

    assert response.status_code == 404


def test_upload_stores_image_locally(client, make_user, auth_headers):
    response = client.post(
        "/api/sref/upload",
        headers=auth_headers(make_user()),
        files={"file": ("preview.png", b"\x89PNG fake image bytes", "image/png")},
    )

    assert response.status_code == 200
    url = response.json()["url"]
    assert url.startswith("/uploads/") and url.endswith(".png")
    assert client.get(url).content == b"\x89PNG fake image bytes"


def test_upload_rejects_unknown_extension(client, make_user, auth_headers):
    response = client.post(
        "/api/sref/upload",
        headers=auth_headers(make_user()),
        files={"file": ("notes.txt", b"hello", "text/plain")},
    )

    assert response.status_code == 400


def test_upload_rejects_oversized_file(client, make_user, auth_headers, monkeypatch):
    monkeypatch.setattr(config, "MAX_UPLOAD_BYTES", 8)

    response = client.post(
        "/api/sref/upload",
        headers=auth_headers(make_user()),
        files={"file": ("big.png", b"0123456789", "image/png")},
    )

    assert response.status_code == 413
