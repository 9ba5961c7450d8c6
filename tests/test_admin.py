from models import Category, STATUS_ACTIVE, STATUS_PENDING


def test_admin_routes_require_admin_role(client, make_user, auth_headers):
    user = make_user()

    anonymous = client.get("/api/admin/stats")
    forbidden = client.get("/api/admin/stats", headers=auth_headers(user))

    assert anonymous.status_code == 401
    assert forbidden.status_code == 403
    assert forbidden.json()["error"] == "Admin access required"


def test_dashboard_stats(client, admin_headers, make_sref):
    make_sref("1", view_count=10, like_count=3)
    make_sref("2", view_count=5, like_count=1)
    make_sref("3", status=STATUS_PENDING, view_count=100)

    data = client.get("/api/admin/stats", headers=admin_headers).json()["data"]

    assert data["totalSrefs"] == 2
    assert data["totalViews"] == 15
    assert data["totalLikes"] == 4
    assert data["pendingSrefs"] == 1
    assert data["totalUsers"] == 1
    assert data["recentSrefs"] == 3


def test_create_category(client, admin_headers, make_category):
    parent = make_category("Art")

    response = client.post(
        "/api/admin/categories",
        headers=admin_headers,
        json={"name": "Watercolor Paint", "parent_id": parent.id, "featured": True},
    )
    duplicate = client.post("/api/admin/categories", headers=admin_headers, json={"name": "Art"})
    orphan = client.post("/api/admin/categories", headers=admin_headers, json={"name": "Lost", "parent_id": 999})

    assert response.status_code == 201
    assert response.json()["slug"] == "watercolor-paint"
    assert response.json()["parent_id"] == parent.id
    assert duplicate.status_code == 400
    assert orphan.status_code == 400


def test_reorder_categories(client, db, admin_headers, make_category):
    first = make_category("First")
    second = make_category("Second")

    response = client.put(
        "/api/admin/categories/reorder", headers=admin_headers, json={"items": [second.id, first.id]},
    )

    assert response.status_code == 200
    db.expire_all()
    assert db.get(Category, second.id).sort_order == 0
    assert db.get(Category, first.id).sort_order == 1


def test_update_category_cannot_parent_itself(client, admin_headers, make_category):
    category = make_category("Anime")

    renamed = client.put(f"/api/admin/categories/{category.id}", headers=admin_headers, json={"description": "Cel shading"})
    looped = client.put(f"/api/admin/categories/{category.id}", headers=admin_headers, json={"parent_id": category.id})

    assert renamed.status_code == 200
    assert renamed.json()["description"] == "Cel shading"
    assert looped.status_code == 400


def test_delete_category_refused_while_in_use(client, admin_headers, make_category, make_sref):
    used = make_category("Used")
    empty = make_category("Empty")
    make_sref("1", category=used)

    refused = client.delete(f"/api/admin/categories/{used.id}", headers=admin_headers)
    deleted = client.delete(f"/api/admin/categories/{empty.id}", headers=admin_headers)
    missing = client.delete(f"/api/admin/categories/{empty.id}", headers=admin_headers)

    assert refused.status_code == 400
    assert deleted.status_code == 200
    assert missing.status_code == 404


def test_create_and_delete_tag(client, admin_headers):
    created = client.post("/api/admin/tags", headers=admin_headers, json={"name": "Film Grain", "featured": True})
    duplicate = client.post("/api/admin/tags", headers=admin_headers, json={"name": "Film Grain"})

    assert created.status_code == 201
    assert created.json()["slug"] == "film-grain"
    assert duplicate.status_code == 400

    deleted = client.delete(f"/api/admin/tags/{created.json()['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.get("/api/tags").json()["data"] == []


def test_approving_pending_sref_publishes_it(client, admin_headers, make_sref):
    pending = make_sref("500", status=STATUS_PENDING)
    make_sref("501")

    queue = client.get("/api/admin/sref/pending", headers=admin_headers).json()
    assert [s["code"] for s in queue] == ["500"]
    assert client.get(f"/api/sref/{pending.id}").status_code == 404

    approved = client.put(
        f"/api/admin/sref/{pending.id}/status", headers=admin_headers, json={"status": "active", "featured": True},
    )

    assert approved.status_code == 200
    assert approved.json()["status"] == STATUS_ACTIVE
    assert approved.json()["featured"] is True
    assert client.get(f"/api/sref/{pending.id}").status_code == 200


def test_invalid_status_is_rejected(client, admin_headers, make_sref):
    sref = make_sref("600")

    response = client.put(f"/api/admin/sref/{sref.id}/status", headers=admin_headers, json={"status": "archived"})

    assert response.status_code == 400


def test_update_category_rejects_null_required_fields(client, admin_headers, make_category):
    category = make_category("Anime")

    for field in ("name", "featured", "sort_order"):
        response = client.put(f"/api/admin/categories/{category.id}", headers=admin_headers, json={field: None})
        assert response.status_code == 400
        assert response.json()["error"] == f"Category {field} cannot be null"


def test_update_category_rejects_unknown_parent(client, db, admin_headers, make_category):
    category = make_category("Anime")

    response = client.put(f"/api/admin/categories/{category.id}", headers=admin_headers, json={"parent_id": 999})

    assert response.status_code == 400
    assert response.json()["error"] == "Parent category not found"
    db.expire_all()
    assert db.get(Category, category.id).parent_id is None


def test_update_category_refuses_cycles(client, db, admin_headers, make_category):
    art = make_category("Art")
    paint = make_category("Paint", parent=art)
    oil = make_category("Oil", parent=paint)

    to_child = client.put(f"/api/admin/categories/{art.id}", headers=admin_headers, json={"parent_id": paint.id})
    to_grandchild = client.put(f"/api/admin/categories/{art.id}", headers=admin_headers, json={"parent_id": oil.id})
    detached = client.put(f"/api/admin/categories/{paint.id}", headers=admin_headers, json={"parent_id": None})

    assert to_child.status_code == 400
    assert to_grandchild.status_code == 400
    assert detached.status_code == 200
    assert detached.json()["parent_id"] is None
    db.expire_all()
    assert db.get(Category, art.id).parent_id is None
