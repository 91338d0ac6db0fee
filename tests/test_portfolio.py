import pytest


def _project(client, headers, category_id, **overrides):
    payload = {
        "title": "Shop",
        "slug": "shop",
        "description": "An online shop",
        "technologies": ["fastapi", "react"],
        "category_id": category_id,
    }
    payload.update(overrides)
    return client.post("/api/admin/projects", json=payload, headers=headers)


def test_public_and_admin_project_listing(client, admin_headers, category):
    shop = _project(client, admin_headers, category["id"]).json()
    draft = _project(client, admin_headers, category["id"], title="Draft Shop", slug="draft-shop", is_active=False).json()

    public = client.get("/api/admin/projects", params={"public": "true"})
    assert public.status_code == 200
    assert [p["id"] for p in public.json()["items"]] == [shop["id"]]

    admin = client.get("/api/admin/projects", headers=admin_headers).json()
    assert admin["count"] == 2
    # sort_order ties, newest first
    assert [p["id"] for p in admin["items"]] == [draft["id"], shop["id"]]


def test_public_projects_route_ignores_credentials(client, admin_headers, category):
    _project(client, admin_headers, category["id"], slug="hidden", is_active=False)
    res = client.get("/api/projects", headers=admin_headers)
    assert res.json()["count"] == 0


def test_admin_listing_without_identity_is_rejected(client, category):
    assert client.get("/api/admin/projects").status_code == 401
    assert client.get("/api/admin/projects", headers={"Authorization": "Bearer junk"}).status_code == 401


def test_project_search_and_category_filter(client, admin_headers, category):
    other = client.post(
        "/api/admin/categories", json={"name": "Mobile", "type": "portfolio"}, headers=admin_headers
    ).json()
    _project(client, admin_headers, category["id"])
    _project(client, admin_headers, other["id"], title="Tracker App", slug="tracker", description="Fitness")

    found = client.get("/api/projects", params={"search": "TRACK"}).json()
    assert [p["slug"] for p in found["items"]] == ["tracker"]

    by_category = client.get("/api/projects", params={"categoryId": category["id"]}).json()
    assert [p["slug"] for p in by_category["items"]] == ["shop"]

    assert client.get("/api/projects", params={"categoryId": "nope"}).json()["count"] == 0
    assert client.get("/api/projects", params={"categoryId": "all"}).json()["count"] == 2


def test_project_slug_conflicts(client, admin_headers, category):
    first = _project(client, admin_headers, category["id"]).json()
    second = _project(client, admin_headers, category["id"], slug="shop-2").json()

    assert _project(client, admin_headers, category["id"]).status_code == 409
    res = client.patch(f"/api/admin/projects/{second['id']}", json={"slug": "shop"}, headers=admin_headers)
    assert res.status_code == 409

    res = client.patch(
        f"/api/admin/projects/{first['id']}", json={"slug": "shop", "title": "Shop v2"}, headers=admin_headers
    )
    assert res.status_code == 200
    assert res.json()["title"] == "Shop v2"


def test_project_slug_is_derived_from_title(client, admin_headers, category):
    res = _project(client, admin_headers, category["id"], slug=None, title="Company Profile Site!")
    assert res.json()["slug"] == "company-profile-site"


def test_project_needs_existing_category(client, admin_headers):
    res = _project(client, admin_headers, "65f000000000000000000000")
    assert res.status_code == 422


def test_project_not_found(client, admin_headers):
    assert client.get("/api/admin/projects/not-an-id", headers=admin_headers).status_code == 404
    assert client.delete("/api/admin/projects/65f000000000000000000000", headers=admin_headers).status_code == 404


def test_category_in_use_cannot_be_deleted(client, admin_headers, category):
    project = _project(client, admin_headers, category["id"]).json()
    assert client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers).status_code == 409

    client.delete(f"/api/admin/projects/{project['id']}", headers=admin_headers)
    assert client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers).status_code == 200


def test_categories_filter_by_type_and_hide_inactive(client, admin_headers, category):
    client.post("/api/admin/categories", json={"name": "Consulting", "type": "service"}, headers=admin_headers)
    client.post(
        "/api/admin/categories", json={"name": "Old", "type": "service", "is_active": False}, headers=admin_headers
    )

    services = client.get("/api/categories", params={"type": "service"}).json()
    assert [c["slug"] for c in services["items"]] == ["consulting"]

    admin = client.get("/api/admin/categories", params={"type": "service"}, headers=admin_headers).json()
    assert sorted(c["slug"] for c in admin["items"]) == ["consulting", "old"]


def test_category_slug_conflict(client, admin_headers, category):
    res = client.post("/api/admin/categories", json={"name": "Web", "type": "service"}, headers=admin_headers)
    assert res.status_code == 409


def test_category_id_is_stored_canonically(client, admin_headers, category):
    res = _project(client, admin_headers, category["id"].upper())
    assert res.status_code == 201
    assert res.json()["category_id"] == category["id"]

    res = client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers)
    assert res.status_code == 409


def test_category_change_is_stored_canonically(client, admin_headers, category):
    other = client.post(
        "/api/admin/categories", json={"name": "Mobile", "type": "portfolio"}, headers=admin_headers
    ).json()
    project = _project(client, admin_headers, category["id"]).json()
    res = client.patch(
        f"/api/admin/projects/{project['id']}", json={"category_id": other["id"].upper()}, headers=admin_headers
    )
    assert res.json()["category_id"] == other["id"]
    assert client.delete(f"/api/admin/categories/{other['id']}", headers=admin_headers).status_code == 409
    assert client.delete(f"/api/admin/categories/{category['id']}", headers=admin_headers).status_code == 200


@pytest.mark.parametrize("extra", [
    {},
    {"is_active": "false"},
    {"is_active": "all", "search": "shop"},
    {"search": "Draft"},
])
def test_inactive_projects_never_listed_publicly(client, admin_headers, category, extra):
    _project(client, admin_headers, category["id"])
    _project(client, admin_headers, category["id"], title="Draft Shop", slug="draft-shop", is_active=False)
    params = dict(extra, categoryId=category["id"])

    for res in (
        client.get("/api/projects", params=params),
        client.get("/api/admin/projects", params=dict(params, public="true"), headers=admin_headers),
    ):
        assert res.status_code == 200
        assert "draft-shop" not in [p["slug"] for p in res.json()["items"]]
