import database
import content


def _post(client, headers, **overrides):
    payload = {"title": "Hello World", "slug": "hello-world", "content": "Body text", "excerpt": "Intro"}
    payload.update(overrides)
    res = client.post("/api/admin/posts", json=payload, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def test_create_draft_has_no_published_at(client, admin_headers):
    post = _post(client, admin_headers)
    assert post["status"] == "draft"
    assert post["published_at"] is None
    assert post["view_count"] == 0
    assert post["author"] == "Dana Admin"


def test_published_at_is_set_once(client, admin_headers):
    post = _post(client, admin_headers)
    url = f"/api/admin/posts/{post['id']}"

    published = client.patch(url, json={"status": "published"}, headers=admin_headers).json()
    stamp = published["published_at"]
    assert stamp is not None

    resaved = client.patch(url, json={"status": "published", "title": "Hello again"}, headers=admin_headers).json()
    assert resaved["published_at"] == stamp

    unpublished = client.patch(url, json={"status": "draft"}, headers=admin_headers).json()
    assert unpublished["published_at"] == stamp

    republished = client.patch(url, json={"status": "published"}, headers=admin_headers).json()
    assert republished["published_at"] == stamp


def test_public_listing_only_shows_published(client, admin_headers):
    _post(client, admin_headers, slug="draft-one")
    live = _post(client, admin_headers, slug="live-one", status="published")

    for status in (None, "draft", "all"):
        params = {"status": status} if status else {}
        items = client.get("/api/posts", params=params).json()["items"]
        assert [p["id"] for p in items] == ([live["id"]] if status != "draft" else [])

    public_item = client.get("/api/posts").json()["items"][0]
    assert "author_id" not in public_item


def test_admin_filters_are_anded(client, admin_headers):
    _post(client, admin_headers, slug="a", category="Tutorial", status="published")
    _post(client, admin_headers, slug="b", category="Tutorial")
    _post(client, admin_headers, slug="c", category="News", status="published")

    res = client.get(
        "/api/admin/posts", params={"status": "published", "category": "Tutorial"}, headers=admin_headers
    ).json()
    assert [p["slug"] for p in res["items"]] == ["a"]
    assert client.get("/api/admin/posts", params={"status": "archived"}, headers=admin_headers).json()["count"] == 0


def test_sort_by_view_count(client, admin_headers, db):
    low = _post(client, admin_headers, slug="low")
    high = _post(client, admin_headers, slug="high")
    db[database.BLOG_POST].update_one({"slug": "high"}, {"$set": {"view_count": 10}})

    desc = client.get("/api/admin/posts", params={"sortBy": "viewCount"}, headers=admin_headers).json()
    assert [p["id"] for p in desc["items"]] == [high["id"], low["id"]]
    asc = client.get(
        "/api/admin/posts", params={"sortBy": "viewCount", "sortOrder": "asc"}, headers=admin_headers
    ).json()
    assert [p["id"] for p in asc["items"]] == [low["id"], high["id"]]


def test_slug_conflicts(client, admin_headers):
    first = _post(client, admin_headers)
    other = _post(client, admin_headers, slug="other")
    res = client.post(
        "/api/admin/posts", json={"title": "x", "slug": "hello-world", "content": "y"}, headers=admin_headers
    )
    assert res.status_code == 409
    assert client.patch(
        f"/api/admin/posts/{other['id']}", json={"slug": "hello-world"}, headers=admin_headers
    ).status_code == 409
    assert client.patch(
        f"/api/admin/posts/{first['id']}", json={"slug": "hello-world"}, headers=admin_headers
    ).status_code == 200


def test_detail_view_increments_counter(client, admin_headers, db):
    post = _post(client, admin_headers, status="published")
    for _ in range(3):
        res = client.get("/api/posts/hello-world")
        assert res.status_code == 200
    stored = db[database.BLOG_POST].find_one({"slug": "hello-world"})
    assert stored["view_count"] == 3
    assert "author_id" not in res.json()
    assert post["id"] == res.json()["id"]


def test_draft_detail_is_not_found(client, admin_headers):
    _post(client, admin_headers)
    assert client.get("/api/posts/hello-world").status_code == 404


def test_failed_view_increment_does_not_fail_page(client, admin_headers, monkeypatch, caplog):
    _post(client, admin_headers, status="published")

    class BrokenCollection:
        def update_one(self, *args, **kwargs):
            from pymongo.errors import AutoReconnect
            raise AutoReconnect("gone")

    class BrokenDb:
        def __getitem__(self, name):
            return BrokenCollection()

    content.increment_view_count(BrokenDb(), "65f000000000000000000000")
    assert any("Failed to increment view count" in r.message for r in caplog.records)
    assert client.get("/api/posts/hello-world").status_code == 200


def test_replacing_images_cleans_up_old_ones(client, admin_headers, deleted_images):
    post = _post(
        client,
        admin_headers,
        featured_image="https://cdn/old.jpg",
        featured_image_public_id="old",
        gallery=[
            {"url": "https://cdn/g1.jpg", "public_id": "g1"},
            {"url": "https://cdn/g2.jpg", "public_id": "g2", "caption": "Team"},
        ],
    )
    res = client.patch(
        f"/api/admin/posts/{post['id']}",
        json={
            "featured_image": "https://cdn/new.jpg",
            "featured_image_public_id": "new",
            "gallery": [{"url": "https://cdn/g2.jpg", "public_id": "g2"}],
        },
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert sorted(deleted_images) == ["g1", "old"]

    client.delete(f"/api/admin/posts/{post['id']}", headers=admin_headers)
    assert sorted(deleted_images) == ["g1", "g2", "new", "old"]


def test_media_failure_does_not_fail_delete(client, admin_headers, monkeypatch):
    import media

    def broken(public_id):
        raise RuntimeError("cdn down")

    monkeypatch.setattr(media, "delete_image", broken)
    post = _post(client, admin_headers, featured_image="https://cdn/a.jpg", featured_image_public_id="a")
    assert client.delete(f"/api/admin/posts/{post['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/admin/posts/{post['id']}", headers=admin_headers).status_code == 404
