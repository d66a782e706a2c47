from datetime import datetime, timedelta


def _banner(**overrides):
    body = {
        "title": "Winter flu season",
        "image_url": "https://cdn.pharmacy.sa/banners/flu.jpg",
        "alt_text": "Flu vaccines",
    }
    body.update(overrides)
    return body


def test_public_list_filters_audience_and_schedule(client, admin, auth_headers):
    headers = auth_headers(admin)
    tomorrow = (datetime.utcnow() + timedelta(days=1)).isoformat()

    for body in (
        _banner(title="Everyone", sort_order=2),
        _banner(title="Retail", audience="retail", sort_order=1),
        _banner(title="Traders", audience="wholesale"),
        _banner(title="Hidden", is_active=False),
        _banner(title="Next week", starts_at=tomorrow),
    ):
        assert client.post("/admin/banners", json=body, headers=headers).status_code == 201

    retail = client.get("/banners", params={"audience": "retail"}).json()
    assert [b["title"] for b in retail] == ["Retail", "Everyone"]

    everything_live = client.get("/banners").json()
    assert {b["title"] for b in everything_live} == {"Everyone", "Retail", "Traders"}

    assert len(client.get("/admin/banners", headers=headers).json()) == 5


def test_reorder_update_and_delete(client, admin, auth_headers):
    headers = auth_headers(admin)
    first = client.post("/admin/banners", json=_banner(title="A", subtitle="Save 20%"), headers=headers).json()
    second = client.post("/admin/banners", json=_banner(title="B", sort_order=1), headers=headers).json()

    reorder = {"banners": [{"id": first["id"], "sort_order": 5}, {"id": second["id"], "sort_order": 0}]}
    assert client.post("/admin/banners/reorder", json=reorder, headers=headers).json()["updated"] == 2
    assert [b["title"] for b in client.get("/banners").json()] == ["B", "A"]

    updated = client.put(f"/admin/banners/{first['id']}", json={"subtitle": "", "display_mode": "cover"},
                         headers=headers).json()
    assert updated["subtitle"] is None
    assert updated["display_mode"] == "cover"
    assert updated["title"] == "A"

    assert client.delete(f"/admin/banners/{first['id']}", headers=headers).status_code == 200
    assert client.delete(f"/admin/banners/{first['id']}", headers=headers).status_code == 404


def test_banner_validation_and_access(client, admin, customer, auth_headers):
    headers = auth_headers(admin)
    start = datetime.utcnow()

    bad_window = _banner(starts_at=start.isoformat(), ends_at=(start - timedelta(hours=1)).isoformat())
    assert client.post("/admin/banners", json=bad_window, headers=headers).status_code == 422

    created = client.post("/admin/banners", json=_banner(ends_at=(start + timedelta(days=2)).isoformat()),
                          headers=headers).json()
    moved = client.put(f"/admin/banners/{created['id']}", json={"starts_at": (start + timedelta(days=3)).isoformat()},
                       headers=headers)
    assert moved.status_code == 400

    missing = {"banners": [{"id": 999, "sort_order": 1}]}
    assert client.post("/admin/banners/reorder", json=missing, headers=headers).status_code == 404

    assert client.post("/admin/banners", json=_banner(), headers=auth_headers(customer)).status_code == 403
    assert client.get("/banners", params={"audience": "vip"}).status_code == 422
