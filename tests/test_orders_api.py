"""
Name: Menu and Order Endpoint Tests

Responsibilities:
  - Dish CRUD is admin-only; reading the menu needs any gated session
  - Placing an order replaces the day's order and validates against the menu
  - Ownership rule on another user's orders, admin summary
"""

import pytest

from conftest import login

pytestmark = pytest.mark.unit

DAY = "2025-05-05"
OTHER_DAY = "2025-05-06"


@pytest.fixture
def admin(make_user):
    return make_user("boss", role="admin")


@pytest.fixture
def menu(client, admin):
    """Two dishes on DAY and one on OTHER_DAY, created by the admin."""
    login(client, "boss")
    ids = []
    for path, day in (("img/curry.jpg", DAY), ("img/salad.jpg", DAY), ("img/soup.jpg", OTHER_DAY)):
        response = client.post("/menu/dishes", json={"image_path": path, "menu_date": day})
        assert response.status_code == 201
        ids.append(response.json()["id"])
    client.post("/auth/logout")
    return ids


def _quantities(body):
    return {row["dish_id"]: row["quantity"] for row in body["orders"]}


# ---------------------------------------------------------------------------
# Menu
# ---------------------------------------------------------------------------


def test_menu_listing_by_date(client, make_user, menu):
    make_user("alice")
    login(client, "alice")

    day = client.get("/menu/dishes", params={"date": DAY}).json()
    assert day["menu_date"] == DAY
    assert [d["id"] for d in day["dishes"]] == menu[:2]

    other = client.get("/menu/dishes", params={"date": OTHER_DAY}).json()
    assert [d["image_path"] for d in other["dishes"]] == ["img/soup.jpg"]


def test_employee_cannot_manage_dishes(client, make_user, menu):
    make_user("alice")
    login(client, "alice")

    create = client.post("/menu/dishes", json={"image_path": "img/x.jpg", "menu_date": DAY})
    assert create.status_code == 403
    assert create.json()["code"] == "INSUFFICIENT_ROLE"
    assert client.put(f"/menu/dishes/{menu[0]}", json={"image_path": "img/y.jpg"}).status_code == 403
    assert client.delete(f"/menu/dishes/{menu[0]}").status_code == 403


def test_admin_updates_and_validates_dishes(client, menu):
    login(client, "boss")

    updated = client.put(f"/menu/dishes/{menu[0]}", json={"image_path": "img/katsu.jpg"})
    assert updated.status_code == 200
    assert updated.json()["image_path"] == "img/katsu.jpg"
    assert updated.json()["menu_date"] == DAY

    blank = client.post("/menu/dishes", json={"image_path": "  ", "menu_date": DAY})
    assert blank.status_code == 400

    assert client.put("/menu/dishes/999", json={"image_path": "img/z.jpg"}).status_code == 404


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


def test_place_order_counts_repeats_and_replaces(client, make_user, menu):
    make_user("alice")
    login(client, "alice")
    curry, salad, _ = menu

    first = client.put("/orders", json={"order_date": DAY, "dish_ids": [curry, curry, salad]})
    assert first.status_code == 200
    assert _quantities(first.json()) == {curry: 2, salad: 1}

    second = client.put("/orders", json={"order_date": DAY, "dish_ids": [salad]})
    assert _quantities(second.json()) == {salad: 1}

    listed = client.get("/orders", params={"date": DAY}).json()
    assert _quantities(listed) == {salad: 1}


def test_order_history_without_date(client, make_user, menu):
    make_user("alice")
    make_user("bob")
    curry, salad, soup = menu

    login(client, "bob")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [salad]})
    client.post("/auth/logout")

    login(client, "alice")
    client.put("/orders", json={"order_date": OTHER_DAY, "dish_ids": [soup]})
    client.put("/orders", json={"order_date": DAY, "dish_ids": [curry, curry]})

    history = client.get("/orders").json()
    assert history["order_date"] is None
    assert [(row["order_date"], row["dish_id"], row["quantity"]) for row in history["orders"]] == [
        (DAY, curry, 2),
        (OTHER_DAY, soup, 1),
    ]


def test_invalid_order_keeps_previous_one(client, make_user, menu):
    make_user("alice")
    login(client, "alice")
    curry, salad, soup = menu
    client.put("/orders", json={"order_date": DAY, "dish_ids": [curry]})

    # soup is on another day's menu
    wrong_day = client.put("/orders", json={"order_date": DAY, "dish_ids": [salad, soup]})
    assert wrong_day.status_code == 400
    assert wrong_day.json()["code"] == "INVALID_INPUT"

    empty = client.put("/orders", json={"order_date": DAY, "dish_ids": []})
    assert empty.status_code == 400

    assert _quantities(client.get("/orders", params={"date": DAY}).json()) == {curry: 1}


def test_clear_order(client, make_user, menu):
    make_user("alice")
    login(client, "alice")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [menu[0], menu[1]]})

    cleared = client.delete("/orders", params={"date": DAY})
    assert cleared.json()["removed"] == 2
    assert client.get("/orders", params={"date": DAY}).json()["orders"] == []


def test_other_users_orders_need_ownership_or_admin(client, make_user, menu):
    alice = make_user("alice")
    bob = make_user("bob")

    login(client, "alice")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [menu[0]]})
    assert client.get(f"/orders/users/{alice.id}", params={"date": DAY}).status_code == 200

    denied = client.get(f"/orders/users/{bob.id}", params={"date": DAY})
    assert denied.status_code == 403
    assert denied.json()["code"] == "NOT_OWNER"

    client.post("/auth/logout")
    login(client, "boss")
    seen = client.get(f"/orders/users/{alice.id}", params={"date": DAY})
    assert seen.status_code == 200
    assert _quantities(seen.json()) == {menu[0]: 1}


def test_summary_is_admin_only_and_totals(client, make_user, menu):
    make_user("alice")
    make_user("bob")
    curry, salad, _ = menu

    login(client, "alice")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [curry, curry]})
    assert client.get("/orders/summary", params={"date": DAY}).status_code == 403
    client.post("/auth/logout")

    login(client, "bob")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [curry, salad]})
    client.post("/auth/logout")

    login(client, "boss")
    summary = client.get("/orders/summary", params={"date": DAY}).json()
    totals = {row["dish_id"]: row["total_quantity"] for row in summary["dishes"]}
    assert totals == {curry: 3, salad: 1}
    assert [(row["username"], row["dish_id"]) for row in summary["lines"]] == [
        ("alice", curry),
        ("bob", curry),
        ("bob", salad),
    ]


def test_ordered_dish_cannot_move_to_another_day(client, make_user, menu):
    make_user("alice")
    curry, salad, _ = menu

    login(client, "alice")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [curry]})
    client.post("/auth/logout")

    login(client, "boss")
    moved = client.put(f"/menu/dishes/{curry}", json={"menu_date": OTHER_DAY})
    assert moved.status_code == 409
    assert moved.json()["code"] == "CONFLICT"

    # Same day or image-only edits are still fine
    assert client.put(f"/menu/dishes/{curry}", json={"menu_date": DAY, "image_path": "img/new.jpg"}).status_code == 200
    # A dish nobody ordered can move
    free = client.put(f"/menu/dishes/{salad}", json={"menu_date": OTHER_DAY})
    assert free.status_code == 200
    assert free.json()["menu_date"] == OTHER_DAY

    summary = client.get("/orders/summary", params={"date": DAY}).json()
    assert [row["dish_id"] for row in summary["dishes"]] == [curry]


def test_deleting_a_dish_drops_its_orders(client, make_user, menu):
    make_user("alice")
    curry, salad, _ = menu

    login(client, "alice")
    client.put("/orders", json={"order_date": DAY, "dish_ids": [curry, salad]})
    client.post("/auth/logout")

    login(client, "boss")
    assert client.delete(f"/menu/dishes/{curry}").status_code == 200
    assert client.delete(f"/menu/dishes/{curry}").status_code == 404
    client.post("/auth/logout")

    login(client, "alice")
    assert _quantities(client.get("/orders", params={"date": DAY}).json()) == {salad: 1}
