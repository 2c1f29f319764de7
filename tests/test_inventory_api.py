from __future__ import annotations

import pytest
from pydantic import ValidationError

from modules.inventory.schemas import InventoryItemCreate, InventoryItemUpdate


def test_manual_entry_round_trip(client, user):
    created = client.post(
        "/api/inventory",
        json={"name": "Lamp", "estimated_value": 49.99, "condition": "good"},
        headers=user["headers"],
    )
    assert created.status_code == 201, created.text
    item_id = created.json()["id"]
    assert item_id

    fetched = client.get(f"/api/inventory/{item_id}", headers=user["headers"])
    assert fetched.status_code == 200
    payload = fetched.json()
    assert payload["name"] == "Lamp"
    assert payload["estimated_value"] == 49.99
    assert payload["condition"] == "good"
    assert payload["user_id"] == user["id"]
    assert payload["created_at"] is not None
    assert payload["updated_at"] is not None
    assert payload["brand"] is None
    assert payload["image_url"] is None


def test_rejects_value_above_cap(client, user, count_items):
    response = client.post(
        "/api/inventory",
        json={"name": "Painting", "estimated_value": 2000000, "condition": "good"},
        headers=user["headers"],
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Estimated value cannot exceed 1,000,000"
    assert count_items() == 0


def test_accepts_zero_value(client, user):
    response = client.post(
        "/api/inventory",
        json={"name": "Old magazine", "estimated_value": 0},
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    assert response.json()["estimated_value"] == 0
    assert response.json()["condition"] == "good"


def test_surfaces_first_violation_only(client, user, count_items):
    response = client.post(
        "/api/inventory",
        json={"name": "   ", "estimated_value": -5, "condition": "mint"},
        headers=user["headers"],
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Name is required"
    assert count_items() == 0


def test_rejects_unknown_condition(client, user):
    response = client.post(
        "/api/inventory",
        json={"name": "Chair", "condition": "mint"},
        headers=user["headers"],
    )
    assert response.status_code == 422
    assert response.json()["detail"].startswith("Condition must be one of")


def test_blank_optional_fields_are_stored_as_null(client, user):
    response = client.post(
        "/api/inventory",
        json={
            "name": "  Sofa  ",
            "description": "",
            "category": "",
            "estimated_value": "",
            "room_location": " ",
            "condition": "Fair",
        },
        headers=user["headers"],
    )
    assert response.status_code == 201, response.text
    payload = response.json()
    assert payload["name"] == "Sofa"
    assert payload["description"] is None
    assert payload["category"] is None
    assert payload["estimated_value"] is None
    assert payload["room_location"] is None
    assert payload["condition"] == "fair"


def test_owner_comes_from_token_not_body(client, make_user):
    owner = make_user("owner@example.com")
    other = make_user("other@example.com")

    response = client.post(
        "/api/inventory",
        json={"name": "Bike", "user_id": other["id"]},
        headers=owner["headers"],
    )
    assert response.status_code == 201
    assert response.json()["user_id"] == owner["id"]


def test_items_are_invisible_to_other_users(client, make_user):
    owner = make_user("owner@example.com")
    other = make_user("other@example.com")

    item_id = client.post("/api/inventory", json={"name": "TV"}, headers=owner["headers"]).json()["id"]

    assert client.get(f"/api/inventory/{item_id}", headers=other["headers"]).status_code == 404
    assert client.put(
        f"/api/inventory/{item_id}", json={"name": "Mine now"}, headers=other["headers"]
    ).status_code == 404
    assert client.delete(f"/api/inventory/{item_id}", headers=other["headers"]).status_code == 404
    assert client.get("/api/inventory", headers=other["headers"]).json() == []

    still_there = client.get(f"/api/inventory/{item_id}", headers=owner["headers"])
    assert still_there.json()["name"] == "TV"


def test_update_is_partial_and_keeps_owner(client, make_user):
    owner = make_user("owner@example.com")
    other = make_user("other@example.com")
    item_id = client.post(
        "/api/inventory",
        json={"name": "Desk", "estimated_value": 120, "room_location": "Office"},
        headers=owner["headers"],
    ).json()["id"]

    response = client.put(
        f"/api/inventory/{item_id}",
        json={"estimated_value": 150, "user_id": other["id"]},
        headers=owner["headers"],
    )
    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["estimated_value"] == 150
    assert payload["name"] == "Desk"
    assert payload["room_location"] == "Office"
    assert payload["user_id"] == owner["id"]


def test_update_validates_fields(client, user):
    item_id = client.post("/api/inventory", json={"name": "Desk"}, headers=user["headers"]).json()["id"]

    response = client.put(
        f"/api/inventory/{item_id}", json={"estimated_value": 1000001}, headers=user["headers"]
    )
    assert response.status_code == 422
    assert response.json()["detail"] == "Estimated value cannot exceed 1,000,000"


def test_delete_item(client, user, count_items):
    item_id = client.post("/api/inventory", json={"name": "Rug"}, headers=user["headers"]).json()["id"]

    response = client.delete(f"/api/inventory/{item_id}", headers=user["headers"])
    assert response.status_code == 200
    assert count_items() == 0
    assert client.get(f"/api/inventory/{item_id}", headers=user["headers"]).status_code == 404


def test_search_matches_name_category_and_description(client, user):
    for body in (
        {"name": "Laptop", "category": "electronics"},
        {"name": "Armchair", "category": "furniture", "description": "Leather, brown"},
        {"name": "Jacket", "category": "clothing"},
    ):
        assert client.post("/api/inventory", json=body, headers=user["headers"]).status_code == 201

    def names(term):
        response = client.get("/api/inventory", params={"search": term}, headers=user["headers"])
        assert response.status_code == 200
        return sorted(item["name"] for item in response.json())

    assert names("lap") == ["Laptop"]
    assert names("FURNITURE") == ["Armchair"]
    assert names("leather") == ["Armchair"]
    assert names("") == ["Armchair", "Jacket", "Laptop"]


def test_stats_summarise_owned_items(client, make_user):
    owner = make_user("owner@example.com")
    other = make_user("other@example.com")
    for body in (
        {"name": "Laptop", "category": "electronics", "estimated_value": 1200},
        {"name": "Phone", "category": "Electronics", "estimated_value": 300.5},
        {"name": "Armchair", "category": "furniture"},
    ):
        client.post("/api/inventory", json=body, headers=owner["headers"])
    client.post("/api/inventory", json={"name": "Boat", "estimated_value": 90000}, headers=other["headers"])

    response = client.get("/api/inventory/stats", headers=owner["headers"])
    assert response.status_code == 200
    assert response.json() == {
        "total_items": 3,
        "total_value": 1500.5,
        "category_count": 2,
        "categories": {"electronics": 2, "furniture": 1},
    }


def test_inventory_requires_authentication(client):
    assert client.get("/api/inventory").status_code == 401
    assert client.post("/api/inventory", json={"name": "Lamp"}).status_code == 401
    bad = client.get("/api/inventory", headers={"Authorization": "Bearer not-a-token"})
    assert bad.status_code == 401


@pytest.mark.parametrize(
    "field, value, message",
    [
        ("name", "   ", "Name is required"),
        ("estimated_value", -1, "cannot be negative"),
        ("condition", "mint", "Condition must be one of"),
        ("room_location", "x" * 101, "Room location must be at most 100 characters"),
    ],
)
def test_create_and_update_share_field_rules(field, value, message):
    create_fields = {"name": "Lamp", field: value}

    with pytest.raises(ValidationError, match=message):
        InventoryItemCreate(**create_fields)
    with pytest.raises(ValidationError, match=message):
        InventoryItemUpdate(**{field: value})


def test_update_leaves_unset_fields_alone():
    update = InventoryItemUpdate(category="  Electronics ")

    assert update.model_dump(exclude_unset=True) == {"category": "electronics"}
