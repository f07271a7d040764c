from bson import ObjectId

from conftest import login, register


def test_create_food_item_creates_inventory(client, mongo, make_food):
    item = make_food(name="Butter Chicken", price=120, quantity_total=50, category="lunch")
    assert item["quantity_available"] == 50
    assert item["quantity_total"] == 50
    assert item["available"] is True
    assert item["preparation_time"] == 15

    inventory = mongo["inventory"].find_one({"food_item": item["id"]})
    assert inventory["quantity_in_stock"] == 50
    assert inventory["low_stock_threshold"] == 5
    assert inventory["quantity_reserved"] == 0


def test_create_requires_all_fields(client, admin_headers):
    res = client.post("/api/food", headers=admin_headers, json={"name": "Tea", "price": 10})
    assert res.status_code == 400
    assert res.json()["message"] == "Please provide all required fields"


def test_create_rejects_unknown_category(client, admin_headers):
    res = client.post("/api/food", headers=admin_headers, json={
        "name": "Tea", "description": "Hot", "price": 10, "category": "dinner", "quantity_total": 5,
    })
    assert res.status_code == 400


def test_menu_is_public_and_filterable(client, make_food):
    make_food(name="Samosa", category="snacks")
    make_food(name="Lemonade", category="beverages")

    res = client.get("/api/food")
    assert res.json()["count"] == 2
    names = [i["name"] for i in client.get("/api/food", params={"category": "beverages"}).json()["data"]]
    assert names == ["Lemonade"]


def test_get_food_item(client, make_food):
    item = make_food()
    assert client.get(f"/api/food/{item['id']}").json()["data"]["name"] == "Samosa"

    res = client.get(f"/api/food/{ObjectId()}")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Food item not found"}

    assert client.get("/api/food/not-an-id").status_code == 400


def test_students_cannot_edit_menu(client, student_headers, make_food):
    item = make_food()
    res = client.post("/api/food", headers=student_headers, json={
        "name": "Tea", "description": "Hot", "price": 10, "category": "beverages", "quantity_total": 5,
    })
    assert res.status_code == 403
    assert client.delete(f"/api/food/{item['id']}", headers=student_headers).status_code == 403
    assert client.post("/api/food", json={}).status_code == 401


def test_canteen_owner_manages_menu(client):
    register(client, "Owner", "owner@canteen.com", "OWN001", role="canteen_owner")
    headers = login(client, "secret123", email="owner@canteen.com")
    res = client.post("/api/food", headers=headers, json={
        "name": "Tea", "description": "Hot", "price": 10, "category": "beverages", "quantity_total": 5,
    })
    assert res.status_code == 201
    assert res.json()["data"]["created_by"] is not None


def test_update_stock_toggles_availability(client, mongo, admin_headers, make_food):
    item = make_food(quantity_total=10)

    res = client.put(f"/api/food/{item['id']}", headers=admin_headers, json={"quantity_available": 0})
    data = res.json()["data"]
    assert data["quantity_available"] == 0
    assert data["available"] is False
    assert mongo["inventory"].find_one({"food_item": item["id"]})["quantity_in_stock"] == 0

    res = client.put(f"/api/food/{item['id']}", headers=admin_headers, json={"quantity_available": 20, "price": 25})
    data = res.json()["data"]
    assert data["available"] is True
    assert data["price"] == 25
    inventory = mongo["inventory"].find_one({"food_item": item["id"]})
    assert inventory["quantity_in_stock"] == 20
    assert inventory["last_restocked"] is not None


def test_explicit_availability_wins(client, admin_headers, make_food):
    item = make_food()
    res = client.put(f"/api/food/{item['id']}", headers=admin_headers, json={"quantity_available": 5, "available": False})
    assert res.json()["data"]["available"] is False


def test_update_missing_item(client, admin_headers):
    res = client.put(f"/api/food/{ObjectId()}", headers=admin_headers, json={"price": 5})
    assert res.status_code == 404
    res = client.put(f"/api/food/{ObjectId()}", headers=admin_headers, json={})
    assert res.status_code == 400


def test_delete_removes_inventory(client, mongo, admin_headers, make_food):
    item = make_food()
    res = client.delete(f"/api/food/{item['id']}", headers=admin_headers)
    assert res.json() == {"success": True, "message": "Food item deleted"}
    assert mongo["inventory"].find_one({"food_item": item["id"]}) is None
    assert client.delete(f"/api/food/{item['id']}", headers=admin_headers).status_code == 404


def test_seed_menu_once(client, mongo, admin_headers):
    res = client.post("/api/food/seed", headers=admin_headers)
    assert res.json()["inserted"] == 10
    assert mongo["inventory"].count_documents({}) == 10
    assert client.post("/api/food/seed", headers=admin_headers).json()["message"] == "Menu already seeded"
