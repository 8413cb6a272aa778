import pytest
from bson import ObjectId

from conftest import ADDRESS
from schemas import ORDER_STATUSES

pytestmark = pytest.mark.api

ADMIN_ROUTES = [
    ("get", "/admin/products"),
    ("post", "/admin/product"),
    ("put", f"/admin/product/{ObjectId()}"),
    ("delete", f"/admin/product/{ObjectId()}"),
    ("post", "/admin/category"),
    ("put", f"/admin/category/{ObjectId()}"),
    ("delete", f"/admin/category/{ObjectId()}"),
    ("get", "/admin/orders"),
    ("put", f"/admin/order/{ObjectId()}/status"),
    ("get", "/admin/stats"),
    ("put", "/config"),
    ("put", "/config/site-name"),
]


def call(client, method, path, headers=None):
    if method in ("post", "put"):
        return getattr(client, method)(path, json={}, headers=headers)
    return getattr(client, method)(path, headers=headers)


@pytest.fixture()
def place_order(client):
    def _place(who, *lines):
        payload = {
            "items": [{"product_id": str(p["_id"]), "quantity": q} for p, q in lines],
            "shipping_address": ADDRESS,
        }
        resp = client.post("/orders", json=payload, headers=who["headers"])
        assert resp.status_code == 201
        return resp.json()

    return _place


class TestRoleEnforcement:
    @pytest.mark.parametrize("method,path", ADMIN_ROUTES)
    def test_no_token_is_401(self, client, method, path):
        assert call(client, method, path).status_code == 401

    @pytest.mark.parametrize("method,path", ADMIN_ROUTES)
    def test_user_token_is_403(self, client, shopper, method, path):
        resp = call(client, method, path, headers=shopper["headers"])
        assert resp.status_code == 403
        assert resp.json()["message"] == "Access denied. Admin only."


class TestProductAdmin:
    def test_create_product(self, client, db, admin, masala):
        payload = {
            "name": " Sambhar Masala ",
            "description": "Authentic blend",
            "price": 120,
            "stock": 50,
            "category_id": str(masala["_id"]),
        }
        resp = client.post("/admin/product", json=payload, headers=admin["headers"])
        assert resp.status_code == 201
        body = resp.json()
        assert body["name"] == "Sambhar Masala"
        assert body["image"] == "/images/placeholder.jpg"
        assert body["is_active"] is True
        assert body["category"]["name"] == "Masala Items"
        assert db["product"].find_one({"_id": ObjectId(body["id"])})["category_id"] == masala["_id"]

    def test_create_product_with_unknown_category(self, client, db, admin):
        payload = {"name": "X", "description": "Y", "price": 1, "stock": 1, "category_id": str(ObjectId())}
        resp = client.post("/admin/product", json=payload, headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["message"] == "Category not found"
        assert db["product"].count_documents({}) == 0

    @pytest.mark.parametrize(
        "override,field",
        [({"price": 0}, "price"), ({"price": "abc"}, "price"), ({"stock": -1}, "stock"), ({"name": ""}, "name")],
    )
    def test_create_product_validation(self, client, admin, masala, override, field):
        payload = {"name": "X", "description": "Y", "price": 1, "stock": 1, "category_id": str(masala["_id"])}
        payload.update(override)
        resp = client.post("/admin/product", json=payload, headers=admin["headers"])
        assert resp.status_code == 400
        assert field in [e["field"] for e in resp.json()["errors"]]

    def test_partial_update(self, client, admin, masala, dairy, make_product):
        product = make_product(masala, name="Ghee", price=500, stock=5)
        resp = client.put(
            f"/admin/product/{product['_id']}",
            json={"stock": 0, "category_id": str(dairy["_id"])},
            headers=admin["headers"],
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["stock"] == 0
        assert body["price"] == 500
        assert body["name"] == "Ghee"
        assert body["category"]["name"] == "Milk Products"

    def test_update_with_unknown_category(self, client, admin, masala, make_product):
        product = make_product(masala)
        resp = client.put(
            f"/admin/product/{product['_id']}", json={"category_id": str(ObjectId())}, headers=admin["headers"]
        )
        assert resp.status_code == 400

    def test_update_unknown_product(self, client, admin):
        resp = client.put(f"/admin/product/{ObjectId()}", json={"price": 5}, headers=admin["headers"])
        assert resp.status_code == 404

    def test_deactivated_product_leaves_catalog_but_not_admin_list(self, client, admin, masala, make_product):
        product = make_product(masala)
        client.put(f"/admin/product/{product['_id']}", json={"is_active": False}, headers=admin["headers"])
        assert client.get("/products").json()["total"] == 0
        assert len(client.get("/admin/products", headers=admin["headers"]).json()) == 1

    def test_delete_product(self, client, db, admin, masala, make_product):
        product = make_product(masala)
        resp = client.delete(f"/admin/product/{product['_id']}", headers=admin["headers"])
        assert resp.json() == {"message": "Product deleted successfully"}
        assert db["product"].count_documents({}) == 0
        assert client.delete(f"/admin/product/{product['_id']}", headers=admin["headers"]).status_code == 404


class TestCategoryAdmin:
    def test_create_category(self, client, admin):
        resp = client.post("/admin/category", json={"name": "Sweets", "description": "Festive"}, headers=admin["headers"])
        assert resp.status_code == 201
        assert resp.json()["name"] == "Sweets"

    def test_names_are_unique_case_insensitively(self, client, admin, masala):
        resp = client.post("/admin/category", json={"name": "masala ITEMS"}, headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["message"] == "Category already exists"

    def test_rename_category(self, client, admin, masala):
        resp = client.put(f"/admin/category/{masala['_id']}", json={"name": "Spices"}, headers=admin["headers"])
        assert resp.status_code == 200
        assert resp.json()["name"] == "Spices"
        assert resp.json()["name_key"] == "spices"

    def test_rename_to_taken_name(self, client, admin, masala, dairy):
        resp = client.put(f"/admin/category/{masala['_id']}", json={"name": "MILK products"}, headers=admin["headers"])
        assert resp.status_code == 400

    def test_delete_category_in_use(self, client, admin, masala, make_product):
        make_product(masala)
        resp = client.delete(f"/admin/category/{masala['_id']}", headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["message"] == "Category has products"

    def test_delete_empty_category(self, client, db, admin, dairy):
        assert client.delete(f"/admin/category/{dairy['_id']}", headers=admin["headers"]).status_code == 200
        assert db["category"].count_documents({}) == 0


class TestOrderAdmin:
    def test_list_orders_with_filter_and_user(self, client, db, admin, shopper, masala, make_product, place_order):
        rasam = make_product(masala)
        first = place_order(shopper, (rasam, 1))
        place_order(shopper, (rasam, 2))
        db["order"].update_one({"_id": ObjectId(first["id"])}, {"$set": {"status": "shipped"}})

        body = client.get("/admin/orders", params={"status": "shipped"}, headers=admin["headers"]).json()
        assert body["total"] == 1
        assert body["orders"][0]["id"] == first["id"]
        assert body["orders"][0]["user"]["email"] == shopper["user"]["email"]

        everything = client.get("/admin/orders", params={"limit": 1, "page": 2}, headers=admin["headers"]).json()
        assert everything["total"] == 2
        assert everything["total_pages"] == 2
        assert [o["id"] for o in everything["orders"]] == [first["id"]]

    def test_unknown_status_filter(self, client, admin):
        assert client.get("/admin/orders", params={"status": "lost"}, headers=admin["headers"]).status_code == 400

    def test_out_of_range_page_is_rejected(self, client, admin):
        resp = client.get("/admin/orders", params={"page": 10**17, "limit": 200}, headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "page"

    def test_status_update_returns_populated_order(self, client, admin, shopper, masala, make_product, place_order):
        rasam = make_product(masala, name="Rasam")
        order = place_order(shopper, (rasam, 1))

        resp = client.put(f"/admin/order/{order['id']}/status", json={"status": "shipped"}, headers=admin["headers"])
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "shipped"
        assert body["user"]["name"] == "Shopper"
        assert body["items"][0]["product"]["name"] == "Rasam"

    def test_any_status_may_follow_any_other(self, client, admin, shopper, masala, make_product, place_order):
        order = place_order(shopper, (make_product(masala), 1))
        path = f"/admin/order/{order['id']}/status"
        for status in ("delivered", "pending", "cancelled", "processing", "confirmed", "delivered", "pending"):
            resp = client.put(path, json={"status": status}, headers=admin["headers"])
            assert resp.status_code == 200
            assert resp.json()["status"] == status

    def test_invalid_status_is_rejected_before_write(
        self, client, db, admin, shopper, masala, make_product, place_order
    ):
        order = place_order(shopper, (make_product(masala), 1))
        resp = client.put(f"/admin/order/{order['id']}/status", json={"status": "lost"}, headers=admin["headers"])
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid status"
        assert db["order"].find_one({"_id": ObjectId(order["id"])})["status"] == "pending"

    def test_unknown_order(self, client, admin):
        resp = client.put(f"/admin/order/{ObjectId()}/status", json={"status": "shipped"}, headers=admin["headers"])
        assert resp.status_code == 404
        assert resp.json()["message"] == "Order not found"


class TestStats:
    def test_empty_store(self, client, admin):
        stats = client.get("/admin/stats", headers=admin["headers"]).json()
        assert stats == {
            "total_products": 0,
            "total_orders": 0,
            "total_users": 0,
            "pending_orders": 0,
            "total_revenue": 0,
        }

    def test_counts_and_revenue(self, client, db, admin, shopper, other_shopper, masala, make_product, place_order):
        rasam = make_product(masala, price=100)
        make_product(masala, is_active=False)

        orders = [place_order(shopper, (rasam, n)) for n in range(1, len(ORDER_STATUSES) + 1)]
        for order, status in zip(orders, ORDER_STATUSES):
            db["order"].update_one({"_id": ObjectId(order["id"])}, {"$set": {"status": status}})

        stats = client.get("/admin/stats", headers=admin["headers"]).json()
        assert stats["total_products"] == 1
        assert stats["total_orders"] == 6
        assert stats["total_users"] == 2
        assert stats["pending_orders"] == 1
        # confirmed(2) + processing(3) + shipped(4) + delivered(5) units at 100 each
        assert stats["total_revenue"] == 1400
