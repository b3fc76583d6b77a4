import json

from api.endpoints.product import LIST_CACHE_KEY


def _register(client, name="Ada", email="ada@example.com"):
    resp = client.post("/api/user/register", json={"name": name, "email": email})
    assert resp.status_code == 200, resp.text
    return resp.json()["user"]


def _add_product(client, **overrides):
    payload = {"name": "Shirt", "price": 25.0, "category": "Men", "subCategory": "Topwear", "sizes": ["M", "L"]}
    payload.update(overrides)
    resp = client.post("/api/product/add", json=payload)
    assert resp.status_code == 200, resp.text
    return resp.json()["product"]


class TestUser:
    def test_register_and_fetch(self, client):
        user = _register(client, email="Ada@Example.com")
        assert user["email"] == "ada@example.com"
        assert user["cartData"] == {}

        resp = client.get(f"/api/user/{user['id']}")
        assert resp.status_code == 200
        assert resp.json()["user"]["name"] == "Ada"

    def test_duplicate_email_conflicts(self, client):
        _register(client)
        resp = client.post("/api/user/register", json={"name": "Other", "email": "ada@example.com"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "CONFLICT_ERROR"

    def test_missing_user_is_404_not_fallback(self, client):
        resp = client.get("/api/user/x")
        assert resp.status_code == 404
        assert resp.headers["content-type"] == "application/json"
        assert resp.json()["error"]["metadata"] == {"resource": "user"}

    def test_list_and_delete(self, client):
        user = _register(client)
        assert len(client.get("/api/user/list").json()["users"]) == 1
        assert client.delete(f"/api/user/{user['id']}").status_code == 200
        assert client.delete(f"/api/user/{user['id']}").status_code == 404

    def test_invalid_body_is_422(self, client):
        resp = client.post("/api/user/register", json={"name": "", "email": "not-an-email"})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {tuple(e["loc"]) for e in error["metadata"]["errors"]} == {("body", "name"), ("body", "email")}


class TestProduct:
    def test_add_single_remove(self, client):
        product = _add_product(client)
        assert product["subCategory"] == "Topwear"
        assert isinstance(product["date"], int)

        resp = client.post("/api/product/single", json={"productId": product["id"]})
        assert resp.json()["product"]["name"] == "Shirt"

        assert client.post("/api/product/remove", json={"productId": product["id"]}).status_code == 200
        assert client.post("/api/product/single", json={"productId": product["id"]}).status_code == 404

    def test_list_is_cached_and_invalidated(self, client, services):
        _add_product(client, name="Hat")
        first = client.get("/api/product/list").json()["products"]
        assert [p["name"] for p in first] == ["Hat"]
        assert json.loads(services.cache[LIST_CACHE_KEY])[0]["name"] == "Hat"

        _add_product(client, name="Scarf")
        assert LIST_CACHE_KEY not in services.cache
        names = sorted(p["name"] for p in client.get("/api/product/list").json()["products"])
        assert names == ["Hat", "Scarf"]

    def test_malformed_json_is_400(self, client):
        resp = client.post("/api/product/add", content=b'{"name": "Shirt",',
                           headers={"content-type": "application/json"})
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "INVALID_JSON"

    def test_upload_image(self, client, services):
        resp = client.post("/api/product/upload-image", params={"filename": "shirt.PNG"},
                           content=b"\x89PNG\r\n", headers={"content-type": "image/png"})
        assert resp.status_code == 200
        url = resp.json()["url"]
        key = url.removeprefix("https://media.test/")
        assert key.startswith("products/") and key.endswith(".png")
        assert services.uploads[key] == b"\x89PNG\r\n"

    def test_upload_rejects_non_images(self, client, services):
        resp = client.post("/api/product/upload-image", params={"filename": "notes.txt"},
                           content=b"hello", headers={"content-type": "text/plain"})
        assert resp.status_code == 400
        assert resp.json()["error"]["metadata"] == {"field": "content-type"}
        assert services.uploads == {}


class TestCart:
    def test_add_and_update(self, client):
        user = _register(client)
        uid = user["id"]
        client.post("/api/cart/add", json={"userId": uid, "itemId": "p1", "size": "M"})
        resp = client.post("/api/cart/add", json={"userId": uid, "itemId": "p1", "size": "M"})
        assert resp.json()["cartData"] == {"p1": {"M": 2}}

        resp = client.post("/api/cart/update", json={"userId": uid, "itemId": "p1", "size": "M", "quantity": 5})
        assert resp.json()["cartData"] == {"p1": {"M": 5}}

        resp = client.post("/api/cart/update", json={"userId": uid, "itemId": "p1", "size": "M", "quantity": 0})
        assert resp.json()["cartData"] == {}

        assert client.post("/api/cart/get", json={"userId": uid}).json()["cartData"] == {}

    def test_unknown_user(self, client):
        resp = client.post("/api/cart/get", json={"userId": "ghost"})
        assert resp.status_code == 404


class TestOrder:
    def test_place_clears_cart_and_lists(self, client):
        uid = _register(client)["id"]
        client.post("/api/cart/add", json={"userId": uid, "itemId": "p1", "size": "L"})

        resp = client.post("/api/order/place", json={
            "userId": uid,
            "items": [{"id": "p1", "size": "L", "quantity": 1}],
            "amount": 35.0,
            "address": {"city": "Lisbon"},
        })
        assert resp.status_code == 200
        order = resp.json()["order"]
        assert order["status"] == "Order Placed"
        assert order["paymentMethod"] == "COD"

        assert client.post("/api/cart/get", json={"userId": uid}).json()["cartData"] == {}
        assert len(client.post("/api/order/userorders", json={"userId": uid}).json()["orders"]) == 1
        assert len(client.get("/api/order/list").json()["orders"]) == 1

        resp = client.post("/api/order/status", json={"orderId": order["id"], "status": "Shipped"})
        assert resp.status_code == 200
        assert client.get("/api/order/list").json()["orders"][0]["status"] == "Shipped"

    def test_status_of_unknown_order(self, client):
        resp = client.post("/api/order/status", json={"orderId": "nope", "status": "Shipped"})
        assert resp.status_code == 404

    def test_empty_order_rejected(self, client):
        uid = _register(client)["id"]
        resp = client.post("/api/order/place", json={"userId": uid, "items": [], "amount": 0})
        assert resp.status_code == 422
