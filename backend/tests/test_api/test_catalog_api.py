"""
HTTP tests for product and promotion management
"""
from uuid import uuid4


class TestProductsEndpoint:

    def test_create_and_list_products(self, client):
        # Act
        created = client.post(
            "/products",
            json={"name": "Desk Lamp", "category": "HOME", "price": "35.90", "stock": 4},
        )
        listed = client.get("/products")

        # Assert
        assert created.status_code == 201
        assert created.json()["price"] == 35.9
        assert listed.status_code == 200
        assert listed.json()["count"] == 1
        assert listed.json()["data"][0]["id"] == created.json()["id"]

    def test_invalid_product_is_400(self, client):
        response = client.post("/products", json={"name": "", "category": "HOME", "price": 0, "stock": -1})

        assert response.status_code == 400
        assert set(response.json()["details"]) == {"name", "price", "stock"}

    def test_price_with_three_decimals_is_400(self, client):
        response = client.post("/products", json={"name": "Pen", "category": "HOME", "price": "1.999", "stock": 1})

        assert response.status_code == 400


class TestPromotionsEndpoint:

    def test_create_percent_off_then_conflict(self, client):
        body = {
            "promotionType": "PERCENT_OFF_CATEGORY",
            "description": "Sports week",
            "category": "SPORTS",
            "percentOff": 20,
        }

        first = client.post("/promotions", json=body)
        second = client.post("/promotions", json=body)

        assert first.status_code == 201
        assert first.json()["percentOff"] == 20.0
        assert second.status_code == 409
        assert client.get("/promotions").json()["count"] == 1

    def test_buy_x_get_y_for_existing_product(self, client, book):
        response = client.post("/promotions", json={
            "promotionType": "BUY_X_GET_Y",
            "description": "Book bundle",
            "productId": str(book.id),
            "buyX": 2,
            "getY": 1,
        })

        assert response.status_code == 201
        assert response.json()["productId"] == str(book.id)

    def test_buy_x_get_y_for_unknown_product_is_404(self, client):
        response = client.post("/promotions", json={
            "promotionType": "BUY_X_GET_Y",
            "description": "Ghost bundle",
            "productId": str(uuid4()),
            "buyX": 2,
            "getY": 1,
        })

        assert response.status_code == 404

    def test_missing_variant_fields_is_400(self, client):
        response = client.post("/promotions", json={
            "promotionType": "PERCENT_OFF_CATEGORY",
            "description": "No category",
        })

        assert response.status_code == 400
        assert "category" in response.json()["message"]

    def test_percent_off_out_of_range_is_400(self, client):
        response = client.post("/promotions", json={
            "promotionType": "PERCENT_OFF_CATEGORY",
            "description": "Too generous",
            "category": "BOOKS",
            "percentOff": 150,
        })

        assert response.status_code == 400
