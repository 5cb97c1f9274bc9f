"""Tests for the product catalogue and stock updates."""

from backoffice.domain.inventory.service import apply_order_to_stock
from backoffice.models import BusinessWebhook, Product


class TestProducts:
    """Product CRUD through the API."""

    def test_create_rounds_price(self, client, auth_headers):
        response = client.post(
            "/products",
            json={"name": "Grinder", "price": 199.995, "stock": 3, "currency": "ils"},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["price"] == 200.0
        assert data["currency"] == "ILS"

    def test_price_must_be_positive(self, client, auth_headers):
        response = client.post("/products", json={"name": "Free", "price": 0}, headers=auth_headers)
        assert response.status_code == 422

    def test_stock_cannot_be_negative(self, client, auth_headers, products):
        beans, _ = products
        response = client.put(f"/products/{beans.id}", json={"stock": -1}, headers=auth_headers)
        assert response.status_code == 422

    def test_partial_update(self, client, auth_headers, products):
        beans, _ = products
        response = client.put(f"/products/{beans.id}", json={"stock": 25}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["stock"] == 25
        assert response.json()["price"] == 45.5

    def test_delete_clears_webhook_product_filter(self, client, db, auth_headers, business, products):
        _, mug = products
        hook = BusinessWebhook(
            business_id=business.id,
            url="https://hooks.example.com/p",
            on_product_purchased=True,
            product_id=mug.id,
        )
        db.add(hook)
        db.commit()

        response = client.delete(f"/products/{mug.id}", headers=auth_headers)

        assert response.status_code == 200
        db.refresh(hook)
        assert hook.product_id is None

    def test_delete_product_used_in_orders_is_blocked(self, client, auth_headers, products, make_order):
        make_order()
        response = client.delete(f"/products/{products[0].id}", headers=auth_headers)
        assert response.status_code == 400


class TestStock:
    """Stock decrement after payment."""

    def test_decrements_each_product(self, db, products, make_order):
        beans, mug = products
        order = make_order([(beans, 3), (mug, 1)])

        changes = apply_order_to_stock(db, order)

        assert {c["product_id"]: (c["before"], c["after"]) for c in changes} == {
            beans.id: (10, 7),
            mug.id: (2, 1),
        }
        assert db.query(Product).filter(Product.id == beans.id).first().stock == 7

    def test_stock_never_goes_negative(self, db, products, make_order):
        _, mug = products
        order = make_order([(mug, 5)])

        apply_order_to_stock(db, order)

        assert db.query(Product).filter(Product.id == mug.id).first().stock == 0
