"""Integration tests for the product catalog and address book APIs."""

from __future__ import annotations

import pytest

from modules.products.models import Product, ProductStatus

pytestmark = pytest.mark.integration


class TestProductApi:
    def test_list_hides_deleted_products(self, user_client, make_product):
        visible = make_product()
        gone = make_product()
        gone.delete()

        response = user_client.get("/api/v1/products/")

        assert response.status_code == 200
        ids = [row["id"] for row in response.json()["results"]]
        assert ids == [str(visible.id)]

    def test_staff_creates_product(self, staff_client):
        response = staff_client.post(
            "/api/v1/products/",
            {"sku": "NEW-001", "name": "Desk Lamp", "price": "49.90"},
            format="json",
        )
        assert response.status_code == 201
        assert Product.objects.get(sku="NEW-001").status == ProductStatus.ACTIVE

    def test_duplicate_sku_is_conflict(self, staff_client, make_product):
        existing = make_product()
        response = staff_client.post(
            "/api/v1/products/",
            {"sku": existing.sku, "name": "Copy", "price": "1.00"},
            format="json",
        )
        assert response.status_code == 409

    def test_customers_cannot_write(self, user_client):
        response = user_client.post(
            "/api/v1/products/",
            {"sku": "NOPE-1", "name": "Nope", "price": "1.00"},
            format="json",
        )
        assert response.status_code == 403

    def test_staff_deactivates_product(self, staff_client, make_product):
        product = make_product()
        response = staff_client.patch(
            f"/api/v1/products/{product.id}/", {"status": "inactive"}, format="json"
        )
        assert response.status_code == 200
        assert response.json()["status"] == "inactive"
        assert response.json()["is_sellable"] is False

    def test_sellable_filter(self, user_client, make_product):
        on_sale = make_product()
        make_product(status=ProductStatus.INACTIVE)

        response = user_client.get("/api/v1/products/", {"sellable": "true"})

        assert response.status_code == 200
        rows = response.json()["results"]
        assert [row["id"] for row in rows] == [str(on_sale.id)]
        assert rows[0]["is_sellable"] is True

    def test_status_filter_rejects_unknown_value(self, user_client):
        response = user_client.get("/api/v1/products/", {"status": "archived"})
        assert response.status_code == 400


class TestAddressApi:
    def test_create_and_list_own_addresses(self, user_client, other_address):
        response = user_client.post(
            "/api/v1/addresses/",
            {
                "country": "Brazil",
                "city": "Belo Horizonte",
                "postal_code": "30130-000",
                "address_line": "Av. Afonso Pena, 1500",
            },
            format="json",
        )
        assert response.status_code == 201

        listed = user_client.get("/api/v1/addresses/").json()
        assert [row["city"] for row in listed] == ["Belo Horizonte"]

    def test_missing_fields(self, user_client):
        response = user_client.post("/api/v1/addresses/", {"city": "Natal"}, format="json")
        assert response.status_code == 400

    def test_cannot_read_someone_elses_address(self, user_client, other_address):
        response = user_client.get(f"/api/v1/addresses/{other_address.id}/")
        assert response.status_code == 404

    def test_delete_own_address(self, user_client, address):
        response = user_client.delete(f"/api/v1/addresses/{address.id}/")
        assert response.status_code == 204
        assert user_client.get(f"/api/v1/addresses/{address.id}/").status_code == 404
