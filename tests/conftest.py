from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.addresses.models import Address
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.services import AddressBookService
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.orders.checkout import CheckoutService
from modules.orders.dtos import CheckoutDTO
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.reconciliation import ReconciliationCoordinator
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.services import PaymentService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import CatalogService


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _reset_throttles():
    """Throttle counters live in the local-memory cache; start each test clean."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


@pytest.fixture()
def user():
    return get_user_model().objects.create_user("buyer", password="buyer-pass")


@pytest.fixture()
def other_user():
    return get_user_model().objects.create_user("stranger", password="stranger-pass")


@pytest.fixture()
def staff_user():
    return get_user_model().objects.create_user(
        "operator", password="operator-pass", is_staff=True
    )


@pytest.fixture()
def user_client(api_client, user):
    api_client.force_authenticate(user=user)
    return api_client


@pytest.fixture()
def staff_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


# ---------------------------------------------------------------------------
# Catalog and address book
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(price="10.00", status=ProductStatus.ACTIVE, name=None):
        counter["n"] += 1
        return Product.objects.create(
            sku=f"SKU-{counter['n']:04d}",
            name=name or f"Product {counter['n']}",
            price=Decimal(price),
            status=status,
        )

    return _make


@pytest.fixture()
def address(user):
    return Address.objects.create(
        user=user,
        country="Brazil",
        city="São Paulo",
        postal_code="01310-100",
        address_line="Av. Paulista, 1000",
    )


@pytest.fixture()
def other_address(other_user):
    return Address.objects.create(
        user=other_user,
        country="Brazil",
        city="Recife",
        postal_code="50030-000",
        address_line="Rua da Aurora, 10",
    )


# ---------------------------------------------------------------------------
# Services wired with the Django repositories
# ---------------------------------------------------------------------------


@pytest.fixture()
def catalog():
    return CatalogService(repository=ProductDjangoRepository())


@pytest.fixture()
def cart_service(catalog):
    return CartService(cart_repository=CartDjangoRepository(), catalog=catalog)


@pytest.fixture()
def order_service():
    return OrderService(order_repository=OrderDjangoRepository())


@pytest.fixture()
def checkout_service(cart_service, catalog):
    return CheckoutService(
        cart_service=cart_service,
        catalog=catalog,
        address_book=AddressBookService(repository=AddressDjangoRepository()),
        order_repository=OrderDjangoRepository(),
    )


@pytest.fixture()
def coordinator(order_service):
    return ReconciliationCoordinator(order_service=order_service)


@pytest.fixture()
def payment_service(order_service, coordinator):
    return PaymentService(
        payment_repository=PaymentDjangoRepository(),
        order_service=order_service,
        coordinator=coordinator,
    )


@pytest.fixture()
def place_order(cart_service, checkout_service, address, make_product):
    """Fill the user's cart and check it out; returns the stored order."""

    def _place(lines=None, payment_method="card"):
        if lines is None:
            lines = [(make_product("10.00"), 2), (make_product("5.00"), 1)]
        for product, quantity in lines:
            cart_service.add_line(address.user_id, product.id, quantity)
        order, _ = checkout_service.checkout(
            CheckoutDTO(
                user_id=address.user_id,
                shipping_address_id=address.id,
                payment_method=payment_method,
            )
        )
        return order

    return _place
