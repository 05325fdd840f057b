"""Concurrency integration tests.

Prove that the database guards hold when requests race:

- Two checkouts of the same cart produce exactly one order.
- Adds racing a checkout end up either in the order or in the cart.
- Two payments for the same order produce exactly one payment row.
- Two guarded transitions from the same status apply exactly once.

Uses ``TransactionTestCase`` so each thread sees committed data and
row-level locking behaves realistically.  SQLite serializes writers and
ignores ``SELECT ... FOR UPDATE``, so these run against PostgreSQL only.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest import skipUnless

import django
from django.contrib.auth import get_user_model
from django.db import connection
from django.test import TransactionTestCase

from modules.addresses.models import Address
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.services import AddressBookService
from modules.carts.exceptions import EmptyCartError
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.orders.checkout import CheckoutService
from modules.orders.constants import OrderStatus
from modules.orders.dtos import CheckoutDTO
from modules.orders.exceptions import StaleTransitionError
from modules.orders.models import Order, OrderStatusHistory
from modules.orders.repositories import OrderDjangoRepository
from modules.orders.services import OrderService
from modules.payments.exceptions import DuplicatePaymentError
from modules.payments.models import Payment
from modules.payments.reconciliation import ReconciliationCoordinator
from modules.payments.repositories.django_repository import PaymentDjangoRepository
from modules.payments.services import PaymentService
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import CatalogService

logger = logging.getLogger(__name__)

NUM_WORKERS = 8

requires_row_locks = skipUnless(
    connection.features.has_select_for_update,
    "needs a database with SELECT ... FOR UPDATE",
)


def _catalog():
    return CatalogService(repository=ProductDjangoRepository())


def _checkout_service():
    catalog = _catalog()
    return CheckoutService(
        cart_service=CartService(cart_repository=CartDjangoRepository(), catalog=catalog),
        catalog=catalog,
        address_book=AddressBookService(repository=AddressDjangoRepository()),
        order_repository=OrderDjangoRepository(),
    )


def _order_service():
    return OrderService(order_repository=OrderDjangoRepository())


def _payment_service():
    orders = _order_service()
    return PaymentService(
        payment_repository=PaymentDjangoRepository(),
        order_service=orders,
        coordinator=ReconciliationCoordinator(order_service=orders),
    )


def _race(target, workers=NUM_WORKERS):
    """Run ``target`` from ``workers`` threads released at the same time."""
    barrier = threading.Barrier(workers)

    def _run(worker_id):
        django.db.connections.close_all()
        barrier.wait()
        try:
            return target(worker_id)
        finally:
            django.db.connections.close_all()

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(_run, range(workers)))


@requires_row_locks
class TestCheckoutConcurrency(TransactionTestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user("racer", password="racer-pass")
        self.address = Address.objects.create(
            user=self.user,
            country="Brazil",
            city="Porto Alegre",
            postal_code="90010-000",
            address_line="Rua dos Andradas, 1",
        )
        product = Product.objects.create(
            sku="RACE-001",
            name="Race Product",
            price=Decimal("10.00"),
            status=ProductStatus.ACTIVE,
        )
        CartService(cart_repository=CartDjangoRepository(), catalog=_catalog()).add_line(
            self.user.id, product.id, 3
        )

    def _checkout(self, worker_id):
        try:
            _checkout_service().checkout(
                CheckoutDTO(
                    user_id=self.user.id,
                    shipping_address_id=self.address.id,
                    payment_method="card",
                )
            )
        except EmptyCartError:
            logger.warning("Worker %d: cart already consumed (expected)", worker_id)
            return "empty"
        return "created"

    def test_one_cart_one_order(self):
        results = _race(self._checkout)

        self.assertEqual(results.count("created"), 1)
        self.assertEqual(results.count("empty"), NUM_WORKERS - 1)
        self.assertEqual(Order.objects.count(), 1)
        self.assertEqual(Order.objects.get().items.get().quantity, 3)

    def test_adds_racing_checkout_are_never_lost(self):
        product = Product.objects.get(sku="RACE-001")
        carts = CartService(cart_repository=CartDjangoRepository(), catalog=_catalog())

        def _worker(worker_id):
            if worker_id == 0:
                return self._checkout(worker_id)
            carts.add_line(self.user.id, product.id, worker_id)
            return "added"

        results = _race(_worker)

        self.assertEqual(results[0], "created")
        ordered = Order.objects.get().items.get().quantity
        leftover = sum(line.quantity for line in carts.get_cart(self.user.id).lines)
        added = sum(range(1, NUM_WORKERS))
        self.assertEqual(ordered + leftover, 3 + added)

    def test_same_idempotency_key_returns_one_order(self):
        def _keyed(_worker_id):
            order, _ = _checkout_service().checkout(
                CheckoutDTO(
                    user_id=self.user.id,
                    shipping_address_id=self.address.id,
                    payment_method="card",
                    idempotency_key="double-click",
                )
            )
            return order.id

        order_ids = _race(_keyed, workers=4)

        self.assertEqual(len(set(order_ids)), 1)
        self.assertEqual(Order.objects.count(), 1)


@requires_row_locks
class TestOrderRaces(TransactionTestCase):
    def setUp(self):
        user = get_user_model().objects.create_user("payer", password="payer-pass")
        address = Address.objects.create(
            user=user,
            country="Brazil",
            city="Salvador",
            postal_code="40020-000",
            address_line="Praça da Sé, 1",
        )
        product = Product.objects.create(
            sku="RACE-002",
            name="Race Product 2",
            price=Decimal("42.00"),
            status=ProductStatus.ACTIVE,
        )
        CartService(cart_repository=CartDjangoRepository(), catalog=_catalog()).add_line(
            user.id, product.id, 1
        )
        self.order, _ = _checkout_service().checkout(
            CheckoutDTO(user_id=user.id, shipping_address_id=address.id, payment_method="card")
        )

    def test_one_payment_per_order(self):
        def _pay(_worker_id):
            try:
                _payment_service().create_payment(self.order.id)
            except DuplicatePaymentError:
                return "duplicate"
            return "created"

        results = _race(_pay)

        self.assertEqual(results.count("created"), 1)
        self.assertEqual(results.count("duplicate"), NUM_WORKERS - 1)
        self.assertEqual(Payment.objects.filter(order=self.order).count(), 1)

    def test_guarded_transition_applies_once(self):
        def _transition(worker_id):
            target = OrderStatus.PAID if worker_id % 2 else OrderStatus.CANCELLED
            try:
                _order_service().transition_status(self.order.id, OrderStatus.PENDING, target)
            except StaleTransitionError:
                return "stale"
            return "applied"

        results = _race(_transition)

        self.assertEqual(results.count("applied"), 1)
        self.assertEqual(
            OrderStatusHistory.objects.filter(order=self.order, field="status").count(),
            2,
        )
