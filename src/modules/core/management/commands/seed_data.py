from __future__ import annotations

import random
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

from modules.addresses.models import Address
from modules.addresses.repositories.django_repository import AddressDjangoRepository
from modules.addresses.services import AddressBookService
from modules.carts.repositories.django_repository import CartDjangoRepository
from modules.carts.services import CartService
from modules.orders.checkout import CheckoutService
from modules.orders.constants import PaymentMethod
from modules.orders.dtos import CheckoutDTO
from modules.orders.models import Order
from modules.orders.repositories import OrderDjangoRepository
from modules.products.models import Product, ProductStatus
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import CatalogService


class Command(BaseCommand):
    help = "Seed database with realistic development data."

    def add_arguments(self, parser):
        parser.add_argument(
            "--orders",
            type=int,
            default=5,
            help="Demo orders to place for the 'user' account through checkout.",
        )

    def handle(self, *args, **options):
        random.seed(42)
        self.stdout.write("Seeding development data...")

        users_created = self._seed_users()
        addresses = self._seed_addresses()
        products = self._seed_products()
        orders_created = self._seed_orders(addresses, products, options["orders"])

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={users_created}, "
                f"addresses={len(addresses)}, "
                f"products={len(products)}, "
                f"orders={orders_created}"
            )
        )

    def _seed_users(self) -> int:
        User = get_user_model()
        created = 0
        if not User.objects.filter(username="admin").exists():
            User.objects.create_superuser("admin", password="admin123")
            created += 1
        if not User.objects.filter(username="manager").exists():
            User.objects.create_user(
                "manager", password="manager123", is_staff=True
            )
            created += 1
        if not User.objects.filter(username="user").exists():
            User.objects.create_user("user", password="user123")
            created += 1
        return created

    def _seed_addresses(self) -> list[Address]:
        self.stdout.write("Creating addresses...")
        user = get_user_model().objects.get(username="user")
        seed_addresses = [
            ("Brazil", "São Paulo", "01310-100", "Av. Paulista, 1000"),
            ("Brazil", "Curitiba", "80010-000", "Rua XV de Novembro, 250"),
        ]
        addresses: list[Address] = []
        for country, city, postal_code, line in seed_addresses:
            address, _ = Address.objects.get_or_create(
                user=user,
                address_line=line,
                defaults={"country": country, "city": city, "postal_code": postal_code},
            )
            addresses.append(address)
        self.stdout.write(self.style.SUCCESS("Creating addresses... Done!"))
        return addresses

    def _seed_products(self) -> list[Product]:
        self.stdout.write("Creating products...")
        products: list[Product] = []
        catalog = [
            ("ELET-001", "Monitor 27\"", "Eletrônicos", Decimal("1299.90")),
            ("ELET-002", "Teclado Mecânico", "Eletrônicos", Decimal("399.90")),
            ("ELET-003", "Mouse Gamer", "Eletrônicos", Decimal("249.90")),
            ("ELET-004", "Headset", "Eletrônicos", Decimal("299.90")),
            ("MOV-001", "Mesa Escritório", "Móveis", Decimal("899.00")),
            ("MOV-002", "Cadeira Ergonômica", "Móveis", Decimal("1499.00")),
            ("OFF-001", "Papel A4", "Escritório", Decimal("29.90")),
            ("OFF-002", "Caneta Azul", "Escritório", Decimal("4.90")),
            ("OFF-003", "Caderno", "Escritório", Decimal("19.90")),
            ("OFF-004", "Calculadora", "Escritório", Decimal("89.90")),
        ]
        for sku, name, category, price in catalog:
            product, _ = Product.objects.get_or_create(
                sku=sku,
                defaults={
                    "name": name,
                    "description": category,
                    "price": price,
                    "status": ProductStatus.ACTIVE,
                },
            )
            products.append(product)
        self.stdout.write(self.style.SUCCESS("Creating products... Done!"))
        return products

    def _seed_orders(
        self, addresses: list[Address], products: list[Product], count: int
    ) -> int:
        """Place orders through the real cart and checkout path."""
        self.stdout.write("Creating orders...")
        if not addresses or not products:
            self.stdout.write(self.style.WARNING("Skipping orders (no addresses/products)."))
            return 0

        catalog = CatalogService(repository=ProductDjangoRepository())
        carts = CartService(cart_repository=CartDjangoRepository(), catalog=catalog)
        checkout = CheckoutService(
            cart_service=carts,
            catalog=catalog,
            address_book=AddressBookService(repository=AddressDjangoRepository()),
            order_repository=OrderDjangoRepository(),
        )
        user_id = addresses[0].user_id
        if Order.objects.filter(user_id=user_id).exists():
            self.stdout.write(self.style.WARNING("Skipping orders (already seeded)."))
            return 0
        methods = [PaymentMethod.CARD, PaymentMethod.CASH, PaymentMethod.PAYPAL]

        created = 0
        for _ in range(count):
            for product in random.sample(products, k=random.randint(1, 3)):
                carts.add_line(user_id, product.id, random.randint(1, 3))
            _, was_created = checkout.checkout(
                CheckoutDTO(
                    user_id=user_id,
                    shipping_address_id=random.choice(addresses).id,
                    payment_method=random.choice(methods),
                )
            )
            created += int(was_created)

        self.stdout.write(self.style.SUCCESS("Creating orders... Done!"))
        return created
