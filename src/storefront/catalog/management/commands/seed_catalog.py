"""Management command to seed sample clothing categories and products."""

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction

from storefront.catalog.models import Category, Product


CATEGORIES = [
    {
        "name": "Clothing",
        "slug": "clothing",
        "description": "Clothing and fashion products",
        "parent": None,
        "sort_order": 1,
    },
    {
        "name": "Men's Clothing",
        "slug": "mens-clothing",
        "description": "Men's fashion and clothing",
        "parent": "clothing",
        "sort_order": 1,
    },
    {
        "name": "Women's Clothing",
        "slug": "womens-clothing",
        "description": "Women's fashion and clothing",
        "parent": "clothing",
        "sort_order": 2,
    },
    {
        "name": "Kids' Clothing",
        "slug": "kids-clothing",
        "description": "Children's fashion and clothing",
        "parent": "clothing",
        "sort_order": 3,
    },
]


PRODUCTS = [
    {
        "name": "Men's Classic T-Shirt",
        "description": "Comfortable cotton t-shirt for everyday wear",
        "price": Decimal("29.99"),
        "stock_quantity": 150,
        "sku": "MEN-TSHIRT-001",
        "category_slug": "mens-clothing",
    },
    {
        "name": "Men's Denim Jeans",
        "description": "Classic fit denim jeans",
        "price": Decimal("79.99"),
        "stock_quantity": 80,
        "sku": "MEN-JEANS-001",
        "category_slug": "mens-clothing",
    },
    {
        "name": "Women's Floral Dress",
        "description": "Light summer dress with floral print",
        "price": Decimal("89.99"),
        "stock_quantity": 75,
        "sku": "WOMEN-DRESS-001",
        "category_slug": "womens-clothing",
    },
    {
        "name": "Women's Skinny Jeans",
        "description": "Stretch skinny fit jeans",
        "price": Decimal("79.99"),
        "stock_quantity": 120,
        "sku": "WOMEN-JEANS-001",
        "category_slug": "womens-clothing",
    },
    {
        "name": "Kids' Cartoon T-Shirt",
        "description": "Soft t-shirt with cartoon print",
        "price": Decimal("19.99"),
        "stock_quantity": 200,
        "sku": "KIDS-TSHIRT-001",
        "category_slug": "kids-clothing",
    },
    {
        "name": "Kids' Denim Overalls",
        "description": "Durable denim overalls for kids",
        "price": Decimal("49.99"),
        "stock_quantity": 80,
        "sku": "KIDS-OVERALL-001",
        "category_slug": "kids-clothing",
    },
]


class Command(BaseCommand):
    help = "Seed sample clothing categories and products"

    def add_arguments(self, parser):
        parser.add_argument(
            "--force",
            action="store_true",
            help="Reset price and stock of products that already exist",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("\nCreating categories...")
        category_map = {}
        for cat_data in CATEGORIES:
            category, created = Category.objects.get_or_create(
                slug=cat_data["slug"],
                defaults={
                    "name": cat_data["name"],
                    "description": cat_data["description"],
                    "parent": category_map.get(cat_data["parent"]),
                    "sort_order": cat_data["sort_order"],
                },
            )
            category_map[cat_data["slug"]] = category
            if created:
                self.stdout.write(self.style.SUCCESS(f"  Created: {cat_data['name']}"))
            else:
                self.stdout.write(f"  Skipping existing category: {cat_data['name']}")

        self.stdout.write("\nCreating products...")
        for product_data in PRODUCTS:
            existing = Product.objects.filter(sku=product_data["sku"]).first()
            if existing:
                if options["force"]:
                    existing.price = product_data["price"]
                    existing.stock_quantity = product_data["stock_quantity"]
                    existing.save(update_fields=["price", "stock_quantity", "updated_at"])
                    self.stdout.write(f"  Reset existing product: {product_data['name']}")
                else:
                    self.stdout.write(f"  Skipping existing product: {product_data['name']}")
                continue

            Product.objects.create(
                name=product_data["name"],
                description=product_data["description"],
                price=product_data["price"],
                stock_quantity=product_data["stock_quantity"],
                sku=product_data["sku"],
                category=category_map[product_data["category_slug"]],
            )
            self.stdout.write(self.style.SUCCESS(f"  Created: {product_data['name']}"))

        self.stdout.write(self.style.SUCCESS("\nCatalog seed complete!"))
        self.stdout.write(f"  Categories: {len(CATEGORIES)}")
        self.stdout.write(f"  Products: {len(PRODUCTS)}")
