"""Seed script for local storefront data.

Creates categories, products with variation combinations, shipping methods,
display currencies and one reward rule so the checkout and payment flows can
be exercised end-to-end.

Usage:
    alembic upgrade head
    python -m services.store_service.seed_store_data
"""

import asyncio
from decimal import Decimal

from sqlalchemy import func, select

from libs.db.session import session_scope
from services.store_service.models import (
    Category,
    Currency,
    Product,
    ProductRewardRule,
    RewardRule,
    ShippingMethod,
    VariationCombination,
)


def _combinations(sku_prefix, price, sizes, colors=(None,), stock=10):
    return [
        VariationCombination(
            sku=f"{sku_prefix}-{color or 'STD'}-{size}".upper().replace(" ", ""),
            variation_axis_1=color,
            variation_axis_2=size,
            price=Decimal(price),
            stock_quantity=stock,
        )
        for color in colors
        for size in sizes
    ]


async def seed_store_data():
    async with session_scope() as db:
        print("Seeding store data...")

        # Check if data already exists
        count = await db.scalar(select(func.count()).select_from(Category))
        if count:
            print(f"Store data already exists ({count} categories). Skipping seed.")
            return

        # =========================================================================
        # 1. CATEGORIES
        # =========================================================================
        categories = {
            "apparel": Category(
                name="Apparel",
                slug="apparel",
                description="T-shirts, polos and hoodies",
                sort_order=1,
            ),
            "footwear": Category(
                name="Footwear",
                slug="footwear",
                description="Sneakers and sandals",
                sort_order=2,
            ),
            "home": Category(
                name="Home & Kitchen",
                slug="home-kitchen",
                description="Mugs, bottles and kitchen essentials",
                sort_order=3,
            ),
        }
        db.add_all(categories.values())
        await db.flush()

        # =========================================================================
        # 2. PRODUCTS
        # =========================================================================
        tee = Product(
            name="Classic Cotton Tee",
            slug="classic-cotton-tee",
            category_id=categories["apparel"].id,
            description="Soft combed-cotton crew neck tee.",
            brand="Basics",
            base_price=Decimal("650.00"),
            offer_price=Decimal("590.00"),
            is_featured=True,
            variation_combinations=_combinations(
                "TEE", "590.00", ["S", "M", "L", "XL"], colors=["Black", "White"]
            ),
        )
        hoodie = Product(
            name="Zip Hoodie",
            slug="zip-hoodie",
            category_id=categories["apparel"].id,
            description="Midweight fleece hoodie with a full zip.",
            base_price=Decimal("1850.00"),
            variation_combinations=_combinations(
                "HOODIE", "1850.00", ["M", "L"], colors=["Grey"], stock=4
            ),
        )
        sneaker = Product(
            name="Canvas Sneaker",
            slug="canvas-sneaker",
            category_id=categories["footwear"].id,
            description="Low-top canvas sneaker with a rubber sole.",
            base_price=Decimal("2400.00"),
            is_featured=True,
            variation_combinations=_combinations(
                "SNK", "2400.00", ["40", "41", "42", "43"]
            ),
        )
        mug = Product(
            name="Ceramic Mug",
            slug="ceramic-mug",
            category_id=categories["home"].id,
            description="350 ml stoneware mug, dishwasher safe.",
            base_price=Decimal("320.00"),
            stock_quantity=120,
        )
        bottle = Product(
            name="Steel Water Bottle",
            slug="steel-water-bottle",
            category_id=categories["home"].id,
            description="Insulated 750 ml bottle.",
            base_price=Decimal("890.00"),
            offer_price=Decimal("790.00"),
            stock_quantity=40,
        )
        products = [tee, hoodie, sneaker, mug, bottle]
        db.add_all(products)
        await db.flush()

        # =========================================================================
        # 3. SHIPPING METHODS
        # =========================================================================
        shipping_methods = [
            ShippingMethod(
                name="Inside Dhaka",
                description="Delivered within the city",
                base_cost=Decimal("60.00"),
                estimated_days=2,
            ),
            ShippingMethod(
                name="Outside Dhaka",
                description="Courier delivery nationwide",
                base_cost=Decimal("120.00"),
                estimated_days=5,
            ),
            ShippingMethod(
                name="Store Pickup",
                base_cost=Decimal("0.00"),
                estimated_days=1,
            ),
        ]
        db.add_all(shipping_methods)

        # =========================================================================
        # 4. CURRENCIES (rate = units per 1 BDT)
        # =========================================================================
        currencies = [
            Currency(
                code="BDT", name="Bangladeshi Taka", symbol="৳", exchange_rate=1
            ),
            Currency(
                code="USD",
                name="US Dollar",
                symbol="$",
                exchange_rate=Decimal("0.00833333"),
            ),
            Currency(
                code="EUR",
                name="Euro",
                symbol="€",
                exchange_rate=Decimal("0.00769231"),
            ),
        ]
        db.add_all(currencies)

        # =========================================================================
        # 5. REWARD RULES
        # =========================================================================
        footwear_bonus = RewardRule(
            name="Footwear bonus",
            description="Extra points on every pair of shoes",
            points_per_unit=20,
            priority=10,
        )
        db.add(footwear_bonus)
        await db.flush()
        db.add(
            ProductRewardRule(product_id=sneaker.id, reward_rule_id=footwear_bonus.id)
        )

        await db.commit()
        print("=" * 60)
        print("Store data seeded successfully!")
        print("=" * 60)
        print(f"  Categories: {len(categories)}")
        print(f"  Products: {len(products)}")
        print(f"  Shipping Methods: {len(shipping_methods)}")
        print(f"  Currencies: {len(currencies)}")
        print("=" * 60)


if __name__ == "__main__":
    asyncio.run(seed_store_data())
