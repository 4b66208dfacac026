"""
Synthetic Data Generator

Generates demo users, products and orders so a fresh deployment has
something to show on the dashboard.
"""

import random
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import numpy as np
import polars as pl
from faker import Faker

from dashboard_api.database.models import OrderStatus

fake = Faker()


# =============================================================================
# CONFIGURATION
# =============================================================================

CATEGORIES = [
    ("electronics", ["Phones", "Laptops", "Tablets", "Headphones", "Cameras"]),
    ("clothing", ["Shirts", "Pants", "Dresses", "Shoes", "Jackets"]),
    ("home_garden", ["Furniture", "Kitchen", "Bedding", "Garden", "Decor"]),
    ("sports", ["Fitness", "Outdoor", "Team Sports", "Water Sports", "Cycling"]),
    ("beauty", ["Skincare", "Makeup", "Haircare", "Fragrance", "Tools"]),
    ("books", ["Fiction", "Non-Fiction", "Educational", "Children", "Comics"]),
]

PRICE_RANGES = {
    "electronics": (50, 2000),
    "clothing": (20, 500),
    "home_garden": (30, 1000),
    "sports": (25, 800),
    "beauty": (10, 200),
    "books": (10, 50),
}

ORDER_STATUSES = [
    (OrderStatus.PENDING, 0.05),
    (OrderStatus.PROCESSING, 0.10),
    (OrderStatus.SHIPPED, 0.15),
    (OrderStatus.DELIVERED, 0.65),
    (OrderStatus.CANCELLED, 0.05),
]


def seed_generators(seed: int) -> None:
    """Make generated data reproducible."""
    random.seed(seed)
    np.random.seed(seed)
    Faker.seed(seed)


# =============================================================================
# GENERATORS
# =============================================================================

class UserGenerator:
    """Generate customer accounts"""

    def generate(self, n: int = 200) -> pl.DataFrame:
        """Generate n users with unique emails"""
        now = datetime.now(timezone.utc)
        users = []

        for _ in range(n):
            created_at = fake.date_time_between(start_date="-2y", end_date="-30d", tzinfo=timezone.utc)
            users.append({
                "id": str(uuid.uuid4()),
                "email": fake.unique.email(),
                "name": fake.name(),
                "last_login": fake.date_time_between(start_date=created_at, end_date=now, tzinfo=timezone.utc),
                "created_at": created_at,
            })

        return pl.DataFrame(users)


class ProductGenerator:
    """Generate a product catalog"""

    def generate(self, n: int = 100) -> pl.DataFrame:
        """Generate n products; roughly one in ten is low on stock"""
        products = []

        for _ in range(n):
            category, subcategories = random.choice(CATEGORIES)
            low, high = PRICE_RANGES[category]

            if random.random() < 0.1:
                stock = random.randint(0, 9)
            else:
                stock = random.randint(10, 500)

            products.append({
                "id": str(uuid.uuid4()),
                "name": f"{fake.word().title()} {random.choice(subcategories)}",
                "category": category,
                "price": round(random.uniform(low, high), 2),
                "stock": stock,
                "created_at": datetime.now(timezone.utc),
            })

        return pl.DataFrame(products)


class OrderGenerator:
    """Generate orders placed by existing users"""

    def __init__(self, users_df: pl.DataFrame):
        self.user_ids = users_df["id"].to_list()

    def generate(
        self,
        n: int = 1000,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> pl.DataFrame:
        """Generate n orders spread between start_date and end_date"""
        end_date = end_date or datetime.now(timezone.utc)
        start_date = start_date or end_date - timedelta(days=365)

        # Order values are right-skewed: many small baskets, a few large ones
        amounts = np.round(np.random.lognormal(mean=4.5, sigma=0.8, size=n), 2)

        orders = []
        for amount in amounts:
            status = random.choices(
                [s[0] for s in ORDER_STATUSES],
                weights=[s[1] for s in ORDER_STATUSES],
            )[0]
            orders.append({
                "id": str(uuid.uuid4()),
                "user_id": random.choice(self.user_ids),
                "total_amount": float(amount),
                "order_date": fake.date_time_between(start_date=start_date, end_date=end_date, tzinfo=timezone.utc),
                "status": status.value,
            })

        return pl.DataFrame(orders)


class DataGenerator:
    """Main data generator orchestrator"""

    def __init__(self, seed: Optional[int] = 42):
        if seed is not None:
            seed_generators(seed)

    def generate_all(
        self,
        n_users: int = 200,
        n_products: int = 100,
        n_orders: int = 1000,
    ) -> Dict[str, pl.DataFrame]:
        """Generate a complete, referentially consistent dataset"""
        users_df = UserGenerator().generate(n_users)
        products_df = ProductGenerator().generate(n_products)
        orders_df = OrderGenerator(users_df).generate(n_orders) if n_users else pl.DataFrame()

        return {
            "users": users_df,
            "products": products_df,
            "orders": orders_df,
        }
