"""
Demo Database Seeding

Fills the users, products and orders tables with synthetic data.

Usage:
    python -m dashboard_api.ingestion.seed_db --users 200 --products 100 --orders 1000
"""

import argparse
import asyncio
from typing import Any, Dict, List

import polars as pl
import structlog
from sqlalchemy import insert

from dashboard_api.config.logging import configure_logging
from dashboard_api.data.generators import DataGenerator
from dashboard_api.database.connection import close_database, get_db, init_database
from dashboard_api.database.models import Order, Product, User

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 1000


async def execute_batch_insert(model: Any, records: List[Dict[str, Any]]) -> int:
    """Insert records in chunks using Core insert"""
    if not records:
        return 0

    async with get_db() as db:
        for i in range(0, len(records), CHUNK_SIZE):
            chunk = records[i:i + CHUNK_SIZE]
            await db.execute(insert(model), chunk)

    logger.info("Inserted records", table=model.__tablename__, count=len(records))
    return len(records)


async def seed_frames(frames: Dict[str, pl.DataFrame]) -> Dict[str, int]:
    """Insert generated frames; users go first so orders can reference them"""
    return {
        "users": await execute_batch_insert(User, frames["users"].to_dicts()),
        "products": await execute_batch_insert(Product, frames["products"].to_dicts()),
        "orders": await execute_batch_insert(Order, frames["orders"].to_dicts()),
    }


async def main(n_users: int, n_products: int, n_orders: int, seed: int) -> None:
    configure_logging()
    logger.info("Starting database seeding...", users=n_users, products=n_products, orders=n_orders)
    await init_database()

    try:
        frames = DataGenerator(seed=seed).generate_all(
            n_users=n_users,
            n_products=n_products,
            n_orders=n_orders,
        )
        counts = await seed_frames(frames)
        logger.info("Database seeding completed successfully", **counts)
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


def cli() -> None:
    """Command line entry point"""
    parser = argparse.ArgumentParser(description="Seed the dashboard database with demo data")
    parser.add_argument("--users", type=int, default=200, help="Number of users (default: 200)")
    parser.add_argument("--products", type=int, default=100, help="Number of products (default: 100)")
    parser.add_argument("--orders", type=int, default=1000, help="Number of orders (default: 1000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")

    args = parser.parse_args()
    asyncio.run(main(args.users, args.products, args.orders, args.seed))


if __name__ == "__main__":
    cli()
