"""
Test configuration and shared fixtures for the Query Studio test suite.
Provides throwaway config/warehouse databases, sample schema objects and the API client.
"""

import os
import tempfile

# Point both engines at throwaway SQLite files before query_studio is imported
_TEST_DIR = tempfile.mkdtemp(prefix="query_studio_tests_")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'config.db')}"
os.environ["DATA_WAREHOUSE_URL"] = f"sqlite:///{os.path.join(_TEST_DIR, 'warehouse.db')}"
os.environ["QUERY_CACHE_TTL_SECONDS"] = "300"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from query_studio.app import create_app
from query_studio.core.database import SessionLocal, create_all_tables, drop_all_tables, dw_engine
from query_studio.datasources import query_executor
from query_studio.query_builder.schemas import Column, Table


ORDER_STATUSES = ["paid", "pending", "refunded"]
ORDER_COUNT = 120


# ===== DATABASE SETUP =====


@pytest.fixture(scope="session")
def warehouse():
    """Seed the data warehouse with customers and 120 orders"""
    with dw_engine.begin() as conn:
        conn.execute(text("DROP TABLE IF EXISTS orders"))
        conn.execute(text("DROP TABLE IF EXISTS customers"))
        conn.execute(text("CREATE TABLE customers (id INTEGER PRIMARY KEY, name VARCHAR(50) NOT NULL)"))
        conn.execute(
            text(
                "CREATE TABLE orders ("
                "id INTEGER PRIMARY KEY, customer_id INTEGER NOT NULL, "
                "status VARCHAR(20) NOT NULL, amount FLOAT NOT NULL)"
            )
        )
        conn.execute(
            text("INSERT INTO customers (id, name) VALUES (:id, :name)"),
            [{"id": i, "name": f"Customer {i}"} for i in range(1, 11)],
        )
        conn.execute(
            text("INSERT INTO orders (id, customer_id, status, amount) VALUES (:id, :customer_id, :status, :amount)"),
            [
                {
                    "id": i,
                    "customer_id": (i % 10) + 1,
                    "status": ORDER_STATUSES[i % len(ORDER_STATUSES)],
                    "amount": float(i * 10),
                }
                for i in range(1, ORDER_COUNT + 1)
            ],
        )
    return dw_engine


@pytest.fixture
def config_db_session():
    """Fresh config database tables for each test"""
    create_all_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        drop_all_tables()


@pytest.fixture(autouse=True)
def clear_query_cache():
    """Executor results must not leak between tests"""
    query_executor.clear_cache()
    yield
    query_executor.clear_cache()


@pytest.fixture
def client(config_db_session, warehouse):
    """Create FastAPI test client over the throwaway databases"""
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


# ===== SAMPLE SCHEMA OBJECTS =====


@pytest.fixture
def orders_table() -> Table:
    return Table(
        id="orders",
        name="orders",
        columns=(
            Column(name="id", type="INTEGER"),
            Column(name="customer_id", type="INTEGER"),
            Column(name="status", type="STRING"),
            Column(name="amount", type="FLOAT"),
        ),
    )


@pytest.fixture
def customers_table() -> Table:
    return Table(
        id="customers",
        name="customers",
        columns=(Column(name="id", type="INTEGER"), Column(name="name", type="STRING")),
    )


@pytest.fixture
def products_table() -> Table:
    return Table(
        id="products",
        name="products",
        columns=(Column(name="sku", type="STRING"), Column(name="price", type="FLOAT")),
    )
