"""
Unit tests for data source adapters against the seeded SQLite warehouse.
"""

import asyncio

import pytest

from query_studio.core.config import DEFAULT_DATA_SOURCE
from query_studio.datasources import (
    DataSourceRegistry,
    SchemaCatalog,
    SchemaLoadError,
    SQLAlchemyQueryExecutor,
    UnknownDataSourceError,
    data_source_registry,
)
from query_studio.query_builder.execution import QueryCancelledError, QueryExecutionError
from query_studio.query_builder.schemas import SqlDialect


@pytest.fixture
def registry(warehouse) -> DataSourceRegistry:
    registry = DataSourceRegistry()
    registry.register("warehouse", warehouse)
    return registry


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def executor(registry) -> SQLAlchemyQueryExecutor:
    return SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=300)


class TestRegistry:
    def test_default_source_is_registered(self):
        assert DEFAULT_DATA_SOURCE in data_source_registry.list_ids()

    def test_unknown_source(self, registry):
        with pytest.raises(UnknownDataSourceError) as exc_info:
            registry.get_engine("nope")
        assert str(exc_info.value) == "Unknown data source: nope"

    def test_register_url(self, registry, tmp_path):
        registry.register_url("scratch", f"sqlite:///{tmp_path / 'scratch.db'}")
        assert "scratch" in registry
        assert registry.list_ids() == ["scratch", "warehouse"]

        registry.unregister("scratch")
        assert "scratch" not in registry

    def test_membership(self, registry):
        assert "warehouse" in registry
        assert "nope" not in registry

    def test_sqlite_sources_use_ansi_quoting(self, registry):
        assert registry.dialect_for("warehouse") == SqlDialect.ANSI

    def test_dialect_of_unknown_source(self, registry):
        with pytest.raises(UnknownDataSourceError):
            registry.dialect_for("nope")


class TestConnectionCheck:
    def test_reachable_source(self, registry):
        status = registry.check_connection("warehouse")

        assert status.data_source_id == "warehouse"
        assert status.connected is True
        assert status.dialect == "sqlite"
        assert status.error is None

    def test_unreachable_source_is_reported_not_raised(self, registry, tmp_path):
        # a directory cannot be opened as a SQLite database
        registry.register_url("broken", f"sqlite:///{tmp_path}")

        status = registry.check_connection("broken")

        assert status.connected is False
        assert status.error

    def test_unknown_source(self, registry):
        with pytest.raises(UnknownDataSourceError):
            registry.check_connection("nope")

    def test_check_all_covers_every_source(self, registry, tmp_path):
        registry.register_url("broken", f"sqlite:///{tmp_path}")

        statuses = {s.data_source_id: s.connected for s in registry.check_all()}

        assert statuses == {"broken": False, "warehouse": True}


class TestSchemaCatalog:
    def test_lists_warehouse_tables_and_columns(self, registry):
        schema = SchemaCatalog(registry).get_schema("warehouse")

        orders = schema.find_table("orders")
        assert orders is not None
        assert orders.name == "orders"
        assert [c.name for c in orders.columns] == ["id", "customer_id", "status", "amount"]
        assert schema.find_table("customers") is not None

    def test_unknown_source(self, registry):
        with pytest.raises(UnknownDataSourceError):
            SchemaCatalog(registry).get_schema("nope")

    def test_load_failure(self, tmp_path):
        registry = DataSourceRegistry()
        # a directory cannot be opened as a SQLite database
        registry.register_url("broken", f"sqlite:///{tmp_path}")
        with pytest.raises(SchemaLoadError) as exc_info:
            SchemaCatalog(registry).get_schema("broken")
        assert exc_info.value.data_source_id == "broken"


class TestSQLAlchemyQueryExecutor:
    async def test_execute_returns_rows(self, executor):
        result = await executor.execute("warehouse", "SELECT id, status FROM orders ORDER BY id")

        assert result.columns == ["id", "status"]
        assert result.row_count == 120
        assert result.rows[0] == {"id": 1, "status": "pending"}

    async def test_colons_in_literals_are_not_bind_params(self, executor):
        result = await executor.execute("warehouse", "SELECT 'a:b' AS label")
        assert result.rows == [{"label": "a:b"}]

    async def test_driver_errors_become_execution_errors(self, executor):
        with pytest.raises(QueryExecutionError) as exc_info:
            await executor.execute("warehouse", "SELECT * FROM missing_table")
        assert "missing_table" in exc_info.value.message

    async def test_aborted_signal_skips_execution(self, executor):
        signal = asyncio.Event()
        signal.set()
        with pytest.raises(QueryCancelledError):
            await executor.execute("warehouse", "SELECT 1", signal=signal)

    async def test_results_are_cached(self, executor):
        first = await executor.execute("warehouse", "SELECT COUNT(*) AS n FROM customers")
        second = await executor.execute("warehouse", "SELECT COUNT(*) AS n FROM customers")
        assert second is first

        executor.invalidate("warehouse", "SELECT COUNT(*) AS n FROM customers")
        third = await executor.execute("warehouse", "SELECT COUNT(*) AS n FROM customers")
        assert third is not first
        assert third.rows == first.rows

    async def test_cache_can_be_bypassed(self, executor):
        first = await executor.execute("warehouse", "SELECT 1 AS one")
        second = await executor.execute("warehouse", "SELECT 1 AS one", use_cache=False)
        assert second is not first

    async def test_expired_entries_are_not_served(self, registry):
        executor = SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=0)
        first = await executor.execute("warehouse", "SELECT 1 AS one")
        assert await executor.execute("warehouse", "SELECT 1 AS one") is not first


class TestResultCacheBounds:
    """The cache drops expired results on write and never grows past its cap."""

    async def test_expired_entries_are_pruned_on_write(self, registry):
        clock = FakeClock()
        executor = SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=300, clock=clock)
        for n in range(5):
            await executor.execute("warehouse", f"SELECT {n} AS n")
        assert executor.cache_size == 5

        clock.advance(301)
        await executor.execute("warehouse", "SELECT 99 AS n")

        assert executor.cache_size == 1

    async def test_entries_within_ttl_survive_writes(self, registry):
        clock = FakeClock()
        executor = SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=300, clock=clock)
        first = await executor.execute("warehouse", "SELECT 1 AS n")

        clock.advance(200)
        await executor.execute("warehouse", "SELECT 2 AS n")

        assert executor.cache_size == 2
        assert await executor.execute("warehouse", "SELECT 1 AS n") is first

    async def test_expired_entry_is_rerun(self, registry):
        clock = FakeClock()
        executor = SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=300, clock=clock)
        first = await executor.execute("warehouse", "SELECT 1 AS n")

        clock.advance(301)
        second = await executor.execute("warehouse", "SELECT 1 AS n")

        assert second is not first
        assert executor.cache_size == 1

    async def test_size_cap_evicts_oldest(self, registry):
        executor = SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=300, cache_max_entries=2, clock=FakeClock())
        first = await executor.execute("warehouse", "SELECT 1 AS n")
        second = await executor.execute("warehouse", "SELECT 2 AS n")
        await executor.execute("warehouse", "SELECT 3 AS n")

        assert executor.cache_size == 2
        # the oldest entry was evicted and runs again
        assert await executor.execute("warehouse", "SELECT 1 AS n") is not first
        assert executor.cache_size == 2
        # re-running SELECT 1 pushed SELECT 2 out
        assert await executor.execute("warehouse", "SELECT 2 AS n") is not second

    async def test_zero_cap_disables_caching(self, registry):
        executor = SQLAlchemyQueryExecutor(registry, cache_ttl_seconds=300, cache_max_entries=0)
        await executor.execute("warehouse", "SELECT 1 AS n")
        assert executor.cache_size == 0
