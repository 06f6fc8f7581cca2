"""Adapter registry tests."""

import pytest

from talktodata.adapters import (
    DatabaseAdapter,
    MongoAdapter,
    MySQLAdapter,
    PostgresAdapter,
    SQLiteAdapter,
    SQLServerAdapter,
    create_adapter,
    is_database_type_supported,
    list_adapters,
    register_adapter,
)
from talktodata.adapters import factory
from talktodata.errors import ConnectionFailedError, ErrorCode
from talktodata.models import ConnectionConfig, DatabaseType


class TestCreateAdapter:

    @pytest.mark.parametrize("db_type,adapter_cls", [
        (DatabaseType.POSTGRESQL, PostgresAdapter),
        (DatabaseType.MYSQL, MySQLAdapter),
        (DatabaseType.SQLITE, SQLiteAdapter),
        (DatabaseType.SQLSERVER, SQLServerAdapter),
        (DatabaseType.MONGODB, MongoAdapter),
    ])
    def test_each_type_gets_its_adapter(self, db_type, adapter_cls):
        config = ConnectionConfig.model_construct(type=db_type, database="x")
        adapter = create_adapter(config)
        assert isinstance(adapter, adapter_cls)
        assert adapter.type == db_type
        assert not adapter.is_connected

    def test_unknown_type_rejected(self):
        config = ConnectionConfig.model_construct(type="oracle", database="x")
        with pytest.raises(ConnectionFailedError) as exc_info:
            create_adapter(config)
        assert exc_info.value.code == ErrorCode.CONNECTION_FAILED
        assert "Unsupported database type: oracle" in exc_info.value.message
        assert "postgresql" in exc_info.value.message

    def test_each_call_builds_a_new_instance(self):
        config = ConnectionConfig(type=DatabaseType.SQLITE, database="demo.db")
        assert create_adapter(config) is not create_adapter(config)


class TestRegistry:

    def test_lists_builtin_types(self):
        assert set(list_adapters()) == {t.value for t in DatabaseType}

    def test_supported_accepts_enum_or_tag(self):
        assert is_database_type_supported(DatabaseType.MYSQL)
        assert is_database_type_supported("mongodb")
        assert not is_database_type_supported("oracle")

    def test_register_new_backend(self, monkeypatch):
        monkeypatch.setattr(factory, "_adapter_registry", dict(factory._adapter_registry))

        class DuckAdapter(SQLiteAdapter):
            pass

        register_adapter("duckdb", DuckAdapter)
        config = ConnectionConfig.model_construct(type="duckdb", database="x")

        assert is_database_type_supported("duckdb")
        assert isinstance(create_adapter(config), DuckAdapter)
        assert isinstance(create_adapter(config), DatabaseAdapter)
