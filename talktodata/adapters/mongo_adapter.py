"""
MongoDB adapter implementation.

MongoDB has no fixed schema, so the schema is inferred: one sampled
document per collection gives the column list, `_id` is the primary key
and the document count stands in for the row count.

Queries are JSON documents rather than SQL::

    {"collection": "orders", "operation": "find",
     "filter": {"status": "shipped"}, "projection": {"_id": 0}}

    {"collection": "orders", "operation": "aggregate",
     "pipeline": [{"$group": {"_id": "$status", "n": {"$sum": 1}}}]}

MongoDB Extended JSON ({"$oid": ...}, {"$date": ...}) is accepted.
"""

import datetime
import logging
import time
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote_plus

from bson import ObjectId, json_util
from bson.errors import BSONError
from pymongo import MongoClient
from pymongo.errors import ExecutionTimeout, NetworkTimeout, PyMongoError

from configs import POOL_IDLE_TIMEOUT_SECONDS, POOL_MAX_CONNECTIONS, QUERY_TIMEOUT_SECONDS

from ..errors import ConnectionFailedError, InvalidSqlError, QueryTimeoutError
from ..models import Column, ConnectionConfig, DatabaseType, QueryResult, ResultColumn, Schema, Table
from .database_adapter import DatabaseAdapter, to_json_value
from .schema_context import render_collection_context


logger = logging.getLogger(__name__)

SUPPORTED_OPERATIONS = ("find", "aggregate")

# Aggregation stages that write to the database
WRITE_STAGES = ("$out", "$merge")


def build_mongo_uri(config: ConnectionConfig) -> str:
    """
    Build the connection URI. With TLS enabled the SRV form is used
    (hosted clusters), which carries no port.
    """
    credentials = ""
    if config.username:
        credentials = f"{quote_plus(config.username)}:{quote_plus(config.password)}@"
    if config.ssl:
        return f"mongodb+srv://{credentials}{config.host}/{config.database}"
    return f"mongodb://{credentials}{config.host}:{config.port}/{config.database}"


def infer_bson_type(value: Any) -> str:
    """Label a sampled value the way the schema context reports it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, ObjectId):
        return "ObjectId"
    if isinstance(value, (datetime.datetime, datetime.date)):
        return "date"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (int, float)):
        return "number"
    return type(value).__name__


def parse_mongo_query(query: str) -> Dict[str, Any]:
    """
    Parse and check a JSON query document.

    Raises:
        InvalidSqlError: malformed JSON, unknown operation, missing
            collection, a non-object filter, projection or stage, or a
            pipeline stage that writes
    """
    try:
        payload = json_util.loads(query)
    except (ValueError, TypeError) as e:
        raise InvalidSqlError("Invalid MongoDB query format. Expected JSON.", original_error=e)

    if not isinstance(payload, dict):
        raise InvalidSqlError("Invalid MongoDB query format. Expected a JSON object.")

    collection = payload.get("collection")
    if not collection or not isinstance(collection, str):
        raise InvalidSqlError("MongoDB query must name a collection.")

    for key in ("filter", "projection"):
        if payload.get(key) is not None and not isinstance(payload[key], dict):
            raise InvalidSqlError(f"MongoDB {key} must be a JSON object.")

    operation = payload.get("operation", "find")
    if operation not in SUPPORTED_OPERATIONS:
        raise InvalidSqlError(
            f"Unsupported MongoDB operation: {operation}",
            details={"supported": list(SUPPORTED_OPERATIONS)},
        )

    if operation == "aggregate":
        pipeline = payload.get("pipeline") or []
        if not isinstance(pipeline, list):
            raise InvalidSqlError("MongoDB pipeline must be a list of stages.")
        for stage in pipeline:
            if not isinstance(stage, dict):
                raise InvalidSqlError("MongoDB pipeline stages must be JSON objects.")
            if any(key in WRITE_STAGES for key in stage):
                raise InvalidSqlError("MongoDB pipelines may not write ($out / $merge).")

    payload["operation"] = operation
    return payload


class MongoAdapter(DatabaseAdapter):
    """
    MongoDB implementation of DatabaseAdapter.

    Requirements:
    - pymongo (pip install pymongo)
    """

    type = DatabaseType.MONGODB

    def __init__(self):
        super().__init__()
        self._client: Optional[MongoClient] = None
        self._db = None

    def connect(self, config: ConnectionConfig) -> None:
        self.config = config
        timeout_ms = QUERY_TIMEOUT_SECONDS * 1000
        try:
            self._client = MongoClient(
                build_mongo_uri(config),
                connectTimeoutMS=timeout_ms,
                serverSelectionTimeoutMS=timeout_ms,
                socketTimeoutMS=timeout_ms,
                maxPoolSize=POOL_MAX_CONNECTIONS,
                maxIdleTimeMS=POOL_IDLE_TIMEOUT_SECONDS * 1000,
                appname="talktodata",
            )
            self._db = self._client[config.database]
            self._client.admin.command("ping")
        except PyMongoError as e:
            self.disconnect()
            raise ConnectionFailedError(f"Failed to connect to MongoDB: {e}", original_error=e)

        self._connected = True
        logger.info("Connected to MongoDB at %s", config.display_name)

    def disconnect(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None
            logger.info("Disconnected from MongoDB")
        self._mark_disconnected()

    def test_connection(self) -> bool:
        if self._client is None:
            return False
        try:
            self._client.admin.command("ping")
            return True
        except Exception as e:
            logger.warning("MongoDB health check failed: %s", e)
            return False

    def execute_query(self, query: str, params: Optional[Sequence[Any]] = None) -> QueryResult:
        """Run a find / aggregate query document with the row cap applied."""
        self._require_connection()
        parsed = parse_mongo_query(query)
        collection = self._db[parsed["collection"]]

        try:
            start = time.perf_counter()
            if parsed["operation"] == "find":
                cursor = collection.find(parsed.get("filter") or {}, parsed.get("projection") or None)
                documents = list(cursor.limit(self.max_rows))
            else:
                pipeline = list(parsed.get("pipeline") or []) + [{"$limit": self.max_rows}]
                documents = list(collection.aggregate(pipeline))
            elapsed_ms = (time.perf_counter() - start) * 1000
        except (ExecutionTimeout, NetworkTimeout) as e:
            raise QueryTimeoutError(
                f"Query exceeded the {QUERY_TIMEOUT_SECONDS} second time limit", original_error=e
            )
        except (PyMongoError, BSONError, TypeError) as e:
            raise InvalidSqlError(str(e), original_error=e)

        # Documents are heterogeneous; columns are the union of keys in first-seen order
        names: List[str] = []
        for document in documents:
            for key in document:
                if key not in names:
                    names.append(key)

        rows = [{name: to_json_value(document.get(name)) for name in names} for document in documents]
        return QueryResult(
            columns=[ResultColumn(name=name, data_type="mixed") for name in names],
            rows=rows,
            row_count=len(rows),
            execution_time_ms=round(elapsed_ms, 2),
        )

    def _load_schema(self) -> Schema:
        """One count and one sampled document per collection."""
        tables = []
        try:
            names = sorted(
                name for name in self._db.list_collection_names()
                if not name.startswith("system.")
            )
            for name in names:
                collection = self._db[name]
                count = collection.count_documents({})
                sample = collection.find_one()

                if sample:
                    columns = [
                        Column(
                            name=key,
                            data_type=infer_bson_type(value),
                            nullable=key != "_id",
                            is_primary_key=key == "_id",
                        )
                        for key, value in sample.items()
                    ]
                else:
                    columns = [Column(name="_id", data_type="ObjectId", nullable=False, is_primary_key=True)]

                tables.append(Table(name=name, columns=columns, row_count=count))
        except PyMongoError as e:
            raise InvalidSqlError(f"Failed to read MongoDB schema: {e}", original_error=e)

        return Schema(tables=tables)

    def get_schema_context(self) -> str:
        return render_collection_context(self.get_schema().tables)
