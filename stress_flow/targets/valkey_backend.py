"""
Valkey target - Tables stored as Valkey sets and hashes

Key layout under the configured prefix:
  <prefix>:tables                     set of table names
  <prefix>:table:<name>:columns       hash column -> value type
  <prefix>:table:<name>:records       set of record keys
  <prefix>:table:<name>:record:<key>  hash column -> value
"""
import logging
import valkey
from typing import List, Optional
from ..exceptions import TargetError
from ..models import TargetConfig
from ..engine.error_handler import ErrorCategory, ErrorHandler, RetryConfig
from .tables import TableBackend

logger = logging.getLogger(__name__)


class ValkeyBackend(TableBackend):
    """Table backend talking to a single Valkey server"""

    def __init__(
        self,
        target_config: TargetConfig,
        error_handler: Optional[ErrorHandler] = None,
        retry_config: Optional[RetryConfig] = None
    ):
        self.config = target_config
        self.prefix = target_config.key_prefix
        self.error_handler = error_handler or ErrorHandler()
        self.retry_config = retry_config or RetryConfig(max_attempts=3, initial_delay=0.5)
        self.client = self._connect()

    def _connect(self) -> valkey.Valkey:
        def connect():
            client = valkey.Valkey(
                host=self.config.host,
                port=self.config.port,
                socket_timeout=self.config.socket_timeout,
                socket_connect_timeout=self.config.socket_timeout,
                decode_responses=True
            )
            client.ping()
            return client

        success, client = self.error_handler.retry_with_backoff(
            connect,
            self.retry_config,
            ErrorCategory.CONNECTION,
            operation_name=f"connect to valkey {self.config.host}:{self.config.port}"
        )
        if not success:
            raise TargetError(f"Could not connect to valkey at {self.config.host}:{self.config.port}")
        return client

    def _tables_key(self) -> str:
        return f"{self.prefix}:tables"

    def _columns_key(self, table: str) -> str:
        return f"{self.prefix}:table:{table}:columns"

    def _records_key(self, table: str) -> str:
        return f"{self.prefix}:table:{table}:records"

    def _record_key(self, table: str, key: str) -> str:
        return f"{self.prefix}:table:{table}:record:{key}"

    def _require_table(self, table: str) -> None:
        if not self.client.sismember(self._tables_key(), table):
            raise TargetError(f"Table does not exist: {table}")

    def create_table(self, name: str) -> None:
        if not self.client.sadd(self._tables_key(), name):
            raise TargetError(f"Table already exists: {name}")

    def remove_table(self, name: str) -> None:
        if not self.client.srem(self._tables_key(), name):
            raise TargetError(f"Table does not exist: {name}")

        records = self.client.smembers(self._records_key(name))
        keys = [self._record_key(name, key) for key in records]
        keys.extend([self._columns_key(name), self._records_key(name)])
        self.client.delete(*keys)

    def define_column(self, table: str, column: str, value_type: str) -> None:
        self._require_table(table)
        if not self.client.hsetnx(self._columns_key(table), column, value_type):
            raise TargetError(f"Column already exists: {table}.{column}")

    def add_record(self, table: str, key: str) -> None:
        self._require_table(table)
        self.client.sadd(self._records_key(table), key)

    def delete_record(self, table: str, key: str) -> None:
        if not self.client.srem(self._records_key(table), key):
            raise TargetError(f"Record does not exist: {table}[{key}]")
        self.client.delete(self._record_key(table, key))

    def set_value(self, table: str, key: str, column: str, value: str) -> None:
        if not self.client.hexists(self._columns_key(table), column):
            raise TargetError(f"Column does not exist: {table}.{column}")
        if not self.client.sismember(self._records_key(table), key):
            raise TargetError(f"Record does not exist: {table}[{key}]")
        self.client.hset(self._record_key(table, key), column, value)

    def select(self, table: str, key_prefix: str) -> List[str]:
        self._require_table(table)
        return list(self.client.sscan_iter(self._records_key(table), match=f"{key_prefix}*"))

    def close(self) -> None:
        try:
            self.client.close()
        except Exception as e:
            logger.debug(f"Error closing valkey client: {e}")
