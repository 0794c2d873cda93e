"""
In-memory pseudo database used as a stress target without external services
"""
import threading
from typing import Dict, List
from ..exceptions import TargetError
from .tables import TableBackend


class MemoryBackend(TableBackend):
    """Dictionary-backed table store.

    Internally consistent under concurrent use; operations on tables, columns
    or records that do not exist fail with TargetError the way a real
    database would refuse them.
    """

    def __init__(self):
        self.tables: Dict[str, Dict] = {}
        self.operation_count = 0
        self._lock = threading.Lock()

    def create_table(self, name: str) -> None:
        with self._lock:
            if name in self.tables:
                raise TargetError(f"Table already exists: {name}")
            self.tables[name] = {'columns': {}, 'records': {}}
            self.operation_count += 1

    def remove_table(self, name: str) -> None:
        with self._lock:
            self._table(name)
            del self.tables[name]
            self.operation_count += 1

    def define_column(self, table: str, column: str, value_type: str) -> None:
        with self._lock:
            columns = self._table(table)['columns']
            if column in columns:
                raise TargetError(f"Column already exists: {table}.{column}")
            if value_type != "ShortText" and value_type not in self.tables:
                raise TargetError(f"Referenced table does not exist: {value_type}")
            columns[column] = value_type
            self.operation_count += 1

    def add_record(self, table: str, key: str) -> None:
        with self._lock:
            self._table(table)['records'].setdefault(key, {})
            self.operation_count += 1

    def delete_record(self, table: str, key: str) -> None:
        with self._lock:
            records = self._table(table)['records']
            if key not in records:
                raise TargetError(f"Record does not exist: {table}[{key}]")
            del records[key]
            self.operation_count += 1

    def set_value(self, table: str, key: str, column: str, value: str) -> None:
        with self._lock:
            data = self._table(table)
            if column not in data['columns']:
                raise TargetError(f"Column does not exist: {table}.{column}")
            if key not in data['records']:
                raise TargetError(f"Record does not exist: {table}[{key}]")
            data['records'][key][column] = value
            self.operation_count += 1

    def select(self, table: str, key_prefix: str) -> List[str]:
        with self._lock:
            records = self._table(table)['records']
            self.operation_count += 1
            return [key for key in records if key.startswith(key_prefix)]

    def table_names(self) -> List[str]:
        with self._lock:
            return list(self.tables)

    def _table(self, name: str) -> Dict:
        try:
            return self.tables[name]
        except KeyError:
            raise TargetError(f"Table does not exist: {name}") from None
