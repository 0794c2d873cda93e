"""
Table workload - Tables, columns and records driven through a pluggable backend

Tables are the resources. Every action operates on a randomly chosen open
table of the state and rejects its route while no suitable table, record or
column exists.
"""
import logging
import random
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional
from ..models import Profile, Route
from ..exceptions import TargetError
from ..engine.action import Action, ActionRegistry
from ..engine.flow import FlowBuilder
from ..engine.resource_set import ResourceSet
from ..engine.state import Resource, State, StateGroup

logger = logging.getLogger(__name__)

SHORT_TEXT = "ShortText"


class TableBackend(ABC):
    """Storage operations a table target must provide"""

    @abstractmethod
    def create_table(self, name: str) -> None:
        pass

    @abstractmethod
    def remove_table(self, name: str) -> None:
        pass

    @abstractmethod
    def define_column(self, table: str, column: str, value_type: str) -> None:
        pass

    @abstractmethod
    def add_record(self, table: str, key: str) -> None:
        pass

    @abstractmethod
    def delete_record(self, table: str, key: str) -> None:
        pass

    @abstractmethod
    def set_value(self, table: str, key: str, column: str, value: str) -> None:
        pass

    @abstractmethod
    def select(self, table: str, key_prefix: str) -> List[str]:
        pass

    def close(self) -> None:
        pass


class Table(Resource):
    """A table in the target, with the columns and records this engine created"""

    def __init__(self, name: str, backend: TableBackend):
        self.name = name
        self.backend = backend
        self.columns: Dict[str, str] = {}
        self.records: List[str] = []

    def create(self) -> None:
        self.backend.create_table(self.name)

    def remove(self) -> None:
        self.backend.remove_table(self.name)

    def define_column(self, name: str) -> str:
        self.backend.define_column(self.name, name, SHORT_TEXT)
        self.columns[name] = SHORT_TEXT
        return name

    def define_reference_column(self, referenced_table: "Table") -> str:
        name = self.reference_column_name(referenced_table)
        self.backend.define_column(self.name, name, referenced_table.name)
        self.columns[name] = referenced_table.name
        return name

    def reference_column_name(self, table: "Table") -> str:
        return f"column_{table.name.lower()}"

    def change_column_value(self, record: str, column: str, value: str) -> None:
        self.backend.set_value(self.name, record, column, value)

    def add_record(self, key: str) -> str:
        self.backend.add_record(self.name, key)
        self.records.append(key)
        return key

    def delete_record(self, key: str) -> str:
        try:
            self.records.remove(key)
        except ValueError:
            raise TargetError(f"Record {key} is not tracked in table {self.name}") from None
        self.backend.delete_record(self.name, key)
        return key

    def select(self, key_prefix: str) -> List[str]:
        return self.backend.select(self.name, key_prefix)

    def random_record(self, rng: random.Random) -> Optional[str]:
        records = list(self.records)
        return rng.choice(records) if records else None

    def random_column(self, rng: random.Random) -> Optional[str]:
        columns = list(self.columns)
        return rng.choice(columns) if columns else None

    def __repr__(self):
        return f"<Table {self.name} columns={len(self.columns)} records={len(self.records)}>"


class TableState(State):
    """State whose resources are tables of one backend"""

    backend: Optional[TableBackend] = None
    max_table_count: int = 1_000_000

    def random_table(self) -> Optional[Table]:
        tables = self.resource_set.resources
        return self.rng.choice(tables) if tables else None

    def opened_table_count(self) -> int:
        return len(self.resource_set)


class CreateTable(Action):
    def arguments(self):
        if self.state.opened_table_count() > self.state.max_table_count:
            return self.reject("too many open tables")
        return self.accept(self.state.next_name("Table"))

    def apply(self, name):
        return self.state.create_resource(Table(name, self.state.backend))

    def is_vetoed(self, route: Route, profile: Profile) -> bool:
        return profile == Profile.TERMINATING


class RemoveTable(Action):
    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        return self.accept(table)

    def apply(self, table):
        self.state.remove_resource(table)


class DefineColumn(Action):
    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        return self.accept(table, self.state.next_name("column"))

    def apply(self, table, name):
        return table.define_column(name)


class DefineReferenceColumn(Action):
    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        referenced_table = self.state.random_table()
        if referenced_table is table:
            return self.reject("table cannot reference itself")
        if table.reference_column_name(referenced_table) in table.columns:
            return self.reject("reference column exists")
        return self.accept(table, referenced_table)

    def apply(self, table, referenced_table):
        return table.define_reference_column(referenced_table)


class ChangeColumnValue(Action):
    VALUE = "aaa"

    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        record = table.random_record(self.state.rng)
        if record is None:
            return self.reject("no record")
        column = table.random_column(self.state.rng)
        if column is None:
            return self.reject("no column")
        return self.accept(table, record, column, self.VALUE)

    def apply(self, table, record, column, value):
        table.change_column_value(record, column, value)


class AddRecord(Action):
    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        return self.accept(table, self.state.next_name("key"))

    def apply(self, table, key):
        return table.add_record(key)


class DeleteRecord(Action):
    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        record = table.random_record(self.state.rng)
        if record is None:
            return self.reject("no record")
        return self.accept(table, record)

    def apply(self, table, record):
        return table.delete_record(record)


class Select(Action):
    def arguments(self):
        table = self.state.random_table()
        if table is None:
            return self.reject("no table")
        return self.accept(table, f"key_{self.state.state_id}")

    def apply(self, table, key_prefix):
        return table.select(key_prefix)


TABLE_ACTIONS = (
    ActionRegistry()
    .define_action("create_table", CreateTable)
    .define_action("remove_table", RemoveTable)
    .define_action("define_column", DefineColumn)
    .define_action("define_reference_column", DefineReferenceColumn)
    .define_action("change_column_value", ChangeColumnValue)
    .define_action("add_record", AddRecord)
    .define_action("delete_record", DeleteRecord)
    .define_action("select", Select)
)

TABLE_FLOW = (
    FlowBuilder()
    .initial_action("create_table")
    .route("create_table", from_node="default", to_node="default")
    .route("remove_table", from_node="default", to_node="default")
    .route("define_column", from_node="default", to_node="default")
    .route("define_reference_column", from_node="default", to_node="default")
    .route("change_column_value", from_node="default", to_node="default")
    .route("add_record", from_node="default", to_node="default")
    .route("delete_record", from_node="default", to_node="default")
    .route("select", from_node="default", to_node="default")
    .build()
)


class TableStateGroup(StateGroup):
    """Group of table states; states sharing resources also share one backend"""

    def __init__(
        self,
        backend_factory: Callable[[], TableBackend],
        share_resources: bool = False,
        resource_set_factory: Callable[[], ResourceSet] = ResourceSet,
        seed: Optional[int] = None,
        max_table_count: int = 1_000_000,
        id_prefix: Optional[str] = None
    ):
        self.backend_factory = backend_factory
        self.max_table_count = max_table_count
        self.backends: List[TableBackend] = []
        self.shared_backend: Optional[TableBackend] = None
        super().__init__(
            TableState,
            TABLE_ACTIONS,
            share_resources=share_resources,
            resource_set_factory=resource_set_factory,
            seed=seed,
            id_prefix=id_prefix
        )

    def on_initialize(self) -> None:
        if self.share_resources:
            self.shared_backend = self._open_backend()

    def on_create_state(self, state: TableState) -> None:
        state.backend = self.shared_backend if self.share_resources else self._open_backend()
        state.max_table_count = self.max_table_count

    def close(self) -> None:
        for backend in self.backends:
            try:
                backend.close()
            except Exception as e:
                logger.warning(f"Failed to close backend {backend!r}: {e}")
        self.backends.clear()

    def _open_backend(self) -> TableBackend:
        backend = self.backend_factory()
        self.backends.append(backend)
        return backend
