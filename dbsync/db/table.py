from typing import Any, Dict, List, Optional
from dbsync.connectors.base import BaseConnector


def parse_table_name(name: str) -> tuple:
    """把 "db.table" 拆成 (database, table)，没有库名时 database 为 None"""
    database, sep, table = name.partition(".")
    if sep:
        return database or None, table
    return None, name


def quote(identifier: str) -> str:
    return "`" + identifier.replace("`", "``") + "`"


class TableHandle:
    """把连接、库名和表名绑定成一个可寻址的表引用"""

    def __init__(self,
                 connector: BaseConnector,
                 database: Optional[str],
                 table: str,
                 where: Optional[str] = None):
        if not table:
            raise ValueError("Table name must not be empty")
        self.connector = connector
        self.database = database
        self.table = table
        self.where = where

    @property
    def name(self) -> str:
        return f"{self.database}.{self.table}" if self.database else self.table

    @property
    def qualified_name(self) -> str:
        if self.database:
            return f"{quote(self.database)}.{quote(self.table)}"
        return quote(self.table)

    @property
    def lock(self):
        return self.connector.lock

    @property
    def connection(self) -> Any:
        return self.connector.connection

    def get_schema(self) -> Dict[str, Any]:
        return self.connector.get_table_schema(self.database, self.table)

    def get_columns(self) -> List[str]:
        return [c["name"] for c in self.get_schema()["columns"]]

    def get_primary_key(self) -> List[str]:
        return [c["name"] for c in self.get_schema()["columns"] if c["is_primary"]]

    def __repr__(self) -> str:
        return f"TableHandle({self.connector.host}, {self.name})"
