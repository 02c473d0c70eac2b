from typing import List, Dict, Any, Optional, Tuple
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool
from dbsync.connectors.base import BaseConnector
from dbsync.constants import DEFAULT_COLLATION
from loguru import logger


def split_host(host: str) -> Tuple[str, Optional[int]]:
    """把 "host:port" 拆成主机和端口"""
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit() and name:
        return name, int(port)
    return host, None


class MySQLConnector(BaseConnector):
    def __init__(self, host: str, user: Optional[str], password: Optional[str], charset: str):
        super().__init__(host, user, password, charset)
        self._engine: Engine = None

    def _url(self) -> URL:
        hostname, port = split_host(self.host)
        return URL.create(
            "mysql+pymysql",
            username=self.user,
            password=self.password,
            host=hostname,
            port=port,
            query={"charset": self.charset},
        )

    async def connect(self) -> None:
        try:
            # 不使用连接池，每个主机只保持一个长连接
            self._engine = create_engine(
                self._url(),
                poolclass=NullPool,
                connect_args={
                    "init_command": f"SET NAMES {self.charset} COLLATE {DEFAULT_COLLATION}",
                    "autocommit": False,
                },
            )
            self._connection = self._engine.connect()
            # 测试连接
            self._connection.execute(text("SELECT 1"))
            logger.info(f"Successfully connected to MySQL host: {self.host}")
        except SQLAlchemyError as e:
            logger.error(f"Failed to connect to MySQL host {self.host}: {str(e)}")
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._engine:
            self._engine.dispose()
            self._engine = None
            logger.info(f"Disconnected from MySQL host: {self.host}")

    def get_table_schema(self, database: Optional[str], table_name: str) -> Dict[str, Any]:
        query = """
        SELECT COLUMN_NAME, DATA_TYPE, CHARACTER_MAXIMUM_LENGTH, IS_NULLABLE, COLUMN_KEY
        FROM INFORMATION_SCHEMA.COLUMNS
        WHERE TABLE_SCHEMA = COALESCE(:database, DATABASE()) AND TABLE_NAME = :table
        ORDER BY ORDINAL_POSITION
        """
        try:
            columns = []
            for row in self.fetch_all(query, {"database": database, "table": table_name}):
                columns.append({
                    "name": row["COLUMN_NAME"],
                    "type": row["DATA_TYPE"],
                    "length": row["CHARACTER_MAXIMUM_LENGTH"],
                    "nullable": row["IS_NULLABLE"] == "YES",
                    "is_primary": row["COLUMN_KEY"] == "PRI"
                })
            return {"table_name": table_name, "columns": columns}
        except SQLAlchemyError as e:
            logger.error(f"Failed to get schema for table {table_name}: {str(e)}")
            raise

    def fetch_all(self, query: str, params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        try:
            result = self.connection.execute(text(query), params or {})
            return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as e:
            logger.error(f"Failed to execute query on {self.host}: {str(e)}")
            raise
