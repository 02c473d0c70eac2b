import asyncio
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Optional


class BaseConnector(ABC):
    def __init__(self, host: str, user: Optional[str], password: Optional[str], charset: str):
        self.host = host
        self.user = user
        self.password = password
        self.charset = charset
        self._connection = None
        # 同一连接不允许被多个任务同时使用
        self.lock = asyncio.Lock()

    @property
    def connection(self) -> Any:
        """底层数据库连接，未连接时抛出 RuntimeError"""
        if self._connection is None:
            raise RuntimeError(f"Not connected to {self.host}")
        return self._connection

    @abstractmethod
    async def connect(self) -> None:
        """建立数据库连接"""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """关闭数据库连接"""
        pass

    @abstractmethod
    def get_table_schema(self, database: Optional[str], table_name: str) -> Dict[str, Any]:
        """获取表结构（在同步引擎线程中调用）"""
        pass

    @abstractmethod
    def fetch_all(self, query: str, params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        """执行查询并以字典列表返回所有行"""
        pass
