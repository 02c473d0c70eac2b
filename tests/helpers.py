"""测试用的假连接器和记录调用的同步引擎"""
import threading
from typing import Any, Dict, List, Optional

from dbsync.connectors.base import BaseConnector
from dbsync.models.config import Credentials, HostCredentials
from dbsync.sync.engine import BaseSyncEngine, SyncResult


class FakeConnector(BaseConnector):
    def __init__(self, host: str, user: Optional[str] = None, password: Optional[str] = None,
                 charset: str = "utf8"):
        super().__init__(host, user, password, charset)
        self.connected = False
        self.disconnected = False

    async def connect(self) -> None:
        self.connected = True
        self._connection = object()

    async def disconnect(self) -> None:
        self.disconnected = True
        self._connection = None

    def get_table_schema(self, database: Optional[str], table_name: str) -> Dict[str, Any]:
        return {"table_name": table_name, "columns": [
            {"name": "id", "type": "int", "length": None, "nullable": False, "is_primary": True},
            {"name": "title", "type": "varchar", "length": 255, "nullable": True, "is_primary": False},
            {"name": "views", "type": "int", "length": None, "nullable": True, "is_primary": False},
        ]}

    def fetch_all(self, query: str, params: Dict[str, Any] = None) -> List[Dict[str, Any]]:
        return []


class RecordingEngine(BaseSyncEngine):
    """记录每次调用的参数；表名在 fail_on 中时抛出异常，在 block_on 中时阻塞"""
    calls: List[Dict[str, Any]] = []
    instances: List["RecordingEngine"] = []
    fail_on = set()
    block_on = set()
    release = threading.Event()

    def __init__(self, **options):
        super().__init__(**options)
        self.options = options
        RecordingEngine.instances.append(self)

    @classmethod
    def reset(cls) -> None:
        cls.calls = []
        cls.instances = []
        cls.fail_on = set()
        cls.block_on = set()
        cls.release = threading.Event()

    def sync(self, source, target, transfer_columns, comparison_columns) -> SyncResult:
        RecordingEngine.calls.append({
            "source": source,
            "target": target,
            "transfer": transfer_columns,
            "comparison": comparison_columns,
            "dry_run": self.dry_run,
            "delete": self.delete,
            "block_size": self.block_size,
            "transfer_size": self.transfer_size,
        })
        if source.table in self.fail_on:
            raise RuntimeError(f"boom on {source.table}")
        if source.table in self.block_on:
            self.release.wait(5)
        return SyncResult(source=source.name, target=target.name, blocks_checked=1, blocks_matched=1)


def credentials(user: str = "alice", password: str = "secret") -> Credentials:
    return Credentials(
        source=HostCredentials("src-host", user, password),
        target=HostCredentials("dst-host", user, password),
    )
