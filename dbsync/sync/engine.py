import importlib
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional, Type

from loguru import logger

from dbsync.constants import DEFAULT_BLOCK_SIZE, DEFAULT_HASH_ALGORITHM, DEFAULT_TRANSFER_SIZE
from dbsync.exceptions import ConfigError
from dbsync.sync.columns import ColumnConfiguration


@dataclass
class SyncResult:
    """单个表的同步结果，由同步引擎生成"""
    source: str
    target: str
    blocks_checked: int = 0
    blocks_matched: int = 0
    blocks_mismatched: int = 0
    rows_inserted: int = 0
    rows_deleted: int = 0
    rows_errored: int = 0
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class BaseSyncEngine(ABC):
    """
    块校验同步引擎接口

    引擎负责比较源表和目标表的行块并只复制不一致的块。
    dry_run 为 True 时不得对目标表做任何写入；delete 为 True 时
    删除目标表中源表不存在的行。
    """

    def __init__(self,
                 hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
                 block_size: int = DEFAULT_BLOCK_SIZE,
                 transfer_size: int = DEFAULT_TRANSFER_SIZE,
                 dry_run: bool = True,
                 delete: bool = False):
        self.hash_algorithm = hash_algorithm
        self.block_size = block_size
        self.transfer_size = transfer_size
        self.dry_run = dry_run
        self.delete = delete

    def configure(self, block_size: Optional[int] = None, transfer_size: Optional[int] = None) -> None:
        """在每个表同步前调整块大小和传输大小"""
        if block_size is not None:
            self.block_size = block_size
        if transfer_size is not None:
            self.transfer_size = transfer_size

    @abstractmethod
    def sync(self,
             source: Any,
             target: Any,
             transfer_columns: ColumnConfiguration,
             comparison_columns: ColumnConfiguration) -> SyncResult:
        """
        同步一张表

        Args:
            source: 源表 TableHandle
            target: 目标表 TableHandle
            transfer_columns: 需要复制的列
            comparison_columns: 用于计算哈希的列

        Returns:
            SyncResult
        """
        pass


class EngineFactory:
    _engines: Dict[str, Type[BaseSyncEngine]] = {}

    @classmethod
    def get_engine(cls, name: Optional[str], **options) -> BaseSyncEngine:
        """
        获取同步引擎实例

        Args:
            name: 已注册的引擎名，或 "module:Class" 形式的导入路径
            **options: 传给引擎构造函数的参数

        Returns:
            BaseSyncEngine: 同步引擎实例

        Raises:
            ConfigError: 未配置引擎或引擎无法加载
        """
        if not name:
            raise ConfigError("No sync engine configured, pass --engine <name|module:Class>")

        engine_class = cls._engines.get(name.lower()) or cls._load(name)
        logger.debug(f"Using sync engine {engine_class.__module__}.{engine_class.__name__}")
        return engine_class(**options)

    @classmethod
    def register_engine(cls, name: str, engine_class: Type[BaseSyncEngine]) -> None:
        """
        注册新的同步引擎

        Args:
            name: 引擎名
            engine_class: 引擎类
        """
        cls._engines[name.lower()] = engine_class

    @staticmethod
    def _load(path: str) -> Type[BaseSyncEngine]:
        module_name, sep, class_name = path.partition(":")
        if not sep or not module_name or not class_name:
            raise ConfigError(f"Unknown sync engine: {path}")
        try:
            module = importlib.import_module(module_name)
            engine_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigError(f"Failed to load sync engine {path}: {str(e)}") from e

        if not (isinstance(engine_class, type) and issubclass(engine_class, BaseSyncEngine)):
            raise ConfigError(f"{path} is not a BaseSyncEngine subclass")
        return engine_class
