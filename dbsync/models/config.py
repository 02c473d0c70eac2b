from typing import Any, Dict, FrozenSet, Optional, Tuple
from dataclasses import dataclass, fields
from dbsync.constants import DEFAULT_BLOCK_SIZE, DEFAULT_CHARSET, DEFAULT_CONFIG_FILE, DEFAULT_TRANSFER_SIZE


@dataclass(frozen=True)
class SyncJobSpec:
    table_name: str
    ignore_columns: FrozenSet[str] = frozenset()
    target_table: Optional[str] = None
    transfer_size: Optional[int] = None
    block_size: Optional[int] = None


@dataclass(frozen=True)
class HostCredentials:
    host: str
    user: Optional[str]
    password: Optional[str]


@dataclass(frozen=True)
class Credentials:
    source: HostCredentials
    target: HostCredentials


@dataclass(frozen=True)
class EffectiveConfig:
    source: str
    target: str
    table: Optional[str] = None
    block_size: int = DEFAULT_BLOCK_SIZE
    charset: str = DEFAULT_CHARSET
    columns: Tuple[str, ...] = ()
    comparison: Tuple[str, ...] = ()
    config_file: str = DEFAULT_CONFIG_FILE
    delete: bool = False
    execute: bool = False
    ignore_columns: Tuple[str, ...] = ()
    ignore_comparison: Tuple[str, ...] = ()
    password: Optional[str] = None
    user: Optional[str] = None
    transfer_size: int = DEFAULT_TRANSFER_SIZE
    target_user: Optional[str] = None
    target_table: Optional[str] = None
    target_password: Optional[str] = None
    where: Optional[str] = None
    verbose: bool = False
    source_database: Optional[str] = None
    target_database: Optional[str] = None
    tables_file: Optional[str] = None
    engine: Optional[str] = None
    job_timeout: Optional[float] = None

    @property
    def dry_run(self) -> bool:
        return not self.execute

    @classmethod
    def from_values(cls, values: Dict[str, Any]) -> "EffectiveConfig":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})
