import json
import configparser
import itertools
import re
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional
from loguru import logger
from dbsync.config import options as opts
from dbsync.exceptions import ConfigError
from dbsync.models.config import EffectiveConfig, SyncJobSpec

DEFAULT_TABLES_FILE = Path(__file__).with_name("default_tables.json")

_ROOT_SECTION = "__root__"
_LIST_KEY = re.compile(r"^([ \t]*)([^=\s;#\[][^=\n]*?)[ \t]*\[\][ \t]*=", re.M)
_NUMBERED_KEY = re.compile(r"^(.*)\[\d+\]$")
_JOB_KEYS = {"tableName", "ignoreColumns", "targetTable", "transferSize", "blockSize"}


class ConfigMerger:
    """
    把 ini 配置文件合并到当前选项中

    优先级（从高到低）：命令行显式给出的值、ini 文件、内置默认值。
    """

    def __init__(self, explicit: Dict[str, Any], defaults: Optional[Dict[str, Any]] = None):
        self._explicit = dict(explicit)
        self._values = dict(opts.defaults() if defaults is None else defaults)
        self._values.update(self._explicit)

    @property
    def values(self) -> Dict[str, Any]:
        return dict(self._values)

    def is_explicit(self, dest: str) -> bool:
        return dest in self._explicit

    def merge(self, file_path: Optional[str]) -> None:
        """
        读取 ini 文件并合并到选项中，文件不存在时什么也不做

        Args:
            file_path: ini 文件路径

        Raises:
            ConfigError: 文件无法读取或格式错误
            ConfigOptionError: 文件中出现不存在的选项
        """
        if not file_path or not Path(file_path).is_file():
            logger.debug(f"Config file {file_path} not found, skipping")
            return

        logger.info(f"Reading ini file '{file_path}'")
        for name, raw in read_ini_file(file_path).items():
            option = opts.get_option(name)
            if self.is_explicit(option.dest):
                logger.debug(f"Option {name} given on the command line, ignoring ini value")
                continue
            self._values[option.dest] = opts.coerce(option, raw)
            logger.debug(f"使用配置文件中的 {name}")

    def freeze(self) -> EffectiveConfig:
        return EffectiveConfig.from_values(self._values)


def read_ini_file(file_path: str) -> Dict[str, str]:
    """
    读取扁平 ini 文件

    节头之前的键直接接受；如果存在节，则所有节被展开成同一层，
    后出现的键覆盖先出现的键。重复的 "columns[]" 形式键名会累积成一个逗号分隔的列表。
    """
    try:
        content = Path(file_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Failed to read config file {file_path}: {str(e)}") from e

    # configparser 会合并同名键，先给每个 "name[]" 编号
    counter = itertools.count()
    content = _LIST_KEY.sub(lambda m: f"{m.group(1)}{m.group(2)}[{next(counter)}] =", content)

    parser = configparser.ConfigParser(interpolation=None, strict=False, allow_no_value=True,
                                       comment_prefixes=(";", "#"), delimiters=("=",))
    parser.optionxform = str
    try:
        parser.read_string(f"[{_ROOT_SECTION}]\n{content}", source=str(file_path))
    except configparser.Error as e:
        raise ConfigError(f"Malformed config file {file_path}: {str(e)}") from e

    values: Dict[str, str] = {}
    lists: Dict[str, List[str]] = {}
    for section in parser.sections():
        for key, value in parser.items(section):
            value = _unquote(value or "")
            match = _NUMBERED_KEY.match(key)
            if match:
                lists.setdefault(match.group(1), []).append(value)
                values[match.group(1)] = ",".join(item for item in lists[match.group(1)] if item)
            else:
                values[key] = value
    return values


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def load_job_catalogue(file_path: Optional[str] = None) -> List[SyncJobSpec]:
    """
    从JSON文件加载需要同步的表清单

    Args:
        file_path: 清单文件路径，为空时使用内置清单

    Returns:
        按文件顺序排列的 SyncJobSpec 列表

    Raises:
        ConfigError: 文件不存在、JSON格式错误或内容无效
    """
    path = Path(file_path) if file_path else DEFAULT_TABLES_FILE
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigError(f"表清单文件不存在: {path}")
    except json.JSONDecodeError as e:
        raise ConfigError(f"表清单文件JSON格式错误: {str(e)}")
    except OSError as e:
        raise ConfigError(f"表清单文件读取失败: {str(e)}")

    if isinstance(data, dict):
        data = data.get("tables")
    if not isinstance(data, list):
        raise ConfigError(f"表清单文件必须包含 tables 列表: {path}")

    jobs = parse_jobs(data)
    logger.debug(f"Loaded {len(jobs)} tables from {path}")
    return jobs


def parse_jobs(entries: Iterable[Any]) -> List[SyncJobSpec]:
    jobs: List[SyncJobSpec] = []
    seen = set()
    for position, entry in enumerate(entries, 1):
        if isinstance(entry, str):
            entry = {"tableName": entry}
        if not isinstance(entry, dict):
            raise ConfigError(f"Table entry #{position} must be an object or a name")

        unknown = set(entry) - _JOB_KEYS
        if unknown:
            raise ConfigError(f"Table entry #{position} has unknown keys: {', '.join(sorted(unknown))}")

        name = entry.get("tableName")
        if not isinstance(name, str) or not name.strip():
            raise ConfigError(f"Table entry #{position} is missing tableName")
        name = name.strip()
        if name in seen:
            raise ConfigError(f"Table {name} is listed more than once")
        seen.add(name)

        ignore = entry.get("ignoreColumns") or []
        if isinstance(ignore, str) or not all(isinstance(c, str) for c in ignore):
            raise ConfigError(f"ignoreColumns of table {name} must be a list of names")

        jobs.append(SyncJobSpec(
            table_name=name,
            ignore_columns=frozenset(ignore),
            target_table=entry.get("targetTable") or None,
            transfer_size=_size(entry, "transferSize", name),
            block_size=_size(entry, "blockSize", name),
        ))
    return jobs


def _size(entry: Dict[str, Any], key: str, table: str) -> Optional[int]:
    value = entry.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"{key} of table {table} must be a positive integer")
    return value
