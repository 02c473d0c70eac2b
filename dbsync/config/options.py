"""
命令行选项定义

argparse、ini 配置合并和密码解析共用这里的同一份选项清单。
"""
import argparse
import getpass
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dbsync.constants import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_CHARSET,
    DEFAULT_CONFIG_FILE,
    DEFAULT_TRANSFER_SIZE,
    PROG_NAME,
)
from dbsync.exceptions import ConfigError, ConfigOptionError

STRING = "string"
INT = "int"
FLOAT = "float"
FLAG = "flag"
LIST = "list"
# 可带值也可不带值（不带值时为空字符串）
OPTIONAL_VALUE = "optional"

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"", "0", "false", "no", "off", "none"}


@dataclass(frozen=True)
class Option:
    name: str
    short: Optional[str]
    kind: str
    help: str
    default: Any = None

    @property
    def dest(self) -> str:
        return _DESTS.get(self.name, self.name.replace("-", "_").replace(".", "_"))

    @property
    def flags(self) -> List[str]:
        flags = [f"--{self.name}"]
        if self.short:
            flags.append(f"-{self.short}")
        return flags


_DESTS = {
    "sourceDatabase": "source_database",
    "targetDatabase": "target_database",
}


def current_user() -> Optional[str]:
    """当前操作系统用户，无法解析时返回 None"""
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError(f"expected a positive integer, got {value}")
    return number


def positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise ValueError(f"expected a positive number, got {value}")
    return number


OPTIONS: List[Option] = [
    Option("block-size", "b", INT, "The maximum block to use for when comparing.", DEFAULT_BLOCK_SIZE),
    Option("charset", None, STRING, "The charset to use for database connections.", DEFAULT_CHARSET),
    Option("columns", "c", LIST,
           'Columns to sync - all columns not "ignored" will be included if not specified. '
           "Primary key columns will be included automatically.", ()),
    Option("comparison", "C", LIST,
           'Columns from the list of synced columns to use to create the hash - all columns not '
           '"ignored" will be included if not specified. Primary key columns will be included automatically.', ()),
    Option("config-file", "f", STRING, "A path to a config.ini file from which to read values.", DEFAULT_CONFIG_FILE),
    Option("delete", None, FLAG, "Remove rows from the target table that do not exist in the source.", False),
    Option("execute", "e", FLAG, "Perform the data write on non-matching blocks.", False),
    Option("ignore-columns", "i", LIST, "Columns to ignore. Will not be copied or used to create the hash.", ()),
    Option("ignore-comparison", "I", LIST, "Columns to ignore from the hash. Columns will still be copied.", ()),
    Option("password", "p", OPTIONAL_VALUE,
           "The password for the specified user. Will be solicited on the tty if not given."),
    Option("user", "u", STRING, "The name of the user to connect with."),
    Option("transfer-size", "s", INT, "The maximum copy size to use for when comparing.", DEFAULT_TRANSFER_SIZE),
    Option("target.user", None, STRING,
           "The name of the user to connect to the target host with if different to the source."),
    Option("target.table", None, STRING,
           "The name of the table on the target host if different to the source (single table mode)."),
    Option("target.password", None, OPTIONAL_VALUE,
           "The password for the target host if the target user is specified. "
           "Will be solicited on the tty if not given."),
    Option("where", None, STRING, "A where clause to apply to the tables."),
    Option("verbose", "v", FLAG, "Enable verbose output.", False),
    Option("sourceDatabase", "sd", STRING, "Source database name."),
    Option("targetDatabase", "td", STRING, "Target database name."),
    Option("tables-file", "t", STRING, "A JSON file listing the tables to sync, in order."),
    Option("engine", None, STRING, "The sync engine to use, as a registered name or module:Class."),
    Option("job-timeout", None, FLOAT, "Give up on a table after this many seconds."),
]

_BY_NAME: Dict[str, Option] = {o.name: o for o in OPTIONS}
_BY_DEST: Dict[str, Option] = {o.dest: o for o in OPTIONS}


def get_option(name: str) -> Option:
    """
    按长选项名（或 dest）查找选项

    Raises:
        ConfigOptionError: 选项不存在
    """
    option = _BY_NAME.get(name) or _BY_DEST.get(name)
    if option is None:
        raise ConfigOptionError(f'The "{name}" option does not exist.')
    return option


def defaults() -> Dict[str, Any]:
    """所有选项的内置默认值，以 dest 为键"""
    values = {o.dest: o.default for o in OPTIONS}
    values["user"] = current_user()
    values["table"] = None
    return values


def coerce(option: Option, value: Any) -> Any:
    """
    把 ini 文件中的字符串值转换为选项声明的类型

    Raises:
        ConfigError: 值无法转换
    """
    if value is None:
        return option.default
    text = str(value).strip()
    try:
        if option.kind == FLAG:
            lowered = text.lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
            raise ValueError(f"not a boolean: {text}")
        if option.kind == INT:
            return positive_int(text)
        if option.kind == FLOAT:
            return positive_float(text)
        if option.kind == LIST:
            return tuple(item.strip() for item in text.split(",") if item.strip())
    except ValueError as e:
        raise ConfigError(f"Invalid value for option {option.name}: {str(e)}") from e
    return text


def build_parser() -> argparse.ArgumentParser:
    """
    构建命令行解析器

    未给出的选项不会出现在解析结果中（argparse.SUPPRESS），
    这样才能区分命令行显式给出的值和默认值。
    """
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Sync a mysql database table from one host to another using an "
                    "efficient checksum algorithm to find differences.",
        argument_default=argparse.SUPPRESS,
        allow_abbrev=False,
    )
    parser.add_argument("source", help="The source host ip to use.")
    parser.add_argument("target", help="The target host ip to use.")
    parser.add_argument("table", nargs="?",
                        help="The fully qualified database table to sync. "
                             "Syncs the configured table list when omitted.")

    for option in OPTIONS:
        kwargs: Dict[str, Any] = {"dest": option.dest, "help": option.help}
        if option.kind == FLAG:
            kwargs["action"] = "store_true"
        elif option.kind == LIST:
            kwargs["action"] = "append"
        elif option.kind == OPTIONAL_VALUE:
            kwargs.update(nargs="?", const="")
        elif option.kind == INT:
            kwargs["type"] = positive_int
        elif option.kind == FLOAT:
            kwargs["type"] = positive_float
        parser.add_argument(*option.flags, **kwargs)
    return parser


def parse_args(argv: List[str]) -> Dict[str, Any]:
    """解析命令行，只返回显式给出的值（以 dest 为键）"""
    values = vars(build_parser().parse_args(argv))
    for dest, value in values.items():
        if isinstance(value, list):
            values[dest] = tuple(value)
    return values
