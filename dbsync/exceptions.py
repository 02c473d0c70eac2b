"""同步过程中使用的异常类型"""


class DbSyncError(Exception):
    """所有同步错误的基类"""


class ConfigError(DbSyncError):
    """配置文件、表清单或引擎配置无效"""


class ConfigOptionError(ConfigError):
    """引用了不存在的命令行选项"""


class DbSyncConnectionError(DbSyncError, ConnectionError):
    """建立源或目标数据库连接失败"""

    def __init__(self, host: str, message: str):
        super().__init__(f"Failed to connect to {host}: {message}")
        self.host = host


class JobError(DbSyncError):
    """单个表同步失败"""

    def __init__(self, table: str, cause: BaseException):
        super().__init__(f"Sync of table {table} failed: {cause}")
        self.table = table
        self.cause = cause


class JobTimeoutError(JobError):
    """单个表同步超时"""

    def __init__(self, table: str, timeout: float):
        super().__init__(table, TimeoutError(f"no result after {timeout:g}s"))
        self.timeout = timeout
