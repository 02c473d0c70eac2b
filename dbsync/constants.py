"""全局常量"""

PROG_NAME = "bongodb-sync"

DEFAULT_CONFIG_FILE = "dbsync.ini"
DEFAULT_CHARSET = "utf8"
DEFAULT_COLLATION = "utf8_general_ci"
DEFAULT_BLOCK_SIZE = 1024
DEFAULT_TRANSFER_SIZE = 8
DEFAULT_HASH_ALGORITHM = "md5"

LOG_FILE = "dbsync.log"
LOG_ROTATION = "500 MB"
NOTICE_LEVEL = "NOTICE"
NOTICE_LEVEL_NO = 25

# 进程退出码
EXIT_OK = 0
EXIT_JOB_FAILURES = 1
EXIT_CONFIG_ERROR = 2
EXIT_CONNECTION_ERROR = 3
