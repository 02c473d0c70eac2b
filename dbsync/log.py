import sys
from typing import Optional
from loguru import logger
from dbsync.constants import LOG_FILE, LOG_ROTATION, NOTICE_LEVEL, NOTICE_LEVEL_NO


def register_notice_level() -> None:
    """注册 NOTICE 级别，用于同步结果和 dry run 提示"""
    try:
        logger.level(NOTICE_LEVEL)
    except ValueError:
        logger.level(NOTICE_LEVEL, no=NOTICE_LEVEL_NO, color="<cyan><bold>")


def setup_logging(verbose: bool = False, log_file: Optional[str] = LOG_FILE) -> None:
    """配置 loguru：控制台输出，可选的滚动文件输出"""
    # 移除默认的处理器
    logger.remove()

    # 添加文件处理器
    if log_file:
        logger.add(
            log_file,
            rotation=LOG_ROTATION,
            level="INFO",
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
                   "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
        )

    # 添加控制台处理器
    logger.add(
        sys.stdout,
        level="DEBUG" if verbose else "INFO",
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <level>{message}</level>"
    )

