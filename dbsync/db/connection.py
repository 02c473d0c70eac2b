from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from loguru import logger
from dbsync.connectors.base import BaseConnector
from dbsync.connectors.factory import ConnectorFactory
from dbsync.exceptions import DbSyncConnectionError


async def create_connection(host: str,
                            user: Optional[str],
                            password: Optional[str],
                            charset: str,
                            db_type: str = "mysql") -> BaseConnector:
    """
    创建并打开一个数据库连接

    连接失败时直接抛出，不做重试：没有连接任何表都无法同步。

    Raises:
        DbSyncConnectionError: 认证或网络失败
    """
    connector = ConnectorFactory.get_connector(db_type, host, user, password, charset)
    try:
        await connector.connect()
    except (SQLAlchemyError, OSError) as e:
        raise DbSyncConnectionError(host, str(e)) from e
    logger.debug(f"Connected to {host} as {user}")
    return connector
