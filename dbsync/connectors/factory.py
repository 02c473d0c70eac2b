from typing import Dict, Optional, Type
from dbsync.connectors.base import BaseConnector
from dbsync.connectors.mysql import MySQLConnector


class ConnectorFactory:
    _connectors: Dict[str, Type[BaseConnector]] = {
        "mysql": MySQLConnector,
    }

    @classmethod
    def get_connector(cls, db_type: str, host: str, user: Optional[str],
                      password: Optional[str], charset: str) -> BaseConnector:
        """
        获取数据库连接器实例

        Args:
            db_type: 数据库类型 (如 "mysql")
            host: 主机，可带端口 "host:port"
            user: 用户名
            password: 密码
            charset: 连接字符集

        Returns:
            BaseConnector: 数据库连接器实例

        Raises:
            ValueError: 如果数据库类型不支持
        """
        connector_class = cls._connectors.get(db_type.lower())
        if not connector_class:
            raise ValueError(f"Unsupported database type: {db_type}")

        return connector_class(host, user, password, charset)
