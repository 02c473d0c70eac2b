import getpass
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence
from loguru import logger
from dbsync.config.options import get_option
from dbsync.models.config import Credentials, EffectiveConfig, HostCredentials


class SecretPrompter(ABC):
    @abstractmethod
    def secret(self, prompt: str) -> str:
        """读取一个不回显的密码"""
        pass


class TerminalSecretPrompter(SecretPrompter):
    def secret(self, prompt: str) -> str:
        return getpass.getpass(prompt)


def names_option(argv: Sequence[str], long_flag: str, short_flag: Optional[str] = None) -> bool:
    """命令行中是否出现了该选项（不论是否带值）"""
    for token in argv:
        if token == "--":
            break
        if token == long_flag or token.startswith(long_flag + "="):
            return True
        if short_flag and (token == short_flag or (token.startswith(short_flag) and not token.startswith("--"))):
            return True
    return False


class CredentialResolver:
    """
    解析源和目标主机的用户名和密码

    只有当密码选项在命令行上出现但没有给值时才会交互式提示输入。
    """

    def __init__(self, config: EffectiveConfig, argv: List[str], prompter: SecretPrompter = None):
        self.config = config
        self.argv = list(argv)
        self.prompter = prompter or TerminalSecretPrompter()

    def resolve(self, option_name: str, short_flag: Optional[str], prompt: str = None) -> Optional[str]:
        """
        获取选项的密码值

        Args:
            option_name: 长选项名，如 "password"
            short_flag: 短选项名，如 "p"；没有短选项时为 None
            prompt: 提示文字

        Returns:
            已给出的值、交互输入的值，或 None

        Raises:
            ConfigOptionError: 选项不存在
        """
        option = get_option(option_name)
        value: Any = getattr(self.config, option.dest)
        if value:
            return value

        short = f"-{short_flag}" if short_flag else None
        if names_option(self.argv, f"--{option.name}", short):
            logger.debug(f"Prompting for {option.name}")
            return self.prompter.secret(prompt or "Enter your password: ")

        return value or None

    def resolve_credentials(self) -> Credentials:
        """
        解析两端的凭据

        没有指定 target.user 时目标主机沿用源主机的用户名和密码。
        """
        user = self.config.user
        password = self.resolve("password", "p", f"Enter password for local user '{user}': ")

        remote_user = self.config.target_user
        if remote_user:
            remote_password = self.resolve(
                "target.password", None, f"Enter password for user '{remote_user}' on target host: "
            )
        else:
            remote_user = user
            remote_password = password

        return Credentials(
            source=HostCredentials(self.config.source, user, password),
            target=HostCredentials(self.config.target, remote_user, remote_password),
        )
