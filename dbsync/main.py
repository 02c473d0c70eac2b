import asyncio
import sys
from typing import List, Optional
from loguru import logger
from dbsync.config.loader import ConfigMerger, load_job_catalogue
from dbsync.config.options import parse_args
from dbsync.constants import EXIT_CONFIG_ERROR, EXIT_CONNECTION_ERROR, LOG_FILE
from dbsync.exceptions import ConfigError, DbSyncConnectionError
from dbsync.log import setup_logging
from dbsync.services.credentials import CredentialResolver, SecretPrompter
from dbsync.services.sync import SyncService, select_jobs
from dbsync.sync.engine import EngineFactory


def main(argv: Optional[List[str]] = None,
         prompter: Optional[SecretPrompter] = None,
         log_file: Optional[str] = LOG_FILE) -> int:
    """命令行入口，返回进程退出码"""
    argv = sys.argv[1:] if argv is None else list(argv)
    explicit = parse_args(argv)
    setup_logging(explicit.get("verbose", False), log_file)

    try:
        merger = ConfigMerger(explicit)
        merger.merge(merger.values["config_file"])
        config = merger.freeze()
        if config.verbose and not explicit.get("verbose"):
            setup_logging(True, log_file)

        config, jobs = select_jobs(config, load_job_catalogue(config.tables_file))
        engine = EngineFactory.get_engine(
            config.engine,
            block_size=config.block_size,
            transfer_size=config.transfer_size,
            dry_run=config.dry_run,
            delete=config.delete,
        )
        credentials = CredentialResolver(config, argv, prompter).resolve_credentials()
    except ConfigError as e:
        logger.error(f"Configuration error: {str(e)}")
        return EXIT_CONFIG_ERROR

    try:
        report = asyncio.run(SyncService(config, jobs, engine).run(credentials))
    except DbSyncConnectionError as e:
        logger.error(f"Sync aborted: {str(e)}")
        return EXIT_CONNECTION_ERROR

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
