import asyncio
import json
import threading
import time
from dataclasses import replace
from typing import Any, Callable, List, Tuple
from loguru import logger
from dbsync.connectors.base import BaseConnector
from dbsync.constants import NOTICE_LEVEL
from dbsync.db.connection import create_connection
from dbsync.db.table import TableHandle, parse_table_name
from dbsync.exceptions import JobError, JobTimeoutError
from dbsync.log import register_notice_level
from dbsync.models.config import Credentials, EffectiveConfig, SyncJobSpec
from dbsync.models.report import FAILED, SKIPPED, SUCCEEDED, JobOutcome, RunReport
from dbsync.sync.columns import build_column_configuration
from dbsync.sync.engine import BaseSyncEngine, SyncResult

register_notice_level()


def run_in_daemon_thread(func: Callable, *args) -> asyncio.Future:
    """
    在守护线程中运行阻塞函数，返回当前事件循环上的 Future

    不使用默认线程池：超时后仍未返回的引擎线程不会阻止 asyncio.run 退出。
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()

    def deliver(setter: Callable, value: Any) -> None:
        if not future.done():
            setter(value)

    def target() -> None:
        try:
            result = func(*args)
        except BaseException as e:
            outcome = (future.set_exception, e)
        else:
            outcome = (future.set_result, result)
        try:
            loop.call_soon_threadsafe(deliver, *outcome)
        except RuntimeError:
            # 超时后事件循环可能已经关闭
            logger.debug(f"Event loop closed before {threading.current_thread().name} finished")

    threading.Thread(target=target, name=f"dbsync-{getattr(func, '__name__', 'job')}", daemon=True).start()
    return future


class SyncService:
    """
    按表清单顺序逐表调用同步引擎

    单个表失败只记录日志并继续下一个表；连接失败直接向上抛出，
    不会执行任何表。
    """

    def __init__(self, config: EffectiveConfig, jobs: List[SyncJobSpec], engine: BaseSyncEngine):
        self.config = config
        self.jobs = list(jobs)
        self.engine = engine
        self.source_connector: BaseConnector = None
        self.target_connector: BaseConnector = None

    async def initialize(self, credentials: Credentials) -> None:
        """初始化源和目标数据库连接"""
        logger.debug("当前配置:")
        logger.debug(f"block_size: {self.config.block_size}")
        logger.debug(f"transfer_size: {self.config.transfer_size}")
        logger.debug(f"tables: {len(self.jobs)}")

        try:
            self.source_connector = await create_connection(
                credentials.source.host, credentials.source.user,
                credentials.source.password, self.config.charset,
            )
            self.target_connector = await create_connection(
                credentials.target.host, credentials.target.user,
                credentials.target.password, self.config.charset,
            )
        except Exception as e:
            logger.error(f"Failed to initialize database connections: {str(e)}")
            await self.cleanup()
            raise

    async def cleanup(self) -> None:
        """清理资源"""
        if self.source_connector:
            await self.source_connector.disconnect()
        if self.target_connector:
            await self.target_connector.disconnect()

    def source_table(self, job: SyncJobSpec) -> TableHandle:
        return TableHandle(self.source_connector, self.config.source_database,
                           job.table_name, self.config.where)

    def target_table(self, job: SyncJobSpec) -> TableHandle:
        return TableHandle(self.target_connector, self.config.target_database,
                           job.target_table or job.table_name, self.config.where)

    def _sync(self, job: SyncJobSpec) -> Tuple[SyncResult, str]:
        try:
            result = self._run_engine(job)
            return result, json.dumps(result.to_dict(), default=str)
        except Exception as e:
            raise JobError(job.table_name, e) from e

    def _run_engine(self, job: SyncJobSpec) -> SyncResult:
        source = self.source_table(job)
        target = self.target_table(job)

        self.engine.configure(
            block_size=job.block_size or self.config.block_size,
            transfer_size=job.transfer_size or self.config.transfer_size,
        )
        transfer_columns = build_column_configuration(
            self.config.columns,
            set(job.ignore_columns) | set(self.config.ignore_columns),
        )
        comparison_columns = build_column_configuration(
            self.config.comparison,
            self.config.ignore_comparison,
        )
        logger.debug(
            f"Syncing {source!r} -> {target!r}, block size {self.engine.block_size}, "
            f"transfer size {self.engine.transfer_size}"
        )
        return self.engine.sync(source, target, transfer_columns, comparison_columns)

    async def sync_table(self, job: SyncJobSpec) -> Tuple[SyncResult, str]:
        """
        同步单个表，返回结果及其 JSON 形式

        引擎在守护线程中运行，期间持有两个连接的锁。

        Raises:
            JobTimeoutError: 超过 job_timeout 仍未返回
            JobError: 引擎抛出任何异常
        """
        async with self.source_connector.lock, self.target_connector.lock:
            try:
                return await asyncio.wait_for(
                    run_in_daemon_thread(self._sync, job),
                    timeout=self.config.job_timeout,
                )
            except asyncio.TimeoutError:
                raise JobTimeoutError(job.table_name, self.config.job_timeout)

    async def sync_all(self) -> RunReport:
        """同步所有配置的表，返回每个表的结果"""
        report = RunReport(dry_run=self.config.dry_run)
        if self.config.dry_run:
            logger.log(NOTICE_LEVEL, "Dry run only. No data will be written to target.")

        logger.info(f"开始同步 {len(self.jobs)} 个表...")
        start_time = time.time()

        for position, job in enumerate(self.jobs):
            table_start_time = time.time()
            try:
                result, payload = await self.sync_table(job)
            except JobTimeoutError as e:
                logger.error(f"{str(e)}, skipping the remaining tables")
                report.outcomes.append(JobOutcome(job.table_name, FAILED, error=str(e),
                                                  duration=time.time() - table_start_time))
                # 超时的引擎线程可能仍在使用连接
                for skipped in self.jobs[position + 1:]:
                    report.outcomes.append(JobOutcome(skipped.table_name, SKIPPED,
                                                      error="skipped after timeout"))
                break
            except JobError as e:
                logger.error(str(e))
                report.outcomes.append(JobOutcome(job.table_name, FAILED, error=str(e.cause),
                                                  duration=time.time() - table_start_time))
                continue

            logger.log(NOTICE_LEVEL, payload)
            report.outcomes.append(JobOutcome(job.table_name, SUCCEEDED, result=result,
                                              duration=time.time() - table_start_time))

        total_duration = time.time() - start_time
        summary = (f"{report.succeeded} succeeded, {report.failed} failed, "
                   f"{report.skipped} skipped, 总耗时: {total_duration:.2f}秒")
        if report.ok:
            logger.success(f"所有表同步完成: {summary}")
        else:
            logger.error(f"同步未全部成功: {summary}; failed: {', '.join(report.failed_tables) or '-'}; "
                         f"skipped: {', '.join(report.skipped_tables) or '-'}")
        return report

    async def run(self, credentials: Credentials) -> RunReport:
        await self.initialize(credentials)
        try:
            return await self.sync_all()
        finally:
            await self.cleanup()


def select_jobs(config: EffectiveConfig, catalogue: List[SyncJobSpec]) -> Tuple[EffectiveConfig, List[SyncJobSpec]]:
    """
    确定本次要同步的表

    指定了 table 参数时只同步这一张表（沿用表清单中的覆盖项），
    "db.table" 中的库名在未指定 --sourceDatabase 时作为源库名；否则同步整个清单。
    """
    if not config.table:
        if config.target_table:
            logger.warning("--target.table only applies when a single table is given, ignoring")
        return config, list(catalogue)

    database, name = parse_table_name(config.table)
    if database and not config.source_database:
        config = replace(config, source_database=database)

    selected = next((job for job in catalogue if job.table_name == name), SyncJobSpec(table_name=name))
    if config.target_table:
        selected = replace(selected, target_table=config.target_table)

    logger.info(f"Single table mode: {name}")
    return config, [selected]
