import unittest
from unittest.mock import patch

from loguru import logger

from dbsync.config.loader import ConfigMerger, load_job_catalogue
from dbsync.config.options import parse_args
from dbsync.exceptions import DbSyncConnectionError
from dbsync.models.config import SyncJobSpec
from dbsync.models.report import FAILED, SKIPPED, SUCCEEDED
from dbsync.services.sync import SyncService, select_jobs
from tests.helpers import FakeConnector, RecordingEngine, credentials


def make_config(*args):
    return ConfigMerger(parse_args(["src-host", "dst-host", *args])).freeze()


async def fake_create_connection(host, user, password, charset, db_type="mysql"):
    connector = FakeConnector(host, user, password, charset)
    await connector.connect()
    return connector


class NoResultEngine(RecordingEngine):
    def sync(self, source, target, transfer_columns, comparison_columns):
        result = super().sync(source, target, transfer_columns, comparison_columns)
        return None if source.table == "a" else result


class SyncServiceTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        RecordingEngine.reset()
        self.messages = []
        self.sink_id = logger.add(self.messages.append, level="DEBUG", format="{level}|{message}")
        patcher = patch("dbsync.services.sync.create_connection", side_effect=fake_create_connection)
        self.create_connection = patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        logger.remove(self.sink_id)

    def service(self, jobs, *args):
        config = make_config(*args)
        engine = RecordingEngine(block_size=config.block_size, transfer_size=config.transfer_size,
                                 dry_run=config.dry_run, delete=config.delete)
        return SyncService(config, jobs, engine)

    def logged(self, level):
        return [m.split("|", 1)[1].strip() for m in self.messages if m.startswith(level + "|")]


class TestSyncService(SyncServiceTestCase):
    async def test_jobs_run_in_catalogue_order(self):
        jobs = load_job_catalogue()
        report = await self.service(jobs).run(credentials())

        self.assertEqual([c["source"].table for c in RecordingEngine.calls], [j.table_name for j in jobs])
        self.assertEqual(report.succeeded, 32)
        self.assertTrue(report.ok)
        self.assertEqual(report.exit_code, 0)
        self.assertEqual(len(self.logged("NOTICE")), 33)

    async def test_failure_does_not_stop_the_run(self):
        RecordingEngine.fail_on = {"b"}
        jobs = [SyncJobSpec("a"), SyncJobSpec("b"), SyncJobSpec("c")]
        report = await self.service(jobs).run(credentials())

        self.assertEqual([c["source"].table for c in RecordingEngine.calls], ["a", "b", "c"])
        self.assertEqual([o.status for o in report.outcomes], [SUCCEEDED, FAILED, SUCCEEDED])
        self.assertEqual(report.outcomes[1].error, "boom on b")
        self.assertEqual(report.failed_tables, ["b"])
        self.assertFalse(report.ok)
        self.assertEqual(report.exit_code, 1)
        self.assertTrue(any("b" in m and "boom" in m for m in self.logged("ERROR")))

    async def test_engine_returning_nothing_fails_only_that_job(self):
        service = self.service([SyncJobSpec("a"), SyncJobSpec("b")])
        service.engine = NoResultEngine(block_size=8, transfer_size=8)
        report = await service.run(credentials())

        self.assertEqual([c["source"].table for c in RecordingEngine.calls], ["a", "b"])
        self.assertEqual([o.status for o in report.outcomes], [FAILED, SUCCEEDED])
        self.assertEqual(report.failed_tables, ["a"])
        self.assertEqual(report.exit_code, 1)

    async def test_dry_run_by_default(self):
        await self.service([SyncJobSpec("a"), SyncJobSpec("b")]).run(credentials())

        self.assertEqual([c["dry_run"] for c in RecordingEngine.calls], [True, True])
        notices = self.logged("NOTICE")
        self.assertEqual(notices[0], "Dry run only. No data will be written to target.")
        self.assertEqual(notices.count("Dry run only. No data will be written to target."), 1)

    async def test_execute_disables_dry_run(self):
        await self.service([SyncJobSpec("a"), SyncJobSpec("b")], "--execute", "--delete").run(credentials())

        self.assertEqual([c["dry_run"] for c in RecordingEngine.calls], [False, False])
        self.assertEqual([c["delete"] for c in RecordingEngine.calls], [True, True])
        self.assertNotIn("Dry run only. No data will be written to target.", self.logged("NOTICE"))

    async def test_result_is_logged_as_json(self):
        await self.service([SyncJobSpec("a")]).run(credentials())
        self.assertIn('"source": "a"', self.logged("NOTICE")[1])

    async def test_column_configurations(self):
        jobs = [SyncJobSpec("content", ignore_columns=frozenset({"views", "plays"})), SyncJobSpec("genre")]
        await self.service(jobs).run(credentials())

        content, genre = RecordingEngine.calls
        self.assertEqual(content["transfer"].include, frozenset())
        self.assertEqual(content["transfer"].exclude, {"views", "plays"})
        self.assertEqual(content["comparison"].include, frozenset())
        self.assertEqual(content["comparison"].exclude, frozenset())
        self.assertEqual(genre["transfer"].exclude, frozenset())

    async def test_global_column_options(self):
        jobs = [SyncJobSpec("content", ignore_columns=frozenset({"views"}))]
        await self.service(jobs, "-c", "title", "-c", "views", "-i", "secret",
                           "-C", "title", "-I", "updated_at").run(credentials())

        call = RecordingEngine.calls[0]
        self.assertEqual(call["transfer"].include, {"title"})
        self.assertEqual(call["transfer"].exclude, {"views", "secret"})
        self.assertEqual(call["comparison"].include, {"title"})
        self.assertEqual(call["comparison"].exclude, {"updated_at"})

    async def test_transfer_size_override(self):
        jobs = load_job_catalogue()
        await self.service(jobs, "--transfer-size=32").run(credentials())

        sizes = {c["source"].table: c["transfer_size"] for c in RecordingEngine.calls}
        self.assertEqual(sizes["synopsis"], 8)
        self.assertEqual(sizes["content"], 32)
        self.assertEqual(sizes["tags"], 32)

    async def test_block_size_override(self):
        jobs = [SyncJobSpec("a", block_size=16), SyncJobSpec("b")]
        await self.service(jobs, "-b", "512").run(credentials())
        self.assertEqual([c["block_size"] for c in RecordingEngine.calls], [16, 512])

    async def test_table_handles(self):
        jobs = [SyncJobSpec("a", target_table="a_copy")]
        await self.service(jobs, "-sd", "shop", "-td", "shop_copy", "--where", "id > 10").run(credentials())

        call = RecordingEngine.calls[0]
        self.assertEqual(call["source"].name, "shop.a")
        self.assertEqual(call["target"].name, "shop_copy.a_copy")
        self.assertEqual(call["target"].qualified_name, "`shop_copy`.`a_copy`")
        self.assertEqual(call["source"].connector.host, "src-host")
        self.assertEqual(call["target"].connector.host, "dst-host")
        self.assertEqual(call["source"].where, "id > 10")
        self.assertEqual(call["source"].get_primary_key(), ["id"])

    async def test_connections_use_resolved_credentials(self):
        service = self.service([SyncJobSpec("a")], "--charset", "latin1")
        await service.run(credentials("alice", "pw"))

        self.create_connection.assert_any_call("src-host", "alice", "pw", "latin1")
        self.create_connection.assert_any_call("dst-host", "alice", "pw", "latin1")
        self.assertTrue(service.source_connector.disconnected)
        self.assertTrue(service.target_connector.disconnected)

    async def test_connection_failure_aborts_before_jobs(self):
        self.create_connection.side_effect = DbSyncConnectionError("src-host", "access denied")
        with self.assertRaises(DbSyncConnectionError):
            await self.service([SyncJobSpec("a")]).run(credentials())
        self.assertEqual(RecordingEngine.calls, [])

    async def test_timeout_skips_remaining_jobs(self):
        RecordingEngine.block_on = {"b"}
        jobs = [SyncJobSpec("a"), SyncJobSpec("b"), SyncJobSpec("c")]
        try:
            report = await self.service(jobs, "--job-timeout", "0.2").run(credentials())
        finally:
            RecordingEngine.release.set()

        self.assertEqual([o.status for o in report.outcomes], [SUCCEEDED, FAILED, SKIPPED])
        self.assertEqual(report.failed_tables, ["b"])
        self.assertEqual(report.skipped_tables, ["c"])
        self.assertEqual([c["source"].table for c in RecordingEngine.calls], ["a", "b"])
        self.assertEqual(report.exit_code, 1)
        self.assertTrue(any("failed: b; skipped: c" in m for m in self.logged("ERROR")))


class TestSelectJobs(unittest.TestCase):
    def setUp(self):
        self.catalogue = load_job_catalogue()

    def test_catalogue_mode(self):
        config, jobs = select_jobs(make_config(), self.catalogue)
        self.assertEqual(jobs, self.catalogue)
        self.assertIsNone(config.source_database)

    def test_single_table_reuses_overrides(self):
        config, jobs = select_jobs(make_config("shop.synopsis", "--target.table", "synopsis_v2"), self.catalogue)
        self.assertEqual(len(jobs), 1)
        self.assertEqual(jobs[0].table_name, "synopsis")
        self.assertEqual(jobs[0].transfer_size, 8)
        self.assertEqual(jobs[0].target_table, "synopsis_v2")
        self.assertEqual(config.source_database, "shop")

    def test_single_table_not_in_catalogue(self):
        config, jobs = select_jobs(make_config("users", "-sd", "crm"), self.catalogue)
        self.assertEqual(jobs, [SyncJobSpec("users")])
        self.assertEqual(config.source_database, "crm")


if __name__ == '__main__':
    unittest.main()
