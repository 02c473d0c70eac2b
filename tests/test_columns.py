import unittest

from dbsync.sync.columns import ColumnConfiguration, build_column_configuration


class TestColumnConfiguration(unittest.TestCase):
    def test_empty_lists(self):
        config = build_column_configuration([], [])
        self.assertEqual(config.include, frozenset())
        self.assertEqual(config.exclude, frozenset())
        self.assertTrue(config.is_included("anything"))

    def test_job_ignore_columns(self):
        config = build_column_configuration([], ["views", "plays"])
        self.assertEqual(config.include, frozenset())
        self.assertEqual(config.exclude, {"views", "plays"})
        self.assertFalse(config.is_included("views"))
        self.assertTrue(config.is_included("title"))

    def test_exclusion_wins_over_inclusion(self):
        config = build_column_configuration(["title", "views"], ["views"])
        self.assertEqual(config.include, {"title"})
        self.assertTrue(config.is_included("title"))
        self.assertFalse(config.is_included("views"))
        self.assertFalse(config.is_included("plays"))

    def test_fully_excluded_include_list_stays_restricted(self):
        config = build_column_configuration(["views"], ["views"])
        self.assertEqual(config.include, frozenset())
        self.assertFalse(config.is_included("title"))
        self.assertEqual(config.resolve(["id", "title", "views"], ["id"]), ["id"])

    def test_resolve_keeps_primary_key_and_order(self):
        config = build_column_configuration(["title"], ["id"])
        self.assertEqual(config.resolve(["id", "views", "title"], primary_key=["id"]), ["id", "title"])

    def test_cleans_names(self):
        config = build_column_configuration([" title ", "", None, "title"], "views")
        self.assertEqual(config.include, {"title"})
        self.assertEqual(config.exclude, {"views"})

    def test_none_lists(self):
        self.assertEqual(build_column_configuration(None, None), ColumnConfiguration())

    def test_to_dict(self):
        config = build_column_configuration(["b", "a"], ["c"])
        self.assertEqual(config.to_dict(), {"include": ["a", "b"], "exclude": ["c"]})


if __name__ == '__main__':
    unittest.main()
