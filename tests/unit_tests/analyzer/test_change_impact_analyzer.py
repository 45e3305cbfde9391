import os
import unittest

from affected.analyzer.change_impact_analyzer import ChangeImpactAnalyzer, resolve
from affected.prediction.footprint_collector import FootprintCollector
from affected.schema.schema import DiagnosticKind, ProjectDefinition
from tests.unit_tests.helper import BaseTestCase

EXCLUSIONS = ["Directory.Packages.props"]
MOCK_LOG_W = "affected.analyzer.change_impact_analyzer.log_w"


class TestChangeImpactAnalyzer(BaseTestCase):
    def setUp(self):
        super().setUp()
        self.graph = self.make_graph(
            ProjectDefinition(path="src/A/A.csproj"),
            ProjectDefinition(path="src/B/B.csproj"),
        )
        self.collector = self.make_collector(
            self.graph,
            {
                "src/A/A.csproj": {"src/A/file.cs", "Directory.Packages.props"},
                "src/B/B.csproj": {"src/B/file.cs", "src/A/file.cs"},
            },
        )
        self.node_a = self.graph.get_node(self.graph.node_id_for("src/A/A.csproj"))
        self.node_b = self.graph.get_node(self.graph.node_id_for("src/B/B.csproj"))
        self.analyzer = ChangeImpactAnalyzer(self.collector, EXCLUSIONS, working_dir=self.repo)

    def resolve(self, *changed_files: str) -> list:
        return list(self.analyzer.resolve(changed_files))

    # =============  scenarios  ==============

    def test_file_shared_by_two_projects(self):
        self.assertEqual(self.resolve(self.path("src/A/file.cs")), [self.node_a, self.node_b])

    def test_excluded_file(self):
        # Aのフットプリントに含まれていても除外ファイルは対象外
        self.assertEqual(self.resolve(self.path("Directory.Packages.props")), [])
        self.assertEqual(self.analyzer.excluded_files, [self.path("Directory.Packages.props")])
        self.assertEqual([d.kind for d in self.analyzer.diagnostics], [DiagnosticKind.EXCLUDED_FILE])

    def test_unrelated_file(self):
        self.assertEqual(self.resolve(self.path("src/C/unrelated.cs")), [])
        self.assertEqual(self.analyzer.diagnostics, [])

    def test_discovery_order_follows_changed_files(self):
        result = self.resolve(self.path("src/B/file.cs"), self.path("src/A/file.cs"))
        self.assertEqual(result, [self.node_b, self.node_a])

    # =============  properties  ==============

    def test_node_is_returned_once(self):
        result = self.resolve(self.path("src/B/file.cs"), self.path("src/A/file.cs"), self.path("src/B/file.cs"))
        self.assertEqual(result, [self.node_b, self.node_a])

    def test_relative_and_absolute_paths(self):
        relative = self.resolve("src/B/file.cs")
        absolute = self.resolve(self.path("src/B/file.cs"))
        backslash = self.resolve("src\\B\\file.cs")
        self.assertEqual(relative, [self.node_b])
        self.assertEqual(relative, absolute)
        self.assertEqual(relative, backslash)

    def test_relative_path_uses_current_directory_by_default(self):
        analyzer = ChangeImpactAnalyzer(self.collector, EXCLUSIONS)
        os.makedirs(self.path("src"), exist_ok=True)
        cwd = os.getcwd()
        os.chdir(self.path("src"))
        try:
            result = list(analyzer.resolve(["B/file.cs"]))
        finally:
            os.chdir(cwd)
        self.assertEqual(result, [self.node_b])

    def test_idempotent(self):
        changed_files = [self.path("src/A/file.cs"), self.path("src/B/file.cs")]
        self.assertEqual(self.resolve(*changed_files), self.resolve(*changed_files))

    def test_lazy_and_early_stop(self):
        seen = []

        def changed_files():
            for file_path in [self.path("src/A/file.cs"), self.path("src/B/file.cs")]:
                seen.append(file_path)
                yield file_path

        iterator = self.analyzer.resolve(changed_files())
        self.assertEqual(seen, [])
        self.assertEqual(next(iterator), self.node_a)
        iterator.close()
        self.assertEqual(seen, [self.path("src/A/file.cs")])

    def test_malformed_changed_file_is_skipped(self):
        log_w = self.mock_manager.get_mock(MOCK_LOG_W)
        result = self.resolve("", "bad\0path", self.path("src/B/file.cs"))
        self.assertEqual(result, [self.node_b])
        kinds = [d.kind for d in self.analyzer.diagnostics]
        self.assertEqual(kinds, [DiagnosticKind.PATH_RESOLUTION_FAILURE] * 2)
        self.assertEqual(log_w.call_count, 2)

    def test_no_exclusions(self):
        analyzer = ChangeImpactAnalyzer(self.collector, [], working_dir=self.repo)
        self.assertEqual(list(analyzer.resolve(["Directory.Packages.props"])), [self.node_a])

    def test_default_exclusions_from_settings(self):
        analyzer = ChangeImpactAnalyzer(self.collector, working_dir=self.repo)
        self.assertIn("Directory.Packages.props", analyzer.exclusions)

    def test_ignore_case(self):
        graph = self.make_graph(ProjectDefinition(path="src/A/A.csproj"), ignore_case=True)
        collector = self.make_collector(graph, {"src/A/A.csproj": {"src/A/File.cs"}})
        analyzer = ChangeImpactAnalyzer(collector, ["directory.packages.props"], working_dir=self.repo)
        self.assertEqual(list(analyzer.resolve(["SRC\\a\\FILE.CS"])), graph.nodes)
        self.assertEqual(list(analyzer.resolve(["Directory.Packages.PROPS"])), [])

    def test_missing_footprint(self):
        log_w = self.mock_manager.get_mock(MOCK_LOG_W)
        collector = FootprintCollector(self.graph)
        collector.add(self.node_b, ["src/B/file.cs"])
        analyzer = ChangeImpactAnalyzer(collector, EXCLUSIONS, working_dir=self.repo)
        self.assertEqual(list(analyzer.resolve([self.path("src/B/file.cs")])), [self.node_b])
        self.assertEqual(
            [(d.kind, d.node_id) for d in analyzer.diagnostics],
            [(DiagnosticKind.MISSING_FOOTPRINT, self.node_a.node_id)],
        )
        self.assertEqual(log_w.call_count, 1)

    def test_resolve_function(self):
        result = list(resolve([self.path("src/A/file.cs")], self.collector, EXCLUSIONS))
        self.assertEqual(result, [self.node_a, self.node_b])

    def test_project_in_unreferenced_cycle(self):
        graph = self.make_graph(
            ProjectDefinition(path="src/A/A.csproj"),
            ProjectDefinition(path="src/B/B.csproj", references=["src/C/C.csproj"]),
            ProjectDefinition(path="src/C/C.csproj", references=["src/B/B.csproj"]),
        )
        collector = self.make_collector(graph, {"src/B/B.csproj": {"src/B/file.cs"}})
        self.assertTrue(collector.is_complete)
        self.assertEqual(len(collector.footprints), 3)
        analyzer = ChangeImpactAnalyzer(collector, EXCLUSIONS, working_dir=self.repo)
        result = list(analyzer.resolve([self.path("src/B/file.cs")]))
        self.assertEqual(result, [graph.get_node(graph.node_id_for("src/B/B.csproj"))])


if __name__ == "__main__":
    unittest.main()
