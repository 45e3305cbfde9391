import os
import tempfile
import unittest
from typing import Any
from unittest.mock import MagicMock, patch

from affected.graph.project_graph import ProjectGraph, ProjectGraphNode
from affected.prediction.footprint_collector import FootprintCollector
from affected.prediction.prediction_executor import PredictionExecutor
from affected.prediction.predictor_base import ProjectPredictorBase
from affected.prediction.predictor_registry import PredictorRegistry
from affected.schema.schema import ProjectDefinition


class MockManager:
    """複数のモックをmock_nameという名前でアクセスできるようにするクラス"""

    def __init__(self):
        self.mock_dict: dict[str, MagicMock] = {}

    def _set_mock(self, mock_name: str, mock_target: str, return_value: Any = None):
        # モックを生成してreturn_valueを設定
        instance = MagicMock()
        instance.return_value = return_value
        self.mock_dict[mock_name] = patch(mock_target, instance).start()

    def _get_mock(self, mock_name: str) -> None | MagicMock:
        return self.mock_dict.get(mock_name)

    def get_mock(self, mock_target: str) -> MagicMock:
        # 未登録なら作成して返す
        if mock_target not in self.mock_dict:
            self._set_mock(mock_target, mock_target)
        return self.mock_dict[mock_target]

    def get_mock_call_count(self, mock_name: str) -> int:
        return self._get_mock(mock_name).call_count


class StaticPredictor(ProjectPredictorBase):
    """テスト用: node_id(末尾一致) => ファイル集合 を返す予測器"""

    name = "Static"

    def __init__(self, files_by_project: dict[str, set[str]]):
        self.files_by_project = files_by_project

    def predict(self, node: ProjectGraphNode) -> set[str]:
        for project_suffix, files in self.files_by_project.items():
            if node.project_path.endswith(project_suffix):
                return set(files)
        return set()


class FailingPredictor(ProjectPredictorBase):
    name = "Failing"

    def predict(self, node: ProjectGraphNode) -> set[str]:
        msg = f"broken predictor for {node.project_path}"
        raise RuntimeError(msg)


class BaseTestCase(unittest.TestCase):
    """一時ディレクトリをリポジトリルートとして使うテストの基底クラス"""

    def setUp(self):
        self.mock_manager = MockManager()
        self._tmp_dir = tempfile.TemporaryDirectory()
        self.repo = os.path.realpath(self._tmp_dir.name).replace("\\", "/")

    def tearDown(self):
        # モックを停止
        patch.stopall()
        self._tmp_dir.cleanup()

    def path(self, *parts: str) -> str:
        return "/".join([self.repo, *parts])

    def write_file(self, relative_path: str, content: str = "") -> str:
        file_path = self.path(relative_path)
        os.makedirs(os.path.dirname(file_path), exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(content)
        return file_path

    def make_graph(self, *projects: ProjectDefinition, ignore_case: bool = False) -> ProjectGraph:
        graph = ProjectGraph(self.repo, ignore_case=ignore_case)
        for project in projects:
            graph.add_project(project)
        for project in projects:
            for reference in project.references:
                graph.add_reference(project.path, reference)
        return graph

    def make_collector(self, graph: ProjectGraph, files_by_project: dict[str, set[str]]) -> FootprintCollector:
        """StaticPredictorの結果をそのままフットプリントにしたコレクタを作る"""
        collector = FootprintCollector(graph)
        registry = PredictorRegistry([StaticPredictor(files_by_project)])
        PredictionExecutor(registry, max_workers=1, show_progress=False).predict(graph, collector)
        return collector

    def check_mock_call_count(self, mock_name: str, expected_count: int):
        self.assertEqual(self.mock_manager.get_mock_call_count(mock_name), expected_count, mock_name)
