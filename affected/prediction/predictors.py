from __future__ import annotations

from typing import TYPE_CHECKING

from affected.prediction.predictor_base import GraphPredictorBase, ProjectPredictorBase

if TYPE_CHECKING:
    from affected.graph.project_graph import ProjectGraph, ProjectGraphNode


class ProjectFileAndImportsPredictor(ProjectPredictorBase):
    """プロジェクト定義ファイルとインポートしている定義ファイル"""

    name = "ProjectFileAndImports"

    def predict(self, node: ProjectGraphNode) -> set[str]:
        return {node.project_path, *node.imports}


class ProjectFileAndImportsGraphPredictor(GraphPredictorBase):
    """直接参照しているプロジェクトの定義ファイルとインポート"""

    name = "ProjectFileAndImportsGraph"

    def predict(self, graph: ProjectGraph, node: ProjectGraphNode) -> set[str]:
        files = set()
        for reference in graph.get_references(node):
            files.add(reference.project_path)
            files.update(reference.imports)
        return files


class ItemsPredictor(ProjectPredictorBase):
    """指定したアイテム種別のInclude値"""

    def __init__(self, item_type: str):
        self.item_type = item_type
        self.name = f"{item_type}Items"

    def predict(self, node: ProjectGraphNode) -> set[str]:
        files = set()
        for include in node.get_items(self.item_type):
            files |= self.expand_include(node, include)
        return files


class CopyTaskPredictor(ProjectPredictorBase):
    """コピータスクのコピー元ファイル"""

    name = "CopyTask"

    def predict(self, node: ProjectGraphNode) -> set[str]:
        files = set()
        for copy_task in node.copy_tasks:
            for source_file in copy_task.source_files:
                files |= self.expand_include(node, source_file)
        return files


class PropertyFilePredictor(ProjectPredictorBase):
    """プロパティ値で指定されたファイル(未設定なら何も返さない)"""

    def __init__(self, property_name: str):
        self.property_name = property_name
        self.name = property_name

    def predict(self, node: ProjectGraphNode) -> set[str]:
        value = node.get_property(self.property_name)
        if not value:
            return set()
        return {node.resolve(value)}


BUILTIN_ITEM_TYPES = [
    "Compile",
    "Content",
    "None",
    "EmbeddedResource",
    "EditorConfigFiles",
    "AdditionalFiles",
    "Analyzer",
]

BUILTIN_FILE_PROPERTIES = [
    "CodeAnalysisRuleSet",
    "AssemblyOriginatorKeyFile",
    "ApplicationIcon",
]


def builtin_predictors() -> list[ProjectPredictorBase | GraphPredictorBase]:
    predictors: list[ProjectPredictorBase | GraphPredictorBase] = [
        ProjectFileAndImportsPredictor(),
        ProjectFileAndImportsGraphPredictor(),
        CopyTaskPredictor(),
    ]
    predictors.extend(ItemsPredictor(item_type) for item_type in BUILTIN_ITEM_TYPES)
    predictors.extend(PropertyFilePredictor(property_name) for property_name in BUILTIN_FILE_PROPERTIES)
    return predictors
