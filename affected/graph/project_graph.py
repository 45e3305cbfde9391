from __future__ import annotations

import os
import posixpath
from collections.abc import Iterator
from dataclasses import dataclass, field

import networkx as nx
from pydantic import ValidationError

from affected import settings
from affected.core.exceptions import GraphLoadError, PathResolutionError, RepositoryRootError
from affected.schema.schema import (
    CopyTaskDefinition,
    DiagnosticKind,
    GraphDefinition,
    PredictionDiagnostic,
    ProjectDefinition,
)
from affected.utils.log_util import log, log_w
from affected.utils.path_util import PathUtil


@dataclass(eq=False)
class ProjectGraphNode:
    """グラフ上の1プロジェクト(ビルド単位)

    node_id は大文字小文字/区切り文字を正規化した定義ファイルのパスで、
    集合や辞書のキーとしてはこれだけを使う。
    """

    node_id: str
    project_path: str
    properties: dict[str, str] = field(default_factory=dict)
    items: dict[str, list[str]] = field(default_factory=dict)
    imports: list[str] = field(default_factory=list)
    copy_tasks: list[CopyTaskDefinition] = field(default_factory=list)

    @property
    def project_dir(self) -> str:
        return posixpath.dirname(self.project_path)

    def resolve(self, path: str) -> str:
        """プロジェクトディレクトリ基準でパスを絶対パスにする(大文字小文字はそのまま)"""
        return PathUtil.canonicalize(path, self.project_dir)

    def get_items(self, item_type: str) -> list[str]:
        """アイテムのInclude値を ; で分割して返す"""
        includes = []
        for include in self.items.get(item_type, []):
            includes.extend(part.strip() for part in include.split(";") if part.strip())
        return includes

    def get_property(self, name: str) -> str:
        return self.properties.get(name, "").strip()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectGraphNode):
            return NotImplemented
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)

    def __repr__(self) -> str:
        return f"ProjectGraphNode({self.project_path!r})"


class ProjectGraph:
    """プロジェクト間の参照関係(networkx.DiGraph, 参照元 -> 参照先)"""

    def __init__(self, repository_path: str, *, ignore_case: bool = settings.ignore_case):
        if not repository_path or not os.path.isdir(repository_path):
            msg = f"repository root is not a directory: {repository_path!r}"
            raise RepositoryRootError(msg)
        self.repository_path = PathUtil.to_forward_slashes(os.path.abspath(repository_path))
        self.ignore_case = ignore_case
        self.nx_graph = nx.DiGraph()
        self.entry_points: list[str] = []
        self.diagnostics: list[PredictionDiagnostic] = []

    def node_id_for(self, path: str) -> str:
        return PathUtil.canonicalize(path, self.repository_path, ignore_case=self.ignore_case)

    def add_project(self, definition: ProjectDefinition) -> ProjectGraphNode:
        project_path = PathUtil.canonicalize(definition.path, self.repository_path)
        node_id = self.node_id_for(project_path)
        if node_id in self.nx_graph:
            msg = f"duplicate project: {definition.path}"
            raise ValueError(msg)

        node = ProjectGraphNode(
            node_id=node_id,
            project_path=project_path,
            properties=dict(definition.properties),
            items={item_type: list(includes) for item_type, includes in definition.items.items()},
            copy_tasks=list(definition.copy_tasks),
        )
        node.imports = [node.resolve(import_path) for import_path in definition.imports]
        self.nx_graph.add_node(node_id, node=node)
        log("add_project node_id= %s", node_id)
        return node

    def add_reference(self, from_path: str, to_path: str) -> None:
        from_id = self.node_id_for(from_path)
        to_id = self.node_id_for(to_path)
        for node_id in (from_id, to_id):
            if node_id not in self.nx_graph:
                msg = f"unknown project: {node_id}"
                raise KeyError(msg)
        self.nx_graph.add_edge(from_id, to_id)

    def add_entry_point(self, path: str) -> None:
        node_id = self.node_id_for(path)
        if node_id not in self.nx_graph:
            msg = f"unknown project: {node_id}"
            raise KeyError(msg)
        if node_id not in self.entry_points:
            self.entry_points.append(node_id)

    @property
    def roots(self) -> list[str]:
        if self.entry_points:
            return list(self.entry_points)
        # どこからも参照されない強連結成分ごとに、追加順で先頭のノードをルートにする
        # 参照されない循環(B<->C)も拾うので全ノードが到達可能になる
        order = {node_id: index for index, node_id in enumerate(self.nx_graph.nodes)}
        condensed = nx.condensation(self.nx_graph)
        roots = [
            min(condensed.nodes[component]["members"], key=order.__getitem__)
            for component, degree in condensed.in_degree()
            if degree == 0
        ]
        return sorted(roots, key=order.__getitem__)

    @property
    def nodes(self) -> list[ProjectGraphNode]:
        """ルートから到達可能なノード(追加順)"""
        reachable: set[str] = set()
        for root in self.roots:
            reachable.add(root)
            reachable |= nx.descendants(self.nx_graph, root)
        return [data["node"] for node_id, data in self.nx_graph.nodes(data=True) if node_id in reachable]

    def get_node(self, node_id: str) -> ProjectGraphNode | None:
        if node_id not in self.nx_graph:
            return None
        return self.nx_graph.nodes[node_id]["node"]

    def get_references(self, node: ProjectGraphNode) -> list[ProjectGraphNode]:
        """nodeが直接参照しているプロジェクト"""
        return [self.nx_graph.nodes[node_id]["node"] for node_id in self.nx_graph.successors(node.node_id)]

    def __len__(self) -> int:
        return len(self.nodes)

    def __iter__(self) -> Iterator[ProjectGraphNode]:
        return iter(self.nodes)

    def __contains__(self, node: object) -> bool:
        node_id = node.node_id if isinstance(node, ProjectGraphNode) else node
        return node_id in self.nx_graph

    @classmethod
    def from_definition(
        cls, definition: GraphDefinition, repository_path: str, *, ignore_case: bool = settings.ignore_case
    ) -> ProjectGraph:
        graph = cls(repository_path, ignore_case=ignore_case)
        for project in definition.projects:
            try:
                graph.add_project(project)
            except (PathResolutionError, ValueError) as e:
                msg = f"invalid project {project.path!r}: {e}"
                raise GraphLoadError(msg) from e

        # 参照はノードが揃ってから追加する
        for project in definition.projects:
            for reference in project.references:
                try:
                    graph.add_reference(project.path, reference)
                except (KeyError, PathResolutionError):
                    graph._report_unknown(reference, f"referenced by {project.path}")

        for entry_point in definition.entry_points:
            try:
                graph.add_entry_point(entry_point)
            except (KeyError, PathResolutionError):
                graph._report_unknown(entry_point, "entry point")
        return graph

    @classmethod
    def load(
        cls, graph_file_path: str, repository_path: str = "", *, ignore_case: bool = settings.ignore_case
    ) -> ProjectGraph:
        """JSONのグラフ定義を読み込む(repository_pathが空ならグラフ定義のあるディレクトリ)"""
        try:
            with open(graph_file_path, encoding="utf-8") as f:
                definition = GraphDefinition.model_validate_json(f.read())
        except (OSError, UnicodeDecodeError) as e:
            msg = f"cannot read graph definition {graph_file_path}: {e}"
            raise GraphLoadError(msg) from e
        except ValidationError as e:
            msg = f"invalid graph definition {graph_file_path}: {e}"
            raise GraphLoadError(msg) from e

        if not repository_path:
            repository_path = os.path.dirname(os.path.abspath(graph_file_path))
        return cls.from_definition(definition, repository_path, ignore_case=ignore_case)

    def _report_unknown(self, path: str, message: str) -> None:
        log_w("unknown project %s (%s)", path, message)
        self.diagnostics.append(
            PredictionDiagnostic(kind=DiagnosticKind.UNKNOWN_REFERENCE, file_path=path, message=message)
        )
