from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from affected.core.exceptions import PathResolutionError
from affected.graph.project_graph import ProjectGraph, ProjectGraphNode
from affected.schema.schema import DiagnosticKind, PredictionDiagnostic
from affected.utils.log_util import log, log_w
from affected.utils.path_util import PathUtil


class FootprintCollector:
    """プロジェクトごとのフットプリント(ビルドに関係するファイルの集合)を保持する

    - グラフの全ノードに対して空きスロットを1つずつ用意し、各スロットは1回だけ書き込む
    - パスはリポジトリルート基準の正規形で保持する
    - 書き込みが終わった後に ファイル => ノード の逆引きインデックスを作る
    """

    def __init__(self, graph: ProjectGraph, repository_path: str = "", ignore_case: bool | None = None):
        self.graph = graph
        self.repository_path = repository_path or graph.repository_path
        self.ignore_case = graph.ignore_case if ignore_case is None else ignore_case
        self._lock = threading.Lock()
        self._slots: dict[str, frozenset[str] | None] = {node.node_id: None for node in graph.nodes}
        self._index: dict[str, list[str]] | None = None

    def normalize(self, node: ProjectGraphNode, files: Iterable[str]) -> tuple[set[str], list[PredictionDiagnostic]]:
        """予測結果のパスを正規化する(スロットには書き込まない)"""
        normalized = set()
        diagnostics = []
        for file_path in files:
            try:
                normalized.add(PathUtil.canonicalize(file_path, self.repository_path, ignore_case=self.ignore_case))
            except PathResolutionError as e:
                log_w("skip predicted path %r of %s: %s", file_path, node.node_id, e.reason)
                diagnostics.append(
                    PredictionDiagnostic(
                        kind=DiagnosticKind.PATH_RESOLUTION_FAILURE,
                        node_id=node.node_id,
                        file_path=str(file_path),
                        message=e.reason,
                    )
                )
        return normalized, diagnostics

    def set_footprint(self, node: ProjectGraphNode, normalized_files: Iterable[str]) -> None:
        with self._lock:
            if node.node_id not in self._slots:
                msg = f"node is not part of the graph: {node.node_id}"
                raise ValueError(msg)
            if self._slots[node.node_id] is not None:
                msg = f"footprint already collected: {node.node_id}"
                raise ValueError(msg)
            self._slots[node.node_id] = frozenset(normalized_files)
            self._index = None
        log("set_footprint node_id= %s, files= %d", node.node_id, len(self._slots[node.node_id]))

    def add(self, node: ProjectGraphNode, files: Iterable[str]) -> list[PredictionDiagnostic]:
        normalized, diagnostics = self.normalize(node, files)
        self.set_footprint(node, normalized)
        return diagnostics

    def build_index(self) -> None:
        index: dict[str, list[str]] = {}
        with self._lock:
            for node_id, footprint in self._slots.items():  # グラフ順
                for file_path in footprint or ():
                    index.setdefault(file_path, []).append(node_id)
            self._index = index
        log("build_index files= %d", len(index))

    def nodes_referencing(self, canonical_file: str) -> list[ProjectGraphNode]:
        """正規化済みのファイルをフットプリントに含むノード(グラフ順)"""
        if self._index is None:
            self.build_index()
        return [self.graph.get_node(node_id) for node_id in self._index.get(canonical_file, [])]

    def footprint(self, node_id: str) -> frozenset[str]:
        return self._slots.get(node_id) or frozenset()

    def has_footprint(self, node_id: str) -> bool:
        return self._slots.get(node_id) is not None

    @property
    def footprints(self) -> Mapping[str, frozenset[str]]:
        return MappingProxyType({node_id: fp for node_id, fp in self._slots.items() if fp is not None})

    @property
    def is_complete(self) -> bool:
        return all(footprint is not None for footprint in self._slots.values())
