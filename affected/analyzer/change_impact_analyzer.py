from __future__ import annotations

import os
from collections.abc import Iterable, Iterator

from affected import settings
from affected.core.exceptions import PathResolutionError
from affected.graph.project_graph import ProjectGraphNode
from affected.prediction.footprint_collector import FootprintCollector
from affected.schema.schema import DiagnosticKind, PredictionDiagnostic
from affected.utils.log_util import log, log_w
from affected.utils.path_util import PathUtil


class ChangeImpactAnalyzer:
    """変更ファイルのリストから影響を受けるプロジェクトを特定する"""

    def __init__(
        self,
        collector: FootprintCollector,
        exclusions: Iterable[str] | None = None,
        working_dir: str = "",
        ignore_case: bool | None = None,
    ):
        self.collector = collector
        self.exclusions = list(settings.exclusions) if exclusions is None else list(exclusions)
        self.working_dir = working_dir
        self.ignore_case = collector.ignore_case if ignore_case is None else ignore_case
        self.diagnostics: list[PredictionDiagnostic] = []
        self.excluded_files: list[str] = []

    def resolve(self, changed_files: Iterable[str]) -> Iterator[ProjectGraphNode]:
        """changed_filesのどれかをフットプリントに含むノードを、最初にマッチした順に1回ずつ返す

        ジェネレータなので呼び出し側は途中で読むのをやめて良い。
        """
        self.diagnostics = []
        self.excluded_files = []
        self._check_missing_footprints()
        working_dir = self.working_dir or os.getcwd()

        has_returned: set[str] = set()
        for file_path in changed_files:
            if PathUtil.is_excluded(file_path, self.exclusions, ignore_case=self.ignore_case):
                # 除外ファイルは別の仕組みで検出する
                log("excluded file_path= %s", file_path)
                self.excluded_files.append(str(file_path))
                self.diagnostics.append(
                    PredictionDiagnostic(kind=DiagnosticKind.EXCLUDED_FILE, file_path=str(file_path))
                )
                continue

            try:
                canonical = PathUtil.canonicalize(file_path, working_dir, ignore_case=self.ignore_case)
            except PathResolutionError as e:
                log_w("skip changed file %r: %s", file_path, e.reason)
                self.diagnostics.append(
                    PredictionDiagnostic(
                        kind=DiagnosticKind.PATH_RESOLUTION_FAILURE, file_path=str(file_path), message=e.reason
                    )
                )
                continue

            for node in self.collector.nodes_referencing(canonical):
                if node.node_id in has_returned:
                    continue
                has_returned.add(node.node_id)
                log("affected node= %s (by %s)", node.node_id, canonical)
                yield node

    def _check_missing_footprints(self) -> None:
        for node in self.collector.graph.nodes:
            if not self.collector.has_footprint(node.node_id):
                log_w("no footprint for %s, it cannot match any changed file", node.node_id)
                self.diagnostics.append(
                    PredictionDiagnostic(kind=DiagnosticKind.MISSING_FOOTPRINT, node_id=node.node_id)
                )


def resolve(
    changed_files: Iterable[str],
    collector: FootprintCollector,
    exclusions: Iterable[str] | None = None,
    working_dir: str = "",
) -> Iterator[ProjectGraphNode]:
    return ChangeImpactAnalyzer(collector, exclusions, working_dir).resolve(changed_files)
