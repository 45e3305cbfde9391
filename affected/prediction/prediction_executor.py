from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor, as_completed

from tqdm import tqdm

from affected import settings
from affected.graph.project_graph import ProjectGraph, ProjectGraphNode
from affected.prediction.footprint_collector import FootprintCollector
from affected.prediction.predictor_registry import PredictorRegistry, default_registry
from affected.schema.schema import DiagnosticKind, PredictionDiagnostic
from affected.utils.log_util import log, log_inout, log_progress, log_w


class PredictionExecutor:
    """登録された全予測器をグラフの全ノードに適用し、結果をFootprintCollectorに集める

    予測器はノード単位で独立しているのでノードごとにスレッドで並列実行し、
    コレクタへの書き込みは呼び出し元スレッドで1ノード1回だけ行う。
    """

    def __init__(
        self,
        registry: PredictorRegistry | None = None,
        max_workers: int = settings.max_workers,
        *,
        show_progress: bool = settings.show_progress,
    ):
        self.registry = registry if registry is not None else default_registry()
        self.max_workers = max_workers
        self.show_progress = show_progress

    @log_inout
    def predict(self, graph: ProjectGraph, collector: FootprintCollector) -> list[PredictionDiagnostic]:
        nodes = [node for node in graph.nodes if not collector.has_footprint(node.node_id)]
        diagnostics: list[PredictionDiagnostic] = []

        with tqdm(
            total=len(nodes), unit="projects", file=sys.stderr, desc="predict", disable=not self.show_progress
        ) as progress:
            if self.max_workers <= 1:
                for node in nodes:
                    diagnostics += self._merge(collector, *self._predict_node(graph, collector, node))
                    progress.update(1)
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    futures = [executor.submit(self._predict_node, graph, collector, node) for node in nodes]
                    for future in as_completed(futures):
                        diagnostics += self._merge(collector, *future.result())
                        progress.update(1)
            log_progress(progress)

        collector.build_index()
        log("predict nodes= %d, diagnostics= %d", len(nodes), len(diagnostics))
        return diagnostics

    def _predict_node(
        self, graph: ProjectGraph, collector: FootprintCollector, node: ProjectGraphNode
    ) -> tuple[ProjectGraphNode, set[str], list[PredictionDiagnostic]]:
        """1ノード分の予測(ワーカースレッドで実行される)"""
        files: set[str] = set()
        diagnostics = []

        for name, predictor in self.registry.project_predictors:
            try:
                files |= set(predictor.predict(node))
            except Exception as e:  # noqa: BLE001
                diagnostics.append(self._failure(name, node, e))

        for name, predictor in self.registry.graph_predictors:
            try:
                files |= set(predictor.predict(graph, node))
            except Exception as e:  # noqa: BLE001
                diagnostics.append(self._failure(name, node, e))

        normalized, path_diagnostics = collector.normalize(node, files)
        return node, normalized, diagnostics + path_diagnostics

    @staticmethod
    def _merge(
        collector: FootprintCollector,
        node: ProjectGraphNode,
        normalized: set[str],
        diagnostics: list[PredictionDiagnostic],
    ) -> list[PredictionDiagnostic]:
        collector.set_footprint(node, normalized)
        return diagnostics

    @staticmethod
    def _failure(name: str, node: ProjectGraphNode, e: Exception) -> PredictionDiagnostic:
        # フットプリントが不完全になるだけで全体は止めない
        log_w("predictor %s failed for %s: %s", name, node.node_id, e)
        return PredictionDiagnostic(
            kind=DiagnosticKind.PREDICTOR_FAILURE,
            node_id=node.node_id,
            predictor=name,
            message=f"{type(e).__name__}: {e}",
        )
