from __future__ import annotations

from collections.abc import Iterable, Iterator

from affected.analyzer.change_impact_analyzer import ChangeImpactAnalyzer
from affected.graph.project_graph import ProjectGraph, ProjectGraphNode
from affected.prediction.footprint_collector import FootprintCollector
from affected.prediction.prediction_executor import PredictionExecutor
from affected.prediction.predictor_registry import PredictorRegistry, default_registry
from affected.schema.schema import DiscoveryOptions, PredictionDiagnostic
from affected.utils.log_util import log


class ChangedProjectsProviderBase:
    def get_referencing_projects(self, files: Iterable[str]) -> Iterator[ProjectGraphNode]:
        """変更ファイルを参照しているプロジェクトを返す"""
        raise NotImplementedError


class PredictionChangedProjectsProvider(ChangedProjectsProviderBase):
    """フットプリント予測を使って変更ファイルからプロジェクトを特定する

    グラフは変化しない前提なので、フットプリントは初回呼び出し時に1回だけ作る。
    """

    def __init__(
        self,
        graph: ProjectGraph,
        options: DiscoveryOptions | None = None,
        registry: PredictorRegistry | None = None,
    ):
        self.graph = graph
        self.options = options or DiscoveryOptions()
        registry = registry if registry is not None else default_registry()
        if self.options.predictors:
            registry = registry.select(self.options.predictors)
        self.executor = PredictionExecutor(
            registry, self.options.max_workers, show_progress=self.options.show_progress
        )
        self._collector: FootprintCollector | None = None
        self.prediction_diagnostics: list[PredictionDiagnostic] = []
        self._analyzer: ChangeImpactAnalyzer | None = None

    @property
    def collector(self) -> FootprintCollector:
        if self._collector is None:
            collector = FootprintCollector(self.graph, self.graph.repository_path, self.options.ignore_case)
            self.prediction_diagnostics = self.executor.predict(self.graph, collector)
            self._collector = collector
            log("collector ready nodes= %d", len(collector.footprints))
        return self._collector

    def get_referencing_projects(self, files: Iterable[str]) -> Iterator[ProjectGraphNode]:
        self._analyzer = ChangeImpactAnalyzer(
            self.collector, self.options.exclusions, self.options.working_dir, self.options.ignore_case
        )
        return self._analyzer.resolve(files)

    @property
    def diagnostics(self) -> list[PredictionDiagnostic]:
        """グラフ読み込み・予測・直近の解決で出た診断情報"""
        resolve_diagnostics = self._analyzer.diagnostics if self._analyzer else []
        return [*self.graph.diagnostics, *self.prediction_diagnostics, *resolve_diagnostics]

    @property
    def excluded_files(self) -> list[str]:
        return self._analyzer.excluded_files if self._analyzer else []
