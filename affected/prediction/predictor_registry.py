from __future__ import annotations

from collections.abc import Iterable

from affected.prediction.predictor_base import GraphPredictorBase, PredictorBase, ProjectPredictorBase
from affected.prediction.predictors import builtin_predictors
from affected.utils.log_util import log


class PredictorRegistry:
    """予測器名 => 予測器 の対応表

    起動時に登録しておき、PredictionExecutorはここに登録された予測器を全て実行する。
    """

    def __init__(self, predictors: Iterable[PredictorBase] = ()):
        self._predictors: dict[str, PredictorBase] = {}
        for predictor in predictors:
            self.register(predictor)

    def register(self, predictor: PredictorBase, name: str = "", *, replace: bool = False) -> None:
        if not isinstance(predictor, (ProjectPredictorBase, GraphPredictorBase)):
            msg = f"not a predictor: {predictor!r}"
            raise TypeError(msg)
        name = name or predictor.name or type(predictor).__name__
        if name in self._predictors and not replace:
            msg = f"predictor already registered: {name}"
            raise ValueError(msg)
        self._predictors[name] = predictor
        log("register predictor= %s", name)

    def unregister(self, name: str) -> None:
        del self._predictors[name]

    def get(self, name: str) -> PredictorBase:
        return self._predictors[name]

    def select(self, names: Iterable[str]) -> PredictorRegistry:
        """指定した名前の予測器だけを持つレジストリを返す(未登録の名前はKeyError)"""
        selected = PredictorRegistry()
        for name in names:
            selected.register(self.get(name), name)
        return selected

    @property
    def names(self) -> list[str]:
        return list(self._predictors)

    @property
    def project_predictors(self) -> list[tuple[str, ProjectPredictorBase]]:
        return [(name, p) for name, p in self._predictors.items() if isinstance(p, ProjectPredictorBase)]

    @property
    def graph_predictors(self) -> list[tuple[str, GraphPredictorBase]]:
        return [(name, p) for name, p in self._predictors.items() if isinstance(p, GraphPredictorBase)]

    def __len__(self) -> int:
        return len(self._predictors)

    def __contains__(self, name: object) -> bool:
        return name in self._predictors


def default_registry() -> PredictorRegistry:
    return PredictorRegistry(builtin_predictors())
