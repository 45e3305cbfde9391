from __future__ import annotations

import glob
import os
from typing import TYPE_CHECKING

from affected.utils.log_util import log
from affected.utils.path_util import PathUtil

if TYPE_CHECKING:
    from affected.graph.project_graph import ProjectGraph, ProjectGraphNode

WILDCARD_CHARS = ("*", "?")


class PredictorBase:
    """フットプリント予測器の共通部分

    予測器はノードの静的な定義だけを見てファイルパスの集合を返す。
    共有状態を書き換えてはいけない(複数スレッドから同時に呼ばれる)。
    """

    name = ""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @staticmethod
    def expand_include(node: ProjectGraphNode, include: str) -> set[str]:
        """Include値を絶対パスに展開する(ワイルドカードはファイルシステムを見て展開)"""
        path = node.resolve(include)
        if not any(char in include for char in WILDCARD_CHARS):
            return {path}

        matched = set()
        for file_path in glob.iglob(path, recursive=True):
            if os.path.isfile(file_path):
                matched.add(PathUtil.to_forward_slashes(file_path))
        log("expand_include include= %s, matched= %d", include, len(matched))
        return matched


class ProjectPredictorBase(PredictorBase):
    """1ノードの定義だけから予測する予測器"""

    def predict(self, node: ProjectGraphNode) -> set[str]:
        raise NotImplementedError


class GraphPredictorBase(PredictorBase):
    """グラフ上の隣接ノードも参照して予測する予測器"""

    def predict(self, graph: ProjectGraph, node: ProjectGraphNode) -> set[str]:
        raise NotImplementedError
