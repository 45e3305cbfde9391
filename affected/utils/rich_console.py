from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from affected.graph.project_graph import ProjectGraphNode
from affected.schema.schema import PredictionDiagnostic
from affected.utils.path_util import PathUtil

# 結果出力用のConsoleオブジェクト
console = Console(width=120)
# 診断情報など結果以外の出力用(stdoutを結果だけにする)
err_console = Console(width=120, stderr=True)


def prepare_table_common(title: str, title_style: str = "bold") -> Table:
    table = Table(title=title, title_style=title_style)
    table.add_column("項目", style="cyan", no_wrap=True)

    # ローカルマシンに設定されているタイムゾーンを取得
    local_tz = datetime.now().astimezone().tzinfo
    table.caption = f"取得日時: {datetime.now(tz=local_tz).strftime('%Y-%m-%d %H:%M:%S')}"
    table.caption_justify = "left"
    return table


def display_info_full(any_info: BaseModel, title: str = "詳細", table_title: str = ""):
    """pydanticモデルの内容を整形して表示します。"""
    table = prepare_table_common(table_title)
    table.add_column("値")

    for key, value in any_info.model_dump().items():
        table.add_row(key, str(value))

    err_console.print(Panel(table, title=title, border_style="white"))


def display_affected_projects(nodes: Iterable[ProjectGraphNode], repository_path: str) -> int:
    """影響を受けるプロジェクトを表で表示し、件数を返します。"""
    table = prepare_table_common("Affected projects")
    table.columns[0].header = "#"
    table.add_column("プロジェクト", style="green")

    count = 0
    for count, node in enumerate(nodes, start=1):
        table.add_row(str(count), PathUtil.relative_to(node.project_path, repository_path))

    console.print(table)
    return count


def display_diagnostics(diagnostics: list[PredictionDiagnostic]) -> None:
    """診断情報をまとめて表示します(なければ何もしない)"""
    if not diagnostics:
        return
    lines = [str(diagnostic) for diagnostic in diagnostics]
    err_console.print(Panel("\n".join(lines), title=f"diagnostics ({len(lines)})", border_style="yellow"))
