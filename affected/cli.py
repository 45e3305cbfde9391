import argparse
import json
import sys

import affected
from affected import settings
from affected.analyzer.changed_projects_provider import PredictionChangedProjectsProvider
from affected.core.exceptions import AffectedError
from affected.graph.project_graph import ProjectGraph
from affected.prediction.predictor_registry import default_registry
from affected.schema.schema import AffectedParams, OutputFormat
from affected.utils.log_util import log, log_e
from affected.utils.path_util import PathUtil
from affected.utils.rich_console import display_affected_projects, display_diagnostics, display_info_full

EXIT_SUCCESS = 0
EXIT_FATAL = 2


def main() -> None:
    """メイン処理(args前処理、パラメータ設定)"""
    log("")
    log("========================================")
    log("||         affected cli start         ||")
    log("========================================")
    parser = argparse.ArgumentParser(
        description="変更ファイルの一覧から影響を受けるプロジェクトを特定します",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("files", help="変更ファイルのパス(絶対パスまたはカレントディレクトリからの相対パス)", nargs="*")
    parser.add_argument("-g", "--graph", help="プロジェクトグラフ定義(JSON)のパス", default="")
    parser.add_argument("-r", "--repository-path", help="リポジトリルート(省略時は設定値)", default="")
    parser.add_argument(
        "-c", "--changed-files-from", help="変更ファイル一覧を1行1ファイルで読み込む(- は標準入力)", default=""
    )
    parser.add_argument("-e", "--exclude", help="除外するファイル名の末尾(複数指定可)", action="append", default=[])
    parser.add_argument("--no-default-exclusions", help="既定の除外設定を使わない", action="store_true")
    parser.add_argument("-p", "--predictors", help="使用する予測器名(カンマ区切り, 省略時は全て)", default="")
    parser.add_argument("-w", "--max-workers", help="予測の並列数(0なら設定値)", type=int, default=0)
    parser.add_argument(
        "-f",
        "--format",
        type=OutputFormat,
        choices=list(OutputFormat),
        help=OutputFormat.get_description(),
        default=OutputFormat.TEXT,
    )
    parser.add_argument("--list-predictors", action="store_true", help="登録されている予測器の一覧を表示")
    parser.add_argument("-v", "--version", action="store_true", help="バージョン情報を表示")
    args = parser.parse_args()

    if args.version:
        print(f"affected {affected.__version__}")
        sys.exit(EXIT_SUCCESS)

    if args.list_predictors:
        for name in default_registry().names:
            print(name)
        sys.exit(EXIT_SUCCESS)

    if not args.graph:
        parser.print_usage()
        print("--graph を指定してください")
        sys.exit(EXIT_FATAL)

    params = AffectedParams()
    params.files = list(args.files)
    params.graph = args.graph
    params.changed_files_from = args.changed_files_from
    params.repository_path = args.repository_path
    params.exclusions = prepare_exclusions(args.exclude, no_default_exclusions=args.no_default_exclusions)
    params.predictors = [name.strip() for name in args.predictors.split(",") if name.strip()]
    params.max_workers = args.max_workers
    params.output_format = args.format
    if settings.is_debug:
        display_info_full(params, title="AffectedParams")
    sys.exit(main_exec(params))


def prepare_exclusions(extra_exclusions: list[str], *, no_default_exclusions: bool = False) -> list[str]:
    exclusions = [] if no_default_exclusions else list(settings.exclusions)
    for suffix in extra_exclusions:
        if suffix and suffix not in exclusions:
            exclusions.append(suffix)
    return exclusions


def read_changed_files(params: AffectedParams) -> list[str]:
    """引数と --changed-files-from の変更ファイルを結合する(空行は無視)"""
    changed_files = list(params.files)
    if params.changed_files_from == "-":
        changed_files += sys.stdin.read().splitlines()
    elif params.changed_files_from:
        with open(params.changed_files_from, encoding="utf-8") as f:
            changed_files += f.read().splitlines()
    return [file_path for file_path in changed_files if file_path.strip()]


def main_exec(params: AffectedParams) -> int:
    options = params.to_discovery_options()
    try:
        changed_files = read_changed_files(params)
        graph = ProjectGraph.load(params.graph, options.repository_path, ignore_case=options.ignore_case)
    except (AffectedError, OSError, UnicodeDecodeError) as e:
        log_e("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return EXIT_FATAL

    try:
        provider = PredictionChangedProjectsProvider(graph, options)
    except KeyError as e:
        # 存在しない予測器名が指定された
        log_e("unknown predictor %s", e)
        print(f"error: unknown predictor {e}", file=sys.stderr)
        return EXIT_FATAL
    nodes = list(provider.get_referencing_projects(changed_files))

    repository_path = graph.repository_path
    if params.output_format is OutputFormat.TABLE:
        display_affected_projects(nodes, repository_path)
    elif params.output_format is OutputFormat.JSON:
        print(json.dumps([PathUtil.relative_to(node.project_path, repository_path) for node in nodes], indent=2))
    else:
        for node in nodes:
            print(PathUtil.relative_to(node.project_path, repository_path))

    display_diagnostics(provider.diagnostics)
    return EXIT_SUCCESS


if __name__ == "__main__":
    main()
