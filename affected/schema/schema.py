from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from affected import settings


class DiagnosticKind(str, Enum):
    PREDICTOR_FAILURE = "predictor_failure"  # 予測器が例外を出した(フットプリントが不完全)
    PATH_RESOLUTION_FAILURE = "path_resolution_failure"  # パスを正規化できなかった
    MISSING_FOOTPRINT = "missing_footprint"  # グラフにあるがフットプリントがないノード
    EXCLUDED_FILE = "excluded_file"  # 除外設定により無視した変更ファイル
    UNKNOWN_REFERENCE = "unknown_reference"  # グラフ定義に存在しないプロジェクトへの参照

    def __str__(self):
        return self.value

    def __repr__(self) -> str:
        return self.value


class OutputFormat(str, Enum):
    TEXT = "text"
    TABLE = "table"
    JSON = "json"

    def __str__(self):
        return self.value

    @staticmethod
    def get_description():
        description_list = ["出力形式を指定します。"]
        for i, output_format in enumerate(OutputFormat):
            description_list.append(f"  {i}: " + str(output_format))
        return "\n".join(description_list)


class PredictionDiagnostic(BaseModel):
    kind: DiagnosticKind = Field(description="診断の種類")
    message: str = Field(default="", description="詳細メッセージ")
    node_id: str = Field(default="", description="対象プロジェクトの正規パス")
    predictor: str = Field(default="", description="対象の予測器名")
    file_path: str = Field(default="", description="対象ファイルのパス")

    def __str__(self) -> str:
        parts = [str(self.kind)]
        for value in (self.predictor, self.node_id, self.file_path):
            if value:
                parts.append(value)
        return " | ".join(parts) + (f": {self.message}" if self.message else "")


class CopyTaskDefinition(BaseModel):
    source_files: list[str] = Field(default_factory=list, description="コピー元ファイル(プロジェクトからの相対パス)")
    destination_folder: str = Field(default="", description="コピー先フォルダ")


class ProjectDefinition(BaseModel):
    path: str = Field(description="プロジェクト定義ファイルのパス(リポジトリルートからの相対パスまたは絶対パス)")
    properties: dict[str, str] = Field(default_factory=dict, description="プロパティ名 => 値")
    items: dict[str, list[str]] = Field(default_factory=dict, description="アイテム種別 => Include値のリスト")
    imports: list[str] = Field(default_factory=list, description="インポートしている定義ファイル")
    copy_tasks: list[CopyTaskDefinition] = Field(default_factory=list, description="コピータスク")
    references: list[str] = Field(default_factory=list, description="参照しているプロジェクト定義ファイル")


class GraphDefinition(BaseModel):
    entry_points: list[str] = Field(default_factory=list, description="ルートとなるプロジェクト(空なら全プロジェクト)")
    projects: list[ProjectDefinition] = Field(default_factory=list, description="プロジェクト一覧")


class DiscoveryOptions(BaseModel):
    repository_path: str = Field(default_factory=lambda: settings.repository_path, description="リポジトリルート")
    exclusions: list[str] = Field(default_factory=lambda: list(settings.exclusions), description="除外する末尾")
    predictors: list[str] = Field(default_factory=list, description="使用する予測器名(空なら全て)")
    max_workers: int = Field(default_factory=lambda: settings.max_workers, description="予測の並列数")
    ignore_case: bool = Field(default_factory=lambda: settings.ignore_case, description="大文字小文字を無視")
    show_progress: bool = Field(default_factory=lambda: settings.show_progress, description="進捗バーを表示")
    working_dir: str = Field(default="", description="変更ファイルの相対パスの基準(空ならカレントディレクトリ)")


class AffectedParams(BaseModel):
    files: list[str] = Field(default_factory=list, description="変更ファイルのリスト")
    graph: str = Field(default="", description="プロジェクトグラフ定義(JSON)のパス")
    changed_files_from: str = Field(default="", description="変更ファイル一覧を読み込むファイル(- は標準入力)")
    repository_path: str = Field(default="", description="リポジトリルート")
    exclusions: list[str] = Field(default_factory=list, description="除外する末尾")
    predictors: list[str] = Field(default_factory=list, description="使用する予測器名")
    max_workers: int = Field(default=0, description="予測の並列数(0なら設定値)")
    output_format: OutputFormat = Field(default=OutputFormat.TEXT, description="出力形式")

    def to_discovery_options(self) -> DiscoveryOptions:
        options = DiscoveryOptions(exclusions=self.exclusions, predictors=self.predictors)
        if self.repository_path:
            options.repository_path = self.repository_path
        if self.max_workers > 0:
            options.max_workers = self.max_workers
        return options
