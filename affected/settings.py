import os
import sys
from os.path import dirname, join

from dotenv import load_dotenv

load_dotenv(verbose=True)

dotenv_path = join(dirname(__file__), ".env")
load_dotenv(dotenv_path)


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "t")


# repository(相対パスを正規化するときの基準)
repository_path = os.path.abspath(os.getenv("AFFECTED_REPOSITORY_PATH", os.getcwd()))

# exclusions(変更ファイルのうちマッチング対象外とするファイル名の末尾)
# Directory.Packages.props はパッケージ参照なので別の仕組みで検出する
default_exclusions = ("Directory.Packages.props",)
exclusions_env = os.getenv("AFFECTED_EXCLUSIONS")
if exclusions_env is None:
    exclusions = list(default_exclusions)
else:
    exclusions = [suffix.strip() for suffix in exclusions_env.split(",") if suffix.strip()]

# prediction
max_workers = int(os.getenv("AFFECTED_MAX_WORKERS", str(min(32, (os.cpu_count() or 1) + 4))))
show_progress = _get_bool("AFFECTED_SHOW_PROGRESS", "False")

# path comparison(WindowsとmacOSはファイルシステムが大文字小文字を区別しない)
ignore_case_default = "True" if os.name == "nt" or sys.platform == "darwin" else "False"
ignore_case = _get_bool("AFFECTED_IGNORE_CASE", ignore_case_default)

# log
log_file = os.getenv("AFFECTED_LOG_FILE", "affected.log")

# mode
is_debug = _get_bool("IS_DEBUG", "False")  # デバッグモード(例: IS_DEBUG=True)
