class AffectedError(Exception):
    """affected全体の基底例外"""


class RepositoryRootError(AffectedError):
    """Raised when the repository root does not exist or is not a directory."""


class GraphLoadError(AffectedError):
    """Raised when the project graph definition cannot be read or validated."""


class PathResolutionError(AffectedError):
    """パスを正規化できなかった場合の例外(呼び出し側で診断情報として扱う)"""

    def __init__(self, path: object, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot resolve path {path!r}: {reason}")
