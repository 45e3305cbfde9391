import os
from collections.abc import Iterable

from affected.core.exceptions import PathResolutionError


class PathUtil:
    SEPARATOR = "/"

    @staticmethod
    def canonicalize(path: str | os.PathLike, base_dir: str, *, ignore_case: bool = False) -> str:
        """パスを比較用の正規形に変換する

        Args:
            path: 絶対パスまたはbase_dirからの相対パス(区切り文字は / でも \\ でも良い)
            base_dir: 相対パスの基準ディレクトリ
            ignore_case: Trueの場合は小文字に揃える

        Returns:
            str: 区切り文字を / に統一した正規化済みの絶対パス

        Raises:
            PathResolutionError: 空文字列やNULを含むなど、パスとして解釈できない場合
        """
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        if not isinstance(path, str):
            raise PathResolutionError(path, "not a string path")

        path_str = path.strip("\r\n")
        if not path_str.strip():
            raise PathResolutionError(path, "empty path")
        if "\0" in path_str:
            raise PathResolutionError(path, "path contains NUL character")

        path_str = PathUtil.to_forward_slashes(path_str)
        if not os.path.isabs(path_str):
            base = PathUtil.to_forward_slashes(os.path.abspath(base_dir))
            path_str = os.path.join(base, path_str)

        canonical = PathUtil.to_forward_slashes(os.path.normpath(path_str))
        if ignore_case:
            canonical = canonical.lower()
        return canonical

    @staticmethod
    def to_forward_slashes(path: str) -> str:
        return path.replace("\\", PathUtil.SEPARATOR)

    @staticmethod
    def is_excluded(path: str, exclusions: Iterable[str], *, ignore_case: bool = False) -> bool:
        """ファイル名がexclusionsのいずれかで終わる場合にTrue"""
        target = PathUtil.to_forward_slashes(str(path)).rstrip("\r\n")
        if ignore_case:
            target = target.lower()
        for suffix in exclusions:
            if not suffix:
                continue
            suffix_ = PathUtil.to_forward_slashes(suffix)
            if ignore_case:
                suffix_ = suffix_.lower()
            if target.endswith(suffix_):
                return True
        return False

    @staticmethod
    def relative_to(path: str, root: str) -> str:
        """表示用: rootからの相対パス(root外ならそのまま)"""
        root_ = PathUtil.to_forward_slashes(os.path.abspath(root)).rstrip(PathUtil.SEPARATOR)
        path_ = PathUtil.to_forward_slashes(path)
        prefix = root_ + PathUtil.SEPARATOR
        if path_.lower().startswith(prefix.lower()):
            return path_[len(prefix) :]
        return path_
