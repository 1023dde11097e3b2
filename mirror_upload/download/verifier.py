"""
文件校验器

实现文件大小校验和 GitHub 资源摘要（``sha256:...``）校验。
"""

import hashlib
import os
from typing import Optional

import aiofiles


class FileVerifier:
    """文件校验器"""

    @staticmethod
    async def calc_hash(file_path: str, algorithm: str = "sha256") -> Optional[str]:
        """
        计算文件的哈希值

        Args:
            file_path: 文件路径
            algorithm: hashlib 支持的算法名

        Returns:
            十六进制哈希值或 None（如果文件不存在）
        """
        if not os.path.exists(file_path):
            return None

        digest = hashlib.new(algorithm)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                while True:
                    data = await f.read(65536)
                    if not data:
                        break
                    digest.update(data)
            return digest.hexdigest()
        except (IOError, OSError):
            return None

    @staticmethod
    async def verify_digest(file_path: str, expected: Optional[str]) -> bool:
        """
        校验文件摘要

        Args:
            file_path: 文件路径
            expected: ``算法:十六进制值`` 形式的摘要，例如 ``sha256:ab12...``

        Returns:
            是否匹配（如果没有预期值或算法不受支持则返回 True）
        """
        if not expected:
            return True

        algorithm, _, value = expected.partition(":")
        if not value or algorithm.lower() not in hashlib.algorithms_available:
            return True

        current = await FileVerifier.calc_hash(file_path, algorithm.lower())
        if current is None:
            return False
        return current == value.lower()

    @staticmethod
    def get_size(file_path: str) -> int:
        """获取文件大小"""
        try:
            return os.path.getsize(file_path)
        except (IOError, OSError):
            return 0

    @staticmethod
    async def is_valid(
        file_path: str, expected_size: int = 0, expected_digest: Optional[str] = None
    ) -> bool:
        """
        检查文件是否有效（存在、大小一致且摘要匹配）

        Args:
            file_path: 文件路径
            expected_size: 预期大小，0 表示不校验
            expected_digest: 预期摘要

        Returns:
            是否有效
        """
        if not os.path.exists(file_path):
            return False

        if expected_size and FileVerifier.get_size(file_path) != expected_size:
            return False

        return await FileVerifier.verify_digest(file_path, expected_digest)
