"""
资源下载管理器

从 GitHub 下载 Release 资源到临时目录，每个资源在一次运行中只下载一次，
Modrinth 与 CurseForge 上传共用同一份文件。
"""

import asyncio
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Dict, Optional

import aiofiles
import aiohttp
from loguru import logger

from mirror_upload.download.verifier import FileVerifier
from mirror_upload.exceptions import (
    AuthFailureError,
    DownloadError,
    classify_http_error,
)
from mirror_upload.models import ReleaseAsset
from mirror_upload.services.github import github_headers


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    cached: int = 0
    bytes_downloaded: int = 0


class AssetDownloader:
    """Release 资源下载器"""

    def __init__(
        self,
        token: str = "",
        session: Optional[aiohttp.ClientSession] = None,
        work_dir: Optional[str] = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
    ):
        self.token = token
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.verifier = FileVerifier()
        self.stats = DownloadStats()
        self._session = session
        self._owned_session = session is None
        self._work_dir = work_dir
        self._owned_work_dir = work_dir is None
        self._locks: Dict[str, asyncio.Lock] = {}
        self._paths: Dict[str, str] = {}
        self._slot = 0

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    @property
    def work_dir(self) -> str:
        if self._work_dir is None:
            self._work_dir = tempfile.mkdtemp(prefix="mirror-upload-")
        return self._work_dir

    async def fetch(self, asset: ReleaseAsset) -> str:
        """
        下载资源（已下载则直接返回缓存路径）

        Returns:
            本地文件路径
        """
        lock = self._locks.setdefault(asset.url, asyncio.Lock())
        async with lock:
            cached = self._paths.get(asset.url)
            if cached and await self.verifier.is_valid(cached, asset.size):
                self.stats.cached += 1
                logger.debug(f"[缓存] '{asset.name}' 已下载")
                return cached

            self.stats.total += 1
            self._slot += 1
            file_dir = os.path.join(self.work_dir, str(self._slot))
            os.makedirs(file_dir, exist_ok=True)
            file_path = os.path.join(file_dir, asset.name)
            await self._download(asset, file_path)
            self._paths[asset.url] = file_path
            return file_path

    async def read(self, asset: ReleaseAsset) -> bytes:
        """下载并读取资源内容"""
        file_path = await self.fetch(asset)
        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def _download(self, asset: ReleaseAsset, file_path: str):
        headers = github_headers(self.token, accept="application/octet-stream")
        logger.info(f"[开始] 下载: {asset.name}")

        for attempt in range(self.max_retries + 1):
            try:
                async with self.session.get(asset.url, headers=headers) as response:
                    if response.status != 200:
                        raise classify_http_error(
                            response.status,
                            await response.text(),
                            f"无法从 GitHub 下载资源 {asset.name}: HTTP {response.status}",
                            context={"url": asset.url},
                        )

                    async with aiofiles.open(file_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(8192):
                            await f.write(chunk)
                            self.stats.bytes_downloaded += len(chunk)

                if not await self.verifier.is_valid(file_path, asset.size, asset.digest):
                    raise DownloadError(
                        f"资源校验失败: {asset.name}",
                        context={
                            "file": asset.name,
                            "expected_size": asset.size,
                            "expected_digest": asset.digest,
                        },
                    )

                self.stats.completed += 1
                logger.success(f"[完成] '{asset.name}' 下载完成")
                return

            except AuthFailureError:
                self.stats.failed += 1
                self._remove(file_path)
                raise
            except (DownloadError, aiohttp.ClientError, asyncio.TimeoutError) as e:
                self._remove(file_path)

                if attempt < self.max_retries:
                    delay = self.retry_delay * (2**attempt)
                    logger.warning(
                        f"[重试] 下载 '{asset.name}' 失败 (第 {attempt + 1} 次): {e}. "
                        f"{delay:.1f}s 后重试..."
                    )
                    await asyncio.sleep(delay)
                    continue

                self.stats.failed += 1
                logger.error(f"[错误] 下载 '{asset.name}' 最终失败: {e}")
                if isinstance(e, DownloadError):
                    raise
                raise DownloadError(
                    f"下载失败: {asset.name}",
                    context={"url": asset.url, "error": str(e)},
                )
            except OSError as e:
                self.stats.failed += 1
                self._remove(file_path)
                logger.error(f"[错误] 无法写入 '{asset.name}': {e}")
                raise DownloadError(
                    f"无法写入资源文件: {asset.name}",
                    context={"file": file_path, "error": str(e)},
                )
            except Exception:
                self._remove(file_path)
                raise

    @staticmethod
    def _remove(file_path: str):
        if os.path.exists(file_path):
            try:
                os.remove(file_path)
            except OSError:
                pass

    def get_stats(self) -> DownloadStats:
        """获取下载统计"""
        return self.stats

    def log_stats(self):
        """输出下载统计"""
        stats = self.stats
        logger.success(
            f"下载完成: {stats.completed} 成功, {stats.failed} 失败, {stats.cached} 复用, "
            f"共 {stats.bytes_downloaded} 字节"
        )

    async def close(self):
        """清理临时目录并关闭 session"""
        if self._owned_work_dir and self._work_dir and os.path.isdir(self._work_dir):
            shutil.rmtree(self._work_dir, ignore_errors=True)
        self._paths.clear()
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
