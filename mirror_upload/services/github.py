"""
GitHub API 客户端

按标签获取 Release 及其资源列表。
"""

import asyncio
from typing import Dict, Optional

import aiohttp
from loguru import logger

from mirror_upload.exceptions import (
    NetworkFailureError,
    ReleaseTagNotFoundError,
    RemoteRejectedError,
    classify_http_error,
)
from mirror_upload.models import Release
from mirror_upload.services.base import SourceClient

GITHUB_API_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_JSON = "application/vnd.github+json"


def github_headers(token: str, accept: str = GITHUB_JSON) -> Dict[str, str]:
    """构造 GitHub API 请求头，未配置令牌时匿名访问"""
    headers = {
        "Accept": accept,
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    if token:
        headers["Authorization"] = token if " " in token else f"Bearer {token}"
    return headers


class GitHubClient(SourceClient):
    """GitHub API 客户端"""

    def __init__(
        self,
        token: str = "",
        session: Optional[aiohttp.ClientSession] = None,
        api_url: str = GITHUB_API_URL,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def get_release(self, repo: str, tag: str) -> Release:
        """
        获取指定标签的 Release

        Args:
            repo: ``owner/name``
            tag: Release 标签

        Returns:
            Release
        """
        url = f"{self.api_url}/repos/{repo}/releases/tags/{tag}"
        logger.debug(f"GET {url}")
        try:
            async with self.session.get(url, headers=github_headers(self.token)) as response:
                if response.status == 404:
                    raise ReleaseTagNotFoundError(
                        f"GitHub 仓库 {repo} 中不存在标签为 {tag} 的 Release",
                        context={"repo": repo, "tag": tag},
                    )
                if response.status != 200:
                    raise classify_http_error(
                        response.status,
                        await response.text(),
                        f"无法获取 Release {repo}@{tag}: HTTP {response.status}",
                        context={"repo": repo, "tag": tag},
                    )
                try:
                    data = await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise RemoteRejectedError(
                        f"GitHub 返回了无法解析的 Release {repo}@{tag}",
                        reason=str(e),
                        context={"repo": repo, "tag": tag},
                        status=response.status,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkFailureError(
                f"请求 GitHub 失败: {e}", context={"repo": repo, "tag": tag}
            )

        try:
            release = Release.from_github(data)
        except (AttributeError, KeyError, TypeError) as e:
            raise RemoteRejectedError(
                f"无法解析 GitHub Release {repo}",
                reason=repr(e),
                context={"repo": repo, "tag": tag},
            )
        logger.info(f"找到 GitHub Release {release.display_name} ({len(release.assets)} 个资源)")
        return release

    async def close(self):
        """关闭客户端"""
        if self._owned_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()
