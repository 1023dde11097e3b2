"""
Modrinth API 客户端

通过 ``POST /version`` 创建版本并上传 Release 资源。
"""

import asyncio
import json
from typing import TYPE_CHECKING, Optional

import aiohttp
from loguru import logger

from mirror_upload.exceptions import (
    AuthFailureError,
    NetworkFailureError,
    RemoteRejectedError,
    classify_http_error,
)
from mirror_upload.models import ModrinthUploadRequest, UploadReceipt
from mirror_upload.services.base import ModrinthUploader

if TYPE_CHECKING:
    from mirror_upload.download import AssetDownloader


MODRINTH_API_URL = "https://api.modrinth.com/v2"
MODRINTH_SITE_URL = "https://modrinth.com"


class ModrinthClient(ModrinthUploader):
    """Modrinth API 客户端"""

    def __init__(
        self,
        token: str,
        downloader: "AssetDownloader",
        session: Optional[aiohttp.ClientSession] = None,
        api_url: str = MODRINTH_API_URL,
        site_url: str = MODRINTH_SITE_URL,
    ):
        self.token = token
        self.downloader = downloader
        self.api_url = api_url.rstrip("/")
        self.site_url = site_url.rstrip("/")
        self._session = session
        self._owned_session = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    def version_url(self, slug: Optional[str], version_id: str) -> Optional[str]:
        """版本页面链接，只有知道 slug 时才生成"""
        if not slug or not version_id:
            return None
        return f"{self.site_url}/mod/{slug}/version/{version_id}"

    async def upload(self, request: ModrinthUploadRequest) -> UploadReceipt:
        """
        创建 Modrinth 版本

        Args:
            request: 上传请求，第一个文件为主文件

        Returns:
            回执（reference 为版本 ID）
        """
        if not self.token:
            raise AuthFailureError(
                "未配置 Modrinth 令牌 (modrinth_token / github_token)",
                context={"project_id": request.project_id},
            )

        logger.info(
            f"正在上传 {request.version_number} 到 Modrinth 项目 {request.slug or request.project_id}"
        )
        form = aiohttp.FormData()
        form.add_field(
            "data", json.dumps(request.to_api()), content_type="application/json"
        )
        for position, asset in enumerate(request.files, start=1):
            content = await self.downloader.read(asset)
            form.add_field(
                asset.name, content, filename=asset.name, content_type=asset.content_type
            )
            logger.info(
                f"[Modrinth] 添加文件 ({position}/{len(request.files)}) {asset.name} ({len(content)} 字节)"
            )

        url = f"{self.api_url}/version"
        try:
            async with self.session.post(
                url, data=form, headers={"Authorization": self.token}
            ) as response:
                if response.status not in (200, 201):
                    raise classify_http_error(
                        response.status,
                        await response.text(),
                        f"无法上传到 Modrinth: HTTP {response.status}",
                        context={"project_id": request.project_id},
                    )
                try:
                    data = await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise RemoteRejectedError(
                        "Modrinth 返回了无法解析的响应",
                        reason=str(e),
                        context={"project_id": request.project_id},
                        status=response.status,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkFailureError(
                f"请求 Modrinth 失败: {e}", context={"project_id": request.project_id}
            )

        if not isinstance(data, dict) or not data.get("id"):
            raise RemoteRejectedError(
                "Modrinth 的响应中没有版本 ID",
                reason=repr(data),
                context={"project_id": request.project_id},
            )
        version_id = str(data["id"])
        receipt = UploadReceipt(
            reference=version_id, url=self.version_url(request.slug, version_id)
        )
        if receipt.url:
            logger.info(f"链接: {receipt.url}")
        return receipt

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
