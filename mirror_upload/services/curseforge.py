"""
CurseForge 上传 API 客户端

上传流程：

1. 通过 ``/game/version-types`` 与 ``/game/versions`` 把游戏版本名和加载器名映射为 ID
2. 第一个资源作为主文件上传
3. 其余资源以 ``parentFileID`` 指向主文件上传
"""

import asyncio
import json
from typing import TYPE_CHECKING, Iterable, List, Optional, Tuple

import aiohttp
from loguru import logger

from mirror_upload.exceptions import (
    AuthFailureError,
    NetworkFailureError,
    RemoteRejectedError,
    classify_http_error,
)
from mirror_upload.models import CurseForgeUploadRequest, ReleaseAsset, UploadReceipt
from mirror_upload.services.base import CurseForgeUploader

if TYPE_CHECKING:
    from mirror_upload.download import AssetDownloader


CURSEFORGE_API_URL = "https://minecraft.curseforge.com/api"
CURSEFORGE_SITE_URL = "https://curseforge.com/minecraft/mc-mods"
AUTH_KEY = "X-Api-Token"

LOADER_NAMES = {
    "fabric": "Fabric",
    "forge": "Forge",
    "quilt": "Quilt",
    "neoforge": "NeoForge",
}


def curseforge_loader_name(loader: str) -> str:
    """加载器在 CurseForge 游戏版本列表中的名称"""
    return LOADER_NAMES.get(loader.lower(), loader.capitalize())


def is_allowed_version_type(slug: str) -> bool:
    """只使用 Minecraft 版本、Java 版本和加载器这几类游戏版本"""
    return slug.startswith("minecraft-") or slug in ("java", "modloader")


def match_game_version_ids(
    version_types: Iterable[dict], versions: Iterable[dict], names: Iterable[str]
) -> Tuple[List[int], List[str]]:
    """
    把游戏版本名映射为 CurseForge 游戏版本 ID

    Args:
        version_types: ``/game/version-types`` 的返回值
        versions: ``/game/versions`` 的返回值
        names: 需要的版本名（游戏版本与加载器名）

    Returns:
        (ID 列表, 未匹配的名称列表)
    """
    allowed = {t["id"] for t in version_types if is_allowed_version_type(t["slug"])}
    wanted = list(dict.fromkeys(names))
    ids: List[int] = []
    found = set()
    for version in versions:
        if version["gameVersionTypeID"] not in allowed:
            continue
        if version["name"] in wanted:
            ids.append(version["id"])
            found.add(version["name"])
    return ids, [name for name in wanted if name not in found]


class CurseForgeClient(CurseForgeUploader):
    """CurseForge 上传 API 客户端"""

    def __init__(
        self,
        token: str,
        downloader: "AssetDownloader",
        session: Optional[aiohttp.ClientSession] = None,
        api_url: str = CURSEFORGE_API_URL,
        site_url: str = CURSEFORGE_SITE_URL,
    ):
        self.token = token
        self.downloader = downloader
        self.api_url = api_url.rstrip("/")
        self.site_url = site_url.rstrip("/")
        self._session = session
        self._owned_session = session is None
        self._game_versions: Optional[Tuple[list, list]] = None
        self._game_versions_lock = asyncio.Lock()

    @property
    def session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _request(
        self, method: str, endpoint: str, data: Optional[aiohttp.FormData] = None
    ):
        """发送 API 请求"""
        url = f"{self.api_url}{endpoint}"
        try:
            async with self.session.request(
                method, url, data=data, headers={AUTH_KEY: self.token}
            ) as response:
                if response.status != 200:
                    raise classify_http_error(
                        response.status,
                        await response.text(),
                        f"CurseForge 请求失败 {method} {endpoint}: HTTP {response.status}",
                        context={"url": url},
                    )
                try:
                    return await response.json()
                except (aiohttp.ContentTypeError, ValueError) as e:
                    raise RemoteRejectedError(
                        f"CurseForge 返回了无法解析的响应 {method} {endpoint}",
                        reason=str(e),
                        context={"url": url},
                        status=response.status,
                    )
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkFailureError(f"请求 CurseForge 失败: {e}", context={"url": url})

    async def _load_game_versions(self) -> Tuple[list, list]:
        """获取游戏版本类型与游戏版本列表（每次运行只请求一次）"""
        async with self._game_versions_lock:
            if self._game_versions is None:
                version_types = await self._request("GET", "/game/version-types")
                versions = await self._request("GET", "/game/versions")
                self._game_versions = (version_types, versions)
            return self._game_versions

    async def game_version_ids(
        self, loaders: Iterable[str], game_versions: Iterable[str]
    ) -> List[int]:
        """
        获取上传所需的游戏版本 ID（游戏版本 + 加载器）

        Raises:
            RemoteRejectedError: 没有任何名称能匹配到 CurseForge 游戏版本
        """
        version_types, versions = await self._load_game_versions()
        names = list(game_versions) + [curseforge_loader_name(loader) for loader in loaders]
        try:
            ids, missing = match_game_version_ids(version_types, versions, names)
        except (KeyError, TypeError) as e:
            raise RemoteRejectedError(
                "CurseForge 游戏版本列表格式无法识别", reason=repr(e), context={"names": names}
            )
        if missing:
            logger.warning(f"CurseForge 上找不到以下游戏版本: {', '.join(missing)}")
        if not ids:
            raise RemoteRejectedError(
                "没有可用的 CurseForge 游戏版本",
                reason=f"未知的游戏版本: {', '.join(missing)}",
                context={"names": names},
            )
        return ids

    async def _upload_file(
        self,
        request: CurseForgeUploadRequest,
        asset: ReleaseAsset,
        game_version_ids: List[int],
        parent_file_id: Optional[int] = None,
        position: int = 1,
    ) -> int:
        metadata = request.metadata(game_version_ids, parent_file_id)
        content = await self.downloader.read(asset)
        form = aiohttp.FormData()
        form.add_field("metadata", json.dumps(metadata), content_type="application/json")
        form.add_field(
            "file", content, filename=asset.name, content_type=asset.content_type
        )
        logger.info(
            f"[CurseForge] 上传文件 ({position}/{len(request.files)}) {asset.name} ({len(content)} 字节)"
        )
        data = await self._request(
            "POST", f"/projects/{request.project_id}/upload-file", data=form
        )
        try:
            return int(data["id"])
        except (KeyError, TypeError, ValueError) as e:
            raise RemoteRejectedError(
                f"CurseForge 上传 {asset.name} 的响应中没有文件 ID",
                reason=f"{e!r}: {data!r}",
                context={"project_id": request.project_id, "file": asset.name},
            )

    async def upload(self, request: CurseForgeUploadRequest) -> UploadReceipt:
        """
        上传全部文件

        Returns:
            回执（reference 为主文件 ID）
        """
        if not self.token:
            raise AuthFailureError(
                "未配置 CurseForge 令牌 (curseforge_token)",
                context={"project_id": request.project_id},
            )

        logger.info(
            f"正在上传 {len(request.files)} 个文件到 CurseForge 项目 {request.slug or request.project_id}"
        )
        game_version_ids = await self.game_version_ids(
            request.loaders, request.game_versions
        )
        head, *tail = request.files
        primary_id = await self._upload_file(request, head, game_version_ids)
        for position, asset in enumerate(tail, start=2):
            await self._upload_file(
                request, asset, game_version_ids, primary_id, position
            )

        url = (
            f"{self.site_url}/{request.slug}/files/{primary_id}" if request.slug else None
        )
        if url:
            logger.info(f"链接: {url}")
        return UploadReceipt(reference=str(primary_id), url=url)

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
