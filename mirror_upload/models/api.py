"""
API 数据模型

定义 GitHub Release 资源，以及提交给 Modrinth / CurseForge 的上传请求。
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from mirror_upload.models.config import Dependency, Relation


@dataclass(frozen=True)
class ReleaseAsset:
    """GitHub Release 中的一个资源文件"""

    name: str
    url: str
    size: int = 0
    content_type: str = "application/octet-stream"
    digest: Optional[str] = None

    @classmethod
    def from_github(cls, data: dict) -> "ReleaseAsset":
        return cls(
            name=data["name"],
            url=data["url"],
            size=data.get("size", 0),
            content_type=data.get("content_type") or "application/octet-stream",
            digest=data.get("digest") or None,
        )


@dataclass(frozen=True)
class Release:
    """
    GitHub Release 信息。
    """

    tag_name: str
    name: Optional[str]
    body: Optional[str]
    prerelease: bool
    assets: Tuple[ReleaseAsset, ...]

    @classmethod
    def from_github(cls, data: dict) -> "Release":
        """
        将 GitHub API 返回的 Release 转换为 Release 对象。
        """
        return cls(
            tag_name=data.get("tag_name", ""),
            name=data.get("name") or None,
            body=data.get("body") or None,
            prerelease=bool(data.get("prerelease", False)),
            assets=tuple(
                ReleaseAsset.from_github(asset) for asset in data.get("assets", [])
            ),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.tag_name


@dataclass(frozen=True)
class ModrinthUploadRequest:
    """Modrinth 版本创建请求"""

    project_id: str
    files: Tuple[ReleaseAsset, ...]
    loaders: Tuple[str, ...]
    game_versions: Tuple[str, ...]
    version_number: str
    channel: str
    dependencies: Tuple[Dependency, ...] = ()
    name: str = ""
    changelog: Optional[str] = None
    featured: bool = False
    slug: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        """
        构造 ``POST /version`` 的 data 字段

        第一个文件作为主文件。
        """
        file_parts = [asset.name for asset in self.files]
        return {
            "name": self.name or self.version_number,
            "version_number": self.version_number,
            "changelog": self.changelog,
            "dependencies": [dep.to_api() for dep in self.dependencies],
            "game_versions": list(self.game_versions),
            "version_type": self.channel,
            "loaders": list(self.loaders),
            "featured": self.featured,
            "project_id": self.project_id,
            "file_parts": file_parts,
            "primary_file": file_parts[0] if file_parts else None,
        }


@dataclass(frozen=True)
class CurseForgeUploadRequest:
    """CurseForge 文件上传请求"""

    project_id: str
    files: Tuple[ReleaseAsset, ...]
    loaders: Tuple[str, ...]
    game_versions: Tuple[str, ...]
    release_type: str
    relations: Tuple[Relation, ...] = ()
    display_name: Optional[str] = None
    changelog: Optional[str] = None
    slug: Optional[str] = None

    def metadata(
        self, game_version_ids: List[int], parent_file_id: Optional[int] = None
    ) -> Dict[str, Any]:
        """构造 upload-file 的 metadata 字段"""
        data: Dict[str, Any] = {
            "changelog": self.changelog or "",
            "changelogType": "markdown",
            "gameVersions": list(game_version_ids),
            "releaseType": self.release_type,
            "relations": {"projects": [rel.to_api() for rel in self.relations]},
        }
        if self.display_name:
            data["displayName"] = self.display_name
        if parent_file_id is not None:
            data["parentFileID"] = parent_file_id
        return data


@dataclass(frozen=True)
class UploadReceipt:
    """上传成功后的回执"""

    reference: str
    url: Optional[str] = None
