"""
平台客户端接口

协调器只依赖这些接口，测试时可以替换为不访问网络的实现。
"""

from abc import ABC, abstractmethod

from mirror_upload.models import (
    CurseForgeUploadRequest,
    ModrinthUploadRequest,
    Release,
    UploadReceipt,
)


class SourceClient(ABC):
    @abstractmethod
    async def get_release(self, repo: str, tag: str) -> Release:
        """
        获取指定标签的 Release 及其资源列表。

        Raises:
            ReleaseTagNotFoundError: 标签不存在
            UploadError: 其他网络或认证错误
        """
        pass


class ModrinthUploader(ABC):
    @abstractmethod
    async def upload(self, request: ModrinthUploadRequest) -> UploadReceipt:
        """
        在 Modrinth 上创建版本并上传文件。

        Raises:
            UploadError: 认证失败、网络错误或远端拒绝
        """
        pass


class CurseForgeUploader(ABC):
    @abstractmethod
    async def upload(self, request: CurseForgeUploadRequest) -> UploadReceipt:
        """
        向 CurseForge 项目上传文件。

        Raises:
            UploadError: 认证失败、网络错误或远端拒绝
        """
        pass
