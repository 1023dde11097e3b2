"""
mirror-upload 服务层

包含配置解析、资源筛选以及 GitHub / Modrinth / CurseForge 客户端。
"""

from mirror_upload.services.base import SourceClient, ModrinthUploader, CurseForgeUploader
from mirror_upload.services.config_resolver import ConfigResolver, resolve
from mirror_upload.services.asset_selector import select_assets
from mirror_upload.services.github import GitHubClient
from mirror_upload.services.modrinth import ModrinthClient
from mirror_upload.services.curseforge import CurseForgeClient

__all__ = [
    "SourceClient",
    "ModrinthUploader",
    "CurseForgeUploader",
    "ConfigResolver",
    "resolve",
    "select_assets",
    "GitHubClient",
    "ModrinthClient",
    "CurseForgeClient",
]
