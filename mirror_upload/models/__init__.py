"""
mirror-upload 数据模型包

包含配置模型、API 模型和运行报告模型。
"""

from mirror_upload.models.config import (
    DEFAULT_FILE_REGEX,
    DEFAULT_VERSION_TEMPLATE,
    ReleaseLevel,
    DependencyType,
    RelationType,
    EmptyAssetsPolicy,
    Dependency,
    Relation,
    ModrinthTarget,
    CurseForgeTarget,
    ProjectConfig,
    MirrorConfig,
    Secrets,
    EffectiveProject,
)
from mirror_upload.models.api import (
    ReleaseAsset,
    Release,
    ModrinthUploadRequest,
    CurseForgeUploadRequest,
    UploadReceipt,
)
from mirror_upload.models.report import (
    Platform,
    TargetState,
    TargetOutcome,
    ProjectReport,
    RunReport,
)

__all__ = [
    # 配置模型
    "DEFAULT_FILE_REGEX",
    "DEFAULT_VERSION_TEMPLATE",
    "ReleaseLevel",
    "DependencyType",
    "RelationType",
    "EmptyAssetsPolicy",
    "Dependency",
    "Relation",
    "ModrinthTarget",
    "CurseForgeTarget",
    "ProjectConfig",
    "MirrorConfig",
    "Secrets",
    "EffectiveProject",
    # API 模型
    "ReleaseAsset",
    "Release",
    "ModrinthUploadRequest",
    "CurseForgeUploadRequest",
    "UploadReceipt",
    # 报告模型
    "Platform",
    "TargetState",
    "TargetOutcome",
    "ProjectReport",
    "RunReport",
]
