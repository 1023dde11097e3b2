"""
配置数据模型

定义配置文件对应的数据类，以及解析后得到的有效项目（EffectiveProject）。
"""

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from mirror_upload.exceptions import InvalidValueError, MissingFieldError
from mirror_upload.template import Template

DEFAULT_FILE_REGEX = "^.+$"
DEFAULT_VERSION_TEMPLATE = "$tag"


class ReleaseLevel(Enum):
    """发布级别"""

    RELEASE = "release"
    BETA = "beta"
    ALPHA = "alpha"

    def as_modrinth(self) -> str:
        """Modrinth 的 version_type"""
        return self.value

    def as_curseforge(self) -> str:
        """CurseForge 的 releaseType"""
        return self.value


class DependencyType(Enum):
    """Modrinth 依赖类型"""

    REQUIRED = "required"
    OPTIONAL = "optional"
    EMBEDDED = "embedded"
    INCOMPATIBLE = "incompatible"


class RelationType(Enum):
    """CurseForge 关联类型"""

    REQUIRED_DEPENDENCY = "required_dependency"
    OPTIONAL_DEPENDENCY = "optional_dependency"
    EMBEDDED_LIBRARY = "embedded_library"
    INCOMPATIBLE = "incompatible"
    TOOL = "tool"

    @property
    def api_value(self) -> str:
        """CurseForge 上传接口使用的驼峰形式"""
        head, *rest = self.value.split("_")
        return head + "".join(word.capitalize() for word in rest)


class EmptyAssetsPolicy(Enum):
    """文件正则未匹配到资源时的处理策略"""

    FAIL = "fail"
    SKIP = "skip"


def _parse_enum(enum_cls, value: Any, where: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidValueError(
            f"{where} 的值 {value!r} 无效，可选值: {allowed}",
            context={"field": where, "value": value},
        )


def _require(data: Dict[str, Any], key: str, where: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise MissingFieldError(
            f"缺少必填字段 {where}.{key}" if where else f"缺少必填字段 {key}",
            context={"field": f"{where}.{key}" if where else key},
        )
    return value


def _optional_str(data: Dict[str, Any], key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidValueError(
            f"{where}.{key} 必须是字符串", context={"field": f"{where}.{key}"}
        )
    return value


def _optional_str_list(
    data: Dict[str, Any], key: str, where: str
) -> Optional[Tuple[str, ...]]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str) or not isinstance(value, list):
        raise InvalidValueError(
            f"{where}.{key} 必须是字符串列表", context={"field": f"{where}.{key}"}
        )
    if not all(isinstance(item, str) for item in value):
        raise InvalidValueError(
            f"{where}.{key} 必须是字符串列表", context={"field": f"{where}.{key}"}
        )
    return tuple(value)


def _table_list(data: Dict[str, Any], key: str, where: str) -> List[Dict[str, Any]]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
        raise InvalidValueError(
            f"{where}.{key} 必须是表数组", context={"field": f"{where}.{key}"}
        )
    return value


def _target_table(value: Any, where: str) -> Dict[str, Any]:
    # 允许简写形式: curseforge = "123456"
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return {"project_id": value}
    if not isinstance(value, dict):
        raise InvalidValueError(f"{where} 必须是表", context={"field": where})
    return value


@dataclass(frozen=True)
class Dependency:
    """Modrinth 依赖"""

    project_id: str
    dependency_type: DependencyType = DependencyType.REQUIRED
    version_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "Dependency":
        return cls(
            project_id=str(_require(data, "project_id", where)),
            dependency_type=_parse_enum(
                DependencyType,
                data.get("dependency_type", DependencyType.REQUIRED.value),
                f"{where}.dependency_type",
            ),
            version_id=_optional_str(data, "version_id", where),
        )

    def to_api(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "project_id": self.project_id,
            "dependency_type": self.dependency_type.value,
        }
        if self.version_id:
            data["version_id"] = self.version_id
        return data


@dataclass(frozen=True)
class Relation:
    """CurseForge 关联项目"""

    slug: str
    relation_type: RelationType = RelationType.REQUIRED_DEPENDENCY

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "Relation":
        raw_type = data.get("relation_type", data.get("type"))
        return cls(
            slug=str(_require(data, "slug", where)),
            relation_type=_parse_enum(
                RelationType,
                raw_type or RelationType.REQUIRED_DEPENDENCY.value,
                f"{where}.relation_type",
            ),
        )

    def to_api(self) -> Dict[str, str]:
        return {"slug": self.slug, "type": self.relation_type.api_value}


@dataclass(frozen=True)
class ModrinthTarget:
    """Modrinth 上传目标"""

    project_id: str
    slug: Optional[str] = None
    version_number: str = DEFAULT_VERSION_TEMPLATE
    version_name: Optional[str] = None
    featured: bool = False
    dependencies: Tuple[Dependency, ...] = ()

    @classmethod
    def from_dict(cls, value: Any, where: str) -> "ModrinthTarget":
        data = _target_table(value, where)
        featured = data.get("featured", False)
        if not isinstance(featured, bool):
            raise InvalidValueError(
                f"{where}.featured 必须是布尔值", context={"field": f"{where}.featured"}
            )
        return cls(
            project_id=str(_require(data, "project_id", where)),
            slug=_optional_str(data, "slug", where),
            version_number=_optional_str(data, "version_number", where)
            or DEFAULT_VERSION_TEMPLATE,
            version_name=_optional_str(data, "version_name", where),
            featured=featured,
            dependencies=tuple(
                Dependency.from_dict(dep, f"{where}.dependencies[{i}]")
                for i, dep in enumerate(_table_list(data, "dependencies", where))
            ),
        )


@dataclass(frozen=True)
class CurseForgeTarget:
    """CurseForge 上传目标"""

    project_id: str
    slug: Optional[str] = None
    relations: Tuple[Relation, ...] = ()

    @classmethod
    def from_dict(cls, value: Any, where: str) -> "CurseForgeTarget":
        data = _target_table(value, where)
        return cls(
            project_id=str(_require(data, "project_id", where)),
            slug=_optional_str(data, "slug", where),
            relations=tuple(
                Relation.from_dict(rel, f"{where}.relations[{i}]")
                for i, rel in enumerate(_table_list(data, "relations", where))
            ),
        )


@dataclass(frozen=True)
class ProjectConfig:
    """单个项目的覆盖配置，未设置的字段继承全局值"""

    loaders: Optional[Tuple[str, ...]] = None
    game_versions: Optional[Tuple[str, ...]] = None
    file_regex: Optional[str] = None
    modrinth: Optional[ModrinthTarget] = None
    curseforge: Optional[CurseForgeTarget] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], where: str) -> "ProjectConfig":
        modrinth = data.get("modrinth")
        curseforge = data.get("curseforge")
        return cls(
            loaders=_optional_str_list(data, "loaders", where),
            game_versions=_optional_str_list(data, "game_versions", where),
            file_regex=_optional_str(data, "file_regex", where),
            modrinth=ModrinthTarget.from_dict(modrinth, f"{where}.modrinth")
            if modrinth is not None
            else None,
            curseforge=CurseForgeTarget.from_dict(curseforge, f"{where}.curseforge")
            if curseforge is not None
            else None,
        )


@dataclass(frozen=True)
class MirrorConfig:
    """mirror-upload 全局配置"""

    github: str
    loaders: Optional[Tuple[str, ...]] = None
    game_versions: Optional[Tuple[str, ...]] = None
    file_regex: str = DEFAULT_FILE_REGEX
    release_level: Optional[ReleaseLevel] = None
    modrinth: Optional[ModrinthTarget] = None
    curseforge: Optional[CurseForgeTarget] = None
    projects: Tuple[ProjectConfig, ...] = ()
    on_empty_assets: EmptyAssetsPolicy = EmptyAssetsPolicy.FAIL
    max_concurrent: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MirrorConfig":
        """
        从解析后的配置字典构建配置对象

        Args:
            data: TOML/JSON/YAML 解析得到的字典

        Returns:
            MirrorConfig

        Raises:
            ConfigError: 字段缺失或类型错误
        """
        github = _require(data, "github", "")
        if not isinstance(github, str):
            raise InvalidValueError("github 必须是字符串", context={"field": "github"})
        owner, _, name = github.partition("/")
        if not owner or not name:
            raise InvalidValueError(
                f"GitHub 仓库格式应为 'owner/repo'，实际为 {github!r}",
                context={"field": "github", "value": github},
            )

        release_level = data.get("release_level")
        max_concurrent = data.get("max_concurrent", 1)
        if (
            not isinstance(max_concurrent, int)
            or isinstance(max_concurrent, bool)
            or max_concurrent < 1
        ):
            raise InvalidValueError(
                "max_concurrent 必须是正整数", context={"field": "max_concurrent"}
            )

        modrinth = data.get("modrinth")
        curseforge = data.get("curseforge")
        return cls(
            github=github,
            loaders=_optional_str_list(data, "loaders", "config"),
            game_versions=_optional_str_list(data, "game_versions", "config"),
            file_regex=_optional_str(data, "file_regex", "config") or DEFAULT_FILE_REGEX,
            release_level=_parse_enum(ReleaseLevel, release_level, "release_level")
            if release_level is not None
            else None,
            modrinth=ModrinthTarget.from_dict(modrinth, "modrinth")
            if modrinth is not None
            else None,
            curseforge=CurseForgeTarget.from_dict(curseforge, "curseforge")
            if curseforge is not None
            else None,
            projects=tuple(
                ProjectConfig.from_dict(project, f"projects[{i}]")
                for i, project in enumerate(_table_list(data, "projects", "config"))
            ),
            on_empty_assets=_parse_enum(
                EmptyAssetsPolicy,
                data.get("on_empty_assets", EmptyAssetsPolicy.FAIL.value),
                "on_empty_assets",
            ),
            max_concurrent=max_concurrent,
        )

    @property
    def repo(self) -> Tuple[str, str]:
        """(owner, name)"""
        owner, _, name = self.github.partition("/")
        return owner, name


@dataclass(frozen=True)
class Secrets:
    """运行期间只读的令牌"""

    github_token: str = ""
    curseforge_token: str = ""
    modrinth_token: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Secrets":
        return cls(
            github_token=str(data.get("github_token") or ""),
            curseforge_token=str(data.get("curseforge_token") or ""),
            modrinth_token=data.get("modrinth_token") or None,
        )

    @classmethod
    def from_env(cls) -> "Secrets":
        """从 GITHUB_TOKEN / CURSEFORGE_TOKEN / MODRINTH_TOKEN 读取，缺失时为空字符串"""
        return cls(
            github_token=os.environ.get("GITHUB_TOKEN", ""),
            curseforge_token=os.environ.get("CURSEFORGE_TOKEN", ""),
            modrinth_token=os.environ.get("MODRINTH_TOKEN") or None,
        )

    @property
    def modrinth(self) -> str:
        """Modrinth 令牌，未单独配置时使用 GitHub 令牌"""
        return self.modrinth_token or self.github_token

    def __repr__(self) -> str:
        return "Secrets(***)"


@dataclass(frozen=True)
class EffectiveProject:
    """
    合并全局配置与项目覆盖后的有效项目

    不变量：loaders 非空；game_versions 非空；至少有一个上传目标。
    """

    index: int
    loaders: Tuple[str, ...]
    game_versions: Tuple[str, ...]
    file_regex: str
    pattern: "re.Pattern[str]" = field(compare=False)
    modrinth: Optional[ModrinthTarget] = None
    curseforge: Optional[CurseForgeTarget] = None
    version_template: Optional[Template] = field(default=None, compare=False)
    name_template: Optional[Template] = field(default=None, compare=False)

    @property
    def label(self) -> str:
        """用于日志和报告的项目名称"""
        names = []
        if self.modrinth:
            names.append(f"modrinth:{self.modrinth.slug or self.modrinth.project_id}")
        if self.curseforge:
            names.append(
                f"curseforge:{self.curseforge.slug or self.curseforge.project_id}"
            )
        return f"#{self.index} ({', '.join(names)})"
