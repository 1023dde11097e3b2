"""
配置解析服务

将全局配置与项目覆盖合并为有效项目并校验。

上传目标表（modrinth / curseforge）采用整表替换：项目中设置了该表时
直接使用项目的表，全局表被忽略，不做字段级合并。
"""

import re
from typing import Dict, List, Optional

from loguru import logger

from mirror_upload.exceptions import (
    InvalidPatternError,
    InvalidTemplateError,
    MissingFieldError,
    TemplateError,
)
from mirror_upload.models import (
    EffectiveProject,
    MirrorConfig,
    ProjectConfig,
)
from mirror_upload.template import RELEASE_VARIABLES, Template


class ConfigResolver:
    """配置解析器"""

    def __init__(self):
        self._patterns: Dict[str, "re.Pattern[str]"] = {}

    def compile_pattern(self, file_regex: str, index: int) -> "re.Pattern[str]":
        """编译文件正则，同一正则字符串只编译一次"""
        if file_regex not in self._patterns:
            try:
                self._patterns[file_regex] = re.compile(file_regex)
            except re.error as e:
                raise InvalidPatternError(
                    f"项目 #{index} 的文件正则无法编译: {file_regex!r} ({e})",
                    context={"project": index, "rule": "file_regex"},
                )
        return self._patterns[file_regex]

    def resolve(self, config: MirrorConfig) -> List[EffectiveProject]:
        """
        解析所有有效项目

        Args:
            config: 全局配置

        Returns:
            按配置顺序排列的有效项目

        Raises:
            ConfigError: 第一个不满足约束的项目
        """
        projects = config.projects or (ProjectConfig(),)
        resolved = [
            self._resolve_project(config, project, index)
            for index, project in enumerate(projects, start=1)
        ]
        logger.debug(f"解析得到 {len(resolved)} 个项目")
        return resolved

    def _resolve_project(
        self, config: MirrorConfig, project: ProjectConfig, index: int
    ) -> EffectiveProject:
        loaders = project.loaders if project.loaders is not None else config.loaders
        game_versions = (
            project.game_versions
            if project.game_versions is not None
            else config.game_versions
        )
        file_regex = project.file_regex or config.file_regex
        modrinth = project.modrinth if project.modrinth is not None else config.modrinth
        curseforge = (
            project.curseforge if project.curseforge is not None else config.curseforge
        )

        if not loaders:
            raise MissingFieldError(
                f"项目 #{index} 没有配置 loaders",
                context={"project": index, "rule": "loaders"},
            )
        if not game_versions:
            raise MissingFieldError(
                f"项目 #{index} 没有配置 game_versions",
                context={"project": index, "rule": "game_versions"},
            )
        if modrinth is None and curseforge is None:
            raise MissingFieldError(
                f"项目 #{index} 没有配置任何上传目标 (modrinth / curseforge)",
                context={"project": index, "rule": "targets"},
            )

        pattern = self.compile_pattern(file_regex, index)
        version_template: Optional[Template] = None
        name_template: Optional[Template] = None
        if modrinth is not None:
            version_template = self._parse_template(
                modrinth.version_number, index, "version_number"
            )
            if modrinth.version_name is not None:
                name_template = self._parse_template(
                    modrinth.version_name, index, "version_name"
                )

        return EffectiveProject(
            index=index,
            loaders=tuple(loaders),
            game_versions=tuple(game_versions),
            file_regex=file_regex,
            pattern=pattern,
            modrinth=modrinth,
            curseforge=curseforge,
            version_template=version_template,
            name_template=name_template,
        )

    @staticmethod
    def _parse_template(source: str, index: int, rule: str) -> Template:
        try:
            template = Template.parse(source)
        except TemplateError as e:
            raise InvalidTemplateError(
                f"项目 #{index} 的 modrinth.{rule} 模板无效: {e.message}",
                context={"project": index, "rule": rule, "template": source},
            )

        unknown = [name for name in template.variables if name not in RELEASE_VARIABLES]
        if unknown:
            logger.warning(
                f"项目 #{index} 的 modrinth.{rule} 引用了未定义的变量 {', '.join(unknown)}，"
                "上传到 Modrinth 时会失败"
            )
        return template


def resolve(config: MirrorConfig) -> List[EffectiveProject]:
    """解析有效项目（便捷函数）"""
    return ConfigResolver().resolve(config)

