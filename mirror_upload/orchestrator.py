"""
主协调器

解析配置、获取 Release，然后为每个项目向各个平台上传。

单个项目或单个平台的失败只记录到运行报告中，不会中断其他项目；
配置错误和找不到 Release 属于致命错误，在任何上传之前抛出。
"""

import asyncio
from typing import List, Optional

from loguru import logger

from mirror_upload.exceptions import (
    NoMatchingAssetsError,
    NotFoundError,
    TemplateError,
    UploadError,
)
from mirror_upload.models import (
    CurseForgeUploadRequest,
    EffectiveProject,
    EmptyAssetsPolicy,
    MirrorConfig,
    ModrinthUploadRequest,
    Platform,
    ProjectReport,
    Release,
    ReleaseAsset,
    ReleaseLevel,
    RunReport,
    TargetOutcome,
)
from mirror_upload.services import (
    ConfigResolver,
    CurseForgeUploader,
    ModrinthUploader,
    SourceClient,
    select_assets,
)


class MirrorUploadOrchestrator:
    """mirror-upload 主协调器"""

    def __init__(
        self,
        config: MirrorConfig,
        source: SourceClient,
        modrinth: ModrinthUploader,
        curseforge: CurseForgeUploader,
        resolver: Optional[ConfigResolver] = None,
    ):
        self.config = config
        self.source = source
        self.modrinth = modrinth
        self.curseforge = curseforge
        self.resolver = resolver or ConfigResolver()

    async def run(self, tag: str) -> RunReport:
        """
        运行完整的上传流程

        Args:
            tag: 触发本次运行的 Release 标签

        Returns:
            按配置顺序排列的运行报告

        Raises:
            ConfigError: 配置无效（在任何网络请求之前）
            ReleaseTagNotFoundError: 找不到 Release
        """
        projects = self.resolver.resolve(self.config)

        release = await self.source.get_release(self.config.github, tag)
        release_level = self.release_level(release)
        logger.info(f"正在发布 {len(projects)} 个项目 ({release_level.value})")

        semaphore = asyncio.Semaphore(self.config.max_concurrent)

        async def guarded(project: EffectiveProject) -> ProjectReport:
            async with semaphore:
                return await self._process_project(project, release, tag, release_level)

        reports: List[ProjectReport] = await asyncio.gather(
            *(guarded(project) for project in projects)
        )
        reports.sort(key=lambda report: report.index)
        return RunReport(tag=tag, projects=reports)

    def release_level(self, release: Release) -> ReleaseLevel:
        """配置的发布级别；未配置时预发布为 beta，否则为 release"""
        if self.config.release_level is not None:
            return self.config.release_level
        return ReleaseLevel.BETA if release.prerelease else ReleaseLevel.RELEASE

    async def _process_project(
        self,
        project: EffectiveProject,
        release: Release,
        tag: str,
        release_level: ReleaseLevel,
    ) -> ProjectReport:
        """处理单个项目"""
        report = ProjectReport(index=project.index, label=project.label)
        modrinth = TargetOutcome(Platform.MODRINTH) if project.modrinth else None
        curseforge = TargetOutcome(Platform.CURSEFORGE) if project.curseforge else None
        report.targets = [t for t in (modrinth, curseforge) if t is not None]

        assets = select_assets(release.assets, project.pattern)
        if not assets:
            error = NoMatchingAssetsError(
                f"项目 {project.label} 的文件正则 {project.file_regex!r} 没有匹配到任何资源",
                context={"project": project.index, "file_regex": project.file_regex},
            )
            if self.config.on_empty_assets == EmptyAssetsPolicy.SKIP:
                logger.warning(f"{error.message}，跳过")
                for outcome in report.targets:
                    outcome.skip()
            else:
                logger.error(error.message)
                report.error = error
            return report

        logger.info(
            f"项目 {project.label}: {', '.join(asset.name for asset in assets)}"
        )

        if modrinth is not None:
            await self._upload_modrinth(
                project, assets, release, tag, release_level, modrinth
            )
        if curseforge is not None:
            await self._upload_curseforge(
                project, assets, release, release_level, curseforge
            )
        return report

    async def _upload_modrinth(
        self,
        project: EffectiveProject,
        assets: List[ReleaseAsset],
        release: Release,
        tag: str,
        release_level: ReleaseLevel,
        outcome: TargetOutcome,
    ):
        target = project.modrinth
        outcome.start()
        try:
            variables = {"tag": tag}
            version_number = project.version_template.render(variables)
            name = (
                project.name_template.render(variables)
                if project.name_template
                else release.display_name
            )
            request = ModrinthUploadRequest(
                project_id=target.project_id,
                files=tuple(assets),
                loaders=project.loaders,
                game_versions=project.game_versions,
                version_number=version_number,
                channel=release_level.as_modrinth(),
                dependencies=target.dependencies,
                name=name,
                changelog=release.body,
                featured=target.featured,
                slug=target.slug,
            )
            receipt = await self.modrinth.upload(request)
        except (TemplateError, NotFoundError, UploadError) as e:
            logger.error(f"项目 {project.label} 上传到 Modrinth 失败: {e}")
            outcome.fail(e)
            return
        except Exception as e:
            outcome.fail(self._unexpected(project, Platform.MODRINTH, e))
            return

        outcome.succeed(receipt)
        logger.success(f"项目 {project.label} 已上传到 Modrinth ({receipt.reference})")

    async def _upload_curseforge(
        self,
        project: EffectiveProject,
        assets: List[ReleaseAsset],
        release: Release,
        release_level: ReleaseLevel,
        outcome: TargetOutcome,
    ):
        target = project.curseforge
        outcome.start()
        try:
            request = CurseForgeUploadRequest(
                project_id=target.project_id,
                files=tuple(assets),
                loaders=project.loaders,
                game_versions=project.game_versions,
                release_type=release_level.as_curseforge(),
                relations=target.relations,
                display_name=release.name,
                changelog=release.body,
                slug=target.slug,
            )
            receipt = await self.curseforge.upload(request)
        except (NotFoundError, UploadError) as e:
            logger.error(f"项目 {project.label} 上传到 CurseForge 失败: {e}")
            outcome.fail(e)
            return
        except Exception as e:
            outcome.fail(self._unexpected(project, Platform.CURSEFORGE, e))
            return

        outcome.succeed(receipt)
        logger.success(f"项目 {project.label} 已上传到 CurseForge ({receipt.reference})")

    @staticmethod
    def _unexpected(
        project: EffectiveProject, platform: Platform, error: Exception
    ) -> UploadError:
        """把客户端抛出的未知异常包装为 UploadError，只记录到当前目标"""
        logger.opt(exception=error).error(
            f"项目 {project.label} 上传到 {platform.value} 时发生未预期的错误: {error!r}"
        )
        return UploadError(
            f"上传到 {platform.value} 时发生未预期的错误: {error!r}",
            context={"project": project.index, "error_type": type(error).__name__},
        )
