"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
import sys
from pathlib import Path

import aiohttp
import click
import toml
import yaml
from loguru import logger

from mirror_upload import __version__
from mirror_upload.download import AssetDownloader
from mirror_upload.exceptions import ConfigParseError, MirrorUploadError
from mirror_upload.logger import setup_logger
from mirror_upload.models import MirrorConfig, RunReport, Secrets
from mirror_upload.orchestrator import MirrorUploadOrchestrator
from mirror_upload.services import (
    ConfigResolver,
    CurseForgeClient,
    GitHubClient,
    ModrinthClient,
)

DEFAULT_CONFIG_PATH = "mirror_upload.config.toml"
DEFAULT_SECRETS_PATH = "mirror_upload.secrets.toml"
USER_AGENT = f"mirror-upload/{__version__}"


def load_config(config_path: str) -> dict:
    """加载配置文件"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"配置文件不存在: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            data = toml.load(config_path)
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        else:
            raise click.ClickException(f"不支持的配置文件格式: {suffix}")
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"无法解析配置文件 {config_path}: {e}", context={"path": config_path}
        )

    if not isinstance(data, dict):
        raise ConfigParseError(
            f"配置文件 {config_path} 的顶层必须是表", context={"path": config_path}
        )
    return data


def load_secrets(secrets_path: str, env_secrets: bool) -> Secrets:
    """
    加载令牌

    指定 --env-secrets 或令牌文件不存在时，从环境变量读取。
    """
    path = Path(secrets_path)
    if env_secrets or not path.exists():
        logger.debug("从环境变量读取令牌")
        return Secrets.from_env()

    try:
        return Secrets.from_dict(toml.load(secrets_path))
    except toml.TomlDecodeError as e:
        raise ConfigParseError(
            f"无法解析令牌文件 {secrets_path}: {e}", context={"path": secrets_path}
        )


async def run_async(tag: str, config: MirrorConfig, secrets: Secrets) -> RunReport:
    """异步运行"""
    async with aiohttp.ClientSession(headers={"User-Agent": USER_AGENT}) as session:
        async with AssetDownloader(secrets.github_token, session=session) as downloader:
            orchestrator = MirrorUploadOrchestrator(
                config,
                source=GitHubClient(secrets.github_token, session=session),
                modrinth=ModrinthClient(secrets.modrinth, downloader, session=session),
                curseforge=CurseForgeClient(
                    secrets.curseforge_token, downloader, session=session
                ),
            )
            report = await orchestrator.run(tag)
            downloader.log_stats()
            return report


def print_report(report: RunReport):
    """输出运行摘要"""
    click.echo(f"mirror-upload {report.tag}:")
    for line in report.summary_lines():
        click.echo(f"  {line}")


@click.command()
@click.argument("tag")
@click.option(
    "-c",
    "--config",
    "config_path",
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="配置文件",
)
@click.option(
    "-s",
    "--secrets",
    "secrets_path",
    default=DEFAULT_SECRETS_PATH,
    show_default=True,
    help="令牌文件",
)
@click.option(
    "--env-secrets",
    is_flag=True,
    help="从 GITHUB_TOKEN / CURSEFORGE_TOKEN / MODRINTH_TOKEN 环境变量读取令牌（令牌文件不存在时也会这样做）",
)
@click.option("--dry-run", is_flag=True, help="干运行模式（只验证配置）")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
def main(
    tag: str,
    config_path: str,
    secrets_path: str,
    env_secrets: bool,
    dry_run: bool,
    debug: bool,
):
    """mirror-upload - 将 GitHub Release 同步到 Modrinth 和 CurseForge"""
    setup_logger(level="DEBUG" if debug else None)

    try:
        config = MirrorConfig.from_dict(load_config(config_path))
        projects = ConfigResolver().resolve(config)
    except MirrorUploadError as e:
        logger.error(f"配置错误: {e}")
        raise click.ClickException(str(e))

    if dry_run:
        logger.info("[干运行模式] 配置验证通过")
        logger.info(f"  GitHub 仓库: {config.github}")
        for project in projects:
            logger.info(
                f"  项目 {project.label}: loaders={list(project.loaders)} "
                f"game_versions={list(project.game_versions)} file_regex={project.file_regex!r}"
            )
        return

    try:
        secrets = load_secrets(secrets_path, env_secrets)
        report = asyncio.run(run_async(tag, config, secrets))
    except MirrorUploadError as e:
        logger.error(f"运行失败: {e}")
        raise click.ClickException(str(e))

    print_report(report)

    if not report.succeeded:
        logger.error(f"{len(report.failures())} 个项目上传失败")
        sys.exit(report.exit_code)

    logger.success("全部上传完成!")


if __name__ == "__main__":
    main()
