"""
CLI 模块

命令行接口实现。
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
import toml
import yaml
from loguru import logger

from debsync import __version__
from debsync.exceptions import ConfigParseError, DebSyncError
from debsync.logger import setup_logger
from debsync.models import MatchPolicy, SyncConfig
from debsync.orchestrator import MirrorOrchestrator


def load_config(config_path: Optional[str]) -> dict:
    """加载配置文件，未指定时返回空配置"""
    if not config_path:
        return {}

    path = Path(config_path)
    if not path.exists():
        raise ConfigParseError(
            f"配置文件不存在: {config_path}", context={"path": config_path}
        )

    suffix = path.suffix.lower()
    try:
        if suffix == ".toml":
            data = toml.load(config_path)
        elif suffix == ".json":
            data = json.loads(path.read_text(encoding="utf-8"))
        elif suffix in (".yaml", ".yml"):
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        else:
            raise ConfigParseError(
                f"不支持的配置文件格式: {suffix}", context={"path": config_path}
            )
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"配置文件解析失败: {config_path}",
            context={"path": config_path, "error": str(e)},
        )

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            "配置文件顶层必须是表", context={"path": config_path}
        )
    return data


def build_config(
    config_path: Optional[str],
    repo_url: Optional[str] = None,
    output: Optional[str] = None,
    strict: bool = False,
    verify_content: bool = False,
    max_concurrent: Optional[int] = None,
) -> SyncConfig:
    """读取配置文件并应用命令行覆盖"""
    config = SyncConfig.from_dict(load_config(config_path))
    if repo_url:
        config.repository.url = repo_url
    if output:
        config.output.root_dir = output
    if strict:
        config.verify.policy = MatchPolicy.STRICT
    if verify_content:
        config.verify.trust_size = False
    if max_concurrent:
        config.max_concurrent = max_concurrent
    return config


async def run_async(config: SyncConfig, dry_run: bool = False):
    """异步运行"""
    orchestrator = MirrorOrchestrator(config, dry_run=dry_run)
    report = await orchestrator.run()
    if report.failed:
        logger.warning(f"有 {report.failed} 个文件下载失败")
        for path in orchestrator.download_manager.get_failed():
            logger.warning(f"  - {path}")
    return report


@click.command()
@click.argument("config", type=click.Path(exists=True), required=False)
@click.option("--repo-url", help="仓库地址（覆盖配置文件）")
@click.option("-o", "--output", help="本地镜像目录（覆盖配置文件）")
@click.option("--strict", is_flag=True, help="要求三种摘要全部匹配")
@click.option("--verify-content", is_flag=True, help="大小一致时仍然校验摘要")
@click.option("--max-concurrent", type=click.IntRange(min=1), help="最大并发数")
@click.option("--log-file", help="额外写入的日志文件")
@click.option("--dry-run", is_flag=True, help="干运行模式（只规划不下载）")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
def main(
    config: Optional[str],
    repo_url: Optional[str],
    output: Optional[str],
    strict: bool,
    verify_content: bool,
    max_concurrent: Optional[int],
    log_file: Optional[str],
    dry_run: bool,
    debug: bool,
):
    """DebSync - 软件包仓库镜像同步工具"""
    try:
        sync_config = build_config(
            config, repo_url, output, strict, verify_content, max_concurrent
        )
        setup_logger(
            level="DEBUG" if debug else None,
            log_file=log_file or sync_config.log_file,
        )
        asyncio.run(run_async(sync_config, dry_run))
    except DebSyncError as e:
        logger.error(f"同步失败: {e}")
        raise click.ClickException(str(e))
    except OSError as e:
        logger.error(f"文件读写失败: {e}")
        raise click.ClickException(f"文件读写失败: {e}")


if __name__ == "__main__":
    main()
