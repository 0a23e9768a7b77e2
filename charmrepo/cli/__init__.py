"""charmrepo 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

from __future__ import annotations

import os

import click

from charmrepo import __version__
from charmrepo.core.config import Config, init_config
from charmrepo.utils.logger import setup_logging


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="配置文件路径 (YAML)")
@click.option("--server-url", default=None, help="charm store 地址")
@click.option("--cache-dir", default=None, help="缓存目录")
@click.option("--test-mode", is_flag=True, default=False, help="下载不计入统计")
@click.pass_context
def main(
    ctx: click.Context, config_path: str | None, server_url: str | None,
    cache_dir: str | None, test_mode: bool,
) -> None:
    """charmrepo - charm store 客户端"""
    setup_logging(
        level=os.getenv("CHARMREPO_LOG_LEVEL", "WARNING"),
        json_output=os.getenv("CHARMREPO_LOG_JSON", "") == "1",
    )
    cfg = init_config(config_path) if config_path else Config()
    if server_url:
        cfg.server_url = server_url
    if cache_dir:
        cfg.cache_dir = cache_dir
    if test_mode:
        cfg.test_mode = True
    ctx.obj = cfg


# 注册各领域子命令
from charmrepo.cli.cmd_store import register as _reg_store  # noqa: E402

_reg_store(main)
