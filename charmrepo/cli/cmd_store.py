"""CLI: charm 解析 / 最新修订号 / 拉取命令"""

from __future__ import annotations

import click

from charmrepo.core.charmstore import CharmStore
from charmrepo.core.config import Config
from charmrepo.core.exceptions import CharmRepoError


def register(group: click.Group) -> None:
    group.add_command(resolve)
    group.add_command(latest)
    group.add_command(get)


def _store(ctx: click.Context) -> CharmStore:
    cfg: Config = ctx.obj or Config()
    try:
        return CharmStore(cfg)
    except CharmRepoError as e:
        raise click.ClickException(str(e)) from e


@click.command()
@click.argument("ref")
@click.pass_context
def resolve(ctx: click.Context, ref: str) -> None:
    """解析 charm 引用为完整标识（不下载）"""
    try:
        url = _store(ctx).resolve(ref)
    except CharmRepoError as e:
        raise click.ClickException(str(e)) from e
    click.echo(str(url))


@click.command()
@click.argument("refs", nargs=-1)
@click.pass_context
def latest(ctx: click.Context, refs: tuple[str, ...]) -> None:
    """批量查询最新修订号与 sha256"""
    if not refs:
        return
    try:
        revisions = _store(ctx).latest(*refs)
    except CharmRepoError as e:
        raise click.ClickException(str(e)) from e
    for ref, rev in zip(refs, revisions):
        if rev.err is not None:
            click.echo(f"  {ref:40s} [ERROR] {rev.err}")
        else:
            click.echo(f"  {ref:40s} {rev.revision:<6d} {rev.sha256}")


@click.command()
@click.argument("ref")
@click.pass_context
def get(ctx: click.Context, ref: str) -> None:
    """拉取 charm 归档（缓存优先，缓存缺失或损坏时下载）"""
    try:
        charm = _store(ctx).get(ref)
    except CharmRepoError as e:
        raise click.ClickException(str(e)) from e
    click.echo(f"就绪: {charm.name} -> {charm.path}")
