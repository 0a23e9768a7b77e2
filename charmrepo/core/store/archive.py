"""charm 归档解析

归档是 zip 文件，包含:
  - metadata.yaml  必需，charm 元信息
  - config.yaml    可选，配置项定义（options 段）
  - actions.yaml   可选，动作定义
  - revision       可选，旧式修订号文件
"""

from __future__ import annotations

import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from charmrepo.core.exceptions import ArchiveError
from charmrepo.utils.yaml_io import parse_yaml

METADATA_FILE = "metadata.yaml"
CONFIG_FILE = "config.yaml"
ACTIONS_FILE = "actions.yaml"
REVISION_FILE = "revision"


@dataclass
class CharmArchive:
    """解析后的 charm，path 指向缓存文件（文件仍归缓存所有）"""

    path: Path
    meta: dict[str, Any]
    config: dict[str, Any] = field(default_factory=dict)
    actions: dict[str, Any] = field(default_factory=dict)
    revision: int | None = None

    @property
    def name(self) -> str:
        return str(self.meta.get("name", ""))


def _read_member(zf: zipfile.ZipFile, name: str) -> bytes | None:
    try:
        return zf.read(name)
    except KeyError:
        return None


def read_charm_archive(path: Path) -> CharmArchive:
    """读取并解析 charm 归档

    Raises:
        ArchiveError: 不是 zip 文件、缺少 metadata.yaml 或 YAML 非法
    """
    try:
        with zipfile.ZipFile(path) as zf:
            meta_raw = _read_member(zf, METADATA_FILE)
            if meta_raw is None:
                raise ArchiveError(f"archive {path} has no {METADATA_FILE}")
            config_raw = _read_member(zf, CONFIG_FILE)
            actions_raw = _read_member(zf, ACTIONS_FILE)
            revision_raw = _read_member(zf, REVISION_FILE)

            meta = parse_yaml(meta_raw, source=METADATA_FILE)
            config = parse_yaml(config_raw, source=CONFIG_FILE) if config_raw else {}
            actions = parse_yaml(actions_raw, source=ACTIONS_FILE) if actions_raw else {}
    except zipfile.BadZipFile as e:
        raise ArchiveError(f"cannot read charm archive {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ArchiveError(f"cannot parse charm archive {path}: {e}") from e

    revision = None
    if revision_raw is not None:
        try:
            revision = int(revision_raw.decode("utf-8").strip())
        except (UnicodeDecodeError, ValueError) as e:
            raise ArchiveError(f"invalid revision file in {path}: {e}") from e

    return CharmArchive(
        path=Path(path),
        meta=meta,
        config=config,
        actions=actions,
        revision=revision,
    )
