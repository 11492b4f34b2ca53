"""
目录与文件工具。

- lab_paths: 实验室 CA 目录布局
- create_directory: 幂等地创建目录
- create_file: 将文本写入文件（覆盖）
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from loguru import logger


def lab_paths(lab_dir: Path) -> Dict[str, Path]:
    """返回实验室 CA 相关目录：ca 为 CA 总目录，ca_root 存放根 CA 产物。"""
    ca = Path(lab_dir) / "ca"
    return {
        "ca": ca,
        "ca_root": ca / "root",
    }


def node_cert_dir(lab_dir: Path, short_name: str) -> Path:
    return lab_paths(lab_dir)["ca"] / short_name


def create_directory(path: Path, mode: int = 0o755) -> None:
    """创建目录（含父目录）；目录已存在时不报错，也不改动已有内容。"""
    Path(path).mkdir(mode=mode, parents=True, exist_ok=True)


def create_file(path: Path, content: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.debug(f"已写入文件 {path}")
