"""
签名程序适配层：调用外部 cfssl 兼容程序生成自签根证书或由根 CA 签发的叶子证书。

公开接口：
- InitializeCA / SignWithCA: 两种签名模式
- build_command: 根据模式构造命令行
- sign: 执行签名子进程并返回其标准输出（原始 JSON 字节）
"""

from __future__ import annotations

import json
import subprocess
from pathlib import Path
from typing import List, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict

from .errors import SignerUnavailable


class InitializeCA(BaseModel):
    """自签模式：生成根 CA 证书与私钥。"""

    model_config = ConfigDict(frozen=True)


class SignWithCA(BaseModel):
    """使用根 CA 证书与私钥签发叶子证书。"""

    model_config = ConfigDict(frozen=True)

    ca_cert: Path
    ca_key: Path


SignMode = Union[InitializeCA, SignWithCA]


def build_command(binary: str, request_path: Path, mode: SignMode) -> List[str]:
    if isinstance(mode, InitializeCA):
        return [binary, "gencert", "-initca", str(request_path)]
    return [
        binary,
        "gencert",
        "-ca",
        str(mode.ca_cert),
        "-ca-key",
        str(mode.ca_key),
        str(request_path),
    ]


def _pretty(output: bytes) -> str:
    try:
        return json.dumps(json.loads(output), indent=2, ensure_ascii=False)
    except ValueError:
        return output.decode("utf-8", errors="replace")


def sign(
    request_path: Path,
    mode: SignMode,
    binary: str = "cfssl",
    timeout: float | None = None,
    debug: bool = False,
) -> bytes:
    """
    执行签名子进程。
    :param request_path: 已渲染的 CSR 描述文件路径。
    :param mode: InitializeCA 或 SignWithCA。
    :param binary: 签名程序可执行文件名。
    :param timeout: 超时时间（秒），超时视为签名程序不可用。
    :param debug: 为 True 时以 DEBUG 级别输出格式化后的签名结果。
    :return: 子进程的标准输出。
    :raises SignerUnavailable: 子进程无法启动、超时或退出码非零。
    """
    cmd = build_command(binary, request_path, mode)
    logger.debug(f"Executing command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        error_msg = f"签名程序超时 ({timeout}s): {' '.join(cmd)}"
        logger.error(error_msg)
        raise SignerUnavailable(error_msg)
    except OSError as e:
        error_msg = f"无法启动签名程序 {binary}: {e}"
        logger.error(error_msg)
        raise SignerUnavailable(error_msg) from e

    if result.returncode != 0:
        stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()
        error_msg = f"'{' '.join(cmd[:3])}' 执行失败，退出码 {result.returncode}: {stderr}"
        logger.error(error_msg)
        raise SignerUnavailable(error_msg)

    if debug:
        logger.debug(f"'{' '.join(cmd[:3])}' output:\n{_pretty(result.stdout)}")
    return result.stdout
