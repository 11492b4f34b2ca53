"""
签名结果解析与分发。

cfssl 的输出是包含 cert / key / csr 字段的 JSON 对象。每次分发都会写出三个产物文件：
<prefix>.pem、<prefix>-key.pem、<prefix>.csr（字段缺失时写空文件），随后再更新内存中的节点记录：
- 指定了目标节点：写入该节点的 tls_cert 与 tls_key
- 未指定目标节点（根 CA）：把证书作为信任锚写入注册表中的所有节点，根私钥不分发

内存中的证书与私钥以单行形式保存（见 escape_pem），以便直接嵌入生成的配置中。
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict

from loguru import logger
from pydantic import BaseModel, ValidationError

from src.labca.lab.files import create_file
from src.labca.lab.registry import NodeRegistry
from src.labca.lab.schemas import Node

from .errors import FileWriteError, MalformedSignerOutput


class SignerOutput(BaseModel):
    """签名程序输出，任一字段都可能缺失。"""

    cert: str | None = None
    key: str | None = None
    csr: str | None = None


def escape_pem(value: str) -> str:
    """将换行符替换为两个字符的 \\n 序列，得到单行文本。"""
    return value.replace("\n", "\\n")


def unescape_pem(value: str) -> str:
    """escape_pem 的逆变换。"""
    return value.replace("\\n", "\n")


def parse_output(raw: bytes) -> SignerOutput:
    """
    解析签名程序输出。
    :raises MalformedSignerOutput: 不是 JSON 对象，或字段不是字符串。
    """
    try:
        data = json.loads(raw)
    except ValueError as e:
        raise MalformedSignerOutput(f"无法解析签名程序输出: {e}") from e
    if not isinstance(data, dict):
        raise MalformedSignerOutput(f"签名程序输出不是 JSON 对象: {type(data).__name__}")
    try:
        return SignerOutput.model_validate(data)
    except ValidationError as e:
        raise MalformedSignerOutput(f"签名程序输出字段非法: {e}") from e


def artifact_paths(artifact_prefix: Path) -> Dict[str, Path]:
    prefix = str(artifact_prefix)
    return {
        "cert": Path(prefix + ".pem"),
        "key": Path(prefix + "-key.pem"),
        "csr": Path(prefix + ".csr"),
    }


def write_artifacts(output: SignerOutput, artifact_prefix: Path) -> Dict[str, Path]:
    """写出三个产物文件，返回各文件路径。"""
    paths = artifact_paths(artifact_prefix)
    for field, path in paths.items():
        try:
            create_file(path, getattr(output, field) or "")
        except OSError as e:
            logger.error(f"写入产物文件 {path} 失败: {e}")
            raise FileWriteError(f"无法写入 {path}: {e}") from e
    return paths


def distribute(
    raw: bytes,
    artifact_prefix: Path,
    registry: NodeRegistry,
    node: Node | None = None,
) -> Dict[str, Path]:
    """
    解析签名输出、写出产物文件并更新内存中的节点记录。
    :param raw: 签名程序的原始输出。
    :param artifact_prefix: 产物文件路径前缀（不含扩展名）。
    :param registry: 节点注册表，根 CA 分发信任锚时使用。
    :param node: 目标节点；为 None 时表示根 CA。
    :return: 产物文件路径。
    :raises MalformedSignerOutput: 输出无法解析。
    :raises FileWriteError: 产物文件写入失败，此时内存中的节点记录不变。
    """
    output = parse_output(raw)
    paths = write_artifacts(output, artifact_prefix)

    if node is not None:
        # 证书与私钥一起更新
        updates = {}
        if output.cert is not None:
            updates["tls_cert"] = escape_pem(output.cert)
        if output.key is not None:
            updates["tls_key"] = escape_pem(output.key)
        for field, value in updates.items():
            setattr(node, field, value)
        logger.debug(f"node: {node.model_dump(exclude={'tls_key'})}")
    elif output.cert is not None:
        registry.broadcast_trust_anchor(escape_pem(output.cert))
    return paths
