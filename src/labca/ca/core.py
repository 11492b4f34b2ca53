"""
实验室证书签发的核心流程。
包括创建根 CA、为单个节点签发证书，以及为全部节点批量签发。

每次签发依次执行：创建目录 -> 渲染 CSR 模板 -> 调用签名程序 -> 解析并分发结果，
任一步失败都会抛出 CAError 子类并终止本次签发。
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict

from loguru import logger
from pydantic import BaseModel, ConfigDict

from src.labca.config import Config
from src.labca.lab.files import create_directory, lab_paths
from src.labca.lab.registry import NodeRegistry

from . import distributor, renderer, signer
from .errors import CAError, FileWriteError, RootCANotReady, UnknownNode

ROOT_CA_PREFIX = "containerlab"
ROOT_CA_NAME = "root-ca"


class CAContext(BaseModel):
    """签发流程的全局配置，初始化后不再修改。"""

    model_config = ConfigDict(frozen=True)

    lab_dir: Path
    prefix: str
    debug: bool = False
    signer_binary: str = "cfssl"
    signer_timeout: float | None = 30.0
    root_csr_template: Path = renderer.ROOT_CSR_TEMPLATE
    node_csr_template: Path = renderer.NODE_CSR_TEMPLATE

    @classmethod
    def from_config(cls, cfg: Config) -> "CAContext":
        return cls(
            lab_dir=cfg.resolved_lab_dir(),
            prefix=cfg.prefix,
            debug=cfg.debug,
            signer_binary=cfg.signer_binary,
            signer_timeout=cfg.signer_timeout,
            root_csr_template=Path(cfg.root_csr_template or renderer.ROOT_CSR_TEMPLATE),
            node_csr_template=Path(cfg.node_csr_template or renderer.NODE_CSR_TEMPLATE),
        )

    @property
    def ca_dir(self) -> Path:
        return lab_paths(self.lab_dir)["ca"]

    @property
    def ca_root_dir(self) -> Path:
        return lab_paths(self.lab_dir)["ca_root"]


def _ensure_directory(path: Path) -> None:
    try:
        create_directory(path)
    except OSError as e:
        logger.error(f"创建目录 {path} 失败: {e}")
        raise FileWriteError(f"无法创建目录 {path}: {e}") from e


class CertificateAuthority:
    """为一个实验室的节点注册表签发根 CA 与节点证书。"""

    def __init__(self, context: CAContext, registry: NodeRegistry):
        self.context = context
        self.registry = registry
        self.root_ready = False

    @property
    def root_cert_path(self) -> Path:
        return distributor.artifact_paths(self.context.ca_root_dir / ROOT_CA_NAME)["cert"]

    @property
    def root_key_path(self) -> Path:
        return distributor.artifact_paths(self.context.ca_root_dir / ROOT_CA_NAME)["key"]

    def _sign(self, request_path: Path, mode: signer.SignMode) -> bytes:
        return signer.sign(
            request_path,
            mode,
            binary=self.context.signer_binary,
            timeout=self.context.signer_timeout,
            debug=self.context.debug,
        )

    def create_root_ca(self) -> Dict[str, Path]:
        """
        创建根 CA，并把根证书作为信任锚分发给所有节点。
        重复调用会再次调用签名程序并覆盖已有产物。
        :return: 根 CA 产物文件路径。
        """
        logger.info("创建根 CA")
        ctx = self.context
        _ensure_directory(ctx.ca_dir)
        _ensure_directory(ctx.ca_root_dir)

        dst = ctx.ca_root_dir / "csr-root-ca.json"
        renderer.render(
            ctx.root_csr_template,
            renderer.RootCSRParams(Prefix=f"{ROOT_CA_PREFIX}-{ctx.prefix}"),
            dst,
        )

        output = self._sign(dst, signer.InitializeCA())
        paths = distributor.distribute(output, ctx.ca_root_dir / ROOT_CA_NAME, self.registry)
        self.root_ready = True
        logger.info(f"根 CA 已创建: {paths['cert']}")
        return paths

    def create_cert(self, short_name: str) -> Dict[str, Path]:
        """
        为节点签发由根 CA 签名的证书。桥接节点不签发证书，返回空字典。
        :param short_name: 节点短名。
        :return: 节点证书产物文件路径。
        :raises UnknownNode: 注册表中没有该节点。
        :raises RootCANotReady: 根 CA 尚未创建。
        """
        node = self.registry.get(short_name)
        if node is None:
            raise UnknownNode(short_name)
        if node.is_bridge:
            logger.warning(f"节点 {short_name} 为桥接类型，跳过证书签发")
            return {}
        if not self.root_ready:
            raise RootCANotReady(f"为节点 {short_name} 签发证书前必须先创建根 CA")

        logger.info(f"为节点签发证书: {short_name}")
        _ensure_directory(node.cert_dir)

        dst = node.cert_dir / f"csr-{short_name}.json"
        renderer.render(
            self.context.node_csr_template,
            renderer.NodeCSRParams(
                Name=short_name,
                LongName=node.long_name,
                Fqdn=node.fqdn,
                Prefix=self.context.prefix,
            ),
            dst,
        )

        mode = signer.SignWithCA(ca_cert=self.root_cert_path, ca_key=self.root_key_path)
        output = self._sign(dst, mode)
        return distributor.distribute(output, node.cert_dir / short_name, self.registry, node)

    def create_node_certs(self) -> Dict[str, CAError | None]:
        """
        为注册表中全部非桥接节点签发证书。单个节点失败不影响其他节点。
        :return: 节点短名 -> 失败原因（成功为 None）。
        :raises RootCANotReady: 根 CA 尚未创建。
        """
        if not self.root_ready:
            raise RootCANotReady("批量签发节点证书前必须先创建根 CA")
        results: Dict[str, CAError | None] = {}
        for node in self.registry:
            if node.is_bridge:
                continue
            try:
                self.create_cert(node.short_name)
                results[node.short_name] = None
            except CAError as e:
                logger.error(f"节点 {node.short_name} 证书签发失败: {e}")
                results[node.short_name] = e
        return results
