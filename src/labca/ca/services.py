"""
证书签发服务的业务逻辑层。
此模块持有进程内唯一的实验室 CA 实例，并为路由层提供更清晰的接口。
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, List

from src.labca.config import config
from src.labca.lab.registry import NodeRegistry

from . import verify
from .core import CAContext, CertificateAuthority
from .distributor import unescape_pem
from .errors import RootCANotReady
from .schemas import (
    ArtifactsResponse,
    BatchIssueResponse,
    NodeTLSStatus,
    VerifyCertificateRequest,
    VerifyCertificateResponse,
)

_LAB: CertificateAuthority | None = None
# 注册表与签名程序不支持并发签发，所有签发请求在此串行执行
_LOCK = threading.Lock()


def get_lab() -> CertificateAuthority:
    """返回进程内的实验室 CA，首次调用时根据配置构建。"""
    global _LAB
    if _LAB is None:
        context = CAContext.from_config(config)
        registry = NodeRegistry.from_specs(config.nodes, context.prefix, context.lab_dir)
        _LAB = CertificateAuthority(context, registry)
    return _LAB


def set_lab(lab: CertificateAuthority | None) -> None:
    global _LAB
    _LAB = lab


def _artifacts(name: str, paths: Dict[str, Path]) -> ArtifactsResponse:
    if not paths:
        return ArtifactsResponse(name=name, skipped=True)
    return ArtifactsResponse(
        name=name,
        certificate_path=str(paths["cert"]),
        key_path=str(paths["key"]),
        csr_path=str(paths["csr"]),
    )


def list_nodes_service() -> List[NodeTLSStatus]:
    with _LOCK:
        return [
            NodeTLSStatus(
                name=node.short_name,
                kind=node.kind,
                fqdn=node.fqdn,
                has_certificate=bool(node.tls_cert),
                has_key=bool(node.tls_key),
                has_trust_anchor=bool(node.tls_anchor),
            )
            for node in get_lab().registry
        ]


def create_root_ca_service() -> ArtifactsResponse:
    with _LOCK:
        return _artifacts("root-ca", get_lab().create_root_ca())


def create_node_cert_service(name: str) -> ArtifactsResponse:
    with _LOCK:
        return _artifacts(name, get_lab().create_cert(name))


def create_node_certs_service() -> BatchIssueResponse:
    with _LOCK:
        results = get_lab().create_node_certs()
    return BatchIssueResponse(
        issued=[name for name, err in results.items() if err is None],
        failed={name: str(err) for name, err in results.items() if err is not None},
    )


def verify_certificate_service(req: VerifyCertificateRequest) -> VerifyCertificateResponse:
    """
    验证证书是否由本实验室根 CA 签发。
    与内存中的信任锚比较，不依赖磁盘上的根证书文件。
    :raises RootCANotReady: 尚无信任锚可供比较。
    """
    with _LOCK:
        lab = get_lab()
        anchor = lab.registry.trust_anchor
        if not lab.root_ready or not anchor:
            raise RootCANotReady("根 CA 尚未创建，无法验证证书")
    result = verify.verify_issued_by_root(req.certificate_content, unescape_pem(anchor))
    return VerifyCertificateResponse(**result)

