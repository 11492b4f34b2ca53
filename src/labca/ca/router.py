"""
实验室证书签发服务的 FastAPI 路由定义。
"""

from typing import List

from fastapi import APIRouter, HTTPException
from . import services
from .errors import CAError, RootCANotReady, SignerUnavailable, UnknownNode
from .schemas import (
    ArtifactsResponse,
    BatchIssueResponse,
    NodeTLSStatus,
    VerifyCertificateRequest,
    VerifyCertificateResponse,
)

# 签发处理函数会阻塞在签名子进程上，须为普通 def
router = APIRouter(prefix="/ca", tags=["Certificate Authority"])


def _to_http(e: CAError) -> HTTPException:
    if isinstance(e, UnknownNode):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, RootCANotReady):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, SignerUnavailable):
        return HTTPException(status_code=502, detail=f"签名程序不可用: {e}")
    return HTTPException(status_code=500, detail=f"证书签发失败: {e}")


@router.get("/nodes", response_model=List[NodeTLSStatus])
def list_nodes() -> List[NodeTLSStatus]:
    """
    列出实验室节点及其 TLS 状态。
    """
    return services.list_nodes_service()


@router.post("/root", response_model=ArtifactsResponse)
def create_root_ca() -> ArtifactsResponse:
    """
    创建根 CA，并将根证书作为信任锚分发到所有节点。
    """
    try:
        return services.create_root_ca_service()
    except CAError as e:
        raise _to_http(e)


@router.post("/nodes/certs", response_model=BatchIssueResponse)
def create_node_certs() -> BatchIssueResponse:
    """
    为所有非桥接节点签发证书。
    """
    try:
        return services.create_node_certs_service()
    except CAError as e:
        raise _to_http(e)


@router.post("/nodes/{name}/cert", response_model=ArtifactsResponse)
def create_node_cert(name: str) -> ArtifactsResponse:
    """
    为单个节点签发由根 CA 签名的证书。
    """
    try:
        return services.create_node_cert_service(name)
    except CAError as e:
        raise _to_http(e)


@router.post("/verify", response_model=VerifyCertificateResponse)
def verify_certificate(req: VerifyCertificateRequest) -> VerifyCertificateResponse:
    """
    客户端上传证书内容，验证该证书是否由本实验室根 CA 签发。
    """
    try:
        return services.verify_certificate_service(req)
    except CAError as e:
        raise _to_http(e)
