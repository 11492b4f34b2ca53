"""
证书签发服务的数据模型定义。
"""

from typing import Dict, List

from pydantic import BaseModel


class NodeTLSStatus(BaseModel):
    """
    单个节点的 TLS 状态，不包含证书与私钥内容本身。
    """
    name: str
    kind: str
    fqdn: str
    has_certificate: bool
    has_key: bool
    has_trust_anchor: bool


class ArtifactsResponse(BaseModel):
    """
    一次签发写出的产物文件。
    """
    name: str
    certificate_path: str | None = None
    key_path: str | None = None
    csr_path: str | None = None
    skipped: bool = False


class BatchIssueResponse(BaseModel):
    """
    批量签发的结果，failed 为节点名 -> 失败原因。
    """
    issued: List[str]
    failed: Dict[str, str]


class VerifyCertificateRequest(BaseModel):
    """
    客户端请求验证证书归属的数据模型。
    """
    certificate_content: str  # PEM 格式的证书内容


class VerifyCertificateResponse(BaseModel):
    """
    服务端返回证书验证结果的数据模型。
    """
    is_issued_by_root: bool
    issuer_common_name: str | None = None
    subject_common_name: str | None = None
