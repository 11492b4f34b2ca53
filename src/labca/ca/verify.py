"""
校验节点证书是否由实验室根 CA 签发。
"""

from __future__ import annotations

from typing import Any, Dict

from cryptography import x509
from cryptography.exceptions import InvalidSignature
from cryptography.x509.oid import NameOID
from loguru import logger

from src.labca.lab.schemas import Node

from .distributor import unescape_pem


def _get_cn_from_name(name: x509.Name) -> str | None:
    try:
        return name.get_attributes_for_oid(NameOID.COMMON_NAME)[0].value
    except (IndexError, AttributeError):
        return None


def verify_issued_by_root(cert_pem: str, anchor_pem: str) -> Dict[str, Any]:
    """
    验证证书是否由给定的根证书直接签发（签发者匹配且签名有效）。
    :param cert_pem: 待验证证书的 PEM 文本。
    :param anchor_pem: 根证书（信任锚）的 PEM 文本。
    :return: 例如 {"is_issued_by_root": True, "issuer_common_name": "...", "subject_common_name": "..."}
    """
    try:
        cert = x509.load_pem_x509_certificate(cert_pem.encode("utf-8"))
        anchor = x509.load_pem_x509_certificate(anchor_pem.encode("utf-8"))
    except ValueError as e:
        # 无效的用户输入不视为服务器错误
        logger.warning(f"解析证书失败: {e}")
        return {
            "is_issued_by_root": False,
            "issuer_common_name": None,
            "subject_common_name": None,
        }

    try:
        cert.verify_directly_issued_by(anchor)
        issued = True
    except (ValueError, TypeError, InvalidSignature):
        issued = False

    return {
        "is_issued_by_root": issued,
        "issuer_common_name": _get_cn_from_name(cert.issuer),
        "subject_common_name": _get_cn_from_name(cert.subject),
    }


def verify_node(node: Node) -> Dict[str, Any]:
    """用节点内存中的证书与信任锚做校验。"""
    return verify_issued_by_root(unescape_pem(node.tls_cert), unescape_pem(node.tls_anchor))
