"""
测试公共夹具：用 cryptography 模拟 cfssl gencert，使签发流程无需真实的签名程序即可运行。
"""

import json
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from src.labca.ca import signer
from src.labca.ca.core import CAContext, CertificateAuthority
from src.labca.lab.registry import NodeRegistry
from src.labca.lab.schemas import NodeSpec


def _key_pem(key) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("utf-8")


def _gencert(request: dict, ca_cert=None, ca_key=None) -> dict:
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, request["CN"])])
    hosts = [h for h in request.get("hosts", []) if h]

    csr_builder = x509.CertificateSigningRequestBuilder().subject_name(subject)
    if hosts:
        csr_builder = csr_builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(h) for h in hosts]), critical=False
        )
    csr = csr_builder.sign(key, hashes.SHA256())

    now = datetime.now(timezone.utc)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(ca_cert.subject if ca_cert is not None else subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=1))
        .not_valid_after(now + timedelta(days=30))
        .add_extension(
            x509.BasicConstraints(ca=ca_cert is None, path_length=None), critical=True
        )
    )
    if hosts:
        builder = builder.add_extension(
            x509.SubjectAlternativeName([x509.DNSName(h) for h in hosts]), critical=False
        )
    cert = builder.sign(ca_key if ca_key is not None else key, hashes.SHA256())

    return {
        "cert": cert.public_bytes(serialization.Encoding.PEM).decode("utf-8"),
        "key": _key_pem(key),
        "csr": csr.public_bytes(serialization.Encoding.PEM).decode("utf-8"),
    }


class FakeCfssl:
    """模拟 `cfssl gencert`，记录每次调用的命令行。"""

    def __init__(self):
        self.calls: List[List[str]] = []

    def __call__(self, cmd, capture_output=True, timeout=None, **kwargs):
        self.calls.append(list(cmd))
        request_path = Path(cmd[-1])
        request = json.loads(request_path.read_text(encoding="utf-8"))

        if "-initca" in cmd:
            output = _gencert(request)
        else:
            ca_cert_path = Path(cmd[cmd.index("-ca") + 1])
            ca_key_path = Path(cmd[cmd.index("-ca-key") + 1])
            if not ca_cert_path.exists() or not ca_key_path.exists():
                return subprocess.CompletedProcess(
                    cmd, 1, stdout=b"", stderr=f"open {ca_cert_path}: no such file or directory".encode()
                )
            ca_cert = x509.load_pem_x509_certificate(ca_cert_path.read_bytes())
            ca_key = serialization.load_pem_private_key(ca_key_path.read_bytes(), password=None)
            output = _gencert(request, ca_cert, ca_key)

        return subprocess.CompletedProcess(cmd, 0, stdout=json.dumps(output).encode(), stderr=b"")


@pytest.fixture
def fake_cfssl(monkeypatch):
    fake = FakeCfssl()
    monkeypatch.setattr(signer.subprocess, "run", fake)
    return fake


@pytest.fixture
def lab_dir(tmp_path):
    return tmp_path / "lab-test"


@pytest.fixture
def registry(lab_dir):
    specs = [
        NodeSpec(name="r1", kind="router"),
        NodeSpec(name="r2", kind="linux"),
        NodeSpec(name="br1", kind="bridge"),
    ]
    return NodeRegistry.from_specs(specs, "test", lab_dir)


@pytest.fixture
def ca(lab_dir, registry, fake_cfssl):
    context = CAContext(lab_dir=lab_dir, prefix="test")
    return CertificateAuthority(context, registry)
