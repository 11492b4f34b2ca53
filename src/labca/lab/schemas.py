"""
文件功能：
    定义实验室节点相关的数据模型（Pydantic）。

公开接口：
    - BRIDGE_KIND: 不签发证书的桥接节点类型
    - NodeSpec: 拓扑中声明的节点（来自配置）
    - Node: 运行期节点记录，携带 TLS 证书、私钥与信任锚

内部方法：
    无
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

BRIDGE_KIND = "bridge"


class NodeSpec(BaseModel):
    """拓扑中的节点声明。"""

    name: str = Field(description="节点短名，在实验室内唯一")
    kind: str = Field(default="linux", description="节点类型")
    long_name: str | None = Field(default=None, description="节点长名，缺省为 lab-<prefix>-<name>")
    fqdn: str | None = Field(default=None, description="完全限定域名，缺省为 <name>.<prefix>.io")


class Node(BaseModel):
    """
    实验室中的一个节点。

    tls_cert / tls_key / tls_anchor 只由证书签发流程写入，保存的是换行已转义的单行文本，
    见 src.labca.ca.distributor.escape_pem。
    """

    short_name: str
    long_name: str
    fqdn: str
    kind: str
    cert_dir: Path
    tls_cert: str = ""
    tls_key: str = ""
    tls_anchor: str = ""

    @property
    def is_bridge(self) -> bool:
        return self.kind == BRIDGE_KIND
