"""
节点注册表。

以节点短名为键保存 Node，由签发流程原地修改；本模块不会增删节点之外的任何状态。
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, Iterator

from loguru import logger

from .files import node_cert_dir
from .schemas import Node, NodeSpec


class NodeRegistry:
    """短名 -> Node 的映射。"""

    def __init__(self, nodes: Iterable[Node] = ()):
        self._nodes: Dict[str, Node] = {}
        self.trust_anchor = ""
        for node in nodes:
            if node.short_name in self._nodes:
                raise ValueError(f"节点名重复: {node.short_name}")
            self._nodes[node.short_name] = node

    @classmethod
    def from_specs(cls, specs: Iterable[NodeSpec], prefix: str, lab_dir: Path) -> "NodeRegistry":
        """根据拓扑声明构建注册表，补全长名、FQDN 与证书目录。"""
        nodes = [
            Node(
                short_name=spec.name,
                long_name=spec.long_name or f"lab-{prefix}-{spec.name}",
                fqdn=spec.fqdn or f"{spec.name}.{prefix}.io",
                kind=spec.kind,
                cert_dir=node_cert_dir(lab_dir, spec.name),
            )
            for spec in specs
        ]
        return cls(nodes)

    def get(self, short_name: str) -> Node | None:
        return self._nodes.get(short_name)

    def broadcast_trust_anchor(self, value: str) -> None:
        """将同一个信任锚写入所有节点，并保留一份供后续校验使用。"""
        self.trust_anchor = value
        for node in self._nodes.values():
            node.tls_anchor = value
        logger.debug(f"信任锚已分发至 {len(self._nodes)} 个节点")

    def __contains__(self, short_name: object) -> bool:
        return short_name in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)
