"""
配置加载模块：支持 .env、环境变量、工作目录 config.json（或 CONFIG_FILE 指定）多来源合并。
公开接口：
- Config: 读取配置的设置类
- config: Config 的单例实例
内部方法：
- Config.settings_customise_sources: 自定义配置来源顺序
- Config.parse_nodes: 将 JSON 字符串解析为节点拓扑列表
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Tuple

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, PydanticBaseSettingsSource

from src.labca.lab.schemas import NodeSpec


class Config(BaseSettings):
    prefix: str = "lab"
    debug: bool = False
    lab_dir: str = ""
    signer_binary: str = "cfssl"
    signer_timeout: float = 30.0
    root_csr_template: str = ""
    node_csr_template: str = ""
    nodes: List[NodeSpec] = []

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("nodes", mode="before")
    @classmethod
    def parse_nodes(cls, value: Any) -> Any:
        """支持从环境变量以 JSON 数组解析节点拓扑；字符串元素视为仅有名称的节点。"""
        if value is None or value == "":
            return []
        if isinstance(value, str):
            try:
                value = json.loads(value.strip())
            except json.JSONDecodeError as e:
                raise ValueError(f"nodes 不是合法的 JSON: {e}")
        if isinstance(value, list):
            return [{"name": v} if isinstance(v, str) else v for v in value]
        return value

    def resolved_lab_dir(self) -> Path:
        """实验室基目录，未配置时为 <cwd>/lab-<prefix>。"""
        if self.lab_dir:
            return Path(self.lab_dir).absolute()
        return Path.cwd() / f"lab-{self.prefix}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """自定义配置来源顺序：入参 > 环境变量 > .env > config.json > secrets。"""

        class JsonFileSettingsSource(PydanticBaseSettingsSource):
            """从工作目录的 config.json（或 CONFIG_FILE 指定路径）加载配置的自定义 Source。"""

            def __init__(self, settings_cls):
                super().__init__(settings_cls)
                self._data: Dict[str, Any] | None = None

            def _load(self) -> None:
                if self._data is not None:
                    return
                cfg_path = os.environ.get("CONFIG_FILE")
                path = Path(cfg_path) if cfg_path else Path.cwd() / "config.json"
                if not path.exists():
                    self._data = {}
                    return
                try:
                    with path.open("r", encoding="utf-8") as f:
                        data = json.load(f)
                    self._data = data if isinstance(data, dict) else {}
                except (OSError, json.JSONDecodeError):
                    self._data = {}

            def __call__(self) -> Dict[str, Any]:
                self._load()
                return dict(self._data or {})

            def get_field_value(self, field, field_name):  # type: ignore[override]
                """为满足抽象基类要求，按字段名返回字段值。"""
                self._load()
                data = self._data or {}
                if field_name in data:
                    return data[field_name], field_name, False
                return None, field_name, False

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonFileSettingsSource(settings_cls),
            file_secret_settings,
        )


config = Config()
