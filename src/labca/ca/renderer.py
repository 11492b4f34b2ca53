"""
CSR 描述模板渲染。

模板为 jinja2 语法的 cfssl CSR JSON，占位符名与参数模型字段一致。
"""

from __future__ import annotations

from pathlib import Path

import jinja2
from loguru import logger
from pydantic import BaseModel

from .errors import FileWriteError, TemplateError

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
ROOT_CSR_TEMPLATE = TEMPLATES_DIR / "csr-root-ca.json.j2"
NODE_CSR_TEMPLATE = TEMPLATES_DIR / "csr.json.j2"


class RootCSRParams(BaseModel):
    Prefix: str


class NodeCSRParams(BaseModel):
    Name: str
    LongName: str
    Fqdn: str
    Prefix: str


def _load_template(src: Path) -> jinja2.Template:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(searchpath=str(src.parent)),
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
    )
    return env.get_template(src.name)


def render(src: Path, params: BaseModel, dst: Path) -> None:
    """
    渲染模板并写入目标文件。
    :param src: 模板文件路径。
    :param params: 模板参数。
    :param dst: 目标文件路径，已存在时覆盖。
    :raises TemplateError: 模板不存在、无法读取或渲染失败。
    :raises FileWriteError: 目标文件无法写入。
    """
    src = Path(src)
    try:
        content = _load_template(src).render(**params.model_dump())
    except (jinja2.TemplateError, OSError, UnicodeDecodeError) as e:
        logger.error(f"渲染模板 {src} 失败: {e!r}")
        raise TemplateError(f"无法渲染模板 {src}: {e!r}") from e

    try:
        with open(dst, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as e:
        logger.error(f"写入请求文件 {dst} 失败: {e}")
        raise FileWriteError(f"无法写入请求文件 {dst}: {e}") from e
    logger.debug(f"模板渲染 {src} -> {dst} 成功")
