"""
测试 CSR 模板渲染。
"""

import json

import pytest

from src.labca.ca import renderer
from src.labca.ca.errors import FileWriteError, TemplateError


def test_render_root_template(tmp_path):
    dst = tmp_path / "csr-root-ca.json"
    renderer.render(renderer.ROOT_CSR_TEMPLATE, renderer.RootCSRParams(Prefix="containerlab-demo"), dst)

    data = json.loads(dst.read_text(encoding="utf-8"))
    assert data["CN"] == "containerlab-demo Root CA"
    assert data["names"][0]["O"] == "containerlab-demo"
    assert "ca" in data


def test_render_node_template(tmp_path):
    dst = tmp_path / "csr-r1.json"
    params = renderer.NodeCSRParams(Name="r1", LongName="lab-demo-r1", Fqdn="r1.demo.io", Prefix="demo")
    renderer.render(renderer.NODE_CSR_TEMPLATE, params, dst)

    data = json.loads(dst.read_text(encoding="utf-8"))
    assert data["CN"] == "r1.demo.io"
    assert data["hosts"] == ["r1", "lab-demo-r1", "r1.demo.io"]


def test_render_overwrites_existing(tmp_path):
    dst = tmp_path / "out.json"
    dst.write_text("stale", encoding="utf-8")
    renderer.render(renderer.ROOT_CSR_TEMPLATE, renderer.RootCSRParams(Prefix="p"), dst)
    assert "stale" not in dst.read_text(encoding="utf-8")


def test_missing_template(tmp_path):
    """测试模板不存在时抛出 TemplateError 且不生成请求文件"""
    dst = tmp_path / "out.json"
    with pytest.raises(TemplateError):
        renderer.render(tmp_path / "missing.j2", renderer.RootCSRParams(Prefix="p"), dst)
    assert not dst.exists()


def test_malformed_template(tmp_path):
    src = tmp_path / "broken.j2"
    src.write_text('{"CN": "{{ Prefix "}', encoding="utf-8")
    with pytest.raises(TemplateError):
        renderer.render(src, renderer.RootCSRParams(Prefix="p"), tmp_path / "out.json")


def test_template_not_utf8(tmp_path):
    """测试模板不是合法 UTF-8 时抛出 TemplateError"""
    src = tmp_path / "latin.j2"
    src.write_bytes(b"\xff{{ Prefix }}")
    dst = tmp_path / "out.json"
    with pytest.raises(TemplateError):
        renderer.render(src, renderer.RootCSRParams(Prefix="p"), dst)
    assert not dst.exists()


def test_free_text_fields_are_json_escaped(tmp_path):
    """测试长名中含引号、反斜杠时仍生成合法的 CSR JSON"""
    dst = tmp_path / "csr-r1.json"
    params = renderer.NodeCSRParams(
        Name="r1", LongName='edge "core" \\ router', Fqdn="r1.demo.io", Prefix='de"mo'
    )
    renderer.render(renderer.NODE_CSR_TEMPLATE, params, dst)

    data = json.loads(dst.read_text(encoding="utf-8"))
    assert data["hosts"] == ["r1", 'edge "core" \\ router', "r1.demo.io"]
    assert data["CN"] == 'r1.de"mo.io'
    assert data["names"][0]["O"] == 'containerlab-de"mo'


def test_root_prefix_is_json_escaped(tmp_path):
    dst = tmp_path / "csr-root-ca.json"
    renderer.render(renderer.ROOT_CSR_TEMPLATE, renderer.RootCSRParams(Prefix='a"b'), dst)

    data = json.loads(dst.read_text(encoding="utf-8"))
    assert data["CN"] == 'a"b Root CA'
    assert data["names"][0]["O"] == 'a"b'


def test_undefined_placeholder(tmp_path):
    """测试模板引用了参数中不存在的占位符"""
    src = tmp_path / "node.j2"
    src.write_text('{"CN": "{{ Fqdn }}"}', encoding="utf-8")
    with pytest.raises(TemplateError):
        renderer.render(src, renderer.RootCSRParams(Prefix="p"), tmp_path / "out.json")


def test_unwritable_destination(tmp_path):
    dst = tmp_path / "no-such-dir" / "out.json"
    with pytest.raises(FileWriteError):
        renderer.render(renderer.ROOT_CSR_TEMPLATE, renderer.RootCSRParams(Prefix="p"), dst)
