"""
证书签发流程的异常定义。

所有异常都返回给调用方，由调用方（如路由层）决定如何处理，不终止进程。
"""


class CAError(RuntimeError):
    """证书签发流程的基础异常。"""


class UnknownNode(CAError, LookupError):
    def __init__(self, short_name: str):
        super().__init__(f"未知节点: {short_name}")
        self.short_name = short_name


class RootCANotReady(CAError):
    """在根 CA 创建成功之前请求签发节点证书。"""


class TemplateError(CAError):
    """CSR 模板缺失或无法渲染。"""


class SignerUnavailable(CAError):
    """签名子进程无法启动、超时或以非零状态退出。"""


class MalformedSignerOutput(CAError):
    """签名程序的输出不是预期的 JSON 对象。"""


class FileWriteError(CAError):
    """目录或产物文件写入失败。"""
