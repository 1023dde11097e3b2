"""
mirror-upload 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和 JSON 序列化。

致命错误（配置错误、找不到 Release）会中止整个运行；
作用域错误（模板、资源匹配、上传）只记录到对应项目/平台的结果中。
"""

from typing import Any, Dict, Optional


class MirrorUploadError(Exception):
    """mirror-upload 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    @property
    def kind(self) -> str:
        """错误种类（用于运行报告）"""
        return self.__class__.__name__

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.kind,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(MirrorUploadError):
    """配置相关错误（致命）"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置文件解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class MissingFieldError(ConfigError):
    """缺少必填字段"""

    def _get_default_code(self) -> str:
        return "E102"


class InvalidValueError(ConfigError):
    """字段值非法"""

    def _get_default_code(self) -> str:
        return "E103"


class InvalidPatternError(ConfigError):
    """文件正则无法编译"""

    def _get_default_code(self) -> str:
        return "E104"


class InvalidTemplateError(ConfigError):
    """版本号模板语法错误"""

    def _get_default_code(self) -> str:
        return "E105"


class TemplateError(MirrorUploadError):
    """模板渲染错误"""

    def _get_default_code(self) -> str:
        return "E200"


class UnknownVariableError(TemplateError):
    """模板引用了未定义的变量"""

    def __init__(self, name: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"未定义的模板变量: {name}", context=context)
        self.name = name
        self.context.setdefault("variable", name)

    def _get_default_code(self) -> str:
        return "E201"


class InvalidEscapeError(TemplateError):
    """模板中的转义序列非法"""

    def _get_default_code(self) -> str:
        return "E202"


class NotFoundError(MirrorUploadError):
    """资源不存在"""

    def _get_default_code(self) -> str:
        return "E300"


class ReleaseTagNotFoundError(NotFoundError):
    """找不到指定标签的 Release（致命）"""

    def _get_default_code(self) -> str:
        return "E301"


class NoMatchingAssetsError(NotFoundError):
    """项目的文件正则没有匹配到任何资源"""

    def _get_default_code(self) -> str:
        return "E302"


class UploadError(MirrorUploadError):
    """上传/API 相关错误"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, code, context)
        self.status = status
        if status is not None:
            self.context["status_code"] = status

    def _get_default_code(self) -> str:
        return "E400"


class AuthFailureError(UploadError):
    """认证失败（缺少令牌或令牌被拒绝）"""

    def _get_default_code(self) -> str:
        return "E401"


class NetworkFailureError(UploadError):
    """网络错误"""

    def _get_default_code(self) -> str:
        return "E402"


class RemoteRejectedError(UploadError):
    """远端拒绝了请求"""

    def __init__(
        self,
        message: str,
        reason: str = "",
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, code, context, status)
        self.reason = reason
        if reason:
            self.context["reason"] = reason

    def _get_default_code(self) -> str:
        return "E403"


class DownloadError(NetworkFailureError):
    """Release 资源下载或校验失败"""

    def _get_default_code(self) -> str:
        return "E500"


def classify_http_error(
    status: int,
    body: str,
    message: str,
    context: Optional[Dict[str, Any]] = None,
) -> UploadError:
    """
    按 HTTP 状态码将失败响应归类为 UploadError 子类

    Args:
        status: HTTP 状态码
        body: 响应正文（作为拒绝原因）
        message: 错误描述
        context: 附加上下文

    Returns:
        对应的异常实例（未抛出）
    """
    if status in (401, 403):
        return AuthFailureError(message, context=context, status=status)
    return RemoteRejectedError(
        message, reason=body.strip(), context=context, status=status
    )


__all__ = [
    "MirrorUploadError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "MissingFieldError",
    "InvalidValueError",
    "InvalidPatternError",
    "InvalidTemplateError",
    # 模板异常
    "TemplateError",
    "UnknownVariableError",
    "InvalidEscapeError",
    # 资源异常
    "NotFoundError",
    "ReleaseTagNotFoundError",
    "NoMatchingAssetsError",
    # 上传异常
    "UploadError",
    "AuthFailureError",
    "NetworkFailureError",
    "RemoteRejectedError",
    "DownloadError",
    "classify_http_error",
]
