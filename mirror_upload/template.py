"""
版本号模板引擎

支持的语法：

- ``$name`` / ``${ name }``：变量引用
- ``\\\\``：字面量 ``\\``
- ``\\$``：字面量 ``$``
- 其他位置的 ``$``（后面不是合法变量名或花括号形式）按字面量处理
"""

import re
from dataclasses import dataclass
from typing import List, Mapping, Tuple

from mirror_upload.exceptions import InvalidEscapeError, UnknownVariableError

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BRACED_IDENTIFIER = re.compile(r"\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}")

_ESCAPABLE = ("\\", "$")

# 编排器渲染版本号时提供的变量
RELEASE_VARIABLES = ("tag",)


@dataclass(frozen=True)
class TemplatePart:
    """模板片段：字面文本或变量引用"""

    value: str
    variable: bool = False


@dataclass(frozen=True)
class Template:
    """已解析的模板"""

    source: str
    parts: Tuple[TemplatePart, ...]

    @classmethod
    def parse(cls, source: str) -> "Template":
        return cls(source=source, parts=tuple(parse_template(source)))

    @property
    def variables(self) -> List[str]:
        """模板引用的变量名（按出现顺序）"""
        return [part.value for part in self.parts if part.variable]

    def render(self, variables: Mapping[str, str]) -> str:
        result = []
        for part in self.parts:
            if not part.variable:
                result.append(part.value)
                continue
            if part.value not in variables:
                raise UnknownVariableError(
                    part.value, context={"template": self.source}
                )
            result.append(str(variables[part.value]))
        return "".join(result)


def parse_template(template: str) -> List[TemplatePart]:
    """
    从左到右扫描模板，拆分为文本片段和变量片段

    Args:
        template: 模板字符串

    Returns:
        模板片段列表

    Raises:
        InvalidEscapeError: 转义序列非法或模板以单个 ``\\`` 结尾
    """
    parts: List[TemplatePart] = []
    buffer: List[str] = []
    cursor = 0
    length = len(template)

    def flush():
        if buffer:
            parts.append(TemplatePart("".join(buffer)))
            buffer.clear()

    while cursor < length:
        char = template[cursor]

        if char == "\\":
            if cursor + 1 >= length:
                raise InvalidEscapeError(
                    "模板以未完成的转义符 '\\' 结尾",
                    context={"template": template, "position": cursor},
                )
            escaped = template[cursor + 1]
            if escaped not in _ESCAPABLE:
                raise InvalidEscapeError(
                    f"非法的转义序列 '\\{escaped}'",
                    context={"template": template, "position": cursor},
                )
            buffer.append(escaped)
            cursor += 2
            continue

        if char == "$":
            braced = _BRACED_IDENTIFIER.match(template, cursor + 1)
            if braced:
                flush()
                parts.append(TemplatePart(braced.group(1), variable=True))
                cursor = braced.end()
                continue
            plain = _IDENTIFIER.match(template, cursor + 1)
            if plain:
                flush()
                parts.append(TemplatePart(plain.group(0), variable=True))
                cursor = plain.end()
                continue

        buffer.append(char)
        cursor += 1

    flush()
    return parts


def render(template: str, variables: Mapping[str, str]) -> str:
    """
    渲染模板

    Args:
        template: 模板字符串
        variables: 变量表

    Returns:
        渲染结果

    Raises:
        InvalidEscapeError: 转义序列非法
        UnknownVariableError: 引用了 variables 中不存在的变量
    """
    return Template.parse(template).render(variables)
