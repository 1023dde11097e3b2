"""
运行报告模型

记录每个项目、每个上传目标的状态。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from mirror_upload.exceptions import MirrorUploadError
from mirror_upload.models.api import UploadReceipt


class Platform(Enum):
    """上传平台"""

    MODRINTH = "modrinth"
    CURSEFORGE = "curseforge"


class TargetState(Enum):
    """单次上传尝试的状态"""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


_TRANSITIONS = {
    TargetState.PENDING: {TargetState.IN_PROGRESS, TargetState.SKIPPED},
    TargetState.IN_PROGRESS: {TargetState.SUCCEEDED, TargetState.FAILED},
}


@dataclass
class TargetOutcome:
    """(项目, 平台) 的上传结果"""

    platform: Platform
    state: TargetState = TargetState.PENDING
    receipt: Optional[UploadReceipt] = None
    error: Optional[MirrorUploadError] = None

    def _move(self, state: TargetState):
        if state not in _TRANSITIONS.get(self.state, set()):
            raise RuntimeError(
                f"{self.platform.value} 上传状态不能从 {self.state.value} 变为 {state.value}"
            )
        self.state = state

    def start(self):
        self._move(TargetState.IN_PROGRESS)

    def succeed(self, receipt: UploadReceipt):
        self._move(TargetState.SUCCEEDED)
        self.receipt = receipt

    def fail(self, error: MirrorUploadError):
        self._move(TargetState.FAILED)
        self.error = error

    def skip(self):
        self._move(TargetState.SKIPPED)

    @property
    def failed(self) -> bool:
        return self.state == TargetState.FAILED

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "platform": self.platform.value,
            "state": self.state.value,
        }
        if self.receipt:
            data["reference"] = self.receipt.reference
            data["url"] = self.receipt.url
        if self.error:
            data["error"] = self.error.to_dict()
        return data


@dataclass
class ProjectReport:
    """单个项目的报告"""

    index: int
    label: str
    targets: List[TargetOutcome] = field(default_factory=list)
    error: Optional[MirrorUploadError] = None

    def target(self, platform: Platform) -> Optional[TargetOutcome]:
        for outcome in self.targets:
            if outcome.platform == platform:
                return outcome
        return None

    @property
    def failed(self) -> bool:
        return self.error is not None or any(t.failed for t in self.targets)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "label": self.label,
            "error": self.error.to_dict() if self.error else None,
            "targets": [t.to_dict() for t in self.targets],
        }


@dataclass
class RunReport:
    """一次运行的汇总报告，项目按配置顺序排列"""

    tag: str
    projects: List[ProjectReport] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not any(project.failed for project in self.projects)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def failures(self) -> List[ProjectReport]:
        return [project for project in self.projects if project.failed]

    def summary_lines(self) -> List[str]:
        """每个项目/平台一行的摘要"""
        lines = []
        for project in self.projects:
            if project.error:
                lines.append(f"{project.label}: 失败 - {project.error}")
            for outcome in project.targets:
                line = f"{project.label} -> {outcome.platform.value}: {outcome.state.value}"
                if outcome.receipt:
                    line += f" ({outcome.receipt.url or outcome.receipt.reference})"
                if outcome.error:
                    line += f" - {outcome.error}"
                lines.append(line)
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tag": self.tag,
            "succeeded": self.succeeded,
            "projects": [project.to_dict() for project in self.projects],
        }
