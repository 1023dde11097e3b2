"""
资源筛选服务
"""

import re
from typing import List, Sequence

from mirror_upload.models import ReleaseAsset


def select_assets(
    assets: Sequence[ReleaseAsset], pattern: "re.Pattern[str]"
) -> List[ReleaseAsset]:
    """
    返回文件名完整匹配 pattern 的资源，保持原有顺序

    Args:
        assets: Release 的资源列表
        pattern: 已编译的文件正则

    Returns:
        匹配的资源（可能为空）
    """
    return [asset for asset in assets if pattern.fullmatch(asset.name)]
