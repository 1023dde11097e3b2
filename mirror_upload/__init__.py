"""
mirror-upload

将 GitHub Release 的资源同步上传到 Modrinth 和 CurseForge。
"""

__version__ = "0.1.0"
