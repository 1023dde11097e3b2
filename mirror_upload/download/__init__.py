"""
mirror-upload 下载层

包含 Release 资源下载与文件校验。
"""

from mirror_upload.download.manager import AssetDownloader, DownloadStats
from mirror_upload.download.verifier import FileVerifier

__all__ = [
    "AssetDownloader",
    "DownloadStats",
    "FileVerifier",
]
