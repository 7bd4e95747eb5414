"""Application services: folder emulation, presigned URLs, search."""

from vdrive.application.services.folder_emulator import FolderEmulator
from vdrive.application.services.presigned_url_issuer import PresignedURLIssuer
from vdrive.application.services.search_engine import SearchEngine

__all__ = ["FolderEmulator", "PresignedURLIssuer", "SearchEngine"]
