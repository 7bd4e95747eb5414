"""Use cases: entry points called by the API layer."""

from vdrive.application.use_cases.storage_facade import StorageFacade

__all__ = ["StorageFacade"]
