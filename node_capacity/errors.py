from __future__ import annotations
from typing import Optional


class InventoryError(Exception):
    """A cluster inventory collaborator failed; the run cannot continue."""

    exit_code: int = 1

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ClientConfigError(InventoryError):
    exit_code = 1


class NodeListError(InventoryError):
    exit_code = 2


class WorkloadListError(InventoryError):
    exit_code = 3


class ResourceListError(Exception):
    """Raised by list calls that exhausted retries or hit a fatal status."""

    def __init__(self, api_version: str, plural: str, status: Optional[int], reason: str):
        super().__init__(f'failed listing {plural} ({api_version}): {reason}')
        self.api_version = api_version
        self.plural = plural
        self.status = status
        self.reason = reason
