from abc import ABC, abstractmethod
from typing import List

from core.types import DeleteJobCheck, DeleteLaunch, ListingPage, ThumbnailResult

DEFAULT_THUMBNAIL_SIZE = "w128h128"


class IStorageClient(ABC):
    """
    Abstract Base Class for remote storage clients.
    Exposes only the calls the cleaner needs, translated into core types.
    Implementations let transport and API exceptions propagate.
    """

    @abstractmethod
    def current_account(self) -> str:
        """Return a display name for the authenticated account."""
        pass

    @abstractmethod
    def list_folder(self, path: str, limit: int, include_deleted: bool = False) -> ListingPage:
        """List the first page of a folder."""
        pass

    @abstractmethod
    def list_folder_continue(self, cursor: str) -> ListingPage:
        """Fetch the next page of a listing."""
        pass

    @abstractmethod
    def get_thumbnail_batch(self, paths: List[str], size: str = DEFAULT_THUMBNAIL_SIZE) -> List[ThumbnailResult]:
        """Fetch thumbnails for up to 25 paths in one request."""
        pass

    @abstractmethod
    def delete_batch(self, paths: List[str]) -> DeleteLaunch:
        """Submit a batch delete for the given paths."""
        pass

    @abstractmethod
    def delete_batch_check(self, async_job_id: str) -> DeleteJobCheck:
        """Check the status of an async batch delete job."""
        pass
