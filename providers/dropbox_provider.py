import base64
import logging
import os
from typing import List

import dropbox
import requests
from dropbox.files import (
    DeleteArg,
    FileMetadata,
    FolderMetadata,
    ThumbnailArg,
    ThumbnailFormat,
    ThumbnailSize,
)

from core.types import (
    DeleteEntryResult,
    DeleteJobCheck,
    DeleteJobStatus,
    DeleteLaunch,
    EntryTag,
    ListingEntry,
    ListingPage,
    ThumbnailResult,
)
from .interface import DEFAULT_THUMBNAIL_SIZE, IStorageClient

logger = logging.getLogger("dropbox_pattern_cleaner.provider")


class DropboxStorageClient(IStorageClient):
    def __init__(self, dbx: dropbox.Dropbox):
        self.dbx = dbx
        self._pending_paths: List[str] = []

    def _normalize_path(self, path: str) -> str:
        if path == "/" or path == "." or not path:
            return ""
        if not path.startswith("/"):
            return "/" + path
        return path

    def _to_entry(self, metadata):
        if isinstance(metadata, FolderMetadata):
            tag = EntryTag.FOLDER
        elif isinstance(metadata, FileMetadata):
            tag = EntryTag.FILE
        else:
            # DeletedMetadata and anything newer the SDK adds
            return None
        return ListingEntry(
            tag=tag,
            id=metadata.id,
            name=metadata.name,
            path_lower=metadata.path_lower,
            path_display=metadata.path_display or metadata.path_lower,
        )

    def _to_page(self, result) -> ListingPage:
        entries = [e for e in (self._to_entry(m) for m in result.entries) if e is not None]
        return ListingPage(entries=entries, has_more=result.has_more, cursor=result.cursor)

    def current_account(self) -> str:
        account = self.dbx.users_get_current_account()
        return f"{account.name.display_name} ({account.email})"

    def list_folder(self, path: str, limit: int, include_deleted: bool = False) -> ListingPage:
        dbx_path = self._normalize_path(path)
        logger.debug(f"files_list_folder path='{dbx_path}' limit={limit}")
        result = self.dbx.files_list_folder(dbx_path, include_deleted=include_deleted, limit=limit)
        return self._to_page(result)

    def list_folder_continue(self, cursor: str) -> ListingPage:
        logger.debug("files_list_folder_continue")
        return self._to_page(self.dbx.files_list_folder_continue(cursor))

    def get_thumbnail_batch(self, paths: List[str], size: str = DEFAULT_THUMBNAIL_SIZE) -> List[ThumbnailResult]:
        thumb_size = getattr(ThumbnailSize, size)
        entries = [ThumbnailArg(path, format=ThumbnailFormat.jpeg, size=thumb_size) for path in paths]
        result = self.dbx.files_get_thumbnail_batch(entries)

        thumbnails = []
        for path, entry in zip(paths, result.entries):
            if entry.is_success():
                data = entry.get_success()
                thumbnails.append(ThumbnailResult(
                    path=path,
                    name=data.metadata.name,
                    data=base64.b64decode(data.thumbnail),
                ))
            else:
                error = entry.get_failure() if entry.is_failure() else "unknown"
                thumbnails.append(ThumbnailResult(path=path, name=os.path.basename(path), error=str(error)))
        return thumbnails

    def _entry_results(self, paths: List[str], batch_result) -> List[DeleteEntryResult]:
        results = []
        for i, entry in enumerate(batch_result.entries):
            path = paths[i] if i < len(paths) else "unknown"
            if entry.is_success():
                results.append(DeleteEntryResult(path=path, success=True))
            else:
                error = entry.get_failure() if entry.is_failure() else "unknown"
                results.append(DeleteEntryResult(path=path, success=False, error=str(error)))
        return results

    def delete_batch(self, paths: List[str]) -> DeleteLaunch:
        logger.debug(f"files_delete_batch with {len(paths)} entries")
        result = self.dbx.files_delete_batch([DeleteArg(path) for path in paths])
        # Remembered so a later check can map per-entry results back to paths
        self._pending_paths = list(paths)

        if result.is_async_job_id():
            return DeleteLaunch(complete=False, async_job_id=result.get_async_job_id())
        if result.is_complete():
            return DeleteLaunch(complete=True, entries=self._entry_results(paths, result.get_complete()))
        raise ValueError(f"Unexpected delete batch launch response: {result}")

    def delete_batch_check(self, async_job_id: str) -> DeleteJobCheck:
        check = self.dbx.files_delete_batch_check(async_job_id)

        if check.is_in_progress():
            return DeleteJobCheck(status=DeleteJobStatus.IN_PROGRESS)
        if check.is_complete():
            return DeleteJobCheck(
                status=DeleteJobStatus.COMPLETE,
                entries=self._entry_results(self._pending_paths, check.get_complete()),
            )
        if check.is_failed():
            return DeleteJobCheck(status=DeleteJobStatus.FAILED, reason=str(check.get_failed()))
        return DeleteJobCheck(status=DeleteJobStatus.FAILED, reason=f"Unrecognised job status: {check}")


def dropbox_client_from_config(config) -> DropboxStorageClient:
    """Build a DropboxStorageClient from an access token with a pooled session."""
    session = requests.Session()
    adapter = requests.adapters.HTTPAdapter(
        pool_connections=config.max_workers,
        pool_maxsize=config.max_workers,
    )
    session.mount('https://', adapter)

    dbx = dropbox.Dropbox(
        oauth2_access_token=config.access_token,
        session=session,
        timeout=config.request_timeout,
    )
    return DropboxStorageClient(dbx)
