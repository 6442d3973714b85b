import logging
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from logger_setup import format_api_error
from providers.interface import IStorageClient
from .types import EntryTag, FileRecord, ListingPage

logger = logging.getLogger("dropbox_pattern_cleaner.enumerator")

FILE_FETCH_LIMIT = 50


@dataclass
class EnumerationResult:
    files: List[FileRecord]
    entries_seen: int = 0
    failed_paths: List[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.failed_paths)


class EnumerationContext:
    """
    State of one enumeration run.

    `outstanding` counts listing branches that have started but not finished.
    Only the coordinating thread touches this object; worker threads just
    perform the remote calls.
    """

    def __init__(self, pool: ThreadPoolExecutor):
        self.pool = pool
        self.pending: Dict[Future, str] = {}
        self.files: List[FileRecord] = []
        self.outstanding = 0
        self.entries_seen = 0
        self.failed_paths: List[str] = []
        self.completed = False

    def result(self) -> EnumerationResult:
        return EnumerationResult(
            files=list(self.files),
            entries_seen=self.entries_seen,
            failed_paths=list(self.failed_paths),
        )


class FolderEnumerator:
    """Recursively lists every file under a folder, one branch per folder."""

    def __init__(self,
                 client: IStorageClient,
                 page_limit: int = FILE_FETCH_LIMIT,
                 max_workers: int = 8,
                 progress: Optional[Callable[[str], None]] = print):
        self.client = client
        self.page_limit = page_limit
        self.max_workers = max_workers
        self.progress = progress

    def run(self, root_path: str,
            on_complete: Optional[Callable[[EnumerationResult], None]] = None) -> EnumerationResult:
        """
        Enumerate root_path and block until every branch has finished.
        on_complete is invoked exactly once, after the last branch finishes.
        """
        logger.info(f"Listing files under: {root_path or '/'}")

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="list_folder") as pool:
            ctx = EnumerationContext(pool)
            self.list_folder(ctx, root_path)

            while ctx.pending:
                done, _ = wait(list(ctx.pending), return_when=FIRST_COMPLETED)
                for future in done:
                    branch_path = ctx.pending.pop(future)
                    try:
                        page = future.result()
                    except Exception as e:
                        self._handle_error(ctx, branch_path, e, on_complete)
                    else:
                        self._handle_page(ctx, branch_path, page, on_complete)

        result = ctx.result()
        logger.info(
            f"Listing complete: {len(result.files)} files, {result.entries_seen} entries scanned"
            + (f", {len(result.failed_paths)} folder(s) failed" if result.is_partial else "")
        )
        return result

    def list_folder(self, ctx: EnumerationContext, path: str) -> None:
        """Start a new branch for path."""
        ctx.outstanding += 1
        logger.debug(f"Branch started: {path or '/'} (outstanding={ctx.outstanding})")
        future = ctx.pool.submit(self.client.list_folder, path, self.page_limit, False)
        ctx.pending[future] = path

    def continue_listing(self, ctx: EnumerationContext, branch_path: str, cursor: str) -> None:
        """Fetch the next page of an existing branch."""
        future = ctx.pool.submit(self.client.list_folder_continue, cursor)
        ctx.pending[future] = branch_path

    def _handle_page(self, ctx: EnumerationContext, branch_path: str, page: ListingPage,
                     on_complete) -> None:
        for entry in page.entries:
            ctx.entries_seen += 1
            if entry.tag is EntryTag.FOLDER:
                self.list_folder(ctx, entry.path_lower)
            else:
                if self.progress:
                    self.progress(f"-- {entry.name}")
                ctx.files.append(entry.to_record())

        if page.has_more and page.cursor:
            self.continue_listing(ctx, branch_path, page.cursor)
        else:
            self._finish_branch(ctx, branch_path, on_complete)

    def _handle_error(self, ctx: EnumerationContext, branch_path: str, exc: Exception,
                      on_complete) -> None:
        logger.error(f"Listing failed for '{branch_path or '/'}': {format_api_error(exc)}")
        logger.debug("Listing error detail", exc_info=exc)
        ctx.failed_paths.append(branch_path)
        self._finish_branch(ctx, branch_path, on_complete)

    def _finish_branch(self, ctx: EnumerationContext, branch_path: str, on_complete) -> None:
        ctx.outstanding -= 1
        logger.debug(f"Branch finished: {branch_path or '/'} (outstanding={ctx.outstanding})")
        if ctx.outstanding == 0 and not ctx.completed:
            ctx.completed = True
            if on_complete:
                on_complete(ctx.result())
