import logging
import os
import shutil
import webbrowser
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote

from jinja2 import Environment, select_autoescape

from logger_setup import format_api_error
from providers.interface import DEFAULT_THUMBNAIL_SIZE, IStorageClient
from utils import ProgressBar, chunk, get_unique_path
from .types import FileRecord, ThumbnailResult

logger = logging.getLogger("dropbox_pattern_cleaner.preview")

BATCH_SIZE = 25

PREVIEW_TEMPLATE = """<html><head><meta charset="utf-8"><title>Deletion preview</title></head>
<body><div><h1>{{ total }} files will be deleted</h1>
{% for item in items %}<div><img src="{{ item.src }}"/><p>{{ item.name }}</p></div>
{% endfor %}{% if missing %}<h2>{{ missing|length }} files have no thumbnail</h2>
<ul>{% for name in missing %}<li>{{ name }}</li>{% endfor %}</ul>
{% endif %}</div></body></html>
"""

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))


class PreviewGenerator:
    """Fetches thumbnails for the files to be deleted and writes an HTML page listing them."""

    def __init__(self,
                 client: IStorageClient,
                 thumbnail_dir: str = "thumbnails",
                 preview_file: str = "preview.html",
                 batch_size: int = BATCH_SIZE,
                 max_workers: int = 4,
                 opener: Optional[Callable[[str], bool]] = webbrowser.open,
                 show_progress: bool = True):
        self.client = client
        self.thumbnail_dir = thumbnail_dir
        self.preview_file = preview_file
        self.batch_size = batch_size
        self.max_workers = max_workers
        self.opener = opener
        self.show_progress = show_progress

    def fetch_thumbnails(self, files: List[FileRecord]) -> List[ThumbnailResult]:
        """
        Request thumbnails in batches, all at once, and wait for every batch
        to settle. Files in a failed batch come back without data so the
        preview still lists them.
        """
        batches = chunk(files, self.batch_size)
        if not batches:
            return []

        progress = ProgressBar("Fetching thumbnails", total=len(batches)) if self.show_progress else None
        results_by_batch = {}
        failed = 0

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="thumbnails") as pool:
            futures = {
                pool.submit(self.client.get_thumbnail_batch, [f.path_lower for f in batch],
                            DEFAULT_THUMBNAIL_SIZE): i
                for i, batch in enumerate(batches)
            }
            for settled, future in enumerate(as_completed(futures), 1):
                index = futures[future]
                try:
                    results_by_batch[index] = future.result()
                except Exception as e:
                    logger.error(f"Thumbnail batch {index + 1}/{len(batches)} failed: {format_api_error(e)}")
                    results_by_batch[index] = [
                        ThumbnailResult(path=f.path_lower, name=f.name, error="batch request failed")
                        for f in batches[index]
                    ]
                    failed += 1
                if progress:
                    progress.update(settled)

        if progress:
            progress.finish(f"Thumbnail batches settled: {len(batches) - failed}/{len(batches)} succeeded")

        # Keep the original file order regardless of completion order
        results = []
        for index in sorted(results_by_batch):
            results.extend(results_by_batch[index])
        return results

    def prepare_directory(self) -> None:
        """Create the thumbnail directory, or empty it if it already exists."""
        if os.path.isdir(self.thumbnail_dir):
            shutil.rmtree(self.thumbnail_dir)
        os.makedirs(self.thumbnail_dir, exist_ok=True)

    def write_thumbnails(self, results: List[ThumbnailResult]) -> Tuple[List[dict], List[str]]:
        """Write each thumbnail to disk. Returns (written items, names without a thumbnail)."""
        self.prepare_directory()
        preview_dir = os.path.dirname(os.path.abspath(self.preview_file))

        items = []
        missing = []
        taken = set()
        for result in results:
            if not result.ok:
                logger.warning(f"No thumbnail for {result.path}: {result.error}")
                missing.append(result.name)
                continue

            target = get_unique_path(os.path.join(self.thumbnail_dir, f"{result.name}.jpg"), taken)
            taken.add(target)
            with open(target, "wb") as f:
                f.write(result.data)

            rel = os.path.relpath(os.path.abspath(target), preview_dir).replace(os.sep, "/")
            items.append({"name": result.name, "src": quote(rel)})

        logger.info(f"Wrote {len(items)} thumbnails to {self.thumbnail_dir} ({len(missing)} missing)")
        return items, missing

    def render_html(self, total: int, items: List[dict], missing: List[str]) -> str:
        return _env.from_string(PREVIEW_TEMPLATE).render(total=total, items=items, missing=missing)

    def generate(self, files: List[FileRecord]) -> str:
        """Build the preview for files and open it. Returns the preview file path."""
        results = self.fetch_thumbnails(files)
        items, missing = self.write_thumbnails(results)

        html = self.render_html(len(files), items, missing)
        with open(self.preview_file, "w", encoding="utf-8") as f:
            f.write(html)
        logger.info(f"Preview written to {self.preview_file}")

        if self.opener:
            self.opener(Path(self.preview_file).resolve().as_uri())
        return self.preview_file
