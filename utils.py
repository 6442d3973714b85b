import os
import sys
import time
from typing import List, Sequence, TypeVar

T = TypeVar("T")


class ProgressBar:
    """Simple text-based progress indicator for CLI tools."""

    def __init__(self, desc="Processing", total=0, stream=None):
        self.desc = desc
        self.total = total
        self.done = 0
        self.stream = stream or sys.stdout
        self.start_time = time.time()
        self.spinner = ['⠋', '⠙', '⠹', '⠸', '⠼', '⠴', '⠦', '⠧', '⠇', '⠏']
        self.spin_idx = 0

    def update(self, done):
        """Update the progress display."""
        self.done = done
        self.spin_idx = (self.spin_idx + 1) % len(self.spinner)

        elapsed = time.time() - self.start_time
        spinner = self.spinner[self.spin_idx]

        progress_str = f"\r{spinner} {self.desc}: {done:,}/{self.total:,} | ⏱️  {elapsed:.1f}s"

        # Pad to clear previous line
        progress_str = progress_str.ljust(80)

        self.stream.write(progress_str)
        self.stream.flush()

    def finish(self, message="Done!"):
        """Finish the progress display."""
        elapsed = time.time() - self.start_time
        self.stream.write(f"\r✅ {message} ({elapsed:.1f}s)".ljust(80) + "\n")
        self.stream.flush()


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into consecutive lists of at most size elements."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


def get_unique_path(path, taken=None):
    """If path exists (on disk or in taken), append _copy1, _copy2, etc."""
    taken = taken or set()

    def exists(p):
        return p in taken or os.path.exists(p)

    if not exists(path):
        return path

    base, ext = os.path.splitext(path)
    counter = 1
    while exists(f"{base}_copy{counter}{ext}"):
        counter += 1
    return f"{base}_copy{counter}{ext}"
