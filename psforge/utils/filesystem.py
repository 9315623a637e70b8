# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Safe filesystem operations for psforge.

Build outputs are regenerated on every run, but a half-written module or
manifest in the output folder would still get packaged and published if a
later task picked it up. So every generated file goes through an atomic
write: write to a temporary file in the same directory as the target, then
rename. Rename on the same filesystem is atomic on POSIX.

Manifest rewrites need the exact original bytes, which is why `read_exact`
decodes without newline translation.
"""

import shutil
import tempfile
from pathlib import Path

TEMP_PREFIX = ".psforge_tmp_"


def atomic_write(target_path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write content to a file atomically.

    We write to a temp file in the same directory, then rename it to the
    target path. Newlines are written as given (no platform translation) so a
    file read with `read_exact` round-trips byte for byte.

    Args:
        target_path: Where the final file should end up.
        content: The string content to write.
        encoding: Text encoding to use.

    Raises:
        OSError: If the write or rename fails.
    """
    atomic_write_bytes(target_path, content.encode(encoding))


def atomic_write_bytes(target_path: Path, data: bytes) -> None:
    """Same as atomic_write for bytes: zip archives, rewritten manifests."""
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd = tempfile.NamedTemporaryFile(
        mode="wb",
        dir=str(target_path.parent),
        prefix=TEMP_PREFIX,
        suffix=".tmp",
        delete=False,
    )
    temp_path = Path(temp_fd.name)

    try:
        temp_fd.write(data)
        temp_fd.flush()
        temp_fd.close()
        temp_path.replace(target_path)
    except BaseException:
        temp_fd.close()
        if temp_path.exists():
            temp_path.unlink()
        raise


def read_exact(file_path: Path, encoding: str = "utf-8") -> str:
    """
    Read a text file without newline translation.

    `Path.read_text` turns CRLF into LF, which would shift every character
    offset computed against the text and silently rewrite line endings on
    save. Decoding the raw bytes keeps the text identical to the file.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
    """
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise IsADirectoryError(f"Expected a file, got a directory: {file_path}")
    return file_path.read_bytes().decode(encoding)


def safe_read(file_path: Path, encoding: str = "utf-8") -> str:
    """
    Read a text file with proper error context.

    A leading UTF-8 byte order mark is dropped; PowerShell editors add one
    routinely and it must not end up in the middle of an assembled module.

    Raises:
        FileNotFoundError: If the path doesn't exist.
        IsADirectoryError: If the path is a directory.
        OSError: For other I/O errors.
    """
    text = read_exact(file_path, encoding=encoding)
    return text.lstrip("\ufeff")


def remove_tree(path: Path) -> bool:
    """
    Delete a directory tree (or a single file) if it exists.

    Returns:
        True if something was removed, False if the path didn't exist.
    """
    if path.is_dir():
        shutil.rmtree(path)
        return True
    if path.exists():
        path.unlink()
        return True
    return False


def copy_file(source: Path, destination: Path) -> Path:
    """Copy a file (with metadata) creating parent directories as needed."""
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(str(source), str(destination))
    return destination
