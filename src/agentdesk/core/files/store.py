from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass, field
from pathlib import Path

ALLOWED_EXTENSIONS = frozenset(
    {
        ".txt", ".md", ".json", ".csv", ".yaml", ".yml",
        ".js", ".jsx", ".ts", ".tsx", ".html", ".css", ".scss",
        ".py", ".rb", ".php", ".java", ".c", ".cpp", ".cs",
        ".env", ".config", ".ini", ".conf",
    }
)


@dataclass(slots=True)
class FileOperationResult:
    success: bool
    message: str
    path: str | None = None
    error: str | None = None
    content: str | None = None
    files: list[str] = field(default_factory=list)


def sanitize_filename(filename: str) -> str:
    cleaned = filename.replace("..", "")
    cleaned = re.sub(r"[/\\]", "", cleaned)
    cleaned = re.sub(r"[^a-zA-Z0-9._-]", "_", cleaned)
    return cleaned or "unnamed_file"


def is_allowed_file_type(filename: str) -> bool:
    return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS


class FileStore:
    """Flat file store rooted at one directory. Blocking I/O runs in worker threads."""

    def __init__(self, root_dir: str | Path, *, max_bytes: int = 1024 * 1024) -> None:
        self.root = Path(root_dir)
        self.max_bytes = max_bytes

    def _ensure_root(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def validate_content(self, content: str) -> bool:
        return len(content.encode("utf-8")) <= self.max_bytes

    async def save(self, filename: str, content: str) -> FileOperationResult:
        if not filename or not isinstance(content, str):
            return FileOperationResult(success=False, message="Invalid filename or content", error="INVALID_INPUT")
        name = sanitize_filename(filename)
        if not is_allowed_file_type(name):
            return FileOperationResult(
                success=False,
                message="File type not allowed. Permitted types include text files, code, and documents.",
                error="INVALID_FILE_TYPE",
            )
        if not self.validate_content(content):
            return FileOperationResult(
                success=False,
                message="File content exceeds maximum size or contains invalid data",
                error="INVALID_CONTENT",
            )
        path = self.root / name

        def _write() -> None:
            self._ensure_root()
            path.write_text(content, encoding="utf-8")

        try:
            await asyncio.to_thread(_write)
        except OSError as exc:
            return FileOperationResult(success=False, message="Failed to save file", error=f"IO_ERROR: {exc}")
        return FileOperationResult(success=True, message=f"File {name} created successfully", path=str(path))

    async def read(self, filename: str) -> FileOperationResult:
        name = sanitize_filename(filename)
        path = self.root / name
        if not await asyncio.to_thread(path.is_file):
            return FileOperationResult(success=False, message=f"File {name} not found", error="FILE_NOT_FOUND")
        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            return FileOperationResult(success=False, message="Failed to read file", error=f"IO_ERROR: {exc}")
        return FileOperationResult(success=True, message=f"File {name} read successfully", path=str(path), content=content)

    async def list(self) -> FileOperationResult:
        def _list() -> list[str]:
            self._ensure_root()
            return sorted(p.name for p in self.root.iterdir() if p.is_file())

        try:
            files = await asyncio.to_thread(_list)
        except OSError as exc:
            return FileOperationResult(success=False, message="Failed to list files", error=f"IO_ERROR: {exc}")
        return FileOperationResult(success=True, message=f"Found {len(files)} files", files=files)

    async def delete(self, filename: str) -> FileOperationResult:
        name = sanitize_filename(filename)
        path = self.root / name
        if not await asyncio.to_thread(path.is_file):
            return FileOperationResult(success=False, message=f"File {name} not found", error="FILE_NOT_FOUND")
        try:
            await asyncio.to_thread(path.unlink)
        except OSError as exc:
            return FileOperationResult(success=False, message="Failed to delete file", error=f"IO_ERROR: {exc}")
        return FileOperationResult(success=True, message=f"File {name} deleted successfully", path=str(path))
