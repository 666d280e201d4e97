"""업로드 파일 임시 저장 유틸리티.

Temporary storage for uploaded spreadsheets.
The upload is streamed to settings.UPLOAD_DIR under a unique name and the
file is always removed when the block exits, on success and on error.

Usage:
    async with stored_upload(file) as path:
        await spreadsheet_import_service.import_spreadsheet(db, ..., path, file.filename, ...)
"""

import re
import secrets
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import UploadFile

from app.config import settings
from app.utils.exceptions import ValidationError

_CHUNK_SIZE: int = 64 * 1024


def _safe_name(filename: str | None) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "_", filename or "upload")[-100:]


@asynccontextmanager
async def stored_upload(file: UploadFile) -> AsyncIterator[Path]:
    """업로드 파일을 임시 파일로 저장하고 블록 종료 시 삭제합니다.

    Write an UploadFile to a temporary file and yield its path.

    Raises:
        ValidationError: 파일 크기 초과 (Upload exceeds IMPORT_MAX_BYTES)
    """
    upload_dir: Path = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    path: Path = upload_dir / f"{secrets.token_hex(8)}-{_safe_name(file.filename)}"

    try:
        written: int = 0
        with path.open("wb") as out:
            while chunk := await file.read(_CHUNK_SIZE):
                written += len(chunk)
                if written > settings.IMPORT_MAX_BYTES:
                    raise ValidationError(
                        f"File exceeds the {settings.IMPORT_MAX_BYTES // (1024 * 1024)}MB upload limit",
                        field="file",
                    )
                out.write(chunk)
        yield path
    finally:
        path.unlink(missing_ok=True)
