"""压缩包解压器：带 zip-slip 防护地把上传源码展开到工作区。"""

from __future__ import annotations

import logging
import os
import shutil
import time
from pathlib import Path
from zipfile import BadZipFile, ZipFile

from app.domain.errors import BadRequestError, PathTraversalError

logger = logging.getLogger(__name__)

_COPY_CHUNK_BYTES = 1024 * 1024


def resolve_entry_path(dest_root: str, entry_name: str) -> str | None:
    """返回条目在目标目录下的绝对路径；越界时返回 None。"""
    resolved = os.path.normpath(os.path.join(dest_root, entry_name))
    # 必须严格位于目标目录之内，目标目录自身也视为越界。
    if not resolved.startswith(dest_root + os.sep):
        return None
    return resolved


class ArchiveExtractor:
    """Zip 解压器。单条目越界即整体失败，部分解压结果随工作区一并丢弃。"""

    def extract(self, archive_path: Path, dest_dir: Path) -> int:
        """解压到 dest_dir 并返回写出的文件数。"""
        dest_dir.mkdir(parents=True, exist_ok=True)
        dest_root = str(dest_dir.resolve())
        started = time.perf_counter()
        written = 0
        try:
            with ZipFile(archive_path) as archive:
                for info in archive.infolist():
                    resolved = resolve_entry_path(dest_root, info.filename)
                    if resolved is None:
                        logger.warning(
                            "unsafe zip entry rejected",
                            extra={
                                "event": "archive.extract.rejected",
                                "payload_preview": {"entry": info.filename},
                            },
                        )
                        raise PathTraversalError(info.filename)

                    if info.is_dir():
                        os.makedirs(resolved, exist_ok=True)
                        continue

                    os.makedirs(os.path.dirname(resolved), exist_ok=True)
                    with archive.open(info) as source, open(resolved, "wb") as target:
                        shutil.copyfileobj(source, target, _COPY_CHUNK_BYTES)
                    written += 1
        except BadZipFile as exc:
            raise BadRequestError(f"inputZip is not a valid zip archive: {exc}") from exc

        logger.info(
            "archive extracted",
            extra={
                "event": "archive.extract.succeeded",
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                "payload_preview": {"files": written},
            },
        )
        return written
