"""工具定位：在显式配置与多模块构建输出目录中查找 java-to-xmi CLI jar。"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from app.domain.errors import ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolLocator:
    """按固定顺序探测 CLI 产物路径，首个命中即返回。

    探测顺序：显式覆盖 → 历史单模块路径 → 多模块默认路径 → 扫描构建目录取最新 jar。
    最后一步在存在多个版本时只是尽力而为的选择。
    """
    legacy_path: Path
    default_path: Path
    scan_dirs: list[Path] = field(default_factory=list)
    artifact_suffix: str = ".jar"
    identifier: str = "java-to-xmi"

    def resolve(self, explicit_path: Path | str | None = None) -> Path:
        candidates: list[Path] = []
        if explicit_path:
            candidates.append(Path(explicit_path))
        candidates.extend([self.legacy_path, self.default_path])

        for candidate in candidates:
            if candidate.is_file():
                logger.info(
                    "tool resolved",
                    extra={"event": "tool.resolved", "payload_preview": {"path": str(candidate)}},
                )
                return candidate

        for directory in self.scan_dirs:
            newest = self._newest_in(directory)
            if newest is not None:
                logger.info(
                    "tool resolved from build directory scan",
                    extra={"event": "tool.resolved.scan", "payload_preview": {"path": str(newest)}},
                )
                return newest

        probed = [str(item) for item in candidates] + [f"{item}/*{self.artifact_suffix}" for item in self.scan_dirs]
        logger.error(
            "tool not found",
            extra={"event": "tool.not_found", "payload_preview": {"probed": probed}},
        )
        raise ToolNotFoundError(
            "\n".join(
                [
                    "Unable to locate java-to-xmi CLI jar.",
                    "Expected one of:",
                    *[f"- {item}" for item in probed],
                    "Build the project (e.g. mvn -q -DskipTests package) in your java-to-xmi repo, "
                    "or set JAVA_TO_XMI_JAR, then restart the service.",
                ]
            ),
            probed=probed,
        )

    def _newest_in(self, directory: Path) -> Path | None:
        try:
            entries = list(directory.iterdir())
        except OSError:
            return None
        artifacts: list[tuple[float, Path]] = []
        for entry in entries:
            if not entry.name.endswith(self.artifact_suffix):
                continue
            try:
                if not entry.is_file():
                    continue
                artifacts.append((entry.stat().st_mtime, entry))
            except OSError:
                # 扫描期间被构建清理掉的文件直接跳过。
                continue
        artifacts.sort(key=lambda item: item[0], reverse=True)
        for _mtime, path in artifacts:
            if self.identifier in path.name:
                return path
        return None
