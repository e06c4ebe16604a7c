"""测试公共配置：日志目录指向临时路径，避免污染工作目录。"""

from __future__ import annotations

import os
import tempfile

os.environ.setdefault("XMI_LOG_DIR", tempfile.mkdtemp(prefix="xmi-test-logs-"))
