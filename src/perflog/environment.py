"""Host description embedded at the end of every report.

Must be captured on the thread that owns the session before a report is
handed to a background worker.
"""

from __future__ import annotations

import os
import platform

__all__ = ["describe_system"]


def describe_system() -> str:
    """Describe the host machine as pre-formatted report text.

    Returns:
        Multi-line "System Specifications" block
    """
    processor = platform.processor() or platform.machine() or "unknown"
    cores = os.cpu_count() or 0

    lines = [
        "System Specifications:",
        "",
        platform.node() or "unknown",
        platform.machine() or "unknown",
        f"{platform.system()} {platform.release()}".strip(),
        "",
        f"CPU: {processor}, {cores}C",
        f"Python: {platform.python_implementation()} {platform.python_version()}",
    ]
    return "\n".join(lines)
