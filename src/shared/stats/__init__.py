from __future__ import annotations

from .metrics import compute_files_per_s, compute_runtime_s

__all__ = [
    "compute_files_per_s",
    "compute_runtime_s",
]
