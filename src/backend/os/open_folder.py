from __future__ import annotations

import os
import platform
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional


class OpenFolderError(RuntimeError):
    pass


def _is_wsl() -> bool:
    if os.environ.get("WSL_DISTRO_NAME"):
        return True
    rel = platform.release().lower()
    ver = platform.version().lower()
    return ("microsoft" in rel) or ("microsoft" in ver)


def _to_windows_path(path: Path) -> str:
    try:
        out = subprocess.check_output(["wslpath", "-w", str(path)], text=True).strip()
        return out or str(path)
    except (OSError, subprocess.CalledProcessError):
        return str(path)


def _opener_command(path: Path) -> Optional[list[str]]:
    """Command that opens `path` in the desktop file manager, or None if none is available."""
    if sys.platform == "darwin":
        return ["open", str(path)]

    if _is_wsl() and shutil.which("explorer.exe") is not None:
        return ["explorer.exe", _to_windows_path(path)]

    opener = shutil.which("xdg-open")
    if opener is not None:
        return [opener, str(path)]

    gio = shutil.which("gio")
    if gio is not None:
        return [gio, "open", str(path)]

    return None


def open_folder(path: Path) -> None:
    """
    Open a folder in the platform file manager without waiting for it.

    Raises:
        OpenFolderError: The folder is missing or no opener could be started.
    """
    p = Path(path).expanduser().resolve()
    if not p.is_dir():
        raise OpenFolderError(f"Folder does not exist: {p}")

    if sys.platform.startswith("win"):
        try:
            os.startfile(str(p))  # type: ignore[attr-defined]
        except OSError as exc:
            raise OpenFolderError(f"Failed to open folder on Windows: {exc}") from exc
        return

    command = _opener_command(p)
    if command is None:
        raise OpenFolderError("No folder opener found (open / explorer.exe / xdg-open / gio)")

    try:
        subprocess.Popen(command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
    except OSError as exc:
        raise OpenFolderError(f"Failed to open folder with {command[0]}: {exc}") from exc
