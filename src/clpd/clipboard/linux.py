import logging
import os
import shutil
import subprocess
from typing import List, Optional

from clpd.clipboard.base import ClipboardSource
from clpd.models import ImageData

logger = logging.getLogger(__name__)


class LinuxClipboard(ClipboardSource):
    """Clipboard access through wl-clipboard on Wayland or xclip on X11."""

    _IMAGE_TARGETS = (
        "image/png",
        "image/bmp",
        "image/x-ms-bmp",
        "image/jpeg",
        "image/jpg",
        "image/webp",
    )
    _TEXT_TARGETS = (
        "text/plain;charset=utf-8",
        "utf8_string",
        "text/plain",
        "string",
    )

    def __init__(self) -> None:
        if os.environ.get("WAYLAND_DISPLAY") and shutil.which("wl-paste"):
            self._tool = "wayland"
        elif shutil.which("xclip"):
            self._tool = "xclip"
        else:
            self._tool = None
            logger.warning("Neither wl-paste nor xclip found; clipboard is unavailable")

    def _list_command(self) -> List[str]:
        if self._tool == "wayland":
            return ["wl-paste", "--list-types"]
        return ["xclip", "-selection", "clipboard", "-t", "TARGETS", "-o"]

    def _read_command(self, target: str) -> List[str]:
        if self._tool == "wayland":
            command = ["wl-paste", "--type", target]
            if target.lower().startswith("text/"):
                command.append("--no-newline")
            return command
        return ["xclip", "-selection", "clipboard", "-t", target, "-o"]

    def _write_command(self, target: Optional[str] = None) -> List[str]:
        if self._tool == "wayland":
            return ["wl-copy"] + (["--type", target] if target else [])
        return ["xclip", "-selection", "clipboard"] + (["-t", target] if target else [])

    def _available_types(self) -> List[str]:
        data = self._run_command(self._list_command(), timeout=1.5)
        if not data:
            return []
        text = data.decode("utf-8", errors="ignore")
        return [line.strip() for line in text.splitlines() if line.strip()]

    def _pick_target(self, candidates) -> Optional[str]:
        available = {t.lower(): t for t in self._available_types()}
        for candidate in candidates:
            if candidate in available:
                return available[candidate]
        return None

    def read_text(self) -> Optional[str]:
        if self._tool is None:
            return None
        target = self._pick_target(self._TEXT_TARGETS)
        if target is None:
            return None
        data = self._run_command(self._read_command(target), timeout=1.5)
        if not data:
            return None
        return data.decode("utf-8", errors="replace")

    def read_image(self) -> Optional[ImageData]:
        if self._tool is None:
            return None
        target = self._pick_target(self._IMAGE_TARGETS)
        if target is None:
            return None
        data = self._run_command(self._read_command(target), timeout=3.0)
        if not data:
            return None
        try:
            return ImageData.from_encoded(data)
        except (OSError, ValueError) as e:
            logger.debug(f"Could not decode clipboard image ({target}): {e}")
            return None

    def write_text(self, text: str) -> bool:
        if self._tool is None:
            return False
        return self._pipe(self._write_command(), text.encode("utf-8"))

    def write_image(self, image: ImageData) -> bool:
        if self._tool is None:
            return False
        return self._pipe(self._write_command("image/png"), image.to_png())

    def _pipe(self, command: List[str], payload: bytes) -> bool:
        try:
            # wl-copy and xclip fork to keep serving the selection; don't wait on their stdout
            subprocess.run(
                command,
                input=payload,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                check=True,
                timeout=2.0,
            )
            return True
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
            logger.error(f"Failed to set clipboard: {e}")
            return False

    def _run_command(self, command: List[str], timeout: float) -> Optional[bytes]:
        try:
            result = subprocess.run(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
                timeout=timeout,
            )
            return result.stdout
        except (subprocess.CalledProcessError, subprocess.TimeoutExpired, FileNotFoundError):
            return None
