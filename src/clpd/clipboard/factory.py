"""
Platform-specific clipboard factory.
"""

import platform
from typing import Type

from clpd.clipboard.base import ClipboardSource


def get_clipboard_class() -> Type[ClipboardSource]:
    """
    Get the ClipboardSource implementation for the current platform.

    Raises:
        NotImplementedError: If the current platform is not supported
    """
    system = platform.system()

    if system == "Windows":
        from clpd.clipboard.windows import WindowsClipboard
        return WindowsClipboard
    elif system == "Linux":
        from clpd.clipboard.linux import LinuxClipboard
        return LinuxClipboard
    elif system == "Darwin":
        from clpd.clipboard.macos import MacOSClipboard
        return MacOSClipboard
    else:
        raise NotImplementedError(f"Platform '{system}' is not supported")


def get_clipboard() -> ClipboardSource:
    clipboard_class = get_clipboard_class()
    return clipboard_class()
