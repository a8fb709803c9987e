"""
Cross-platform clipboard access.

This package provides clipboard access across different operating systems
through a unified interface.
"""

from clpd.clipboard.base import ClipboardSource
from clpd.clipboard.factory import get_clipboard_class, get_clipboard

__all__ = [
    'ClipboardSource',
    'get_clipboard_class',
    'get_clipboard',
]
