import io
import logging
import time
from typing import Optional

import win32clipboard as wc
import win32con
from PIL import Image, ImageGrab

from clpd.clipboard.base import ClipboardSource
from clpd.models import ImageData

logger = logging.getLogger(__name__)


class WindowsClipboard(ClipboardSource):

    def _open(self) -> bool:
        # Another process may hold the clipboard for a moment
        for _ in range(3):
            try:
                wc.OpenClipboard()
                return True
            except Exception:
                time.sleep(0.05)
        return False

    def _close(self) -> None:
        try:
            wc.CloseClipboard()
        except Exception:
            pass

    def read_text(self) -> Optional[str]:
        if not self._open():
            return None
        try:
            if not wc.IsClipboardFormatAvailable(wc.CF_UNICODETEXT):
                return None
            try:
                return wc.GetClipboardData(wc.CF_UNICODETEXT)
            except Exception:
                return None
        finally:
            self._close()

    def read_image(self) -> Optional[ImageData]:
        try:
            clipboard_data = ImageGrab.grabclipboard()
        except Exception:
            return None

        # grabclipboard returns a list of paths for copied files
        if not isinstance(clipboard_data, Image.Image):
            return None
        return ImageData.from_pil(clipboard_data)

    def write_text(self, text: str) -> bool:
        if not self._open():
            return False
        try:
            wc.EmptyClipboard()
            wc.SetClipboardData(wc.CF_UNICODETEXT, text)
            return True
        except Exception as e:
            logger.error(f"Failed to set clipboard text: {e}")
            return False
        finally:
            self._close()

    def write_image(self, image: ImageData) -> bool:
        # CF_DIB has no alpha channel; flatten onto white
        rgba = image.to_pil()
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[3])

        output = io.BytesIO()
        background.save(output, "BMP")
        bmp_data = output.getvalue()
        if len(bmp_data) <= 14:
            return False

        if not self._open():
            return False
        try:
            wc.EmptyClipboard()
            # strip the 14-byte BITMAPFILEHEADER
            wc.SetClipboardData(win32con.CF_DIB, bmp_data[14:])
            return True
        except Exception as e:
            logger.error(f"Failed to set clipboard image: {e}")
            return False
        finally:
            self._close()
