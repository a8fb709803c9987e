import logging
from typing import Optional

from AppKit import NSPasteboard, NSPasteboardTypePNG, NSPasteboardTypeString, NSPasteboardTypeTIFF
from Foundation import NSData

from clpd.clipboard.base import ClipboardSource
from clpd.models import ImageData

logger = logging.getLogger(__name__)


class MacOSClipboard(ClipboardSource):
    """Clipboard access through NSPasteboard."""

    def __init__(self):
        self.pasteboard = NSPasteboard.generalPasteboard()

    def read_text(self) -> Optional[str]:
        if NSPasteboardTypeString not in self.pasteboard.types():
            return None
        try:
            text = self.pasteboard.stringForType_(NSPasteboardTypeString)
        except Exception as e:
            logger.debug(f"Failed to read clipboard text: {e}")
            return None
        return str(text) if text else None

    def read_image(self) -> Optional[ImageData]:
        types = self.pasteboard.types()
        for pb_type in (NSPasteboardTypePNG, NSPasteboardTypeTIFF):
            if pb_type not in types:
                continue
            data = self.pasteboard.dataForType_(pb_type)
            if not data:
                continue
            try:
                return ImageData.from_encoded(bytes(data))
            except Exception as e:
                logger.debug(f"Failed to decode clipboard image: {e}")
        return None

    def write_text(self, text: str) -> bool:
        try:
            self.pasteboard.clearContents()
            return bool(self.pasteboard.setString_forType_(text, NSPasteboardTypeString))
        except Exception as e:
            logger.error(f"Failed to set clipboard text: {e}")
            return False

    def write_image(self, image: ImageData) -> bool:
        png = image.to_png()
        try:
            ns_data = NSData.dataWithBytes_length_(png, len(png))
            self.pasteboard.clearContents()
            return bool(self.pasteboard.setData_forType_(ns_data, NSPasteboardTypePNG))
        except Exception as e:
            logger.error(f"Failed to set clipboard image: {e}")
            return False
