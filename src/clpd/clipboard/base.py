from abc import ABC, abstractmethod
from typing import Optional

from clpd.models import ClipboardContent, ImageData


class ClipboardSource(ABC):
    """
    Platform clipboard access.

    Readers return None when the clipboard is empty, holds an unsupported
    format, or cannot be read right now. Writers report success as a bool.
    """

    @abstractmethod
    def read_text(self) -> Optional[str]:
        pass

    @abstractmethod
    def read_image(self) -> Optional[ImageData]:
        pass

    @abstractmethod
    def write_text(self, text: str) -> bool:
        pass

    @abstractmethod
    def write_image(self, image: ImageData) -> bool:
        pass

    def read(self) -> Optional[ClipboardContent]:
        """Sample the clipboard, preferring non-empty text over images."""
        text = self.read_text()
        if text:
            return ClipboardContent.from_text(text)

        image = self.read_image()
        if image is not None:
            return ClipboardContent.from_image(image)

        return None

    def write(self, content: ClipboardContent) -> bool:
        if content.text is not None:
            return self.write_text(content.text)
        return self.write_image(content.image)
