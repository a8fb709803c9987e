import hashlib
from dataclasses import dataclass
from typing import Optional

from clpd.models.entry import ContentType
from clpd.models.image import ImageData


def hash_data(data: bytes) -> str:
    """SHA-256 of data as 64 hex characters."""
    return hashlib.sha256(data).hexdigest()


@dataclass(frozen=True)
class ClipboardContent:
    """A single clipboard sample: either text or an image, never both."""
    text: Optional[str] = None
    image: Optional[ImageData] = None

    def __post_init__(self) -> None:
        if (self.text is None) == (self.image is None):
            raise ValueError("ClipboardContent needs exactly one of text or image")

    @classmethod
    def from_text(cls, text: str) -> "ClipboardContent":
        return cls(text=text)

    @classmethod
    def from_image(cls, image: ImageData) -> "ClipboardContent":
        return cls(image=image)

    @property
    def content_type(self) -> ContentType:
        return ContentType.TEXT if self.text is not None else ContentType.IMAGE

    def canonical_bytes(self) -> bytes:
        if self.text is not None:
            return self.text.encode("utf-8")
        return self.image.serialize()

    def digest(self) -> str:
        return hash_data(self.canonical_bytes())

    @classmethod
    def from_plaintext(cls, content_type: ContentType, plaintext: bytes) -> "ClipboardContent":
        """Rebuild a sample from a decrypted entry payload."""
        if content_type == ContentType.TEXT:
            return cls.from_text(plaintext.decode("utf-8"))
        return cls.from_image(ImageData.deserialize(plaintext))
