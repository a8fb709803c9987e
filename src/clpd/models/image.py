import io
import struct
from dataclasses import dataclass

from PIL import Image

# u64 width, u64 height, u64 byte length, all little-endian
_HEADER = struct.Struct("<QQQ")


@dataclass(frozen=True)
class ImageData:
    """Clipboard image as raw RGBA pixels."""
    width: int
    height: int
    bytes: bytes

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError("Image dimensions must be non-negative")
        expected = self.width * self.height * 4
        if len(self.bytes) != expected:
            raise ValueError(
                f"RGBA buffer has {len(self.bytes)} bytes, expected {expected} "
                f"for {self.width}x{self.height}")

    def serialize(self) -> bytes:
        """
        Deterministic byte form used both as the encrypted plaintext and as
        the input of the content hash. Must stay stable across versions or
        deduplication of images breaks.
        """
        return _HEADER.pack(self.width, self.height, len(self.bytes)) + self.bytes

    @classmethod
    def deserialize(cls, data: bytes) -> "ImageData":
        if len(data) < _HEADER.size:
            raise ValueError("Serialized image is truncated")
        width, height, length = _HEADER.unpack_from(data)
        pixels = data[_HEADER.size:]
        if len(pixels) != length:
            raise ValueError(
                f"Serialized image declares {length} bytes, found {len(pixels)}")
        return cls(width=width, height=height, bytes=pixels)

    @classmethod
    def from_pil(cls, image: Image.Image) -> "ImageData":
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        width, height = image.size
        return cls(width=width, height=height, bytes=image.tobytes())

    @classmethod
    def from_encoded(cls, payload: bytes) -> "ImageData":
        """Decode PNG, BMP, JPEG or any other format Pillow understands."""
        with Image.open(io.BytesIO(payload)) as image:
            return cls.from_pil(image)

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.bytes)

    def to_png(self) -> bytes:
        output = io.BytesIO()
        self.to_pil().save(output, format="PNG")
        return output.getvalue()
