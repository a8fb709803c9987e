from typing import List, Optional, Union

import pytest

from clpd.clipboard import ClipboardSource
from clpd.crypto import VERIFICATION_PLAINTEXT, derive_key, encrypt, generate_salt
from clpd.database import EntryStore
from clpd.models import ImageData

TEST_PASSWORD = "correcthorse1"


class FakeClipboard(ClipboardSource):
    """In-memory clipboard; set() changes what the next read returns."""

    def __init__(self, value: Union[str, ImageData, None] = None):
        self.value = value
        self.written: List[Union[str, ImageData]] = []
        self.fail_reads = False

    def set(self, value: Union[str, ImageData, None]) -> None:
        self.value = value

    def read_text(self) -> Optional[str]:
        if self.fail_reads:
            raise RuntimeError("clipboard is locked")
        return self.value if isinstance(self.value, str) else None

    def read_image(self) -> Optional[ImageData]:
        return self.value if isinstance(self.value, ImageData) else None

    def write_text(self, text: str) -> bool:
        self.written.append(text)
        self.value = text
        return True

    def write_image(self, image: ImageData) -> bool:
        self.written.append(image)
        self.value = image
        return True


def make_image(width: int = 2, height: int = 2, fill: int = 0) -> ImageData:
    return ImageData(width=width, height=height, bytes=bytes([fill]) * (width * height * 4))


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def store(tmp_path):
    store = EntryStore.open(tmp_path / "db" / "history.db")
    yield store
    store.close()


@pytest.fixture
def salt():
    return generate_salt()


@pytest.fixture
def key(salt):
    with derive_key(TEST_PASSWORD, salt) as key:
        yield key


@pytest.fixture
def initialized_store(store, salt, key):
    store.initialize(salt, encrypt(key, VERIFICATION_PLAINTEXT))
    return store
