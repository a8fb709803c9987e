"""
Key material and authenticated encryption for clipboard payloads.
"""

from clpd.crypto.keys import MasterKey, derive_key, generate_salt, SALT_SIZE, KEY_SIZE
from clpd.crypto.envelope import encrypt, decrypt, NONCE_SIZE, TAG_SIZE

VERIFICATION_PLAINTEXT = b"clpd_test"

__all__ = [
    'MasterKey',
    'derive_key',
    'generate_salt',
    'encrypt',
    'decrypt',
    'SALT_SIZE',
    'KEY_SIZE',
    'NONCE_SIZE',
    'TAG_SIZE',
    'VERIFICATION_PLAINTEXT',
]
