"""
Join parameter cipher.

Every value in a direct-join query is AES-CBC encrypted under a fixed key and IV
shared with the game client mod, PKCS#7 padded, and base64 encoded. The key is
static configuration, so this only obscures the parameters; the receiving side
accepts nothing else, so the scheme must stay byte-compatible.
"""

import base64
import binascii

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from roomlink.directory.errors import CryptoUnavailableError
from roomlink.util.logging_helper import get_logger

logger = get_logger(__name__)

AES_BLOCK_BITS = 128


class JoinCipher:
    """
    AES-CBC cipher bound to one key/IV pair.

    Instances are built once per distinct key by the server catalog and handed
    to the query builder; nothing is looked up globally.

    Usage:
        cipher = JoinCipher(aes_key="0123456789abcdef", aes_iv="fedcba9876543210")
        token = cipher.encrypt("4.3.2.1")
        assert cipher.decrypt(token) == "4.3.2.1"
    """

    def __init__(self, aes_key: str, aes_iv: str):
        """
        Args:
            aes_key: UTF-8 key string (16, 24 or 32 bytes once encoded)
            aes_iv: UTF-8 IV string (16 bytes once encoded)

        Raises:
            CryptoUnavailableError: the backend has no AES-CBC support
            ValueError: key or IV has the wrong length
        """
        self.aes_key = aes_key
        self._key = aes_key.encode("utf-8")
        self._iv = aes_iv.encode("utf-8")

        backend = default_backend()
        try:
            algorithm = algorithms.AES(self._key)
            mode = modes.CBC(self._iv)
        except UnsupportedAlgorithm as exc:
            raise CryptoUnavailableError("AES-CBC is unavailable for join encryption.") from exc

        if not backend.cipher_supported(algorithm, mode):
            raise CryptoUnavailableError("AES-CBC is unavailable for join encryption.")

        self._algorithm = algorithm
        self._mode = mode
        # Cipher() checks the IV length against the block size
        self._cipher()
        logger.debug("Join cipher ready (key bytes=%d)", len(self._key))

    def _cipher(self) -> Cipher:
        # CBC contexts are single-use; a fresh one per value keeps the IV fixed
        return Cipher(self._algorithm, self._mode, backend=default_backend())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a UTF-8 string and return the base64 ciphertext."""
        padder = padding.PKCS7(AES_BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = self._cipher().encryptor()
        encrypted = encryptor.update(padded) + encryptor.finalize()
        return base64.b64encode(encrypted).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Reverse encrypt().

        Raises:
            ValueError: token is not valid base64 or the padding is corrupt
        """
        try:
            encrypted = base64.b64decode(token, validate=True)
        except binascii.Error as exc:
            raise ValueError("Join token is not valid base64") from exc

        decryptor = self._cipher().decryptor()
        padded = decryptor.update(encrypted) + decryptor.finalize()

        unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return plaintext.decode("utf-8")
