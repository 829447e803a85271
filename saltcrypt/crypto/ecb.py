"""ECB block-mode adapter over a single-block AES primitive."""
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from saltcrypt.common.errors import BlockAlignmentError


class AESBlock:
    """
    Raw AES permutation on exactly one block.
    Only used as the primitive under ECBMode.
    """

    block_size = algorithms.AES.block_size // 8

    def __init__(self, key: bytes):
        # ECB contexts carry no chaining state, so one of each serves every block
        cipher = Cipher(algorithms.AES(key), modes.ECB())
        self._encryptor = cipher.encryptor()
        self._decryptor = cipher.decryptor()

    def encrypt_block(self, block: bytes) -> bytes:
        if len(block) != self.block_size:
            raise BlockAlignmentError(f"expected a {self.block_size}-byte block, got {len(block)}")
        return self._encryptor.update(block)

    def decrypt_block(self, block: bytes) -> bytes:
        if len(block) != self.block_size:
            raise BlockAlignmentError(f"expected a {self.block_size}-byte block, got {len(block)}")
        return self._decryptor.update(block)


class ECBMode:
    """
    Electronic Code Book: every block is transformed on its own.

    Leaks equal-plaintext-block patterns; kept for legacy interoperability
    only. Input must already be padded to whole blocks.
    """

    def __init__(self, primitive):
        """
        Args:
            primitive: Object with block_size, encrypt_block() and decrypt_block()
        """
        self.primitive = primitive
        self.block_size = primitive.block_size

    def _check(self, data: bytes) -> None:
        if len(data) % self.block_size != 0:
            raise BlockAlignmentError(
                f"ECB input length {len(data)} is not a multiple of block size {self.block_size}"
            )

    def encrypt_blocks(self, data: bytes) -> bytes:
        self._check(data)
        bs = self.block_size
        out = bytearray()
        for i in range(0, len(data), bs):
            out += self.primitive.encrypt_block(bytes(data[i:i + bs]))
        return bytes(out)

    def decrypt_blocks(self, data: bytes) -> bytes:
        self._check(data)
        bs = self.block_size
        out = bytearray()
        for i in range(0, len(data), bs):
            out += self.primitive.decrypt_block(bytes(data[i:i + bs]))
        return bytes(out)


def encrypt_blocks(primitive, plaintext: bytes) -> bytes:
    return ECBMode(primitive).encrypt_blocks(plaintext)


def decrypt_blocks(primitive, ciphertext: bytes) -> bytes:
    return ECBMode(primitive).decrypt_blocks(ciphertext)
