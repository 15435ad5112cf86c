"""Block codec: splits messages into blocks below the modulus and runs the RSA primitive over each of them.

Textbook RSA only, no padding scheme is applied. A message is cut into blocks of `block_size(n)` bytes, every block
is read as a big-endian unsigned integer and exponentiated on its own. The resulting chunks keep block order.
Decoding always pads to a known byte count, so blocks that start with `0x00` are restored intact.

Typical usage example:

    chunks = encrypt_message(b"Hi there!", (n, e))
    plain = decrypt_message(chunks, (n, d))
    sig = sign_message("Hi there!", (n, d))
    assert verify_signature(sig, (n, e), "Hi there!")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from collections.abc import Callable, Iterable
import logging
import re
from typing import NamedTuple

from blockrsa.arith import mod_exp
from blockrsa.errors import DecryptionError
from blockrsa.errors import DegenerateKeyError

logger = logging.getLogger(__name__)

Primitive = Callable[[int], int]


class DecodingMismatch(NamedTuple):
    """The first signature block that failed to verify.

    Attributes:
        index: Position of the block within the message.
        expected: The message block that was signed, empty if the signature has surplus chunks.
        recovered: What the signature chunk decoded to, or None if the chunk is missing or out of range.
    """
    index: int
    expected: bytes
    recovered: bytes | None


def as_bytes(message: bytes | str) -> bytes:
    """Returns `message` unchanged if it is bytes, otherwise its UTF-8 encoding."""
    if isinstance(message, str):
        return message.encode("utf-8")
    return bytes(message)


def block_size(mod: int) -> int:
    """Number of message bytes per block for the modulus `mod`.

    One byte shorter than the modulus itself, so every block integer is below `256**(len(mod) - 1) <= mod`.

    Raises:
        DegenerateKeyError: If the modulus is too small to hold a single byte per block.
    """
    size = (mod.bit_length() + 7) // 8 - 1
    if size < 1:
        raise DegenerateKeyError(f"Modulus {mod} is too small to encode a single byte per block.")
    return size


def split_blocks(message: bytes, size: int) -> list[bytes]:
    """Cuts `message` into consecutive blocks of `size` bytes. The last block may be shorter."""
    return [message[i:i + size] for i in range(0, len(message), size)]


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to its big-endian unsigned integer."""
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int) -> bytes:
    """Converts an integer to a big-endian byte string of exactly `fixedlen` bytes.

    Raises:
        OverflowError: If `msg` does not fit.
    """
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)


def minimal_bytes(msg: int) -> bytes:
    """Converts an integer to the shortest byte string holding it, at least one byte.

    The hex form is padded to an even number of digits before conversion.
    """
    hexed = format(msg, "x")
    if len(hexed) % 2:
        hexed = "0" + hexed
    return bytes.fromhex(hexed)


def key_primitive(key: tuple[int, int]) -> Primitive:
    """Builds the RSA primitive `m -> m**expo % mod` for a `(mod, expo)` key.

    The returned callable rejects representatives outside `[0, mod)` with ValueError.
    """
    mod, expo = key

    def primitive(message: int) -> int:
        if not 0 <= message < mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return mod_exp(message, expo, mod)

    return primitive


def transform_blocks(message: bytes | str, mod: int, primitive: Primitive) -> list[int]:
    """Splits `message` into blocks and applies `primitive` to each block integer, preserving order."""
    blocks = split_blocks(as_bytes(message), block_size(mod))
    logger.debug("Transforming %d block(s) under a %d-bit modulus", len(blocks), mod.bit_length())
    return [primitive(bytes_to_integer(block)) for block in blocks]


def recover_blocks(chunks: Iterable[int], mod: int, primitive: Primitive, length: int | None = None) -> bytes:
    """Inverts `transform_blocks`: applies `primitive` to every chunk and reassembles the bytes.

    All chunks but the last decode to exactly one block. The last decodes to whatever `length` leaves over, or when
    `length` is unknown to its minimal byte count, in which case leading zero bytes of that final block are lost.

    Args:
        chunks: The cipher chunks in order.
        mod: The modulus of the key.
        primitive: The RSA primitive of the key.
        length: Optional byte length of the original message.

    Returns:
        The reassembled message.

    Raises:
        ValueError: If a chunk is out of range or `length` is inconsistent with the chunk count.
        DecryptionError: If a recovered block is wider than its slot.
    """
    chunks = list(chunks)
    size = block_size(mod)
    if not chunks:
        if length:
            raise ValueError("No chunks given for a non-empty message.")
        return b""
    last_width = None
    if length is not None:
        last_width = length - (len(chunks) - 1) * size
        if not 0 < last_width <= size:
            raise ValueError(f"Length {length} does not match {len(chunks)} chunk(s) of {size} byte(s).")
    parts = []
    for index, chunk in enumerate(chunks):
        value = primitive(chunk)
        width = size if index < len(chunks) - 1 else last_width
        try:
            part = minimal_bytes(value) if width is None else integer_to_bytes(value, width)
        except OverflowError as exc:
            raise DecryptionError(f"Block {index} does not fit in {width} byte(s).") from exc
        if len(part) > size:
            raise DecryptionError(f"Block {index} does not fit in {size} byte(s).")
        parts.append(part)
    logger.debug("Recovered %d block(s)", len(parts))
    return b"".join(parts)


def find_mismatch(signature: Iterable[int], mod: int, primitive: Primitive,
                  message: bytes | str) -> DecodingMismatch | None:
    """Compares every signature chunk against the message block it should decode to.

    Returns:
        The first mismatch, or None if the signature covers the message exactly.
    """
    signature = list(signature)
    blocks = split_blocks(as_bytes(message), block_size(mod))
    for index, block in enumerate(blocks):
        if index >= len(signature) or not 0 <= signature[index] < mod:
            return DecodingMismatch(index, block, None)
        value = primitive(signature[index])
        if value.bit_length() > 8 * len(block):
            return DecodingMismatch(index, block, minimal_bytes(value))
        recovered = integer_to_bytes(value, len(block))
        if recovered != block:
            return DecodingMismatch(index, block, recovered)
    if len(signature) > len(blocks):
        return DecodingMismatch(len(blocks), b"", None)
    return None


def encrypt_message(message: bytes | str, public_key: tuple[int, int]) -> list[int]:
    """Encrypts `message` block by block under the `(n, e)` public key."""
    return transform_blocks(message, public_key[0], key_primitive(public_key))


def sign_message(message: bytes | str, private_key: tuple[int, int]) -> list[int]:
    """Signs `message` block by block under the `(n, d)` private key."""
    return transform_blocks(message, private_key[0], key_primitive(private_key))


def decrypt_message(chunks: Iterable[int], private_key: tuple[int, int], length: int | None = None) -> bytes:
    """Decrypts cipher chunks under the `(n, d)` private key. See `recover_blocks` for `length`."""
    return recover_blocks(chunks, private_key[0], key_primitive(private_key), length)


def verify_signature(signature: Iterable[int], public_key: tuple[int, int], message: bytes | str) -> bool:
    """Checks a block signature against `message` under the `(n, e)` public key.

    A mismatch is a normal outcome and yields False, it is only logged.
    """
    mismatch = find_mismatch(signature, public_key[0], key_primitive(public_key), message)
    if mismatch is not None:
        logger.debug("Signature mismatch at block %d", mismatch.index)
        return False
    return True


def chunks_to_strings(chunks: Iterable[int]) -> list[str]:
    """Serializes chunks as decimal strings, in order."""
    return [str(chunk) for chunk in chunks]


def strings_to_chunks(items: str | Iterable[str]) -> list[int]:
    """Parses decimal chunks, given as a list of strings or one comma/whitespace separated string.

    Raises:
        ValueError: If an item is not a non-negative decimal integer.
    """
    if isinstance(items, str):
        items = [item for item in re.split(r"[\s,]+", items) if item]
    chunks = []
    for item in items:
        item = item.strip()
        if not item.isdecimal():
            raise ValueError(f"Chunk {item!r} is not a decimal integer.")
        chunks.append(int(item))
    return chunks
