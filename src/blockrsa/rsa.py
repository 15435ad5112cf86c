"""Provides RSA key objects with block encryption, decryption, signing and verification.

Wraps the block codec around key objects, under "textbook" RSA conditions only. Keys can be written as decimal
`modulus,exponent` pairs or as PEM files (PKCS1 for public keys, PKCS8 for private keys).

Typical usage example:

    pk = RSAPrivKey.generate(16)
    c = pk.pub.encrypt("Hi there!")
    r = pk.decrypt(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
from collections.abc import Iterable
import pathlib
import re

from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.type import univ
from pyasn1_modules import rfc5208
from pyasn1_modules import rfc8017

from blockrsa import codec
from blockrsa import keygen
from blockrsa.arith import mod_exp
from blockrsa.arith import mod_inverse

PEM_LABELS = {"PKCS1_PUB": "RSA PUBLIC KEY", "PKCS8": "PRIVATE KEY"}
_PRIVATE_FIELDS = ("modulus", "publicExponent", "privateExponent", "prime1", "prime2", "exponent1", "exponent2",
                   "coefficient")


def parse_decimal_pair(text: str) -> tuple[int, int]:
    """Parses a `modulus,exponent` pair of decimal integers.

    Raises:
        ValueError: If the text is not exactly two decimal integers separated by a comma.
    """
    parts = [part.strip() for part in text.strip().strip("()").split(",")]
    if len(parts) != 2 or not all(part.isdecimal() for part in parts):
        raise ValueError(f"Expected 'modulus,exponent' in decimal, got {text!r}")
    return int(parts[0]), int(parts[1])


class RSAKey:
    """The overall RSA key class implementation.

    Holds the two values every key has, whether public or private.

    Attributes:
        mod: The modulus of the keypair.
        expo: The exponent of the key, whether private or public.
    """

    def __init__(self, mod: int, expo: int) -> None:
        self.mod = mod
        self.expo = expo

    @property
    def bsize(self) -> int:
        """Message bytes per block for this key."""
        return codec.block_size(self.mod)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt/Sign/Verify).

        Args:
            message: The int-marshalled message block

        Returns:
            The exponentiated block

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return mod_exp(message, self.expo, self.mod)

    def to_decimal(self) -> str:
        """The key as a `modulus,exponent` decimal string."""
        return f"{self.mod},{self.expo}"


class RSAPubKey(RSAKey):
    """A rather straightforward subclass of RSAKey, for Public Keys.

    The init is not overwritten as a Public Key consists solely of a modulus and exponent.
    """

    def encrypt(self, message: bytes | str) -> list[int]:
        """Encrypts the message block by block.

        Args:
            message: Bytes, or text which is encoded as UTF-8.

        Returns:
            The cipher chunks, in block order.
        """
        return codec.transform_blocks(message, self.mod, self.c_rsa)

    def verify(self, message: bytes | str, signature: Iterable[int]) -> bool:
        """Verify a block signature of the message.

        Args:
            message: The message to verify the signature against.
            signature: The signature chunks, in block order.

        Returns:
            True if every chunk decodes to its message block, False otherwise.
        """
        return codec.find_mismatch(signature, self.mod, self.c_rsa, message) is None

    def export(self, file: pathlib.Path) -> None:
        """Export the Public RSA key to file, as PKCS1.

        Args:
            file: The file to export the public key to.
        """
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod
        keydata["publicExponent"] = self.expo
        write_pem(file, "PKCS1_PUB", encoder.encode(keydata))

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPubKey":
        """Import the Public RSA key from a PKCS1 file.

        Args:
            file: The file to import the public key from.

        Returns:
            An RSAPubKey object with the imported public key.
        """
        payload = read_pem(file, "PKCS1_PUB")
        keydata, _ = decoder.decode(payload, asn1Spec=rfc8017.RSAPublicKey())
        return cls(int(keydata["modulus"]), int(keydata["publicExponent"]))

    @classmethod
    def from_decimal(cls, text: str) -> "RSAPubKey":
        """Builds a public key from a `modulus,exponent` decimal string."""
        return cls(*parse_decimal_pair(text))


class RSAPrivKey(RSAKey):
    """RSA Private Key class implementation.

    Besides the private exponent this optionally carries the public exponent (exposed as `pub`) and the primes.
    With the primes known, the private operation is accelerated with the CRT.

    Attributes:
        mod: The modulus of the keypair.
        expo: The private exponent of the key.
        pub: The public key of the key, None when the public exponent is unknown.
        p: Private Prime 1.
        q: Private Prime 2.
    """

    def __init__(self,
                 mod: int,
                 pub_exp: int | None,
                 priv_exp: int,
                 p: int | None = None,
                 q: int | None = None,
                 exp1: int | None = None,
                 exp2: int | None = None,
                 coeff: int | None = None) -> None:
        """Initialize the RSA Private Key.

        Args:
            mod: The modulus of the keypair.
            pub_exp: The public exponent of the key, or None if unknown.
            priv_exp: The private exponent of the key.
            p: The private prime 1.
            q: The private prime 2.
            exp1: CRT Component dmp1.
            exp2: CRT Component dmq1.
            coeff: CRT Component iqmp.
        """
        super().__init__(mod, priv_exp)
        self.pub: RSAPubKey | None = RSAPubKey(mod, pub_exp) if pub_exp is not None else None
        self.p: int | None = None
        self.q: int | None = None
        self.exp1: int | None = None
        self.exp2: int | None = None
        self.coeff: int | None = None
        if p and q:
            self.p = p
            self.q = q
            self.exp1 = exp1 if exp1 is not None else priv_exp % (p - 1)
            self.exp2 = exp2 if exp2 is not None else priv_exp % (q - 1)
            self.coeff = coeff if coeff is not None else mod_inverse(q, p)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation accelerated with CRT. (Decrypt/Sign)

        Args:
            message: The int-marshalled message block

        Returns:
            The exponentiated block

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not self.p or not self.q:
            return super().c_rsa(message)
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        m_1 = mod_exp(message, self.exp1, self.p)
        m_2 = mod_exp(message, self.exp2, self.q)
        h = ((m_1 - m_2) * self.coeff) % self.p
        return m_2 + self.q * h

    def decrypt(self, chunks: Iterable[int], length: int | None = None) -> bytes:
        """Decrypts cipher chunks back into the message bytes.

        Args:
            chunks: The cipher chunks, in block order.
            length: Byte length of the original message, if known. Keeps leading zero bytes of the final block.

        Returns:
            The decrypted message.
        """
        return codec.recover_blocks(chunks, self.mod, self.c_rsa, length)

    def sign(self, message: bytes | str) -> list[int]:
        """Signs the message block by block with the private exponent.

        Args:
            message: Bytes, or text which is encoded as UTF-8.

        Returns:
            The signature chunks, in block order.
        """
        return codec.transform_blocks(message, self.mod, self.c_rsa)

    def export(self, file: pathlib.Path) -> None:
        """Exports the RSA Private Key to a PKCS8 file.

        Raises:
            NotImplementedError: If the primes or the public exponent are unknown.
        """
        if not self.p or not self.q or self.pub is None:
            raise NotImplementedError("Exporting requires the primes and the public exponent.")
        keydata = rfc8017.RSAPrivateKey()
        keydata["version"] = 0
        values = (self.mod, self.pub.expo, self.expo, self.p, self.q, self.exp1, self.exp2, self.coeff)
        for field, value in zip(_PRIVATE_FIELDS, values):
            keydata[field] = value
        write_pem(file, "PKCS8", _wrap_private_key(encoder.encode(keydata)))

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPrivKey":
        """Imports the RSA Private Key from a PKCS8 file, without multi-prime handling.

        Raises:
            IOError: If the file is not a two-prime PKCS8 RSA key.
        """
        der = _unwrap_private_key(read_pem(file, "PKCS8"))
        keydata, _ = decoder.decode(der, asn1Spec=rfc8017.RSAPrivateKey())
        if keydata["version"] != 0:
            raise IOError("Multi-prime keys are not supported.")
        return cls(*(int(keydata[field]) for field in _PRIVATE_FIELDS))

    @classmethod
    def from_decimal(cls, text: str, pub_exp: int | None = None) -> "RSAPrivKey":
        """Builds a private key from a `modulus,exponent` decimal string."""
        mod, priv_exp = parse_decimal_pair(text)
        return cls(mod, pub_exp, priv_exp)

    @classmethod
    def generate(cls,
                 prime_bits: int = keygen.DEFAULT_PRIME_BITS,
                 rounds: int = keygen.DEFAULT_ROUNDS,
                 timeout: float | None = None) -> "RSAPrivKey":
        """Generates an RSA Private Key, and its respective Public Key.

        Args:
            prime_bits: Bit length of each prime.
            rounds: Miller-Rabin rounds per candidate.
            timeout: Optional bound on generation time, in seconds.

        Returns:
            A new generated RSA Private Key.
        """
        (n, pub), (_, d, p, q) = keygen.generate_key_pair(prime_bits, rounds, True, timeout)
        return cls(n, pub, d, p, q)


def _wrap_private_key(der: bytes) -> bytes:
    """Wraps a DER `RSAPrivateKey` in a PKCS8 `PrivateKeyInfo`."""
    info = rfc5208.PrivateKeyInfo()
    info["version"] = 0
    info["privateKeyAlgorithm"]["algorithm"] = rfc8017.rsaEncryption
    info["privateKeyAlgorithm"]["parameters"] = univ.Null("")
    info["privateKey"] = der
    return encoder.encode(info)


def _unwrap_private_key(der: bytes) -> bytes:
    """Extracts the DER `RSAPrivateKey` from a PKCS8 `PrivateKeyInfo`.

    Raises:
        IOError: If the wrapper version or the key algorithm is not supported.
    """
    info, _ = decoder.decode(der, asn1Spec=rfc5208.PrivateKeyInfo())
    if info["version"] != 0:
        raise IOError("Unsupported version of private key information wrapper")
    if info["privateKeyAlgorithm"]["algorithm"] != rfc8017.rsaEncryption:
        raise IOError("Private Key Algorithm not supported.")
    return info["privateKey"].asOctets()


def read_pem(file: pathlib.Path, subtype: str) -> bytes:
    """Reads a PEM encoded file.

    Args:
        file: The file to read.
        subtype: The subtype of PEM encoding to accept.

    Returns:
        The decoded DER payload.

    Raises:
        IOError: If the file is not PEM of the requested subtype.
    """
    label = PEM_LABELS[subtype]
    text = pathlib.Path(file).read_text(encoding="ascii")
    armored = re.fullmatch(rf"\s*-----BEGIN {label}-----([A-Za-z0-9+/=\s]*)-----END {label}-----\s*", text)
    if armored is None:
        raise IOError(f"{file} is not a PEM encoded {label}")
    return base64.b64decode("".join(armored.group(1).split()))


def write_pem(file: pathlib.Path, subtype: str, data: bytes) -> None:
    """Writes a PEM encoded file, 64 base64 characters per line."""
    label = PEM_LABELS[subtype]
    body = base64.b64encode(data).decode("ascii")
    lines = [f"-----BEGIN {label}-----", *(body[i:i + 64] for i in range(0, len(body), 64)), f"-----END {label}-----"]
    pathlib.Path(file).write_text("\n".join(lines) + "\n", encoding="ascii")
