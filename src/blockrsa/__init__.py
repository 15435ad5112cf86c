"""Textbook block RSA built from first principles, in an academic sense.

Provides Miller-Rabin prime generation, key pair derivation and a block codec for encryption, decryption, signing
and verification over plain modular exponentiation. Keys can be exchanged as decimal pairs or PEM files (PKCS1
public, PKCS8 private). Unpadded and insecure by construction, do not use it to protect anything.

Typical usage example:

    pub, priv = generate_key_pair(16)
    c = encrypt_message("Hi there!", pub)
    r = decrypt_message(c, priv)
    pk = RSAPrivKey.generate(32)
    s = pk.sign("Hi there!")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from blockrsa.arith import gcd
from blockrsa.arith import mod_exp
from blockrsa.arith import mod_inverse
from blockrsa.codec import block_size
from blockrsa.codec import decrypt_message
from blockrsa.codec import DecodingMismatch
from blockrsa.codec import encrypt_message
from blockrsa.codec import sign_message
from blockrsa.codec import verify_signature
from blockrsa.errors import BlockRSAError
from blockrsa.errors import DeadlineExceededError
from blockrsa.errors import DecryptionError
from blockrsa.errors import DegenerateKeyError
from blockrsa.errors import ExhaustedRetriesError
from blockrsa.errors import InvalidModulusError
from blockrsa.keygen import check_prime
from blockrsa.keygen import derive_key_pair
from blockrsa.keygen import generate_key_pair
from blockrsa.keygen import generate_prime
from blockrsa.keygen import generate_primes
from blockrsa.keygen import is_prime
from blockrsa.keygen import random_in_range
from blockrsa.keygen import random_odd_of_bit_length
from blockrsa.rsa import RSAPrivKey
from blockrsa.rsa import RSAPubKey

__version__ = "0.1.0"
__all__ = [
    "RSAPrivKey",
    "RSAPubKey",
    "mod_exp",
    "gcd",
    "mod_inverse",
    "is_prime",
    "check_prime",
    "random_odd_of_bit_length",
    "random_in_range",
    "generate_prime",
    "generate_primes",
    "derive_key_pair",
    "generate_key_pair",
    "block_size",
    "encrypt_message",
    "decrypt_message",
    "sign_message",
    "verify_signature",
    "DecodingMismatch",
    "BlockRSAError",
    "InvalidModulusError",
    "ExhaustedRetriesError",
    "DeadlineExceededError",
    "DegenerateKeyError",
    "DecryptionError",
]
