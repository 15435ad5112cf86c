"""Exceptions raised by the arithmetic, key generation and block codec layers.

Every error subclasses `BlockRSAError` as well as the builtin it most resembles, so callers that only expect
`ValueError`/`RuntimeError` keep working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class BlockRSAError(Exception):
    """Base class for all blockrsa errors."""


class InvalidModulusError(BlockRSAError, ValueError):
    """No modular inverse exists, as the value and the modulus are not coprime."""


class ExhaustedRetriesError(BlockRSAError, RuntimeError):
    """A random search (prime or exponent) did not succeed within its attempt cap."""


class DeadlineExceededError(ExhaustedRetriesError):
    """A random search ran past the deadline given by the caller."""


class DegenerateKeyError(BlockRSAError, ValueError):
    """The key material cannot form a usable key. E.g. p == q or a modulus too small to hold one byte."""


class DecryptionError(BlockRSAError, RuntimeError):
    """A decrypted block does not fit in its slot, most likely the wrong key was used."""
