"""Modular big-integer primitives used by every other part of the package.

Python integers are arbitrary precision already, so these only implement the algorithms: binary exponentiation,
Euclid and its extended form.

Typical usage example:

    c = mod_exp(65, 17, 3233)
    d = mod_inverse(17, 3120)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from blockrsa.errors import InvalidModulusError


def mod_exp(base: int, exponent: int, modulus: int) -> int:
    """Computes `base**exponent % modulus` by right-to-left square-and-multiply.

    Args:
        base: Any integer, reduced into `[0, modulus)` before multiplying.
        exponent: Non-negative exponent.
        modulus: Modulus, at least 1.

    Returns:
        The exact residue in `[0, modulus)`.

    Raises:
        ValueError: If `modulus < 1` or `exponent < 0`.
    """
    if modulus < 1:
        raise ValueError("Modulus must be >= 1")
    if exponent < 0:
        raise ValueError("Exponent must be >= 0")
    result = 1 % modulus
    base %= modulus
    while exponent:
        if exponent & 1:
            result = (result * base) % modulus
        base = (base * base) % modulus
        exponent >>= 1
    return result


def gcd(a: int, b: int) -> int:
    """Iterative Euclidean algorithm, for non-negative `a` and `b`."""
    while b:
        a, b = b, a % b
    return a


def eea(a: int, b: int) -> tuple[int, int, int]:
    """Implements the Extended Euclidean Algorithm.

    Such that a*s0 + b*t0 = r0 = gcd(a, b).

    Args:
        a: The first natural number.
        b: The second natural number.

    Returns:
        Greatest common divisor of two integers.
        As well as the Bezout coefficients.
    """
    r0, r1 = a, b
    s0, s1, t0, t1 = 1, 0, 0, 1
    while r1 != 0:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    return r0, s0, t0


def mod_inverse(a: int, m: int) -> int:
    """Computes the inverse of `a` modulo `m` using `eea`.

    Args:
        a: The value to invert.
        m: The modulus, at least 1.

    Returns:
        `x` in `[0, m)` with `a * x % m == 1 % m`.

    Raises:
        InvalidModulusError: If `gcd(a, m) != 1`.
    """
    if m < 1:
        raise ValueError("Modulus must be >= 1")
    g, s, _ = eea(a % m, m)
    if g != 1:
        raise InvalidModulusError(f"{a} has no inverse modulo {m} (gcd {g})")
    return s % m
