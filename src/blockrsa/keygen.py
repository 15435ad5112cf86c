"""Core Key Generation Utility, covering primality testing, candidate sampling and keypair derivation.

This module generates textbook RSA key pairs. Candidates of a fixed bit length are drawn from `secrets`, filtered
by trial division against a cached table of small primes and then tested with Miller-Rabin. The public exponent is
drawn at random and rejected until it is coprime with the totient. Every random search is capped, and key
generation as a whole can be bounded by a timeout.

Typical usage example:

    (n, e), (_, d) = generate_key_pair(16)
    p, q = generate_primes(32)
    n, e, d = derive_key_pair(61, 53, 17)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
import secrets
import time
from typing import Literal, overload

from blockrsa.arith import gcd
from blockrsa.arith import mod_exp
from blockrsa.arith import mod_inverse
from blockrsa.codec import block_size
from blockrsa.errors import DeadlineExceededError
from blockrsa.errors import DegenerateKeyError
from blockrsa.errors import ExhaustedRetriesError

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS: int = 5
DEFAULT_PRIME_BITS: int = 16
MIN_PRIME_BITS: int = 5
EXPONENT_ATTEMPTS: int = 1000

_SMALL_PRIMES: list[int] = []
_SMALL_PRIMES_CAP: int = 0


def _sieve(n: int = 10000) -> list[int]:
    """Implements the Sieve of Eratosthenes.

    Uses the textbook Sieve of Eratosthenes to generate a set of primes up to `n`.
    Only odd numbers are stored and sieving stops at the square root.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.

    Returns:
        A list of primes up to `n`.
    """
    if n < 2:
        return []
    i_size = (n - 1) // 2
    candidate: list[bool] = [True] * i_size
    for i in range(int(n**0.5) // 2):
        if candidate[i]:
            r = 2 * i + 3
            for j in range((r * r - 3) // 2, i_size, r):
                candidate[j] = False
    return [2] + [(no * 2 + 3) for no, ele in enumerate(candidate) if ele]


def get_pre_primes(n: int = 10000, change: bool = False) -> list[int]:
    """Get the small primes, sieving them if the cache does not reach `n`.

    Args:
        n: The number up to which to generate primes. Defaults to 10000. Must be >= 0.
            Ignored if smaller or equal than `_SMALL_PRIMES_CAP`, `change` is False and `_SMALL_PRIMES` is non-empty.
        change: Whether to force a recomputation of primes. Defaults to False.

    Returns:
        List of primes in ascending order. All primes at least to `n` or more unless `change` is True.
    """
    if n < 0:
        raise ValueError("n must be >= 0")
    global _SMALL_PRIMES
    global _SMALL_PRIMES_CAP
    if n > _SMALL_PRIMES_CAP or change or not _SMALL_PRIMES:
        _SMALL_PRIMES = _sieve(n)
        _SMALL_PRIMES_CAP = n
    return _SMALL_PRIMES


def _trial_division(no: int, n: int = 10000) -> bool:
    """Check the provided `no` against the known small primes.

    Args:
         no: The number to check. Must be a non-negative integer.
         n: The number up to which to generate primes. Passed to `get_pre_primes()`.

    Returns:
        False if `no` cannot be prime, True otherwise.
    """
    if no < 2:
        return False
    for prime in get_pre_primes(n):
        if prime * prime > no:
            return True
        if no % prime == 0:
            return False
    return True


def random_odd_of_bit_length(bits: int) -> int:
    """Draws an odd integer of exactly `bits` bits.

    The top bit is forced to keep the length and the bottom bit to keep it odd. All interior bits are uniform.
    With `bits == 2` the only possible result is 3.

    Raises:
        ValueError: If `bits < 2`.
    """
    if bits < 2:
        raise ValueError("Bit length must be at least 2.")
    return secrets.randbits(bits) | (1 << (bits - 1)) | 1


def random_in_range(low: int, high: int) -> int:
    """Draws a uniformly distributed integer from `[low, high]`.

    Rejection sampling over uniform bit strings as wide as the span, so large ranges stay exact.

    Args:
        low: Inclusive lower bound.
        high: Inclusive upper bound.

    Returns:
        The sampled integer.

    Raises:
        ValueError: If `high < low`.
    """
    if high < low:
        raise ValueError(f"Empty range [{low}, {high}]")
    span = high - low + 1
    width = (span - 1).bit_length()
    while True:
        offset = secrets.randbits(width)
        if offset < span:
            return low + offset


def is_prime(n: int, rounds: int = DEFAULT_ROUNDS) -> bool:
    """Perform the Miller-Rabin primality test.

    A composite passes a single round with probability at most 1/4, so a True answer is wrong with probability at
    most `4**-rounds`. False answers are always correct.

    Args:
        n: Integer to be tested.
        rounds: Number of independent random bases to try.

    Returns:
        True if `n` is probably prime, False otherwise.
    """
    if n <= 1:
        return False
    if n <= 3:
        return True
    if n % 2 == 0:
        return False
    tw = n - 1
    s = (tw & -tw).bit_length() - 1
    d = tw >> s
    for _ in range(rounds):
        x = mod_exp(random_in_range(2, n - 2), d, n)
        if x == 1 or x == tw:
            continue
        for _ in range(s - 1):
            x = (x * x) % n
            if x == tw:
                break
            if x == 1:
                return False
        else:
            return False
    return True


def check_prime(candidate: int, rounds: None | int = None, n: int = 10000) -> bool:
    """Performs a composite primality test, using trial division by small primes before a Miller-Rabin test.

    Args:
        candidate: The candidate prime to test.
        rounds: Number of Miller-Rabin rounds to perform.
            If not provided will use defaults as per the FIPS 186-5 Appendix C.1
        n: The number up to which to generate primes. Defaults to 10000.
            Passed to `_trial_division()`.

    Returns:
        True if `candidate` is probably prime, False otherwise.
    """
    if candidate < 2:
        return False
    if not _trial_division(candidate, n):
        return False
    if rounds is None:
        if candidate.bit_length() <= 512:
            rounds = 40
        elif candidate.bit_length() <= 1024:
            rounds = 56
        elif candidate.bit_length() <= 1536:
            rounds = 64
        elif candidate.bit_length() <= 2048:
            rounds = 70
        else:
            rounds = 74
    return is_prime(candidate, rounds)


def _check_deadline(deadline: float | None, what: str) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise DeadlineExceededError(f"Deadline passed while searching for {what}.")


def generate_prime(bits: int,
                   rounds: int = DEFAULT_ROUNDS,
                   exclude: int | None = None,
                   max_attempts: int | None = None,
                   deadline: float | None = None) -> int:
    """Generate a probable prime number of the specified bit size.

    Args:
        bits: The size of the prime to generate in bits. Must be >= 2.
        rounds: Miller-Rabin rounds per candidate.
        exclude: A value the result must differ from, usually the other prime of the pair.
        max_attempts: Candidates to draw before giving up.
            Defaults to `max(5 * bits, 32)`, doubled when `exclude` is given.
        deadline: Optional `time.monotonic()` value after which the search is abandoned.

    Returns:
        A probable prime number.

    Raises:
        ExhaustedRetriesError: If no prime was found within `max_attempts` candidates.
        DeadlineExceededError: If `deadline` passed first.
    """
    if max_attempts is None:
        max_attempts = max(bits * 5, 32) * (1 if exclude is None else 2)
    for attempt in range(max_attempts):
        _check_deadline(deadline, f"a {bits}-bit prime")
        candidate = random_odd_of_bit_length(bits)
        if candidate == exclude:
            logger.debug("Candidate %d equals the excluded prime, resampling", candidate)
            continue
        if check_prime(candidate, rounds):
            logger.debug("Found %d-bit probable prime after %d candidate(s)", bits, attempt + 1)
            return candidate
    raise ExhaustedRetriesError(
        f"Ran {max_attempts} attempts with no {bits}-bit prime found. Check the bit length and random source.")


def generate_primes(bits: int, rounds: int = DEFAULT_ROUNDS, deadline: float | None = None) -> tuple[int, int]:
    """Generates a pair of distinct probable primes of `bits` bits each."""
    p = generate_prime(bits, rounds, deadline=deadline)
    q = generate_prime(bits, rounds, exclude=p, deadline=deadline)
    return p, q


def choose_public_exponent(totient: int,
                           max_attempts: int = EXPONENT_ATTEMPTS,
                           deadline: float | None = None) -> int:
    """Draws `e` uniformly from `[2, totient - 2]` until it is coprime with `totient`.

    Raises:
        ExhaustedRetriesError: If no coprime exponent was drawn within `max_attempts`.
        DeadlineExceededError: If `deadline` passed first.
    """
    for attempt in range(max_attempts):
        _check_deadline(deadline, "a public exponent")
        e = random_in_range(2, totient - 2)
        if gcd(e, totient) == 1:
            logger.debug("Picked public exponent after %d draw(s)", attempt + 1)
            return e
    raise ExhaustedRetriesError(f"No exponent coprime with {totient} found in {max_attempts} draws.")


def derive_key_pair(p: int,
                    q: int,
                    pub: int | None = None,
                    max_attempts: int = EXPONENT_ATTEMPTS,
                    deadline: float | None = None) -> tuple[int, int, int]:
    """Derives the modulus and both exponents from a pair of primes.

    Args:
        p: First prime.
        q: Second prime, distinct from `p`.
        pub: Public exponent to use. Drawn at random when omitted.
        max_attempts: Exponent draws allowed when `pub` is omitted.
        deadline: Optional `time.monotonic()` value bounding the exponent search.

    Returns:
        The tuple `(n, e, d)`.

    Raises:
        DegenerateKeyError: If `p == q` or the totient is too small to hold an exponent.
        ValueError: If `pub` is not in `(1, totient)`.
        InvalidModulusError: If `pub` is not coprime with the totient.
    """
    if p == q:
        raise DegenerateKeyError("p and q must be distinct primes.")
    n = p * q
    totient = (p - 1) * (q - 1)
    if totient < 4:
        raise DegenerateKeyError(f"Totient {totient} is too small to choose an exponent from.")
    if pub is None:
        pub = choose_public_exponent(totient, max_attempts, deadline)
    elif not 1 < pub < totient:
        raise ValueError("Public exponent must lie strictly between 1 and the totient.")
    d = mod_inverse(pub, totient)
    return n, pub, d


@overload
def generate_key_pair(prime_bits: int = DEFAULT_PRIME_BITS,
                      rounds: int = DEFAULT_ROUNDS,
                      expose_primes: Literal[False] = False,
                      timeout: float | None = None) -> tuple[tuple[int, int], tuple[int, int]]:
    ...


@overload
def generate_key_pair(prime_bits: int = DEFAULT_PRIME_BITS,
                      rounds: int = DEFAULT_ROUNDS,
                      expose_primes: Literal[True] = False,
                      timeout: float | None = None) -> tuple[tuple[int, int], tuple[int, int, int, int]]:
    ...


def generate_key_pair(
    prime_bits: int = DEFAULT_PRIME_BITS,
    rounds: int = DEFAULT_ROUNDS,
    expose_primes: bool = False,
    timeout: float | None = None,
) -> tuple[tuple[int, int], tuple[int, int]] | tuple[tuple[int, int], tuple[int, int, int, int]]:
    """Generates an RSA key pair.

    Draws two distinct primes, derives the modulus and totient, picks a random coprime public exponent and
    inverts it.

    Args:
        prime_bits: Bit length of each prime. The modulus is about twice as long. Must be >= 5, the
            smallest size whose modulus holds a one-byte block.
        rounds: Miller-Rabin rounds per candidate.
        expose_primes: Whether to return the primes as part of the private key. Defaults to False.
        timeout: Seconds the whole derivation may take. Unbounded (but still attempt-capped) when None.

    Returns:
        A tuple of (public, private) sub-tuples (modulus, exponent) or if exposed for the private
        (modulus, exponent, p, q)

    Raises:
        ValueError: If `prime_bits` is too small.
        ExhaustedRetriesError: If a random search hit its cap or the timeout.
        DegenerateKeyError: If the modulus cannot hold a single byte per block.
    """
    if prime_bits < MIN_PRIME_BITS:
        raise ValueError(f"Prime bit length must be at least {MIN_PRIME_BITS}.")
    deadline = None if timeout is None else time.monotonic() + timeout
    p, q = generate_primes(prime_bits, rounds, deadline)
    block_size(p * q)
    n, e, d = derive_key_pair(p, q, deadline=deadline)
    logger.info("Generated key pair with a %d-bit modulus", n.bit_length())
    if not expose_primes:
        del p, q
        return (n, e), (n, d)
    return (n, e), (n, d, p, q)
