"""
Index <-> code transform for SURL Platform.

A short code is the index of a record, pushed through a single affine
bijection over Z/D and written in Base62:

    code  = base62_6( K * (index + 1)  mod D )
    index = (K_inv * base62_6^-1(code) + D - 1)  mod D

with D = 62**6. Because K is coprime to D the map is a permutation of
[0, D): every index gets a distinct code, no collision check or lookup
table is needed, and consecutive indexes land far apart in code space.

Constants:
- DOMAIN_SIZE: 62**6, number of distinct six-character codes
- MULTIPLIER: 35104476159, the integer nearest DOMAIN_SIZE / golden ratio
  that is coprime to DOMAIN_SIZE
- MULTIPLIER_INVERSE: 768306879, MULTIPLIER**-1 mod DOMAIN_SIZE

Common helpers:
- mult_mod: (a * b) mod DOMAIN_SIZE with the 36-bit operand guard
- is_valid_code: the pattern check the HTTP layer runs before decoding

Notes:
- The (index + 1) shift keeps the first code from being "000000".
- Codes are always exactly CODE_LENGTH characters; index D-1 maps to "000000".
"""

import math
import re
from dataclasses import dataclass, field
from typing import Dict

from ..errors import CodecInternalError, InvalidInput, OutOfRange

ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
BASE = len(ALPHABET)
CODE_LENGTH = 6
DOMAIN_SIZE = BASE ** CODE_LENGTH

MULTIPLIER = 35104476159
MULTIPLIER_INVERSE = 768306879

# 62**6 < 2**36, so any legitimate operand fits in 36 bits.
OPERAND_LIMIT = 1 << 36

CODE_PATTERN = re.compile(r"[0-9a-zA-Z]{6}")

_DIGIT_VALUES: Dict[str, int] = {ch: i for i, ch in enumerate(ALPHABET)}


def mult_mod(a: int, b: int) -> int:
    """
    Return (a * b) % DOMAIN_SIZE.

    Raises:
        CodecInternalError: If either operand is negative or not below 2**36.
            Such a value can only come from a bug upstream, so it is never
            reduced or wrapped silently.
    """
    if not (0 <= a < OPERAND_LIMIT and 0 <= b < OPERAND_LIMIT):
        raise CodecInternalError(
            f"mult_mod operands must be 36-bit non-negative integers, got {a!r} and {b!r}"
        )
    return (a * b) % DOMAIN_SIZE


def _to_base62(num: int) -> str:
    """Fixed-width Base62, most significant digit first: 0 -> "000000", 61 -> "00000Z"."""
    out = []
    for _ in range(CODE_LENGTH):
        num, rem = divmod(num, BASE)
        out.append(ALPHABET[rem])
    return "".join(reversed(out))


def _from_base62(code: str) -> int:
    num = 0
    for ch in code:
        num = num * BASE + _DIGIT_VALUES[ch]
    return num


def is_valid_code(code: str) -> bool:
    """True if `code` is exactly six characters from [0-9a-zA-Z]."""
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None


@dataclass(frozen=True)
class Codec:
    """
    Affine Base62 codec over the six-character code domain.

    Args:
        multiplier (int): Scrambling constant K, coprime to DOMAIN_SIZE.

    Raises:
        ValueError: If the multiplier is out of (0, DOMAIN_SIZE) or shares a
            factor with DOMAIN_SIZE (the map would not be a bijection).
    """
    multiplier: int = MULTIPLIER
    inverse: int = field(init=False, repr=False)

    def __post_init__(self):
        k = int(self.multiplier)
        if not 0 < k < DOMAIN_SIZE:
            raise ValueError(f"multiplier must be in (0, {DOMAIN_SIZE}), got {k}")
        if math.gcd(k, DOMAIN_SIZE) != 1:
            raise ValueError(f"multiplier {k} is not coprime to {DOMAIN_SIZE}")
        object.__setattr__(self, "inverse", pow(k, -1, DOMAIN_SIZE))

    def encode(self, index: int) -> str:
        """
        Map an index in [0, DOMAIN_SIZE) to its six-character code.

        Raises:
            OutOfRange: If the index is outside the code domain.
        """
        if not 0 <= index < DOMAIN_SIZE:
            raise OutOfRange(f"index {index} outside [0, {DOMAIN_SIZE})")
        shifted = (index + 1) % DOMAIN_SIZE
        return _to_base62(mult_mod(shifted, self.multiplier))

    def decode(self, code: str) -> int:
        """
        Map a six-character code back to its index.

        Callers are expected to run `is_valid_code` first; anything else that
        slips through is rejected here instead of decoding to a junk index.

        Raises:
            InvalidInput: If the code does not match the code pattern.
        """
        if not is_valid_code(code):
            raise InvalidInput(f"not a valid short code: {code!r}")
        scrambled = _from_base62(code)
        shifted = mult_mod(scrambled, self.inverse)
        return (shifted + DOMAIN_SIZE - 1) % DOMAIN_SIZE


default_codec = Codec()


def encode(index: int) -> str:
    """Encode with the default multiplier."""
    return default_codec.encode(index)


def decode(code: str) -> int:
    """Decode with the default multiplier."""
    return default_codec.decode(code)
