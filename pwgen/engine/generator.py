"""
Password generation for the four character classes

Each character is drawn independently. The default source is the `random`
module, which is not suitable for secrets that need cryptographic strength;
pass a random.SystemRandom() instance (or enable the system_random setting)
for an OS-backed source.
"""
import random
import string
from typing import Optional

from pwgen.models import PasswordClass

SECURE_SYMBOLS = "!@#$%^&*()"

NUMERIC_ALPHABET = string.digits
ALPHA_ALPHABET = string.ascii_lowercase
SECURE_ALPHABET = string.ascii_lowercase + string.ascii_uppercase + string.digits + SECURE_SYMBOLS

# Flat set of characters each class may produce
ALPHABETS = {
    PasswordClass.NUMERIC: NUMERIC_ALPHABET,
    PasswordClass.ALPHA: ALPHA_ALPHABET,
    PasswordClass.MIXED: NUMERIC_ALPHABET + ALPHA_ALPHABET,
    PasswordClass.SECURE: SECURE_ALPHABET,
}


def _generate_mixed(length: int, rng) -> str:
    # Pick the sub-alphabet first (50/50), then a character inside it
    chars = []
    for _ in range(length):
        pool = ALPHA_ALPHABET if rng.random() < 0.5 else NUMERIC_ALPHABET
        chars.append(rng.choice(pool))
    return "".join(chars)


def generate(password_class: PasswordClass, length: int, rng: Optional[random.Random] = None) -> str:
    """
    Generate a password of exactly `length` characters.

    Args:
        password_class: Character class to draw from
        length: Number of characters, already validated
        rng: Random source, defaults to the `random` module

    Raises:
        ValueError: If length is not positive
    """
    if length < 1:
        raise ValueError("length must be > 0")

    rng = rng or random

    if password_class is PasswordClass.MIXED:
        return _generate_mixed(length, rng)

    alphabet = ALPHABETS[password_class]
    return "".join(rng.choice(alphabet) for _ in range(length))
