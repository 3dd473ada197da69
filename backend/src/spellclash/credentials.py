"""Kid login credential generation.

Usernames are ``adjective-noun`` pairs that are easy for children to
remember; passwords are four random letters or digits.
"""

import secrets
import string

ADJECTIVES = [
    "happy", "sunny", "brave", "bright", "cool", "swift", "clever", "jolly",
    "mighty", "super", "star", "wild", "funny", "lucky", "magic", "bouncy",
    "cheerful", "daring", "eager", "flying", "gentle", "hyper", "jazzy", "kindly",
    "lively", "merry", "noble", "perky", "quick", "royal", "snappy", "turbo",
    "zippy", "awesome", "bold", "cosmic", "dynamic", "epic", "fantastic", "groovy",
]

NOUNS = [
    "dragon", "tiger", "eagle", "dolphin", "panda", "lion", "wolf", "bear",
    "fox", "hawk", "shark", "phoenix", "unicorn", "rocket", "ninja", "wizard",
    "knight", "pirate", "robot", "astronaut", "hero", "champion", "explorer", "ranger",
    "warrior", "captain", "genius", "comet", "thunder", "lightning", "tornado", "blizzard",
    "flame", "storm", "shadow", "spirit", "ghost", "monster", "alien", "racer",
]

PASSWORD_ALPHABET = string.ascii_letters + string.digits
PASSWORD_LENGTH = 4


def generate_kid_username() -> str:
    return f"{secrets.choice(ADJECTIVES)}-{secrets.choice(NOUNS)}"


def generate_kid_password() -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(PASSWORD_LENGTH))
