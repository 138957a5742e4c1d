import secrets
import string

ADJECTIVES = [
    "Ancient", "Arcane", "Atomic", "Binary", "Blaze", "Bold", "Brave",
    "Bright", "Calm", "Clever", "Cosmic", "Crimson", "Cyber", "Digital",
    "Dire", "Eager", "Emerald", "Fable", "Fierce", "Frost", "Gentle",
    "Glitch", "Golden", "Grand", "Grim", "Happy", "Hexa", "Hydro",
    "Iron", "Jolly", "Keen", "Kind", "Lively", "Logic", "Lucky",
    "Lunar", "Mythic", "Nano", "Nice", "Noble", "Proud", "Quantum",
    "Quick", "Robo", "Ruby", "Shadow", "Silent", "Silly", "Solar",
    "Static", "Steel", "Stone", "Storm", "Stout", "Sunny", "Swift",
    "Terra", "Vector", "Virtual", "Vivid", "Wise", "Witty",
]

NOUNS = [
    "Array", "Bear", "Bird", "Blade", "Bot", "Byte", "Cat",
    "Circuit", "Claw", "Core", "Crown", "Dog", "Dragon", "Droid",
    "Eagle", "Echo", "Fang", "Fish", "Fox", "Frame", "Ghost",
    "Giant", "Golem", "Gryphon", "Guard", "Hawk", "Heart", "Helm",
    "Jaguar", "Jolt", "Knight", "Leopard", "Lion", "Mage", "Matrix",
    "Node", "Panda", "Panther", "Pilot", "Pixel", "Pulse", "Puma",
    "Ranger", "Relay", "Rider", "Rover", "Sage", "Scout", "Scribe",
    "Shark", "Shield", "Shift", "Spear", "Spirit", "Sprite", "Thorn",
    "Tiger", "Unit", "Warden", "Wizard", "Wolf", "Wraith",
]

GREETINGS = [
    "Hello from", "Hey, it's", "Greetings from", "Hi there, this is",
    "What's up from", "Good day from", "Hey there, it's", "Warm wishes from",
    "Cheers from", "Hi from", "Yo, it's", "Howdy from", "Salutations from",
    "Hey hey from", "Much love from", "Smiles from", "Good vibes from",
    "Kind regards from", "Best wishes from", "High fives from", "Peace from",
    "A wave from", "Friendly hello from", "Quick hi from", "A warm hello from",
]

SYMBOLS = "!@#$%^&*()_+-=[]{}|;:,.<>?"


def random_username() -> str:
    """e.g. QuantumWraith42"""
    number = secrets.randbelow(90) + 10
    return f"{secrets.choice(ADJECTIVES)}{secrets.choice(NOUNS)}{number}"


def random_password(length: int = 12) -> str:
    """Random password with at least one lower, upper, digit and symbol."""
    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits, SYMBOLS]
    alphabet = "".join(pools)

    chars = [secrets.choice(pool) for pool in pools]
    chars += [secrets.choice(alphabet) for _ in range(max(length, len(pools)) - len(chars))]
    secrets.SystemRandom().shuffle(chars)
    return "".join(chars)


def random_greeting(username: str) -> str:
    return f"{secrets.choice(GREETINGS)} {username}"
