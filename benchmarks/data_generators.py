"""
Value tree generators for JSON writing benchmarks.

Creates Python structures shaped like typical payloads:
- Different sizes (small/large)
- Different complexity levels (flat/nested/mixed)
- String-heavy content that exercises escaping
"""

import random
import string
from typing import Any

DATA_TYPES = [
    "small_object",
    "large_object",
    "mixed_array",
    "nested_structure",
    "string_heavy",
]

# Fixed seed so every library serializes the same tree
_SEED = 1234
_ESCAPE_PROBABILITY = 0.3
_INT_TYPE = 1
_FLOAT_TYPE = 2
_STRING_TYPE = 3
_BOOL_TYPE = 4
_NULL_TYPE = 5


def generate_test_data(data_type: str) -> Any:
    """Generates a value tree of the given shape."""
    generators = {
        "small_object": _generate_small_object,
        "large_object": _generate_large_object,
        "mixed_array": _generate_mixed_array,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type](random.Random(_SEED))


def _generate_small_object(rng: random.Random) -> dict[str, Any]:
    """Generates a small object (< 1KB) with basic key-value pairs."""
    return {
        "id": 12345,
        "name": "Alice Johnson",
        "email": "alice@example.com",
        "active": True,
        "balance": 1234.56,
        "metadata": {"created": "2024-01-15T10:30:00Z", "source": "api"},
    }


def _generate_large_object(rng: random.Random) -> dict[str, Any]:
    """Generates a large object (> 10KB) with many records."""
    return {
        "user_id": rng.randint(1000000, 9999999),
        "transactions": [
            {
                "id": f"txn_{i:06d}",
                "amount": round(rng.uniform(1.0, 1000.0), 2),
                "currency": rng.choice(["USD", "EUR", "GBP", "JPY"]),
                "description": f"Payment for {_random_string(rng, 20)}",
                "status": rng.choice(["completed", "pending", "failed"]),
            }
            for i in range(80)
        ],
        "activity_log": [
            {
                "action": rng.choice(["login", "logout", "purchase", "view"]),
                "ip_address": ".".join(
                    str(rng.randint(1, 255)) for _ in range(4)
                ),
                "user_agent": f"Mozilla/5.0 ({_random_string(rng, 20)})",
            }
            for _ in range(40)
        ],
    }


def _generate_mixed_array(rng: random.Random) -> list[Any]:
    """Generates a large array with mixed value kinds."""
    array: list[Any] = []
    for i in range(200):
        choice = rng.randint(1, 6)
        if choice == _INT_TYPE:
            array.append(rng.randint(-1000, 1000))
        elif choice == _FLOAT_TYPE:
            array.append(round(rng.uniform(-100.0, 100.0), 3))
        elif choice == _STRING_TYPE:
            array.append(_random_string(rng, rng.randint(5, 30)))
        elif choice == _BOOL_TYPE:
            array.append(rng.choice([True, False]))
        elif choice == _NULL_TYPE:
            array.append(None)
        else:
            array.append({"index": i, "value": _random_string(rng, 10)})
    return array


def _generate_nested_structure(rng: random.Random) -> dict[str, Any]:
    """Generates a deeply nested structure."""

    def create_nested_dict(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(rng, 10)}

        return {
            "level": depth,
            "items": [create_nested_dict(depth - 1) for _ in range(3)],
            "nested": create_nested_dict(depth - 1),
        }

    return create_nested_dict(6)


def _generate_string_heavy(rng: random.Random) -> dict[str, Any]:
    """Generates strings full of characters that need escaping."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(50):
            if rng.random() < _ESCAPE_PROBABILITY:
                chars.append(rng.choice('"\\/\b\f\n\r\t<>&'))
            else:
                chars.append(rng.choice(string.ascii_letters + " "))
        return "".join(chars)

    return {
        "strings": [create_escaped_string() for _ in range(100)],
        "paths": {
            f"key_{i}": f"C:\\Users\\{_random_string(rng, 8)}\\file_{i}.txt"
            for i in range(20)
        },
    }


def _random_string(rng: random.Random, length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(rng.choices(string.ascii_letters, k=length))
