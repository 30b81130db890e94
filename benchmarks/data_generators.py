"""
Test data generators for partial JSON benchmarks.

Creates complete documents shaped like streamed model output and cuts them
into the truncated texts a client sees while the stream is in flight:
- Different sizes (small/large)
- Different shapes (flat/nested/string-heavy)
"""

import json
import random
import string
from typing import Any

_ESCAPE_PROBABILITY = 0.2


def generate_test_data(data_type: str) -> str:
    """Generates a complete JSON document of the given type."""
    generators = {
        "small_object": _generate_small_object,
        "large_object": _generate_large_object,
        "nested_structure": _generate_nested_structure,
        "string_heavy": _generate_string_heavy,
    }

    if data_type not in generators:
        raise ValueError(f"Unknown data type: {data_type}")

    return generators[data_type]()


def truncate(text: str, fraction: float) -> str:
    """Cuts ``text`` after the given fraction of its characters."""
    return text[: max(1, int(len(text) * fraction))]


def stream_prefixes(text: str, chunks: int = 20) -> list[str]:
    """Splits ``text`` into the growing prefixes of a chunked stream."""
    step = max(1, len(text) // chunks)
    return [text[:end] for end in range(step, len(text) + step, step)]


def _generate_small_object() -> str:
    """Generates a small reply (< 1KB) with a few members."""
    data = {
        "question": "How should the team respond?",
        "options": ["accept the challenge", "decline politely"],
        "confidence": 0.82,
        "final": False,
        "meta": {"model": "story-writer", "tokens": 128},
    }
    return json.dumps(data)


def _generate_large_object() -> str:
    """Generates a large reply (> 10KB) with many scenes."""
    data = {
        "roles": [
            {
                "role_name": _random_string(8),
                "role_desc": f"{_random_string(6)}, {_random_string(10)}",
                "age": random.randint(16, 80),
            }
            for _ in range(10)
        ],
        "scene_list": [
            {
                "screen_description": _random_sentence(12),
                "chat_group": [
                    {
                        "role_name": _random_string(8),
                        "content": _random_sentence(15),
                        "emotion": random.choice(["calm", "worried", None]),
                        "score": round(random.uniform(-1.0, 1.0), 4),
                    }
                    for _ in range(6)
                ],
            }
            for _ in range(15)
        ],
        "question": _random_sentence(8),
        "options": [_random_sentence(6) for _ in range(4)],
    }
    return json.dumps(data, ensure_ascii=False)


def _generate_nested_structure() -> str:
    """Generates a deeply nested document."""

    def create_nested(depth: int) -> dict[str, Any]:
        if depth <= 0:
            return {"value": _random_string(10)}

        return {
            "level": depth,
            "items": [create_nested(depth - 1) for _ in range(2)],
            "nested": create_nested(depth - 1),
        }

    return json.dumps(create_nested(7))


def _generate_string_heavy() -> str:
    """Generates a document dominated by escaped strings."""

    def create_escaped_string() -> str:
        chars = []
        for _ in range(60):
            if random.random() < _ESCAPE_PROBABILITY:
                chars.append(random.choice(['"', "\\", "\n", "\t", "{", "]"]))
            else:
                chars.append(
                    random.choice(string.ascii_letters + string.digits + " ")
                )
        return "".join(chars)

    data = {
        "paragraphs": [create_escaped_string() for _ in range(100)],
        "notes": {f"key_{i}": create_escaped_string() for i in range(20)},
    }
    return json.dumps(data)


def _random_string(length: int) -> str:
    """Generates a random string of specified length."""
    return "".join(random.choices(string.ascii_letters, k=length))


def _random_sentence(words: int) -> str:
    return " ".join(_random_string(random.randint(2, 9)) for _ in range(words))
