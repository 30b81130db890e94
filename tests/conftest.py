"""
Pytest configuration and shared fixtures for partialjson tests.

Provides immutable completion cases and streamed sample documents shared by
the precise path and fast path tests.
"""

import json
from dataclasses import dataclass
from typing import Any

import pytest

import partialjson


@dataclass(frozen=True)
class CompletionCase:
    """
    Immutable container for one truncated input and its completion.

    Holds the input, the parsing mode and either the expected JSON text or
    the expected error type.
    """

    description: str
    input_data: str
    strict: bool = True
    expected_output: str | None = None
    error: type[Exception] | None = None


SAMPLE_DOCUMENT: dict[str, Any] = {
    "roles": [
        {"role_name": "DJ", "role_desc": 'female, young, "steady"'},
        {
            "role_name": "Zombie",
            "age": 31.5,
            "active": True,
            "tags": [],
            "badges": [{}, {"x": 1}, {}],
            "history": [[], [{}]],
            "scores": [1, 2.5, -3e2],
        },
    ],
    "scene_list": [
        {
            "screen": "night, the square glows",
            "chat_group": [
                {
                    "role_name": "DJ",
                    "content": "Who's next? [{}]}} \\o/",
                    "emotion": None,
                    "score": -1.25e-3,
                },
                {"role_name": "Zombie", "content": "café ☕", "emotion": "calm"},
            ],
        }
    ],
    "question": "What now?",
    "options": ["accept", "decline"],
    "count": 12,
    "done": False,
}

CJK_DOCUMENT = (
    '{"roles":[{"role_name":"我","role_desc":"女，青年，DJ，坚毅"},'
    '{"role_name":"墨镜僵尸","role_desc":"男，青年，僵尸团队成员，富有经验"}],'
    '"scene_list":[{"screen_description":"夜晚，小区广场灯火微明。",'
    '"chat_group":[{"role_name":"我","content":"“下一场是谁来的？”",'
    '"emotion":"疑惑"},{"role_name":"墨镜僵尸",'
    '"content":"“对方是舞蹈界的传说——‘飘逸之神’！”","emotion":"担忧"}]}],'
    '"question":"如何面对外星舞王的挑战？",'
    '"options":["接受挑战，与外星人切磋舞技","拒绝挑战，专注地球舞台发展"]}'
)


@pytest.fixture
def sample_document() -> dict[str, Any]:
    """Provides a complete document with escapes, nesting and all scalars."""
    return SAMPLE_DOCUMENT


@pytest.fixture(
    params=["compact", "indented", "cjk"],
)
def streamed_document(request: pytest.FixtureRequest) -> str:
    """
    Provides complete documents whose prefixes simulate a stream.

    Covers compact and indented layouts and non-ASCII content.
    """
    if request.param == "compact":
        return json.dumps(
            SAMPLE_DOCUMENT, ensure_ascii=False, separators=(",", ":")
        )
    if request.param == "indented":
        return json.dumps(SAMPLE_DOCUMENT, ensure_ascii=False, indent=2)
    return CJK_DOCUMENT


@pytest.fixture
def ensure_json_cases() -> list[CompletionCase]:
    """
    Provides truncated inputs with their expected precise completion.
    """
    return [
        CompletionCase("empty object opener", "{", True, "{}"),
        CompletionCase("empty object opener lenient", "{", False, "{}"),
        CompletionCase("truncated key lenient", '{"nam', False, "{}"),
        CompletionCase("truncated key strict", '{"nam', True, "{}"),
        CompletionCase(
            "truncated key with escaped quotes",
            '{"你好，\\"世界\\"。',
            False,
            "{}",
        ),
        CompletionCase(
            "truncated value lenient",
            '{"name":"Alice',
            False,
            '{"name":"Alice"}',
        ),
        CompletionCase(
            "truncated value strict", '{"name":"Alic', True, '{"name":null}'
        ),
        CompletionCase(
            "truncated array element strict",
            '["是我自己清晰的脸","是初中',
            True,
            '["是我自己清晰的脸"]',
        ),
        CompletionCase(
            "truncated array element lenient",
            '["a","b',
            False,
            '["a","b"]',
        ),
        CompletionCase(
            "unterminated escape-quoted value",
            '{"options":"\\"是我自己清晰的脸\\',
            True,
            '{"options":null}',
        ),
        CompletionCase(
            "closed array inside open object",
            '{"options":["\\"是我自己清晰的脸\\""]',
            True,
            '{"options":["\\"是我自己清晰的脸\\""]}',
        ),
        CompletionCase(
            "brackets inside strings and truncated object in array",
            '{"options":["是已故奶奶的脸","是过去自己的脸"],'
            '"question":"你看到[{}]}}熟悉的脸是谁的","roles":[{"',
            True,
            '{"options":["是已故奶奶的脸","是过去自己的脸"],'
            '"question":"你看到[{}]}}熟悉的脸是谁的","roles":null}',
        ),
        CompletionCase("key without value", '{"a"', True, '{"a":null}'),
        CompletionCase("key and colon", '{"a": ', True, '{"a":null}'),
        CompletionCase(
            "truncated exponent", '{"a":[1,2e', True, '{"a":[1]}'
        ),
        CompletionCase("lone minus", "[1, -", True, "[1]"),
        CompletionCase("value cut after minus", '{"a": -', True, '{"a":null}'),
        CompletionCase("open array only", "[", True, "null"),
        CompletionCase("trailing comma", '{"a":1,', True, '{"a":1}'),
        CompletionCase("closed empty array", '{"a":[],"b', True, '{"a":[]}'),
        CompletionCase(
            "trailing empty object dropped", "[1, {", True, "[1]"
        ),
        CompletionCase(
            "member order preserved",
            '{"b":1,"a":2,"c":[3',
            True,
            '{"b":1,"a":2,"c":[3]}',
        ),
        CompletionCase(
            "complete document re-encoded",
            '{ "a" : [1, 2.5, true, null] }',
            True,
            '{"a":[1,2.5,true,null]}',
        ),
        CompletionCase(
            "leading whitespace", '  \n{"a": "b"', True, '{"a":"b"}'
        ),
        CompletionCase(
            "bare scalar", "1", True, error=partialjson.UnexpectedTokenError
        ),
        CompletionCase(
            "bare scalar lenient",
            "1",
            False,
            error=partialjson.UnexpectedTokenError,
        ),
        CompletionCase(
            "empty input", "", True, error=partialjson.UnexpectedTokenError
        ),
        CompletionCase(
            "garbage after array element",
            '{"options":["\\"是我自己清晰的脸\\"", abc',
            True,
            error=partialjson.UnexpectedTokenError,
        ),
        CompletionCase(
            "non-string key",
            '{"options":["\\"是我自己清晰的脸\\""], 123',
            True,
            error=partialjson.UnexpectedTokenError,
        ),
        CompletionCase(
            "comma instead of colon",
            '{"options",["\\"是我自己清晰的脸\\""], 123',
            True,
            error=partialjson.UnexpectedTokenError,
        ),
        CompletionCase(
            "truncated literal",
            '{"done": tru',
            True,
            error=partialjson.UnexpectedTokenError,
        ),
    ]
