"""Question entity.

A question is one Jeopardy clue as it appears in the source dataset. All
fields are opaque text: values such as "$400" and show numbers are never
parsed.

Stored value format:
    Compact JSON object, keys in field declaration order, UTF-8 with
    non-ASCII text kept verbatim. HTML-significant characters and the
    Unicode line/paragraph separators are escaped so the stored bytes can
    be embedded in HTML or JavaScript unchanged.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar


class QuestionDecodeError(ValueError):
    """Raised when JSON data cannot be decoded into questions."""


class QuestionEncodeError(ValueError):
    """Raised when a question cannot be serialized to bytes."""


_HTML_SAFE_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}
_HTML_SAFE_TABLE = str.maketrans(_HTML_SAFE_ESCAPES)

_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


def _replace_lone_surrogates(text: str) -> str:
    # json.loads keeps unpaired \uD800-\uDFFF escapes as raw surrogates,
    # which cannot be written as UTF-8. Each becomes U+FFFD.
    if not _LONE_SURROGATE.search(text):
        return text
    return text.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")


def _loads(body: bytes | str) -> Any:
    if isinstance(body, (bytes, bytearray)):
        body = bytes(body).decode("utf-8", errors="replace")
    try:
        return json.loads(body)
    except (ValueError, RecursionError) as e:
        raise QuestionDecodeError(str(e) or type(e).__name__) from e


@dataclass(frozen=True, slots=True)
class Question:
    """A single Jeopardy question.

    Attributes:
        category: Category title, e.g. "HISTORY".
        air_date: Date the show aired, e.g. "2004-12-31".
        question: Clue text.
        value: Dollar value as text, e.g. "$200". Empty for Final Jeopardy.
        answer: Expected response.
        round: Round name, e.g. "Jeopardy!".
        show_number: Show number as text.
    """

    category: str = ""
    air_date: str = ""
    question: str = ""
    value: str = ""
    answer: str = ""
    round: str = ""
    show_number: str = ""

    FIELD_NAMES: ClassVar[tuple[str, ...]] = (
        "category",
        "air_date",
        "question",
        "value",
        "answer",
        "round",
        "show_number",
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> Question:
        """Build a question from a decoded JSON object.

        Field names match case-insensitively ("Category" sets category);
        when several keys name the same field the last one wins. Missing
        fields and JSON null decode to an empty string. Unknown fields are
        ignored. A null object yields a question with every field empty.
        Unpaired surrogate escapes in text become U+FFFD.

        Raises:
            QuestionDecodeError: If data is not an object or a known field
                holds something other than a string.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise QuestionDecodeError(
                f"cannot decode {type(data).__name__} into Question"
            )

        values: dict[str, str] = {}
        for key, raw in data.items():
            name = _FIELD_BY_FOLDED_NAME.get(key.casefold())
            if name is None or raw is None:
                continue
            if not isinstance(raw, str):
                raise QuestionDecodeError(
                    f"field {name!r} must be a string, got {type(raw).__name__}"
                )
            values[name] = _replace_lone_surrogates(raw)
        return cls(**values)

    @classmethod
    def list_from_json(cls, body: bytes | str) -> list[Question]:
        """Decode a JSON array of questions.

        A top-level null yields an empty list. Invalid UTF-8 in a bytes
        body is replaced with U+FFFD rather than rejected.

        Raises:
            QuestionDecodeError: If body is not valid JSON, is not an array,
                or any element fails to decode.
        """
        decoded = _loads(body)
        if decoded is None:
            return []
        if not isinstance(decoded, list):
            raise QuestionDecodeError(
                f"cannot decode {type(decoded).__name__} into a list of questions"
            )
        return [cls.from_dict(item) for item in decoded]

    @classmethod
    def from_json_bytes(cls, data: bytes) -> Question:
        """Decode a single stored question value."""
        return cls.from_dict(_loads(data))

    def to_dict(self) -> dict[str, str]:
        """Return the fields as an ordered dictionary."""
        return asdict(self)

    def to_json_bytes(self) -> bytes:
        """Serialize to the stored value format.

        Raises:
            QuestionEncodeError: If a field holds text that is not valid
                UTF-8 (e.g. a lone surrogate).
        """
        text = json.dumps(
            {f.name: getattr(self, f.name) for f in fields(self)},
            ensure_ascii=False,
            separators=(",", ":"),
        ).translate(_HTML_SAFE_TABLE)
        try:
            return text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise QuestionEncodeError(f"question is not valid UTF-8: {e}") from e


_FIELD_BY_FOLDED_NAME = {name.casefold(): name for name in Question.FIELD_NAMES}
