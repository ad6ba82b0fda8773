"""Load and validate question banks.

A bank file is either a JSON document (an array of question objects, or an
object whose ``questions`` key holds that array) or JSON Lines with one
question object per line. Each object looks like::

    {"id": "q1", "kind": "dual_quantity", "text": "...",
     "quantities": ["Pressure", "Volume"], "correct": [1, 3],
     "image": "images/q1.png"}

    {"id": "q2", "kind": "selection", "text": "...",
     "options": [{"label": "...", "value": 1}, ...], "correct": [2, 0]}

Validation happens here, once, before a session is created; the engine
assumes every question it receives is well formed.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from importlib import resources
from pathlib import Path
from typing import Any, overload

from .models import (
    QUANTITY_OPTIONS,
    UNSET,
    DualQuantityQuestion,
    Option,
    Question,
    SelectionQuestion,
)

SAMPLE_BANK = "sample_bank.json"

_QUANTITY_VALUES = {option.value for option in QUANTITY_OPTIONS}


class QuestionBankError(ValueError):
    """Raised when a bank file cannot be read or an entry is malformed."""


class QuestionBank(Sequence[Question]):
    """Immutable, ordered collection of questions."""

    def __init__(self, questions: Sequence[Question]) -> None:
        self._questions = tuple(questions)

    @classmethod
    def from_records(cls, records: Sequence[dict[str, Any]]) -> "QuestionBank":
        questions = []
        seen: set[str] = set()
        for position, record in enumerate(records):
            try:
                question = build_question(record, position)
            except ValueError as exc:
                raise QuestionBankError(
                    f"Question #{position + 1}: {exc}"
                ) from exc
            if question.id in seen:
                raise QuestionBankError(
                    f"Question #{position + 1}: duplicate id '{question.id}'"
                )
            seen.add(question.id)
            questions.append(question)
        return cls(questions)

    @overload
    def __getitem__(self, index: int) -> Question: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Question, ...]: ...

    def __getitem__(self, index):
        return self._questions[index]

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __repr__(self) -> str:
        return f"QuestionBank({len(self._questions)} questions)"


def load_bank(path: Path) -> QuestionBank:
    """Read and validate the bank stored at ``path``."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise QuestionBankError(f"Question bank not found: {path}") from exc
    except OSError as exc:
        raise QuestionBankError(
            f"Cannot read question bank {path}: {exc}"
        ) from exc
    if path.suffix.lower() == ".jsonl":
        records = parse_jsonl(text, source=path)
    else:
        records = parse_json(text, source=path)
    if not records:
        raise QuestionBankError(f"Question bank is empty: {path}")
    return QuestionBank.from_records(records)


def load_sample_bank() -> QuestionBank:
    """Return the small bank packaged with physics-drill."""

    resource = resources.files("physics_drill.drill").joinpath(SAMPLE_BANK)
    text = resource.read_text(encoding="utf-8")
    return QuestionBank.from_records(parse_json(text, source=SAMPLE_BANK))


def parse_json(text: str, *, source: object = "<string>") -> list[dict]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionBankError(f"Invalid JSON in {source}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        raise QuestionBankError(
            f"{source} must hold a list of questions "
            "(or an object with a 'questions' list)"
        )
    return data


def parse_jsonl(text: str, *, source: object = "<string>") -> list[dict]:
    records: list[dict] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError as exc:
            raise QuestionBankError(
                f"Invalid JSON on line {lineno} of {source}: {exc}"
            ) from exc
    return records


def build_question(record: object, position: int) -> Question:
    """Validate one bank record and build its question.

    Raises ValueError with a message naming the offending field.
    """

    if not isinstance(record, dict):
        raise ValueError("question must be an object")
    identifier = str(record.get("id") or f"q{position + 1}")
    text = str(record.get("text", "")).strip()
    if not text:
        raise ValueError("text is required")
    image = record.get("image")
    if image is not None and not isinstance(image, str):
        raise ValueError("image must be a string path when provided")
    correct = _correct_pair(record.get("correct"))

    kind = record.get("kind")
    if kind == DualQuantityQuestion.kind:
        quantities = record.get("quantities")
        if (
            not isinstance(quantities, list)
            or len(quantities) != 2
            or not all(str(name).strip() for name in quantities)
        ):
            raise ValueError("quantities must list exactly two names")
        if not all(value in _QUANTITY_VALUES for value in correct):
            raise ValueError(
                "correct values for quantities must be 1, 2 or 3"
            )
        return DualQuantityQuestion(
            position=position,
            id=identifier,
            text=text,
            quantities=(
                str(quantities[0]).strip(),
                str(quantities[1]).strip(),
            ),
            correct=correct,
            image=image or None,
        )
    if kind == SelectionQuestion.kind:
        options = _options(record.get("options"))
        values = {option.value for option in options}
        if correct[0] not in values:
            raise ValueError("correct[0] must match one of the option values")
        if correct[1] != UNSET and correct[1] not in values:
            raise ValueError("correct[1] must be 0 or an option value")
        return SelectionQuestion(
            position=position,
            id=identifier,
            text=text,
            options=options,
            correct=correct,
            image=image or None,
        )
    raise ValueError(
        "kind must be 'dual_quantity' or 'selection', got {0!r}".format(kind)
    )


def _correct_pair(raw: object) -> tuple[int, int]:
    if (
        not isinstance(raw, list)
        or len(raw) != 2
        or not all(
            isinstance(value, int) and not isinstance(value, bool)
            for value in raw
        )
    ):
        raise ValueError("correct must be a list of two integers")
    return (raw[0], raw[1])


def _options(raw: object) -> tuple[Option, ...]:
    if not isinstance(raw, list) or len(raw) < 2:
        raise ValueError("options must be a list with at least two entries")
    options: list[Option] = []
    for item in raw:
        if not isinstance(item, dict):
            raise ValueError("each option must be an object with label/value")
        label = str(item.get("label", "")).strip()
        value = item.get("value")
        if not label:
            raise ValueError("option label must be non-empty")
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise ValueError("option value must be a positive integer")
        options.append(Option(label, value))
    values = [option.value for option in options]
    if len(set(values)) != len(values):
        raise ValueError("duplicate option values detected")
    return tuple(options)
