"""Parse AI question-bank answers into normalized question dicts.

The model is asked for a JSON array of ``{question, expectedAnswer, tips,
keywords}`` objects but routinely wraps it in markdown fences, nests it under a
key, renames fields, or sends scalars where lists were asked for. Parsing never
raises; it returns either ``ParseOk`` or ``ParseFailure``.
"""
import json
import re
from dataclasses import dataclass, field
from typing import List, Union

_FENCE_RE = re.compile(r'```(?:json|JSON)?\s*\n?|\n?```')

QUESTION_KEYS = ('question', 'text', 'q', 'prompt')
ANSWER_KEYS = ('expectedAnswer', 'expected_answer', 'answer', 'guidance', 'idealAnswer')
TIPS_KEYS = ('tips', 'tip', 'hints')
KEYWORD_KEYS = ('keywords', 'keyword', 'concepts', 'tags')
CONTAINER_KEYS = ('questions', 'items', 'data')


@dataclass(frozen=True)
class ParseOk:
    questions: List[dict]


@dataclass(frozen=True)
class ParseFailure:
    reason: str


ParseResult = Union[ParseOk, ParseFailure]


# Intermediate representation of one array element
@dataclass(frozen=True)
class _Item:
    kind: str                 # 'object' | 'text' | 'invalid'
    value: object = field(default=None)


def _classify(raw) -> _Item:
    if isinstance(raw, dict):
        return _Item('object', raw)
    if isinstance(raw, str) and raw.strip():
        return _Item('text', raw.strip())
    return _Item('invalid', raw)


def _first(mapping: dict, keys):
    for key in keys:
        if key in mapping and mapping[key] not in (None, ''):
            return mapping[key]
    return None


def _as_list(value) -> List[str]:
    """None -> [], scalar -> [scalar], list -> stripped non-empty strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value.strip()] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if v is not None and str(v).strip()]
    return [str(value)]


def _normalize(item: _Item):
    if item.kind == 'text':
        return {'question': item.value, 'expectedAnswer': '', 'tips': [], 'keywords': []}
    if item.kind == 'object':
        raw = item.value
        question = _first(raw, QUESTION_KEYS)
        if not isinstance(question, str) or not question.strip():
            return None
        answer = _first(raw, ANSWER_KEYS)
        return {
            'question': question.strip(),
            'expectedAnswer': str(answer).strip() if answer is not None else '',
            'tips': _as_list(_first(raw, TIPS_KEYS)),
            'keywords': _as_list(_first(raw, KEYWORD_KEYS)),
        }
    return None


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub('', text or '').strip()


def _load_json(text: str):
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Tolerate prose around the array
    start, end = text.find('['), text.rfind(']')
    if start != -1 and end > start:
        try:
            return json.loads(text[start:end + 1])
        except json.JSONDecodeError:
            return None
    return None


def parse_questions(text: str, limit: int = None) -> ParseResult:
    cleaned = strip_code_fences(text)
    if not cleaned:
        return ParseFailure('empty response')

    payload = _load_json(cleaned)
    if payload is None:
        return ParseFailure('response is not valid JSON')

    if isinstance(payload, dict):
        container = next((payload[k] for k in CONTAINER_KEYS if isinstance(payload.get(k), list)), None)
        payload = container if container is not None else [payload]
    if not isinstance(payload, list):
        return ParseFailure(f'expected a JSON array, got {type(payload).__name__}')

    questions = [q for q in (_normalize(_classify(raw)) for raw in payload) if q]
    if limit is not None:
        questions = questions[:limit]
    if not questions:
        return ParseFailure('no usable questions in response')
    return ParseOk(questions)
