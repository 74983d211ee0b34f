"""Wire types of the correction service.

Payload field names are camelCase on the wire; ``from_dict`` accepts
them and raises MalformedResponseError on missing fields or unknown enum
values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gramark.service.errors import MalformedResponseError


class CorrectionServiceType(Enum):
    """Backend engines that can be asked for corrections."""

    MLEC = "MLEC"
    SPELL = "SPELL"
    RULE = "RULE"


class ProblemCategory(Enum):
    """Problem categories reported by the service."""

    SPELLING = "SPELLING"
    PUNCTUATION = "PUNCTUATION"
    TYPOGRAPHY = "TYPOGRAPHY"
    GRAMMAR = "GRAMMAR"
    SEMANTICS = "SEMANTICS"
    STYLE = "STYLE"
    READABILITY = "READABILITY"
    INCLUSIVITY = "INCLUSIVITY"
    TONE = "TONE"
    FORMALITY = "FORMALITY"
    OTHER = "OTHER"


class ConfidenceLevel(Enum):
    """Service confidence in a reported problem."""

    LOW = "LOW"
    HIGH = "HIGH"

    @property
    def score(self) -> float:
        return 1.0 if self is ConfidenceLevel.HIGH else 0.5


class FixPartType(Enum):
    """Part kinds of a suggested fix."""

    CONTEXT = "Context"
    SKIP = "Skip"
    CHANGE = "Change"


def _require(data: Any, key: str, where: str) -> Any:
    if not isinstance(data, dict):
        raise MalformedResponseError(f"{where}: expected an object, got {type(data).__name__}")
    if key not in data:
        raise MalformedResponseError(f"{where}: missing field {key!r}")
    return data[key]


def _enum(enum_cls: type[Enum], value: Any, where: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise MalformedResponseError(f"{where}: unknown {enum_cls.__name__} {value!r}") from exc


def _list(value: Any, where: str) -> list[Any]:
    if not isinstance(value, list):
        raise MalformedResponseError(f"{where}: expected a list, got {type(value).__name__}")
    return value


@dataclass(frozen=True, slots=True)
class HighlightRange:
    """Character span relative to one sentence's text."""

    start: int
    end_exclusive: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end_exclusive < self.start:
            raise ValueError(f"invalid highlight range [{self.start}, {self.end_exclusive})")

    @classmethod
    def from_dict(cls, data: Any) -> HighlightRange:
        start = _require(data, "start", "range")
        end = _require(data, "endExclusive", "range")
        if not isinstance(start, int) or not isinstance(end, int):
            raise MalformedResponseError("range: start/endExclusive must be integers")
        try:
            return cls(start=start, end_exclusive=end)
        except ValueError as exc:
            raise MalformedResponseError(str(exc)) from exc

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "endExclusive": self.end_exclusive}


@dataclass(frozen=True, slots=True)
class ProblemHighlighting:
    always: tuple[HighlightRange, ...] = ()
    on_hover: tuple[HighlightRange, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> ProblemHighlighting:
        always = _list(_require(data, "always", "highlighting"), "highlighting.always")
        on_hover = data.get("onHover", [])
        return cls(
            always=tuple(HighlightRange.from_dict(r) for r in always),
            on_hover=tuple(HighlightRange.from_dict(r) for r in _list(on_hover, "onHover")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "always": [r.to_dict() for r in self.always],
            "onHover": [r.to_dict() for r in self.on_hover],
        }


@dataclass(frozen=True, slots=True)
class FixPart:
    """One piece of a fix: kept context, skipped text or a change."""

    type: FixPartType
    text: str | None = None
    range: HighlightRange | None = None

    @classmethod
    def from_dict(cls, data: Any) -> FixPart:
        part_type = _enum(FixPartType, _require(data, "type", "fix part"), "fix part")
        raw_range = data.get("range")
        return cls(
            type=part_type,
            text=data.get("text"),
            range=HighlightRange.from_dict(raw_range) if raw_range is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type.value}
        if self.text is not None:
            result["text"] = self.text
        if self.range is not None:
            result["range"] = self.range.to_dict()
        return result


@dataclass(frozen=True, slots=True)
class ProblemFix:
    parts: tuple[FixPart, ...] = ()
    batch_id: str | None = None

    @property
    def replacement_text(self) -> str:
        """Concatenated text of every Change part."""
        return "".join(p.text or "" for p in self.parts if p.type is FixPartType.CHANGE)

    @classmethod
    def from_dict(cls, data: Any) -> ProblemFix:
        parts = _list(_require(data, "parts", "fix"), "fix.parts")
        return cls(
            parts=tuple(FixPart.from_dict(p) for p in parts),
            batch_id=data.get("batchId"),
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"parts": [p.to_dict() for p in self.parts]}
        if self.batch_id is not None:
            result["batchId"] = self.batch_id
        return result


@dataclass(frozen=True, slots=True)
class KindInfo:
    """Classification of a problem."""

    id: str
    category: ProblemCategory
    service: CorrectionServiceType
    display_name: str
    confidence: ConfidenceLevel
    rule_settings_id: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> KindInfo:
        raw_id = _require(data, "id", "info")
        kind_id = raw_id.get("id", "") if isinstance(raw_id, dict) else str(raw_id)
        return cls(
            id=kind_id,
            category=_enum(ProblemCategory, _require(data, "category", "info"), "info"),
            service=_enum(CorrectionServiceType, _require(data, "service", "info"), "info"),
            display_name=data.get("displayName", ""),
            confidence=_enum(ConfidenceLevel, _require(data, "confidence", "info"), "info"),
            rule_settings_id=data.get("ruleSettingsId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": {"id": self.id},
            "category": self.category.value,
            "service": self.service.value,
            "displayName": self.display_name,
            "confidence": self.confidence.value,
            "ruleSettingsId": self.rule_settings_id,
        }


@dataclass(frozen=True, slots=True)
class Problem:
    """A single issue reported for one sentence."""

    info: KindInfo
    message: str
    highlighting: ProblemHighlighting
    fixes: tuple[ProblemFix, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> Problem:
        info = KindInfo.from_dict(_require(data, "info", "problem"))
        fixes = _list(data.get("fixes", []), "problem.fixes")
        return cls(
            info=info,
            message=str(_require(data, "message", "problem")),
            highlighting=ProblemHighlighting.from_dict(_require(data, "highlighting", "problem")),
            fixes=tuple(ProblemFix.from_dict(f) for f in fixes),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "info": self.info.to_dict(),
            "message": self.message,
            "highlighting": self.highlighting.to_dict(),
            "fixes": [f.to_dict() for f in self.fixes],
        }


@dataclass(frozen=True, slots=True)
class SentenceWithProblems:
    """Service result for one submitted sentence."""

    sentence: str
    language: str
    problems: tuple[Problem, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> SentenceWithProblems:
        problems = _list(_require(data, "problems", "sentence"), "sentence.problems")
        return cls(
            sentence=str(_require(data, "sentence", "sentence")),
            language=str(data.get("language", "")),
            problems=tuple(Problem.from_dict(p) for p in problems),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sentence": self.sentence,
            "language": self.language,
            "problems": [p.to_dict() for p in self.problems],
        }


@dataclass(frozen=True, slots=True)
class CorrectionRequest:
    """Payload for one correction call."""

    sentences: tuple[str, ...]
    language: str
    services: tuple[CorrectionServiceType, ...] = field(
        default=(
            CorrectionServiceType.MLEC,
            CorrectionServiceType.SPELL,
            CorrectionServiceType.RULE,
        )
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sentences": list(self.sentences),
            "language": self.language,
            "services": [s.value for s in self.services],
        }
