from __future__ import annotations

import re
import unicodedata
from collections import Counter
from typing import Any, Iterable

import numpy as np
from tinysegmenter import TinySegmenter

from explorer_analytics.core.types import UNDEFINED

_PUNCTUATION_CHARS = set(".,!?;:'\"()[]{}-_/\\@#$%^&*+=<>|~`")
_CJK_PUNCTUATION = "。、！？；：「」『』（）【】"
_SPLIT_CHARS = re.compile(
    "[" + re.escape("".join(sorted(_PUNCTUATION_CHARS)) + _CJK_PUNCTUATION) + "]"
)
_SENTENCE_SPLIT = re.compile(r"[.!?。！？]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n|\r\n\s*\r\n")
_PUNCTUATION_MARKS = ("。", ".", "！", "!", "？", "?", "、", ",", "：", ":", "；", ";")
_SEGMENTER = TinySegmenter()

PATTERNS: list[tuple[str, str, re.Pattern[str], bool]] = [
    # (name, description, regex, match against the stripped record)
    ("email", "Email address", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), False),
    ("url", "URL", re.compile(r"https?://[^\s]+"), False),
    ("phone", "Phone number", re.compile(r"(\d{2,4}-\d{2,4}-\d{4}|\d{10,11})"), False),
    ("number_only", "Digits only", re.compile(r"^\d+$"), True),
    ("japanese_only", "Japanese only", re.compile(r"^[\u3040-\u309F\u30A0-\u30FF\u4E00-\u9FAF\s]+$"), False),
    ("alphanumeric_only", "Alphanumeric only", re.compile(r"^[A-Za-z0-9\s]+$"), False),
]

LENGTH_BUCKETS = [("1-5", 0, 5), ("6-10", 6, 10), ("11-20", 11, 20), ("21-30", 21, 30), ("31+", 31, None)]

COMPLEXITY_LEVELS = [
    (80.0, "very_easy"),
    (60.0, "easy"),
    (40.0, "standard"),
    (20.0, "difficult"),
]


def character_type(char: str) -> str:
    code = ord(char)
    if 0x3040 <= code <= 0x309F:
        return "hiragana"
    if 0x30A0 <= code <= 0x30FF:
        return "katakana"
    if 0x4E00 <= code <= 0x9FAF:
        return "kanji"
    if char.isascii() and char.isalnum():
        return "alphanumeric"
    if char in _PUNCTUATION_CHARS:
        return "punctuation"
    if char.isspace():
        return "whitespace"
    return "other"


def detect_language(text: str) -> tuple[str, float]:
    chars = [c for c in text if not c.isspace()]
    if not chars:
        return "unknown", 0.0
    kinds = [character_type(c) for c in chars]
    japanese = sum(1 for k in kinds if k in ("hiragana", "katakana", "kanji")) / len(kinds)
    english = sum(1 for k in kinds if k == "alphanumeric") / len(kinds)
    if japanese > 0.3:
        return "japanese", min(japanese * 2.0, 1.0)
    if english > 0.7:
        return "english", english
    if japanese > 0.1 and english > 0.3:
        return "mixed", 0.8
    return "other", 0.5


def _is_symbolic(token: str) -> bool:
    return all(
        c.isspace() or unicodedata.category(c)[0] in ("P", "S") for c in token
    )


def tokenize(text: str) -> list[str]:
    """Split a record into word tokens; Japanese and mixed text go through TinySegmenter."""

    if not text:
        return []
    language, _ = detect_language(text)
    if language in ("japanese", "mixed"):
        tokens = _SEGMENTER.tokenize(text)
    else:
        tokens = _SPLIT_CHARS.sub(" ", text).split()
    return [t for t in tokens if t.strip() and not _is_symbolic(t)]


def split_sentences(text: str) -> list[str]:
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def split_paragraphs(text: str) -> list[str]:
    return [p.strip() for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]


def readability_score(words_per_sentence: float, chars_per_word: float) -> float:
    sentence_penalty = min(words_per_sentence / 20.0, 1.0) * 40.0
    word_penalty = min((chars_per_word - 3.0) / 5.0, 1.0) * 40.0
    return float(max(0.0, min(100.0, 100.0 - sentence_penalty - word_penalty)))


def complexity_level(score: float) -> str:
    for floor, level in COMPLEXITY_LEVELS:
        if score >= floor:
            return level
    return "very_difficult"


def _top(counter: Counter, total: int, top_n: int, key: str) -> list[dict[str, Any]]:
    # Ties keep first-seen order.
    ranked = sorted(counter.items(), key=lambda item: -item[1])[:top_n]
    return [
        {key: item, "count": count, "percentage": (count / total * 100.0) if total else 0.0}
        for item, count in ranked
    ]


def _statistics(records: list[str], tokens: list[list[str]]) -> dict[str, Any]:
    total = len(records)
    char_counts = [len(r) for r in records]
    word_counts = [len(t) for t in tokens]
    sentence_counts = [len(split_sentences(r)) for r in records]
    paragraph_counts = [len(split_paragraphs(r)) for r in records]
    total_chars = sum(char_counts)
    total_words = sum(word_counts)
    total_sentences = sum(sentence_counts)
    words_per_sentence = total_words / total_sentences if total_sentences else 0.0
    chars_per_word = total_chars / total_words if total_words else 0.0
    empty = sum(1 for r in records if not r.strip())
    unique = len(set(records))
    return {
        "totalRecords": total,
        "totalCharacters": total_chars,
        "totalWords": total_words,
        "totalSentences": total_sentences,
        "totalParagraphs": sum(paragraph_counts),
        "averageCharactersPerRecord": total_chars / total,
        "averageWordsPerRecord": total_words / total,
        "averageSentencesPerRecord": total_sentences / total,
        "averageWordsPerSentence": words_per_sentence,
        # Upper median for even counts.
        "medianCharactersPerRecord": sorted(char_counts)[total // 2],
        "medianWordsPerRecord": sorted(word_counts)[total // 2],
        "minCharacters": min(char_counts),
        "maxCharacters": max(char_counts),
        "minWords": min(word_counts),
        "maxWords": max(word_counts),
        "emptyRecords": empty,
        "emptyPercentage": empty / total * 100.0,
        "uniqueRecords": unique,
        "uniquePercentage": unique / total * 100.0,
        "readabilityScore": readability_score(words_per_sentence, chars_per_word),
    }


def _patterns(records: list[str]) -> list[dict[str, Any]]:
    found = []
    for name, description, regex, stripped in PATTERNS:
        matches = [r for r in records if regex.search(r.strip() if stripped else r)]
        if not matches:
            continue
        found.append(
            {
                "pattern": name,
                "description": description,
                "count": len(matches),
                "percentage": len(matches) / len(records) * 100.0,
                "examples": matches[:3],
            }
        )
    return found


def _language(records: list[str]) -> dict[str, Any]:
    detections = [detect_language(r) for r in records]
    grouped: dict[str, list[float]] = {}
    for language, confidence in detections:
        grouped.setdefault(language, []).append(confidence)
    languages = sorted(
        (
            {
                "language": language,
                "count": len(confidences),
                "percentage": len(confidences) / len(records) * 100.0,
                "confidence": float(np.mean(confidences)),
            }
            for language, confidences in grouped.items()
        ),
        key=lambda item: -item["count"],
    )
    kinds = Counter(character_type(c) for r in records for c in r)
    total_chars = sum(kinds.values())
    return {
        "totalRecords": len(records),
        "averageLength": sum(len(r) for r in records) / len(records),
        "averageConfidence": float(np.mean([c for _, c in detections])),
        "detectedLanguages": languages,
        "characterTypes": _top(kinds, total_chars, len(kinds), "type"),
    }


def _sentences(records: list[str]) -> dict[str, Any]:
    sentences = [s for r in records for s in split_sentences(r)]
    lengths = [len(tokenize(s)) for s in sentences]
    total = len(sentences)
    distribution = []
    for label, low, high in LENGTH_BUCKETS:
        count = sum(1 for n in lengths if n >= low and (high is None or n <= high))
        distribution.append(
            {"range": label, "count": count, "percentage": (count / total * 100.0) if total else 0.0}
        )
    marks: Counter = Counter()
    for mark in _PUNCTUATION_MARKS:
        marks[mark] = sum(r.count(mark) for r in records)
    used = Counter({mark: count for mark, count in marks.items() if count > 0})
    return {
        "totalSentences": total,
        "averageSentenceLength": (sum(lengths) / total) if total else 0.0,
        "sentenceLengthDistribution": distribution,
        "punctuationUsage": _top(used, sum(used.values()), len(used), "punctuation"),
    }


def _readability(stats: dict[str, Any]) -> dict[str, Any]:
    words_per_sentence = stats["averageWordsPerSentence"]
    chars_per_word = stats["totalCharacters"] / stats["totalWords"] if stats["totalWords"] else 0.0
    score = stats["readabilityScore"]
    recommendations = []
    if words_per_sentence > 20:
        recommendations.append("Consider shorter sentences.")
    if words_per_sentence < 5:
        recommendations.append("Consider expanding sentences with more detail.")
    if chars_per_word > 8:
        recommendations.append("Consider simpler vocabulary.")
    if score < 40:
        recommendations.append("Consider simplifying the overall structure.")
    if not recommendations:
        recommendations.append("Readability is at an appropriate level.")
    return {
        "averageWordsPerSentence": words_per_sentence,
        "averageCharactersPerWord": chars_per_word,
        "readabilityScore": score,
        "complexityLevel": complexity_level(score),
        "recommendations": recommendations,
    }


def empty_text_result() -> dict[str, Any]:
    return {
        "statistics": None,
        "wordFrequency": [],
        "characterFrequency": [],
        "patterns": [],
        "language": None,
        "sentences": None,
        "readability": None,
    }


def analyze_text(values: Iterable[Any], top_n: int = 15) -> dict[str, Any]:
    records = [str(v) for v in values if v is not None and v is not UNDEFINED]
    if not records:
        return empty_text_result()

    tokens = [tokenize(r) for r in records]
    stats = _statistics(records, tokens)

    lowered = [t for r in records for t in tokenize(r.lower())]
    words = Counter(t for t in lowered if len(t) >= 2)
    chars = Counter(c for r in records for c in r if not c.isspace())

    return {
        "statistics": stats,
        "wordFrequency": _top(words, len(lowered), top_n, "word"),
        "characterFrequency": _top(chars, sum(chars.values()), top_n, "character"),
        "patterns": _patterns(records),
        "language": _language(records),
        "sentences": _sentences(records),
        "readability": _readability(stats),
    }
