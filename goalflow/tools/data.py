"""In-process data analytics: descriptive statistics over JSON-like values."""

import re
import statistics
from collections import Counter
from datetime import datetime, timezone
from typing import Any

from .base import DataTools

STOP_WORDS = {
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "is", "are", "was", "were", "this", "that", "from",
}
POSITIVE_WORDS = {"good", "great", "excellent", "amazing", "wonderful", "fantastic", "positive"}
NEGATIVE_WORDS = {"bad", "terrible", "awful", "horrible", "negative", "poor", "disappointing"}


class LocalDataTools(DataTools):
    """
    Data processing without external services.

    Output shape depends on the input: lists get numeric/categorical
    statistics, mappings get a structural profile, anything else is
    treated as text.
    """

    async def process_data(self, data: Any) -> dict[str, Any]:
        if isinstance(data, list):
            return analyze_array(data)
        if isinstance(data, dict):
            return analyze_object(data)
        return analyze_text("" if data is None else str(data))

    async def aggregate_results(self, results: list[Any]) -> dict[str, Any]:
        results = list(results or [])
        by_type = Counter(_type_name(result) for result in results)
        failed = sum(1 for result in results if _is_failure(result))

        insights = []
        if len(results) > 10:
            insights.append("Large result set, suitable for statistical analysis")
        if failed:
            insights.append(f"{failed} result(s) carry errors")
        if results and all(isinstance(result, dict) for result in results):
            insights.append("All results are structured records")

        return {
            "total_results": len(results),
            "aggregation_date": datetime.now(timezone.utc).isoformat(),
            "summary": (
                f"Processed {len(results)} results: "
                + ", ".join(f"{count} {name}" for name, count in by_type.items())
            ) if results else "No results to aggregate",
            "breakdown": {
                "by_type": dict(by_type),
                "successful": len(results) - failed,
                "failed": failed,
            },
            "insights": insights,
        }

    async def generate_report(self, data: Any) -> dict[str, Any]:
        analysis = await self.process_data(data)
        return {
            "title": "Data Analysis Report",
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "input_type": analysis["type"],
            "analysis": analysis,
            "key_findings": _key_findings(analysis),
        }


def analyze_numbers(numbers: list[float]) -> dict[str, Any] | None:
    if not numbers:
        return None
    return {
        "count": len(numbers),
        "min": min(numbers),
        "max": max(numbers),
        "mean": round(statistics.fmean(numbers), 2),
        "median": statistics.median(numbers),
        "sum": sum(numbers),
    }


def analyze_categories(values: list[str]) -> dict[str, Any] | None:
    if not values:
        return None
    frequency = Counter(values)
    most_common, count = frequency.most_common(1)[0]
    return {
        "count": len(values),
        "unique": len(frequency),
        "most_common": [most_common, count],
        "distribution": dict(frequency),
    }


def analyze_array(data: list[Any]) -> dict[str, Any]:
    # bool is a subclass of int; keep it out of the numeric stats
    numbers = [item for item in data if isinstance(item, (int, float)) and not isinstance(item, bool)]
    strings = [item for item in data if isinstance(item, str)]

    patterns = []
    if data and len({type(item) for item in data}) == 1:
        patterns.append("Uniform type")
    if data and isinstance(data[0], list):
        patterns.append("Nested arrays")
    if any(isinstance(item, dict) and "id" in item for item in data):
        patterns.append("ID-based entities")

    return {
        "type": "array_analysis",
        "length": len(data),
        "sample": data[:3],
        "statistics": {
            "numerical": analyze_numbers(numbers),
            "categorical": analyze_categories(strings),
            "objects": sum(1 for item in data if isinstance(item, (dict, list))),
        },
        "patterns": patterns,
    }


def analyze_object(data: dict[str, Any]) -> dict[str, Any]:
    values = list(data.values())
    complexity = len(data)
    for value in values:
        if isinstance(value, list):
            complexity += 2
        elif isinstance(value, dict):
            complexity += 3

    return {
        "type": "object_analysis",
        "structure": {
            "keys": list(data.keys()),
            "key_count": len(data),
            "value_types": {key: _type_name(value) for key, value in data.items()},
        },
        "content_analysis": {
            "has_numeric_fields": any(isinstance(v, (int, float)) and not isinstance(v, bool) for v in values),
            "has_date_fields": any(isinstance(v, str) and _looks_like_date(v) for v in values),
            "has_nested_objects": any(isinstance(v, dict) for v in values),
            "has_array_fields": any(isinstance(v, list) for v in values),
        },
        "complexity_score": complexity,
    }


def analyze_text(text: str) -> dict[str, Any]:
    words = re.findall(r"\b\w+\b", text.lower())
    keywords = Counter(word for word in words if len(word) > 3 and word not in STOP_WORDS)

    positive = sum(1 for word in words if word in POSITIVE_WORDS)
    negative = sum(1 for word in words if word in NEGATIVE_WORDS)
    if positive > negative:
        sentiment = "positive"
    elif negative > positive:
        sentiment = "negative"
    else:
        sentiment = "neutral"

    return {
        "type": "text_analysis",
        "length": len(text),
        "word_count": len(words),
        "sentiment": sentiment,
        "keywords": [word for word, _ in keywords.most_common(5)],
        "readability": readability_score(text, words),
    }


def readability_score(text: str, words: list[str]) -> float | None:
    """Flesch reading ease, approximating syllables as vowel groups."""
    if not words:
        return None
    sentences = max(1, len([s for s in re.split(r"[.!?]+", text) if s.strip()]))
    syllables = max(1, len(re.findall(r"[aeiouy]+", text.lower())))
    score = 206.835 - 1.015 * (len(words) / sentences) - 84.6 * (syllables / len(words))
    return round(score, 1)


def _key_findings(analysis: dict[str, Any]) -> list[str]:
    kind = analysis["type"]
    if kind == "array_analysis":
        findings = [f"{analysis['length']} items analyzed"]
        numerical = analysis["statistics"]["numerical"]
        if numerical:
            findings.append(f"Numeric range {numerical['min']} to {numerical['max']}, mean {numerical['mean']}")
        return findings + analysis["patterns"]
    if kind == "object_analysis":
        return [f"{analysis['structure']['key_count']} fields, complexity score {analysis['complexity_score']}"]
    return [
        f"{analysis['word_count']} words, {analysis['sentiment']} sentiment",
        "Top keywords: " + (", ".join(analysis["keywords"]) or "none"),
    ]


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _is_failure(result: Any) -> bool:
    return result is None or (isinstance(result, dict) and bool(result.get("error")))


def _looks_like_date(value: str) -> bool:
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False
