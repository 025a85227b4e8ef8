from __future__ import annotations

import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable

import yaml

from resume_ai.core.config import settings

_WORD_RE = re.compile(r"[a-z0-9+#]+(?:\.[a-z0-9+#]+)*")


def term_words(term: str) -> frozenset[str]:
    return frozenset(_WORD_RE.findall(term.lower()))


def phrase_pattern(phrase: str) -> re.Pattern[str]:
    return re.compile(r"(?<![a-z0-9])" + re.escape(phrase.lower()) + r"(?![a-z0-9])")


def contains_phrase(text: str, phrase: str) -> bool:
    """Case-insensitive whole-word search; ``java`` does not match ``javascript``."""
    if not phrase.strip():
        return False
    return bool(phrase_pattern(phrase.strip()).search(text.lower()))


def terms_related(term: str, phrase: str) -> bool:
    """True when ``term`` names ``phrase`` or a longer phrase containing all its words.

    A single word never matches a multi-word phrase on its own, so "cloud" is
    not accepted because "cloud infrastructure" is.
    """
    term_set = term_words(term)
    phrase_set = term_words(phrase)
    if not term_set or not phrase_set:
        return False
    if phrase_set <= term_set:
        return True
    return len(term_set) >= 2 and term_set <= phrase_set


class InferencePolicy:
    """Seed technology to related-terms table loaded from YAML."""

    def __init__(self, policy_path: str | Path | None = None) -> None:
        path = Path(policy_path) if policy_path else Path(__file__).with_name("inference_policy.yaml")
        self._table = self._load_table(path)

    @staticmethod
    def _load_table(path: Path) -> dict[str, tuple[str, ...]]:
        try:
            with path.open("r", encoding="utf-8") as handle:
                raw = yaml.safe_load(handle)
        except OSError as exc:
            raise RuntimeError(f"Failed to read inference policy '{path}': {exc}") from exc
        except yaml.YAMLError as exc:
            raise RuntimeError(f"Invalid YAML in inference policy '{path}': {exc}") from exc

        inferences = raw.get("inferences") if isinstance(raw, dict) else None
        if not isinstance(inferences, dict):
            raise RuntimeError(f"Invalid inference policy '{path}': expected an 'inferences' mapping.")

        table: dict[str, tuple[str, ...]] = {}
        for seed, related in inferences.items():
            terms = related if isinstance(related, list) else []
            table[str(seed).strip().lower()] = tuple(str(term).strip().lower() for term in terms if str(term).strip())
        return table

    @property
    def seeds(self) -> tuple[str, ...]:
        return tuple(self._table)

    def related_terms(self, seed: str) -> tuple[str, ...]:
        return self._table.get(seed.strip().lower(), ())

    def vocabulary(self) -> tuple[str, ...]:
        terms: dict[str, None] = {}
        for seed, related in self._table.items():
            terms[seed] = None
            for term in related:
                terms[term] = None
        # longest first so multi-word phrases win over their parts
        return tuple(sorted(terms, key=len, reverse=True))

    def seeds_in(self, text: str) -> set[str]:
        lowered = text.lower()
        return {seed for seed in self._table if contains_phrase(lowered, seed)}

    def can_infer(self, term: str, seeds: Iterable[str]) -> bool:
        seeds = set(seeds)
        if not seeds:
            return False
        for seed in seeds:
            if any(terms_related(term, related) for related in self.related_terms(seed)):
                return True
        # e.g. Django is inferable from Python because Python is one of Django's related terms
        for seed, related in self._table.items():
            if not terms_related(term, seed):
                continue
            if any(terms_related(existing, phrase) for existing in seeds for phrase in related):
                return True
        return False


@lru_cache(maxsize=1)
def get_default_inference_policy() -> InferencePolicy:
    return InferencePolicy(settings.inference_policy_path)
