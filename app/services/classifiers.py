"""Keyword-table classifiers for symptom routing and report triage.

Both sit behind :class:`TextClassifier` so a model-backed implementation can
replace the keyword tables without touching callers.
"""
from abc import ABC, abstractmethod
from typing import Iterable, Sequence, Tuple


class TextClassifier(ABC):
    @abstractmethod
    def classify(self, text: str) -> str:
        """Return a label for ``text``."""


class KeywordClassifier(TextClassifier):
    """First rule with a keyword occurring in the lower-cased text wins."""

    def __init__(self, rules: Sequence[Tuple[str, Iterable[str]]], default: str):
        self.rules = [(label, tuple(keywords)) for label, keywords in rules]
        self.default = default

    def classify(self, text: str) -> str:
        lowered = (text or "").lower()
        for label, keywords in self.rules:
            if any(keyword in lowered for keyword in keywords):
                return label
        return self.default


SYMPTOM_RULES = [
    ("Cardiologist", ["chest pain", "palpitations", "shortness of breath", "hypertension", "heart"]),
    ("General Physician", ["fever", "cold", "cough", "headache", "weakness", "flu"]),
    ("Dermatologist", ["skin", "rash", "acne", "itch", "eczema"]),
    ("Dentist", ["tooth", "toothache", "gum", "cavity", "dental"]),
    ("Ophthalmologist", ["eye", "blurry vision", "red eye", "eye pain"]),
    ("Orthopedic", ["back pain", "knee pain", "joint", "sprain", "fracture"]),
    ("Psychiatrist", ["anxiety", "depression", "insomnia", "stress", "mental"]),
]

DOCUMENT_RULES = [
    ("Report suggests possible anemia - please correlate with Hb and RBC indices.", ["blood"]),
    ("X-ray hints at possible fracture; recommend orthopedic evaluation.", ["xray"]),
    ("ECG pattern may indicate arrhythmia; cardiology consult advised.", ["ecg"]),
]

NO_FLAGS_MESSAGE = "Report stored. No automated flags raised."

symptom_classifier = KeywordClassifier(SYMPTOM_RULES, default="General Physician")
document_classifier = KeywordClassifier(DOCUMENT_RULES, default=NO_FLAGS_MESSAGE)


def classify_symptoms(text: str) -> str:
    return symptom_classifier.classify(text)


def classify_document(file_name: str) -> str:
    # Filename heuristic only; file content is never inspected
    return document_classifier.classify(file_name)
