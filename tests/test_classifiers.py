import pytest

from app.services.classifiers import (
    NO_FLAGS_MESSAGE, KeywordClassifier, TextClassifier, classify_document, classify_symptoms
)


@pytest.mark.parametrize("text, specialty", [
    ("I have chest pain and fever", "Cardiologist"),
    ("Running a FEVER since Monday", "General Physician"),
    ("Itchy rash on my arm", "Dermatologist"),
    ("Toothache at night", "Dentist"),
    ("Blurry vision in the left eye", "Ophthalmologist"),
    ("Knee pain after running", "Orthopedic"),
    ("Cannot sleep, constant anxiety", "Psychiatrist"),
    ("Something feels off", "General Physician"),
    ("", "General Physician"),
])
def test_symptom_routing(text, specialty):
    assert classify_symptoms(text) == specialty


def test_document_triage():
    assert "anemia" in classify_document("patient_bloodtest.pdf")
    assert "fracture" in classify_document("left_arm_XRAY.png")
    assert "arrhythmia" in classify_document("ecg_2024.pdf")
    assert classify_document("report.pdf") == NO_FLAGS_MESSAGE


def test_first_matching_rule_wins():
    classifier = KeywordClassifier([("a", ["x"]), ("b", ["x", "y"])], default="none")
    assert classifier.classify("xy") == "a"
    assert classifier.classify("y") == "b"
    assert classifier.classify("z") == "none"


def test_classifier_interface():
    with pytest.raises(TypeError):
        TextClassifier()
    assert isinstance(KeywordClassifier([], default="d"), TextClassifier)
