"""Tests for the Gemini client wrapper. A fake client stands in for the network."""

import json
from types import SimpleNamespace

import pytest

from mathmind import AIService
from mathmind import error as E
from mathmind.AIService import AIResponse


class FakeModels:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, model, contents, config=None):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.text)


class FakeClient:
    def __init__(self, text=None, error=None):
        self.models = FakeModels(text=text, error=error)


SOLUTION = {
    "solution": "x = 4",
    "explanation": "Subtract 3 from both sides.",
    "steps": ["2x + 3 = 11", "2x = 8", "x = 4"],
}


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    for variable in AIService.API_KEY_VARIABLES:
        monkeypatch.delenv(variable, raising=False)


# --- solve_problem ---

def test_solve_returns_structured_response():
    client = FakeClient(text=json.dumps(SOLUTION))
    response = AIService.solve_problem("2x + 3 = 11", client=client, model="test-model")

    assert response == AIResponse("x = 4", "Subtract 3 from both sides.", ["2x + 3 = 11", "2x = 8", "x = 4"])
    call = client.models.calls[0]
    assert call["model"] == "test-model"
    assert '"2x + 3 = 11"' in call["contents"]
    assert call["config"].response_mime_type == "application/json"


def test_solve_accepts_fenced_json():
    client = FakeClient(text="```json\n" + json.dumps(SOLUTION) + "\n```")
    assert AIService.solve_problem("2x + 3 = 11", client=client).solution == "x = 4"


def test_solve_uses_configured_model():
    client = FakeClient(text=json.dumps(SOLUTION))
    AIService.solve_problem("1+1", client=client)
    assert client.models.calls[0]["model"] == AIService.DEFAULT_MODEL


@pytest.mark.parametrize("text", ["", "not json", "[1, 2]", '{"solution": "4"}',
                                  '{"solution": "4", "explanation": "", "steps": "one"}'])
def test_solve_rejects_malformed_answers(text):
    with pytest.raises(E.AIServiceError) as excinfo:
        AIService.solve_problem("2+2", client=FakeClient(text=text))
    assert excinfo.value.code == "6001"


def test_solve_wraps_upstream_errors():
    client = FakeClient(error=RuntimeError("quota exceeded"))
    with pytest.raises(E.AIServiceError) as excinfo:
        AIService.solve_problem("2+2", client=client)
    assert excinfo.value.code == "6000"
    assert excinfo.value.equation == "2+2"
    assert "quota exceeded" in excinfo.value.message


def test_solve_without_api_key():
    with pytest.raises(E.AIServiceError) as excinfo:
        AIService.solve_problem("2+2")
    assert excinfo.value.code == "6000"


# --- explain_concept ---

def test_explain_returns_text():
    client = FakeClient(text="  Powers repeat multiplication.  ")
    assert AIService.explain_concept("2^10", client=client) == "Powers repeat multiplication."
    assert "2^10" in client.models.calls[0]["contents"]


def test_explain_falls_back_on_error():
    client = FakeClient(error=RuntimeError("offline"))
    assert AIService.explain_concept("2^10", client=client) == AIService.EXPLANATION_FALLBACK


def test_explain_falls_back_on_empty_answer():
    assert AIService.explain_concept("2^10", client=FakeClient(text=None)) == AIService.EXPLANATION_FALLBACK


def test_explain_without_api_key():
    assert AIService.explain_concept("2^10") == AIService.EXPLANATION_FALLBACK


# --- client setup ---

def test_api_key_from_environment(monkeypatch):
    monkeypatch.setenv("API_KEY", " secret ")
    assert AIService.get_api_key() == "secret"
    monkeypatch.setenv("GEMINI_API_KEY", "preferred")
    assert AIService.get_api_key() == "preferred"


def test_get_client_requires_key():
    with pytest.raises(E.AIServiceError):
        AIService.get_client()
