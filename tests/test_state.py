"""Tests for CalculatorState, the presentation state behind the window."""

import pytest

from mathmind import AIService
from mathmind import error as E
from mathmind.AIService import AIResponse
from mathmind.MathEngine import CalcMode
from mathmind.state import CalculatorState, SOLVE, EXPLAIN


@pytest.fixture
def state(settings):
    settings["default_mode"] = "SCIENTIFIC"
    return CalculatorState(settings)


def type_in(state, text):
    for char in text:
        state.handle_input(char)


ANSWER = AIResponse("4", "Add the numbers.", ["2 + 2 = 4"])


# --- Calculation ---

def test_calculate_success_adds_history(state):
    type_in(state, "2+2")
    outcome = state.calculate()

    assert outcome.ok
    assert state.result == "4"
    assert state.last_error is None
    assert [(entry.expression, entry.result) for entry in state.history] == [("2+2", "4")]


def test_calculate_failure_shows_error(state):
    type_in(state, "1/0")
    outcome = state.calculate()

    assert not outcome.ok
    assert state.result == "Error"
    assert state.last_error.kind == E.ErrorKind.DIV_BY_ZERO
    assert len(state.history) == 0


def test_calculate_empty_input_does_nothing(state):
    assert state.calculate() is None
    assert state.result == ""
    assert len(state.history) == 0


def test_history_never_exceeds_fifty(state):
    for number in range(51):
        state.clear()
        type_in(state, f"{number}+1")
        state.calculate()

    assert len(state.history) == 50
    assert state.history.entries[0].expression == "50+1"
    assert state.history.entries[-1].expression == "1+1"


def test_mode_from_settings(settings):
    assert CalculatorState(settings).mode == CalcMode.BASIC
    settings["default_mode"] = "scientific"
    assert CalculatorState(settings).mode == CalcMode.SCIENTIFIC


def test_unknown_start_mode_falls_back_to_basic(settings):
    settings["default_mode"] = "AI"
    assert CalculatorState(settings).mode == CalcMode.BASIC


def test_bad_start_mode_in_config_file(isolated_config):
    (isolated_config / "config.json").write_text('{"default_mode": "AI"}', encoding="utf-8")
    assert CalculatorState().mode == CalcMode.BASIC


@pytest.mark.parametrize("value", ["abc", None, 0, -3, 500])
def test_bad_history_limit_falls_back_to_fifty(settings, value):
    settings["history_limit"] = value
    assert CalculatorState(settings).history.limit == 50


def test_history_limit_from_settings(settings):
    settings["history_limit"] = "10"
    assert CalculatorState(settings).history.limit == 10


def test_apply_settings_updates_history_limit(state, settings):
    for number in range(5):
        type_in(state, f"{number}+0")
        state.calculate()
        state.clear()

    settings["history_limit"] = 3
    settings["default_mode"] = "BASIC"
    settings["implicit_multiplication"] = False
    state.apply_settings(settings)

    assert [entry.expression for entry in state.history] == ["4+0", "3+0", "2+0"]
    # Start mode is only read on the next start
    assert state.mode == CalcMode.SCIENTIFIC
    type_in(state, "2(3)")
    state.calculate()
    assert state.result == "Error"


def test_basic_mode_rejects_functions(state):
    state.set_mode(CalcMode.BASIC)
    type_in(state, "sqrt(4)")
    state.calculate()
    assert state.result == "Error"


# --- Editing ---

def test_backspace_and_clear(state):
    type_in(state, "12")
    state.backspace()
    assert state.input_text == "1"
    state.calculate()
    state.clear()
    assert state.input_text == ""
    assert state.result == ""


def test_input_clears_ai_panel(state):
    type_in(state, "2+2")
    state.ai_solve(lambda text: ANSWER)
    state.handle_input("1")
    assert state.ai_analysis is None
    assert state.ai_explanation is None


def test_select_history(state):
    type_in(state, "3*3")
    state.calculate()
    state.clear()
    state.select_history(state.history.entries[0])
    assert (state.input_text, state.result) == ("3*3", "9")
    state.clear_history()
    assert len(state.history) == 0


# --- AI requests ---

def test_ai_solve_sets_analysis_and_result(state):
    type_in(state, "2+2")
    sent = []

    def solve(text):
        sent.append(text)
        assert state.is_ai_loading
        return ANSWER

    assert state.ai_solve(solve) is True
    assert sent == ["2+2"]
    assert state.ai_analysis == ANSWER
    assert state.result == "4"
    assert not state.is_ai_loading


def test_ai_solve_failure_keeps_prior_result(state):
    type_in(state, "2+2")
    state.calculate()

    def solve(text):
        raise E.AIServiceError("offline", code="6000")

    assert state.ai_solve(solve) is False
    assert state.result == "4"
    assert state.ai_analysis is None
    assert not state.is_ai_loading


def test_ai_solve_unexpected_error_clears_flag(state):
    type_in(state, "2+2")

    def solve(text):
        raise RuntimeError("bug")

    with pytest.raises(RuntimeError):
        state.ai_solve(solve)
    assert not state.is_ai_loading


def test_ai_solve_needs_input(state):
    assert state.can_solve is False
    assert state.ai_solve(lambda text: ANSWER) is False


def test_only_one_request_in_flight(state):
    type_in(state, "2+2")
    assert state.begin_ai_request(SOLVE) is True
    assert state.can_solve is False
    assert state.can_explain is False
    assert state.begin_ai_request(EXPLAIN) is False


def test_completion_is_applied_once(state):
    type_in(state, "2+2")
    state.begin_ai_request(SOLVE)
    assert state.finish_ai_solve(response=ANSWER) is True
    assert state.finish_ai_solve(response=AIResponse("5", "", [])) is False
    assert state.result == "4"


def test_completion_for_other_request_is_ignored(state):
    type_in(state, "2+2")
    state.begin_ai_request(SOLVE)
    assert state.finish_ai_explain("text") is False
    assert state.is_ai_loading


def test_explain_uses_result_when_input_is_empty(state):
    state.result = "42"
    sent = []
    assert state.ai_explain(lambda text: sent.append(text) or "Because.") is True
    assert sent == ["42"]
    assert state.ai_explanation == "Because."


def test_explain_needs_input_or_result(state):
    assert state.ai_explain(lambda text: "never") is False


def test_explain_default_service_falls_back_without_key(state, monkeypatch):
    for variable in AIService.API_KEY_VARIABLES:
        monkeypatch.delenv(variable, raising=False)
    type_in(state, "2^10")
    state.ai_explain()
    assert state.ai_explanation == AIService.EXPLANATION_FALLBACK


def test_unknown_request_kind(state):
    with pytest.raises(ValueError):
        state.begin_ai_request("translate")
