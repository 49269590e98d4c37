# state.py
"""
Everything the calculator window shows, kept in one object.

The UI only forwards button presses here and redraws from the fields afterwards.
MathEngine and AIService are called as plain services; the only long running
action (an AI request) is split into begin_ai_request() / finish_ai_*() so the
UI can run the request on a worker thread and apply the answer exactly once.
"""
import logging

from . import AIService
from . import MathEngine
from . import config_manager as config_manager
from . import error as E
from .history import CalculationHistory, HISTORY_LIMIT

logger = logging.getLogger(__name__)

SOLVE = "solve"
EXPLAIN = "explain"


def start_mode(settings):
    """The default_mode setting as a CalcMode; a hand-edited bad value falls back to the default."""
    value = settings.get("default_mode", config_manager.DEFAULT_SETTINGS["default_mode"])
    try:
        return MathEngine.resolve_mode(value)
    except ValueError:
        logger.warning("Invalid default_mode %r in settings, using %s",
                       value, config_manager.DEFAULT_SETTINGS["default_mode"])
        return MathEngine.resolve_mode(config_manager.DEFAULT_SETTINGS["default_mode"])


def history_limit(settings):
    """The history_limit setting, kept between 1 and HISTORY_LIMIT."""
    value = settings.get("history_limit", HISTORY_LIMIT)
    try:
        limit = int(value)
    except (TypeError, ValueError):
        logger.warning("Invalid history_limit %r in settings, using %s", value, HISTORY_LIMIT)
        return HISTORY_LIMIT

    if limit < 1 or limit > HISTORY_LIMIT:
        logger.warning("history_limit %s out of range 1..%s, using %s", limit, HISTORY_LIMIT, HISTORY_LIMIT)
        return HISTORY_LIMIT
    return limit


class CalculatorState:

    def __init__(self, settings=None):
        if settings is None:
            settings = config_manager.load_setting_value("all")
        self.settings = settings

        self.input_text = ""  # The expression being typed
        self.result = ""  # Formatted value, "Error" or the AI solution
        self.mode = start_mode(settings)
        self.history = CalculationHistory(history_limit(settings))
        self.last_error = None  # MathError of the last failed calculation

        self.is_ai_loading = False  # Is an AI request in flight?
        self.ai_analysis = None  # AIResponse of the last solve
        self.ai_explanation = None  # Text of the last explain
        self._ai_request = None  # SOLVE / EXPLAIN while in flight

    # --- Input ---
    def handle_input(self, value):
        self.input_text += value
        self.ai_analysis = None
        self.ai_explanation = None

    def clear(self):
        self.input_text = ""
        self.result = ""
        self.last_error = None
        self.ai_analysis = None
        self.ai_explanation = None

    def backspace(self):
        self.input_text = self.input_text[:-1]

    def set_mode(self, mode):
        self.mode = MathEngine.resolve_mode(mode)

    def apply_settings(self, settings):
        """Take over freshly saved settings. The start mode only applies on the next start."""
        self.settings = settings
        self.history.set_limit(history_limit(settings))

    # --- Calculation ---
    def calculate(self):
        """Evaluate the current input; returns the EvalResult or None when there was nothing to do."""
        if not self.input_text:
            return None

        outcome = MathEngine.calculate(self.input_text, self.mode, self.settings)
        if outcome is None:
            return None

        if outcome.ok:
            self.result = outcome.display
            self.last_error = None
            self.history.add(self.input_text, outcome.display)
        else:
            self.result = "Error"
            self.last_error = outcome.error
        return outcome

    # --- History ---
    def select_history(self, entry):
        self.input_text = entry.expression
        self.result = entry.result

    def clear_history(self):
        self.history.clear()

    # --- AI request cycle ---
    @property
    def can_solve(self):
        return not self.is_ai_loading and bool(self.input_text)

    @property
    def can_explain(self):
        return not self.is_ai_loading and bool(self.input_text or self.result)

    def ai_request_text(self, kind):
        if kind == SOLVE:
            return self.input_text
        return self.input_text or self.result

    def begin_ai_request(self, kind):
        """Mark a request as in flight. Returns False if it must not be sent."""
        if kind == SOLVE:
            allowed = self.can_solve
        elif kind == EXPLAIN:
            allowed = self.can_explain
        else:
            raise ValueError(f"Unknown AI request: {kind!r}")

        if not allowed:
            return False

        self.is_ai_loading = True
        self._ai_request = kind
        if kind == SOLVE:
            self.ai_analysis = None
        return True

    def _complete(self, kind):
        # A completion only counts for the request that is actually in flight
        if self._ai_request != kind:
            logger.warning("Ignoring %s completion, no such request in flight", kind)
            return False
        self._ai_request = None
        self.is_ai_loading = False
        return True

    def finish_ai_solve(self, response=None, error=None):
        if not self._complete(SOLVE):
            return False
        if error is not None:
            # Prior result stays; the user can simply press AI Solve again
            logger.info("AI solve failed: %s", getattr(error, "message", error))
            return True
        self.ai_analysis = response
        self.result = response.solution
        return True

    def finish_ai_explain(self, text):
        if not self._complete(EXPLAIN):
            return False
        self.ai_explanation = text
        return True

    def ai_solve(self, solve=None):
        """Run a solve request on the calling thread. Returns True when an answer arrived."""
        if not self.begin_ai_request(SOLVE):
            return False
        solve = solve or AIService.solve_problem
        try:
            response = solve(self.ai_request_text(SOLVE))
        except Exception as e:
            self.finish_ai_solve(error=e)
            if isinstance(e, E.AIServiceError):
                return False
            raise
        self.finish_ai_solve(response=response)
        return True

    def ai_explain(self, explain=None):
        """Run an explain request on the calling thread."""
        if not self.begin_ai_request(EXPLAIN):
            return False
        explain = explain or AIService.explain_concept
        try:
            text = explain(self.ai_request_text(EXPLAIN))
        except Exception:
            self.finish_ai_explain(AIService.EXPLANATION_FALLBACK)
            raise
        self.finish_ai_explain(text)
        return True
