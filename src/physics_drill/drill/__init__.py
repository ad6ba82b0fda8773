from .answers import (
    choose_quantity,
    choose_single,
    pick,
    selection_hint,
    toggle_statement,
)
from .assets import AssetResolver, resolve_asset
from .bank import (
    QuestionBank,
    QuestionBankError,
    load_bank,
    load_sample_bank,
)
from .config import DrillConfig, DrillConfigError, Interface, load_config
from .console import DrillRunResult, parse_drill_command, run_drill_session
from .engine import (
    AnswerChange,
    Jump,
    Next,
    Prev,
    Restart,
    SessionEngine,
    Tick,
    ToggleReview,
    ToggleShowAnswers,
    Transition,
    apply,
    complete_primary_pass,
    new_session,
)
from .evaluator import evaluate
from .models import (
    DualQuantityQuestion,
    Mode,
    Notice,
    Phase,
    Question,
    QuestionStatus,
    SelectionQuestion,
    Session,
)
from .scoring import ReviewTally, ScoreSummary, calculate_score
from .view import DrillApp, QuestionView, ResultsView

__all__ = [
    "choose_quantity",
    "choose_single",
    "pick",
    "selection_hint",
    "toggle_statement",
    "AssetResolver",
    "resolve_asset",
    "QuestionBank",
    "QuestionBankError",
    "load_bank",
    "load_sample_bank",
    "DrillConfig",
    "DrillConfigError",
    "Interface",
    "load_config",
    "DrillRunResult",
    "parse_drill_command",
    "run_drill_session",
    "AnswerChange",
    "Jump",
    "Next",
    "Prev",
    "Restart",
    "SessionEngine",
    "Tick",
    "ToggleReview",
    "ToggleShowAnswers",
    "Transition",
    "apply",
    "complete_primary_pass",
    "new_session",
    "evaluate",
    "DualQuantityQuestion",
    "Mode",
    "Notice",
    "Phase",
    "Question",
    "QuestionStatus",
    "SelectionQuestion",
    "Session",
    "ReviewTally",
    "ScoreSummary",
    "calculate_score",
    "DrillApp",
    "QuestionView",
    "ResultsView",
]
