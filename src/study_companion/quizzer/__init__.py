from .records import (
    Choice,
    QuestionRecord,
    RecordError,
    derive_id,
    record_from_dict,
    validate_question,
)
from .selection import (
    ANY_TOPIC,
    SelectionMode,
    SelectionRequest,
    filter_pool,
    fisher_yates_shuffle,
    order_least_attempted,
    select,
)
from .bank import QUESTIONS_COLLECTION, QuestionBank
from .ingest import (
    ImportReport,
    QuestionImportError,
    import_question_files,
    parse_question_file,
)
from .summary import (
    QuestionResponse,
    QuizSummary,
    TopicSummary,
    aggregate_summary,
    summarize_results,
)
from .session import (
    QuizSessionResult,
    QuizSessionState,
    parse_session_command,
    run_quiz_session,
)

__all__ = [
    "Choice",
    "QuestionRecord",
    "RecordError",
    "derive_id",
    "record_from_dict",
    "validate_question",
    "ANY_TOPIC",
    "SelectionMode",
    "SelectionRequest",
    "filter_pool",
    "fisher_yates_shuffle",
    "order_least_attempted",
    "select",
    "QUESTIONS_COLLECTION",
    "QuestionBank",
    "ImportReport",
    "QuestionImportError",
    "import_question_files",
    "parse_question_file",
    "QuestionResponse",
    "QuizSummary",
    "TopicSummary",
    "aggregate_summary",
    "summarize_results",
    "QuizSessionResult",
    "QuizSessionState",
    "parse_session_command",
    "run_quiz_session",
]
