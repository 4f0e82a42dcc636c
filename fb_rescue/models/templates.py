"""Command template models."""

from pydantic import BaseModel, Field

DEFAULT_TEST = '{ISQL} -user {USER} -password {PASS} "{DB_PATH}" -q -nod'
DEFAULT_CHECK = '{GFIX} -user {USER} -password {PASS} -v -full "{DB_PATH}"'
DEFAULT_MEND = '{GFIX} -user {USER} -password {PASS} -mend "{DB_PATH}"'
DEFAULT_BACKUP = (
    '{GBAK} -backup -ignore -garbage -limbo -v -y "{LOG_BKP}" '
    '"{OLD_DB}" "{FBK}" -user {USER} -password {PASS}'
)
DEFAULT_RESTORE = (
    '{GBAK} -create -z -v -y "{LOG_RTR}" "{FBK}" "{NEW_DB}" '
    "-user {USER} -password {PASS}"
)

DEFAULT_ERROR_HEURISTICS = [
    "error",
    "corrupt",
    "bad",
    "wrong page type",
    "index root page",
    "I/O error",
    "checksum",
    "inconsistency",
    "unsuccessful",
    r"/SQLSTATE\s*=/",
]

# Last lines gbak prints on a clean run.
DEFAULT_SUCCESS_MARKERS = [
    "closing file, committing, and finishing",
    "finishing, closing, and going home",
]

PLACEHOLDERS = [
    "ISQL", "GFIX", "GBAK", "USER", "PASS", "DB_PATH",
    "OLD_DB", "NEW_DB", "FBK", "LOG_BKP", "LOG_RTR",
]

TEMPLATE_KEYS = ("test", "check", "mend", "backup", "restore")


class TemplateSet(BaseModel):
    """Persisted command templates plus the output heuristics."""

    model_config = {"populate_by_name": True}

    use_custom: bool = Field(default=False, alias="useCustom")
    test: str = DEFAULT_TEST
    check: str = DEFAULT_CHECK
    mend: str = DEFAULT_MEND
    backup: str = DEFAULT_BACKUP
    restore: str = DEFAULT_RESTORE
    error_heuristics: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ERROR_HEURISTICS),
        alias="errorHeuristics",
    )
    success_markers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUCCESS_MARKERS),
        alias="successMarkers",
    )

    def template_for(self, key: str) -> str:
        if key not in TEMPLATE_KEYS:
            raise KeyError(key)
        return getattr(self, key)
