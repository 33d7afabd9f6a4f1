"""Worker running simple line-based lint rules over submitted source."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from agentrouter.agents.base import BaseAgent
from agentrouter.core.errors import AgentError, AgentErrorType
from agentrouter.core.models import AgentConfig, LintRequestPayload, Message

OFF, WARNING, ERROR = 0, 1, 2

TRAILING_SPACES = "no-trailing-spaces"
NO_TABS = "no-tabs"
MAX_LEN = "max-len"

DEFAULT_RULES: Dict[str, int] = {
    TRAILING_SPACES: WARNING,
    NO_TABS: WARNING,
    MAX_LEN: ERROR,
}


@dataclass(slots=True)
class LintConfig(AgentConfig):
    auto_fix: bool = False
    max_line_length: int = 120
    tab_width: int = 4
    rules: Optional[Dict[str, int]] = None


@dataclass(slots=True)
class LintIssue:
    rule_id: str
    severity: int
    message: str
    line: int
    column: int


@dataclass(slots=True)
class LintResult:
    file_path: str
    error_count: int = 0
    warning_count: int = 0
    messages: List[LintIssue] = field(default_factory=list)
    output: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class LintAgent(BaseAgent):
    """Handle LINT_REQUEST messages.

    Whitespace issues are fixable: when fixing is requested the source is
    rewritten first and only what remains is reported, with the rewritten text
    in ``output``. Any remaining error-severity issue fails the message.
    """

    config: LintConfig

    def __init__(self, config: Optional[LintConfig] = None) -> None:
        super().__init__(config or LintConfig(name="lint"))
        self.rules = {**DEFAULT_RULES, **(self.config.rules or {})}

    async def handle_message(self, message: Message) -> LintResult:
        payload = message.payload
        if not isinstance(payload, LintRequestPayload):
            raise AgentError(
                AgentErrorType.VALIDATION,
                f"Unsupported message type: {message.type}",
                {"message_id": message.id},
            )

        source = payload.code
        output = None
        if payload.fix or self.config.auto_fix:
            output = self.fix(source)
            source = output

        result = LintResult(file_path=payload.file_path, output=output)
        for issue in self.lint(source):
            result.messages.append(issue)
            if issue.severity >= ERROR:
                result.error_count += 1
            else:
                result.warning_count += 1

        if result.error_count:
            raise AgentError(
                AgentErrorType.VALIDATION,
                "Lint errors detected",
                {"results": result.to_dict()},
            )
        return result

    def lint(self, source: str) -> List[LintIssue]:
        issues: List[LintIssue] = []
        for number, line in enumerate(source.splitlines(), start=1):
            stripped = line.rstrip()
            if self.rules.get(TRAILING_SPACES, OFF) and stripped != line:
                issues.append(
                    LintIssue(TRAILING_SPACES, self.rules[TRAILING_SPACES], "Trailing spaces not allowed", number, len(stripped) + 1)
                )
            if self.rules.get(NO_TABS, OFF) and "\t" in line:
                issues.append(
                    LintIssue(NO_TABS, self.rules[NO_TABS], "Unexpected tab character", number, line.index("\t") + 1)
                )
            if self.rules.get(MAX_LEN, OFF) and len(line) > self.config.max_line_length:
                issues.append(
                    LintIssue(
                        MAX_LEN,
                        self.rules[MAX_LEN],
                        f"This line has a length of {len(line)}. Maximum allowed is {self.config.max_line_length}",
                        number,
                        self.config.max_line_length + 1,
                    )
                )
        return issues

    def fix(self, source: str) -> str:
        """Strip trailing whitespace and expand tabs."""
        lines = [line.rstrip().expandtabs(self.config.tab_width) for line in source.splitlines()]
        fixed = "\n".join(lines)
        if source.endswith("\n"):
            fixed += "\n"
        return fixed
