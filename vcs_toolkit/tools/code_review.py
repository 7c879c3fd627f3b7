"""Code review tool.

Heuristic checks over source text and pull request diffs, review
submission, and applying line suggestions as commits. Always runs against
the ``github`` provider.
"""

import re
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field, model_validator

from vcs_toolkit.enums import Capability
from vcs_toolkit.exceptions import VcsToolkitError
from vcs_toolkit.models.domain import ToolResult
from vcs_toolkit.providers.base import VcsOperations, supports
from vcs_toolkit.tools.base import RepoInput, ToolContext, ToolInput, VcsTool
from vcs_toolkit.tools.files import decode_content

log = structlog.get_logger(__name__)

MAX_FILE_LINES = 300
LARGE_FILE_LINES = 500
MAX_LINE_LENGTH = 120
LARGE_CHANGE_LINES = 500

LANGUAGES = {
    ".c": "c",
    ".cpp": "cpp",
    ".css": "css",
    ".go": "go",
    ".html": "html",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".kt": "kotlin",
    ".md": "markdown",
    ".php": "php",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".scala": "scala",
    ".scss": "scss",
    ".swift": "swift",
    ".ts": "typescript",
    ".xml": "xml",
    ".yaml": "yaml",
    ".yml": "yaml",
}

COMMENT_PREFIXES = ("#", "//", "/*", "*", "--")

DEBUG_OUTPUT = {
    "javascript": re.compile(r"\bconsole\.log\("),
    "typescript": re.compile(r"\bconsole\.log\("),
    "python": re.compile(r"^\s*print\("),
    "go": re.compile(r"\bfmt\.Println\("),
    "java": re.compile(r"\bSystem\.out\.println\("),
}

HUNK_HEADER = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@")


def detect_language(path: str) -> str:
    """Language name from the file extension, ``unknown`` when not recognised."""
    return LANGUAGES.get(PurePosixPath(path).suffix.lower(), "unknown")


def check_line(text: str, language: str, rules: Iterable[str] = ()) -> list[dict[str, str]]:
    """Findings for a single source line.

    ``rules`` switches checks off: ``allow-debug-output`` and ``allow-long-lines``.
    """
    rules = set(rules)
    findings = []
    pattern = DEBUG_OUTPUT.get(language)
    if pattern is not None and "allow-debug-output" not in rules and pattern.search(text):
        findings.append(
            {
                "type": "code-quality",
                "severity": "low",
                "message": "Debug output left in code; remove it or use logging",
            }
        )
    if "allow-long-lines" not in rules and len(text) > MAX_LINE_LENGTH:
        findings.append(
            {
                "type": "style",
                "severity": "low",
                "message": f"Line longer than {MAX_LINE_LENGTH} characters",
            }
        )
    return findings


def quality_score(lines: int, issues: int, comment_ratio: float = 0.0) -> int:
    """Score from 0 to 100: 10 points off per issue, 20 off for very large files."""
    score = 100 - issues * 10
    if lines > LARGE_FILE_LINES:
        score -= 20
    if comment_ratio > 0.2:
        score += 10
    return max(0, min(100, score))


def analyze_source(source: str, language: str, file_name: str, rules: Iterable[str] = ()) -> dict[str, Any]:
    """Run the line checks and file-level checks over a whole file."""
    rules = list(rules)
    lines = source.split("\n")
    issues: list[dict[str, Any]] = []
    suggestions: list[str] = []

    if len(lines) > MAX_FILE_LINES:
        issues.append(
            {
                "type": "complexity",
                "severity": "medium",
                "message": f"File has {len(lines)} lines; consider splitting it into smaller modules",
                "line": 1,
            }
        )

    comment_lines = 0
    for number, text in enumerate(lines, start=1):
        if text.strip().startswith(COMMENT_PREFIXES):
            comment_lines += 1
        issues.extend({**finding, "line": number} for finding in check_line(text, language, rules))

    comment_ratio = round(comment_lines / len(lines), 2)
    if comment_ratio < 0.1:
        suggestions.append("Consider adding comments to explain non-obvious code")

    return {
        "file": file_name,
        "language": language,
        "lines_count": len(lines),
        "comment_lines": comment_lines,
        "comment_ratio": comment_ratio,
        "issues": issues,
        "suggestions": suggestions,
        "quality_score": quality_score(len(lines), len(issues), comment_ratio),
    }


def added_lines(patch: str) -> list[tuple[int, str]]:
    """``(line number in the new file, text)`` for every line a unified diff adds."""
    result = []
    line_number = 0
    for text in patch.splitlines():
        header = HUNK_HEADER.match(text)
        if header:
            line_number = int(header.group(1))
        elif text.startswith("+"):
            result.append((line_number, text[1:]))
            line_number += 1
        elif not text.startswith("-") and not text.startswith("\\"):
            line_number += 1
    return result


class AnalyzeInput(ToolInput):
    action: Literal["analyze"]
    code: str | None = Field(default=None, description="Source text to analyze directly")
    owner: str | None = Field(default=None, description="Repository owner; defaults to the authenticated user")
    repo: str | None = Field(default=None, description="Repository to read the file from")
    path: str | None = Field(default=None, description="File to analyze when no code is given")
    ref: str | None = Field(default=None, description="Branch, tag or SHA to read the file from")
    language: str | None = Field(default=None, description="Language name; detected from the path when omitted")
    rules: list[str] = Field(default_factory=list, description="Checks to switch off, e.g. allow-debug-output")

    @model_validator(mode="after")
    def require_source(self) -> "AnalyzeInput":
        if self.code is None and not (self.repo and self.path):
            raise ValueError("either code or repo and path are required")
        return self


class ReviewPullInput(RepoInput):
    action: Literal["review-pr"]
    pull_number: int = Field(..., ge=1)
    event: Literal["COMMENT", "APPROVE", "REQUEST_CHANGES"] | None = Field(
        default=None, description="Submit the review with this event; the review is only reported when omitted"
    )
    body: str | None = Field(default=None, description="Review summary; generated when omitted")
    rules: list[str] = Field(default_factory=list, description="Checks to switch off, e.g. allow-long-lines")


class Suggestion(BaseModel):
    file_path: str = Field(..., min_length=1)
    line_number: int = Field(..., ge=1)
    suggestion: str = Field(..., description="Replacement text for the line")
    severity: Literal["low", "medium", "high", "critical"] = "low"


class ApplySuggestionsInput(RepoInput):
    action: Literal["apply-suggestions"]
    suggestions: list[Suggestion] = Field(..., min_length=1)
    branch: str | None = Field(default=None, description="Branch to commit to (default branch when omitted)")
    message: str = Field(default="Apply code review suggestion", min_length=1, description="Commit message")


class CodeReviewTool(VcsTool):
    name = "code_review"
    description = (
        "Automated code review on GitHub: analyze source text or a repository file, review a pull request "
        "diff (optionally submitting the review), and apply line suggestions as commits."
    )
    input_models = (AnalyzeInput, ReviewPullInput, ApplySuggestionsInput)
    fixed_provider = "github"

    async def _analyze(self, params: AnalyzeInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if params.code is not None:
            source = params.code
            file_name = params.path or "snippet"
        else:
            owner = await self.owner(params, provider)
            payload = await provider.get_file(owner, params.repo, params.path, ref=params.ref)
            source = decode_content(payload)
            if source is None:
                raise ValueError(f"{params.path} has no text content to analyze")
            file_name = params.path

        language = params.language or detect_language(file_name)
        analysis = analyze_source(source, language, file_name, params.rules)
        return self.success(
            "analyze",
            f"Analysis of {file_name} complete: {len(analysis['issues'])} issue(s) found",
            analysis,
        )

    async def _review_pr(self, params: ReviewPullInput, provider: VcsOperations, context: ToolContext) -> ToolResult:
        if not supports(provider, Capability.LIST_PULL_REQUEST_FILES):
            return self.unsupported("review-pr", Capability.LIST_PULL_REQUEST_FILES)
        if params.event and not supports(provider, Capability.CREATE_PULL_REQUEST_REVIEW):
            return self.unsupported("review-pr", Capability.CREATE_PULL_REQUEST_REVIEW)

        owner = await self.owner(params, provider)
        pull = await provider.get_pull_request(owner, params.repo, params.pull_number)
        changed = await provider.list_pull_request_files(owner, params.repo, params.pull_number)

        files = []
        comments = []
        for entry in changed:
            filename = entry.get("filename", "")
            language = detect_language(filename)
            issues = [
                {**finding, "line": number}
                for number, text in added_lines(entry.get("patch") or "")
                for finding in check_line(text, language, params.rules)
            ]
            comments.extend(
                {"path": filename, "line": issue["line"], "side": "RIGHT", "body": issue["message"]} for issue in issues
            )
            files.append(
                {
                    "filename": filename,
                    "status": entry.get("status"),
                    "additions": entry.get("additions", 0),
                    "deletions": entry.get("deletions", 0),
                    "language": language,
                    "issues": issues,
                }
            )

        additions = sum(item["additions"] for item in files)
        deletions = sum(item["deletions"] for item in files)
        suggestions = []
        if additions + deletions > LARGE_CHANGE_LINES:
            suggestions.append("Large change; consider splitting the pull request")
        if not pull.get("body"):
            suggestions.append("Add a description explaining the change")
        if files and not any("test" in item["filename"].lower() for item in files):
            suggestions.append("No test files changed; consider adding tests")

        score = quality_score(additions, len(comments))
        review = {
            "pull_number": params.pull_number,
            "title": pull.get("title"),
            "state": pull.get("state"),
            "changes": {"additions": additions, "deletions": deletions, "files_changed": len(files)},
            "files": files,
            "issues_found": len(comments),
            "quality_score": score,
            "suggestions": suggestions,
        }

        message = f"Pull request #{params.pull_number} reviewed: {len(comments)} issue(s) in {len(files)} file(s)"
        if params.event:
            body = params.body or (
                f"Automated review: {len(comments)} issue(s) in {len(files)} file(s), quality score {score}/100."
            )
            review["review"] = await provider.create_pull_request_review(
                owner, params.repo, params.pull_number, body, event=params.event, comments=comments
            )
            message = f"{message}; review submitted ({params.event})"

        return self.success("review-pr", message, review)

    async def _apply_suggestions(
        self, params: ApplySuggestionsInput, provider: VcsOperations, context: ToolContext
    ) -> ToolResult:
        owner = await self.owner(params, provider)
        applied: list[dict[str, Any]] = []
        failed: list[dict[str, Any]] = []

        for item in params.suggestions:
            try:
                applied.append(await self._apply_one(owner, params, item, provider))
            except (VcsToolkitError, ValueError) as e:
                log.warning("suggestion_failed", file_path=item.file_path, line=item.line_number, error=str(e))
                failed.append({"file_path": item.file_path, "line_number": item.line_number, "error": str(e)})

        return self.success(
            "apply-suggestions",
            f"Applied {len(applied)} suggestion(s), {len(failed)} failed",
            {"applied": applied, "failed": failed, "total": len(params.suggestions)},
        )

    async def _apply_one(
        self, owner: str, params: ApplySuggestionsInput, item: Suggestion, provider: VcsOperations
    ) -> dict[str, Any]:
        payload = await provider.get_file(owner, params.repo, item.file_path, ref=params.branch)
        source = decode_content(payload)
        if source is None:
            raise ValueError(f"{item.file_path} is not a text file")

        if not payload.get("sha"):
            raise ValueError(f"Could not determine the current SHA of {item.file_path}")

        lines = source.split("\n")
        if item.line_number > len(lines):
            raise ValueError(f"{item.file_path} has only {len(lines)} lines")

        result = {"file_path": item.file_path, "line_number": item.line_number, "severity": item.severity}
        if lines[item.line_number - 1] == item.suggestion:
            return {**result, "status": "unchanged"}

        lines[item.line_number - 1] = item.suggestion
        commit = await provider.update_file(
            owner,
            params.repo,
            item.file_path,
            "\n".join(lines),
            f"{params.message} ({item.file_path}:{item.line_number})",
            payload["sha"],
            branch=params.branch,
        )
        return {**result, "status": "applied", "commit": commit.get("commit")}
