"""Code-review tools: security scan, quality check, improvement suggestions.

All three are substring/regex heuristics over the submitted code. They never
execute or parse it.
"""

from __future__ import annotations

import re
from typing import Any

from agent_studio.tool_schema import ParamSpec, ParamType, ToolSpec

COMMON_VULNERABILITIES: dict[str, list[str]] = {
    "javascript": ["XSS vulnerabilities", "Prototype pollution", "Unsafe eval usage"],
    "python": ["SQL injection", "Command injection", "Unsafe deserialization"],
    "java": ["SQL injection", "Path traversal", "Unsafe reflection"],
    "php": ["SQL injection", "XSS", "File inclusion vulnerabilities"],
}

SECURITY_RECOMMENDATIONS: tuple[str, ...] = (
    "Use parameterized queries for database operations",
    "Validate and sanitize all user inputs",
    "Implement proper error handling",
)

QUALITY_SUGGESTIONS: tuple[str, ...] = (
    "Add comprehensive comments and documentation",
    "Follow consistent naming conventions",
    "Break large functions into smaller, focused ones",
    "Add error handling and input validation",
)

MAX_LINE_LENGTH = 120
MAX_FUNCTIONS_PER_FILE = 10

_FUNCTION_RE = re.compile(r"function|def |public |private ")
_COMMENT_MARKERS = ("//", "/*", "#")

IMPROVEMENT_CATEGORIES: dict[str, tuple[str, list[str]]] = {
    "performance": (
        "Performance",
        [
            "Use efficient data structures (Map/Set instead of arrays for lookups)",
            "Implement caching for expensive operations",
            "Avoid nested loops where possible",
            "Use lazy loading for large datasets",
        ],
    ),
    "readability": (
        "Readability",
        [
            "Use descriptive variable and function names",
            "Extract magic numbers into named constants",
            "Add JSDoc/docstring comments",
            "Use consistent indentation and formatting",
        ],
    ),
    "maintainability": (
        "Maintainability",
        [
            "Follow SOLID principles",
            "Implement proper error handling",
            "Add unit tests for critical functions",
            "Use dependency injection for better testability",
        ],
    ),
}


async def analyze_code_security(args: dict[str, Any]) -> dict[str, Any]:
    code: str = args["code"]
    issues: list[dict[str, str]] = []

    if "eval(" in code or "exec(" in code:
        issues.append({
            "type": "Code Injection",
            "severity": "High",
            "line": "Multiple locations",
            "description": "Avoid using eval() or exec() with user input",
        })

    if "SELECT * FROM" in code and "+" in code:
        issues.append({
            "type": "SQL Injection",
            "severity": "Critical",
            "line": "Database query",
            "description": "Use parameterized queries instead of string concatenation",
        })

    return {
        "vulnerabilities": issues,
        "riskLevel": "Medium" if issues else "Low",
        "commonRisks": list(COMMON_VULNERABILITIES.get(args["language"].strip().lower(), [])),
        "recommendations": list(SECURITY_RECOMMENDATIONS),
    }


async def check_code_quality(args: dict[str, Any]) -> dict[str, Any]:
    code: str = args["code"]
    issues: list[dict[str, str]] = []
    score = 100

    if any(len(line) > MAX_LINE_LENGTH for line in code.split("\n")):
        issues.append({
            "type": "Line Length",
            "severity": "Minor",
            "description": f"Lines should be under {MAX_LINE_LENGTH} characters",
        })
        score -= 5

    if not any(marker in code for marker in _COMMENT_MARKERS):
        issues.append({
            "type": "Documentation",
            "severity": "Medium",
            "description": "Add comments to explain complex logic",
        })
        score -= 15

    if len(_FUNCTION_RE.findall(code)) > MAX_FUNCTIONS_PER_FILE:
        issues.append({
            "type": "Complexity",
            "severity": "Medium",
            "description": "Consider breaking large files into smaller modules",
        })
        score -= 10

    return {
        "qualityScore": max(score, 0),
        "issues": issues,
        "suggestions": list(QUALITY_SUGGESTIONS),
    }


async def suggest_improvements(args: dict[str, Any]) -> dict[str, Any]:
    focus: str = args.get("focus") or "all"
    improvements = [
        {"category": label, "suggestions": list(suggestions)}
        for key, (label, suggestions) in IMPROVEMENT_CATEGORIES.items()
        if focus in (key, "all")
    ]
    return {
        "improvements": improvements,
        "refactoringPriority": "Medium",
        "estimatedEffort": "2-4 hours",
    }


_CODE = ParamSpec("code", ParamType.STRING, "Code to analyze")
_LANGUAGE = ParamSpec("language", ParamType.STRING, "Programming language")

SPECS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="analyze_code_security",
        description="Analyze code for security vulnerabilities",
        parameters=(_CODE, _LANGUAGE),
        executor=analyze_code_security,
    ),
    ToolSpec(
        name="check_code_quality",
        description="Analyze code quality and best practices",
        parameters=(_CODE, _LANGUAGE),
        executor=check_code_quality,
    ),
    ToolSpec(
        name="suggest_improvements",
        description="Suggest specific code improvements and refactoring",
        parameters=(
            _CODE,
            _LANGUAGE,
            ParamSpec(
                "focus",
                ParamType.STRING,
                "Area to focus the suggestions on",
                required=False,
                enum=("performance", "readability", "maintainability", "all"),
                default="all",
            ),
        ),
        executor=suggest_improvements,
    ),
)
