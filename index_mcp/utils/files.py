# index_mcp/utils/files.py

"""File helpers shared by the file tools and resources"""

from pathlib import Path
from typing import Optional, Tuple

MIME_TYPES = {
    "java": "text/x-java-source",
    "kt": "text/x-kotlin",
    "kts": "text/x-kotlin",
    "xml": "text/xml",
    "json": "application/json",
    "yaml": "text/yaml",
    "yml": "text/yaml",
    "md": "text/markdown",
    "html": "text/html",
    "htm": "text/html",
    "css": "text/css",
    "js": "text/javascript",
    "ts": "text/typescript",
    "py": "text/x-python",
    "rb": "text/x-ruby",
    "go": "text/x-go",
    "rs": "text/x-rust",
    "c": "text/x-c",
    "h": "text/x-c",
    "cpp": "text/x-c++src",
    "cc": "text/x-c++src",
    "cxx": "text/x-c++src",
    "hpp": "text/x-c++src",
    "sh": "text/x-shellscript",
    "bash": "text/x-shellscript",
    "sql": "text/x-sql",
    "properties": "text/x-java-properties",
    "gradle": "text/x-groovy",
}

LANGUAGES = {
    "py": "Python",
    "java": "JAVA",
    "kt": "kotlin",
    "js": "JavaScript",
    "ts": "TypeScript",
    "go": "go",
    "rs": "Rust",
    "php": "PHP",
}


def extension_of(path: Path) -> Optional[str]:
    suffix = path.suffix
    return suffix[1:].lower() if suffix else None


def get_mime_type(extension: Optional[str]) -> str:
    """Map a file extension (no dot) to a MIME type, text/plain by default"""
    if not extension:
        return "text/plain"
    return MIME_TYPES.get(extension.lower(), "text/plain")


def get_language(extension: Optional[str]) -> Optional[str]:
    if not extension:
        return None
    return LANGUAGES.get(extension.lower())


def validate_line_range(
    start_line: Optional[int],
    end_line: Optional[int]
) -> Tuple[Optional[int], Optional[int], Optional[str]]:
    """
    Normalize an optional 1-based inclusive line range

    A lone startLine selects that single line. endLine without startLine is
    rejected.

    Returns:
        (start, end, error message or None)
    """
    if start_line is None and end_line is not None:
        return None, None, "startLine is required when endLine is provided"
    if start_line is not None and end_line is None:
        end_line = start_line
    if start_line is not None and end_line is not None:
        if start_line < 1 or end_line < 1:
            return None, None, "startLine and endLine must be >= 1"
        if end_line < start_line:
            return None, None, "endLine must be >= startLine"
    return start_line, end_line, None


def slice_lines(text: str, start_line: int, end_line: int) -> str:
    """Lines start..end (1-based, inclusive), clamped to the text"""
    lines = text.split("\n")
    return "\n".join(lines[start_line - 1:end_line])
