# index_mcp/utils/python_symbols.py

"""Python Symbol Lookup

Resolves fully qualified names such as "pkg.module.Class#method" to a
SymbolInfo by parsing source files with ast. Each ast node type is mapped
onto SymbolKind explicitly.
"""

import ast
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from index_mcp.models.symbols import MemberSummary, SymbolInfo, SymbolKind

ENUM_BASES = {"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"}
INTERFACE_BASES = {"Protocol", "ABC"}
SOURCE_DIRS = ("", "src")


def split_fqn(fqn: str) -> List[str]:
    """Split "a.b.C#m" or "a.b.C.m" into name parts"""
    return [part for part in fqn.replace("#", ".").split(".") if part]


def find_module(root: Path, parts: List[str]) -> Optional[Tuple[Path, List[str], List[str]]]:
    """
    Find the longest module prefix of parts that exists under root

    Returns:
        (source file, module parts, remaining member parts) or None
    """
    for prefix_len in range(len(parts), 0, -1):
        module_parts = parts[:prefix_len]
        for source_dir in SOURCE_DIRS:
            base = root / source_dir if source_dir else root
            candidates = [
                base.joinpath(*module_parts).with_suffix(".py"),
                base.joinpath(*module_parts, "__init__.py"),
            ]
            for candidate in candidates:
                if candidate.is_file():
                    return candidate, module_parts, parts[prefix_len:]
    return None


def _base_names(node: ast.ClassDef) -> Iterable[str]:
    for base in node.bases:
        if isinstance(base, ast.Name):
            yield base.id
        elif isinstance(base, ast.Attribute):
            yield base.attr
        elif isinstance(base, ast.Subscript) and isinstance(base.value, ast.Name):
            yield base.value.id


def class_kind(node: ast.ClassDef) -> SymbolKind:
    bases = set(_base_names(node))
    if bases & ENUM_BASES:
        return SymbolKind.ENUM
    if bases & INTERFACE_BASES:
        return SymbolKind.INTERFACE
    return SymbolKind.CLASS


def function_kind(node: ast.AST, in_class: bool) -> SymbolKind:
    if not in_class:
        return SymbolKind.FUNCTION
    if getattr(node, "name", "") == "__init__":
        return SymbolKind.CONSTRUCTOR
    return SymbolKind.METHOD


def _assigned_names(node: ast.AST) -> List[str]:
    if isinstance(node, ast.Assign):
        targets = node.targets
    elif isinstance(node, ast.AnnAssign):
        targets = [node.target]
    else:
        return []
    return [t.id for t in targets if isinstance(t, ast.Name)]


def _find_member(body: List[ast.stmt], name: str) -> Optional[ast.AST]:
    for node in body:
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            if node.name == name:
                return node
        elif name in _assigned_names(node):
            return node
    return None


def _signature(node: ast.AST) -> str:
    args = ast.unparse(node.args)
    returns = f" -> {ast.unparse(node.returns)}" if node.returns is not None else ""
    prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
    return f"{prefix} {node.name}({args}){returns}"


def _modifiers(node: ast.AST) -> List[str]:
    modifiers = []
    for decorator in getattr(node, "decorator_list", []):
        if isinstance(decorator, ast.Name):
            modifiers.append(decorator.id)
        elif isinstance(decorator, ast.Attribute):
            modifiers.append(decorator.attr)
    if isinstance(node, ast.AsyncFunctionDef):
        modifiers.append("async")
    return modifiers


def _members(node: ast.ClassDef) -> MemberSummary:
    summary = MemberSummary()
    for child in node.body:
        if isinstance(child, ast.ClassDef):
            summary.innerClasses += 1
        elif isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
            if child.name == "__init__":
                summary.constructors += 1
            else:
                summary.methods += 1
        else:
            summary.fields += len(_assigned_names(child))
    return summary


def find_python_symbol(root: Path, fqn: str) -> Optional[SymbolInfo]:
    """
    Look up a Python symbol under a project root

    Args:
        root: Project root directory
        fqn: Dotted name; "#" may separate the member ("pkg.mod.Class#run")

    Returns:
        SymbolInfo or None if the module or member does not exist
    """
    parts = split_fqn(fqn)
    if not parts:
        return None

    found = find_module(root, parts)
    if found is None:
        return None
    path, module_parts, member_parts = found

    tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
    relative = path.relative_to(root).as_posix()
    qualified = ".".join(module_parts)

    if not member_parts:
        return SymbolInfo(
            name=module_parts[-1],
            qualifiedName=qualified,
            kind=SymbolKind.MODULE,
            file=relative,
            line=1,
            documentation=ast.get_docstring(tree)
        )

    body = tree.body
    containing_class: Optional[str] = None
    node: Optional[ast.AST] = None

    for index, name in enumerate(member_parts):
        node = _find_member(body, name)
        if node is None:
            return None
        if index < len(member_parts) - 1:
            if not isinstance(node, ast.ClassDef):
                return None
            containing_class = f"{qualified}.{node.name}"
            qualified = containing_class
            body = node.body

    name = member_parts[-1]
    info = SymbolInfo(
        name=name,
        qualifiedName=f"{qualified}.{name}",
        kind=SymbolKind.VARIABLE,
        file=relative,
        line=getattr(node, "lineno", None),
        containingClass=containing_class,
        modifiers=_modifiers(node)
    )

    if isinstance(node, ast.ClassDef):
        info.kind = class_kind(node)
        info.documentation = ast.get_docstring(node)
        info.members = _members(node)
    elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        info.kind = function_kind(node, in_class=containing_class is not None)
        info.signature = _signature(node)
        info.documentation = ast.get_docstring(node)
    elif containing_class is not None:
        info.kind = SymbolKind.FIELD

    return info
