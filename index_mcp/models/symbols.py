# index_mcp/models/symbols.py

"""Symbol Models

Host adapters map their native symbol representation onto this closed set
of kinds explicitly.
"""

from typing import List, Optional
from enum import Enum
from pydantic import BaseModel


class SymbolKind(str, Enum):
    MODULE = "MODULE"
    CLASS = "CLASS"
    INTERFACE = "INTERFACE"
    ENUM = "ENUM"
    FUNCTION = "FUNCTION"
    METHOD = "METHOD"
    CONSTRUCTOR = "CONSTRUCTOR"
    FIELD = "FIELD"
    VARIABLE = "VARIABLE"


class MemberSummary(BaseModel):
    fields: int = 0
    methods: int = 0
    innerClasses: int = 0
    constructors: int = 0


class SymbolInfo(BaseModel):
    name: str
    qualifiedName: str
    kind: SymbolKind
    file: Optional[str] = None
    line: Optional[int] = None
    containingClass: Optional[str] = None
    signature: Optional[str] = None
    documentation: Optional[str] = None
    modifiers: List[str] = []
    members: Optional[MemberSummary] = None
