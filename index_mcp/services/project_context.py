# index_mcp/services/project_context.py

"""Project Context

Boundary to the host code-intelligence engine. Tools and resources only
talk to a project through this interface:

- readiness (index built or not)
- file resolution relative to the project root
- scoped read/write execution
- symbol lookup and project structure

LocalProjectContext is a filesystem-backed implementation used when the
server runs standalone.
"""

from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar
import asyncio
import logging
import threading

from index_mcp.core.exceptions import IndexNotReadyError, ProjectFileNotFoundError
from index_mcp.models.symbols import SymbolInfo
from index_mcp.utils.python_symbols import find_python_symbol

logger = logging.getLogger(__name__)

T = TypeVar("T")

SYMBOL_CACHE_SIZE = 512

INDEX_NOT_READY_MESSAGE = "Project index is not ready, try again once indexing has finished"


class ProjectContext(ABC):
    """Host project as seen by tools and resources"""

    name: str
    base_path: str

    @abstractmethod
    def is_ready(self) -> bool:
        """True when semantic queries can be answered"""

    def require_ready(self) -> None:
        if not self.is_ready():
            raise IndexNotReadyError(INDEX_NOT_READY_MESSAGE)

    @abstractmethod
    def resolve_file(self, path: str) -> Optional[Path]:
        """Resolve a project-relative (or absolute, in-project) path"""

    @abstractmethod
    async def read_file(self, path: str) -> str:
        """Read a file's text; raises ProjectFileNotFoundError"""

    @abstractmethod
    async def read_action(self, fn: Callable[[], T]) -> T:
        """Run fn while no write action is in progress"""

    @abstractmethod
    async def write_action(self, command_name: str, fn: Callable[[], T]) -> T:
        """Run fn exclusively as one attributable unit named command_name"""

    async def sync_external_changes(self) -> None:
        """Pick up file changes made outside the host"""

    @abstractmethod
    async def find_symbol(self, fqn: str) -> Optional[SymbolInfo]:
        """Look up a symbol by fully qualified name"""

    @abstractmethod
    async def project_structure(self) -> Dict[str, Any]:
        """Module/source-root layout of the project"""


class ReadWriteLock:
    """Many concurrent readers or one writer"""

    def __init__(self):
        self._cond = threading.Condition()
        self._readers = 0
        self._writer = False

    def acquire_read(self) -> None:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1

    def release_read(self) -> None:
        with self._cond:
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self) -> None:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True

    def release_write(self) -> None:
        with self._cond:
            self._writer = False
            self._cond.notify_all()


class LocalProjectContext(ProjectContext):
    """Project backed by a plain directory"""

    IGNORED_DIRS = {".git", ".hg", ".venv", "venv", "__pycache__", "node_modules", ".idea"}

    def __init__(self, root: str, name: Optional[str] = None, ready: bool = True):
        self.root = Path(root).resolve()
        if not self.root.is_dir():
            raise ValueError(f"Project root is not a directory: {root}")
        self.name = name or self.root.name
        self.base_path = str(self.root)
        self.ready = ready
        self._lock = ReadWriteLock()
        self._symbol_cache: "OrderedDict[str, SymbolInfo]" = OrderedDict()
        self._cache_lock = threading.Lock()

    def is_ready(self) -> bool:
        return self.ready

    def resolve_file(self, path: str) -> Optional[Path]:
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        candidate = candidate.resolve()
        if candidate != self.root and self.root not in candidate.parents:
            return None
        return candidate if candidate.exists() else None

    async def read_file(self, path: str) -> str:
        def read() -> str:
            resolved = self.resolve_file(path)
            if resolved is None or not resolved.is_file():
                raise ProjectFileNotFoundError(path)
            return resolved.read_text(encoding="utf-8")

        return await self.read_action(read)

    async def read_action(self, fn: Callable[[], T]) -> T:
        def run() -> T:
            self._lock.acquire_read()
            try:
                return fn()
            finally:
                self._lock.release_read()

        return await asyncio.to_thread(run)

    async def write_action(self, command_name: str, fn: Callable[[], T]) -> T:
        def run() -> T:
            self._lock.acquire_write()
            try:
                logger.info(f"[{self.name}] write action: {command_name}")
                result = fn()
                self._clear_symbol_cache()
                return result
            finally:
                self._lock.release_write()

        return await asyncio.to_thread(run)

    def _clear_symbol_cache(self) -> None:
        with self._cache_lock:
            self._symbol_cache.clear()

    async def sync_external_changes(self) -> None:
        self._clear_symbol_cache()

    async def find_symbol(self, fqn: str) -> Optional[SymbolInfo]:
        with self._cache_lock:
            cached = self._symbol_cache.get(fqn)
            if cached is not None:
                self._symbol_cache.move_to_end(fqn)
                return cached

        info = await self.read_action(lambda: find_python_symbol(self.root, fqn))
        # Misses are not cached; the symbol may be added before the next sync
        if info is not None:
            with self._cache_lock:
                self._symbol_cache[fqn] = info
                while len(self._symbol_cache) > SYMBOL_CACHE_SIZE:
                    self._symbol_cache.popitem(last=False)
        return info

    async def project_structure(self) -> Dict[str, Any]:
        def collect() -> Dict[str, Any]:
            source_roots: List[str] = []
            for candidate in ("src", "lib", "tests", "test"):
                if (self.root / candidate).is_dir():
                    source_roots.append(candidate)
            modules = sorted(
                child.name for child in self.root.iterdir()
                if child.is_dir()
                and child.name not in self.IGNORED_DIRS
                and not child.name.startswith(".")
            )
            return {
                "name": self.name,
                "basePath": self.base_path,
                "modules": [
                    {"name": module, "contentRoots": [module]} for module in modules
                ],
                "sourceRoots": source_roots or ["."],
            }

        return await self.read_action(collect)
