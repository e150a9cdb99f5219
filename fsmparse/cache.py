"""
Compiled Template Cache

In-memory cache of compiled templates keyed by template id. No TTL and no
eviction: callers that re-register a template under an existing id must
call ``invalidate``.
"""

import threading
from typing import Callable, Dict, List, Optional

from .compiler import CompiledTemplate
from .logs import get_logger

logger = get_logger(__name__)


class CompiledTemplateCache:
    """Thread-safe map of template id -> CompiledTemplate."""

    def __init__(self):
        self._entries: Dict[str, CompiledTemplate] = {}
        self._lock = threading.Lock()

    def get(self, template_id: str) -> Optional[CompiledTemplate]:
        with self._lock:
            return self._entries.get(template_id)

    def put(self, compiled: CompiledTemplate) -> CompiledTemplate:
        with self._lock:
            self._entries[compiled.id] = compiled
        return compiled

    def get_or_compile(self, template_id: str, build: Callable[[], CompiledTemplate]) -> CompiledTemplate:
        """
        Return the cached entry, or build and store a new one.

        ``build`` runs outside the lock, so two threads missing on the same id
        may both compile; the last one stored wins. A failing build stores
        nothing.
        """
        compiled = self.get(template_id)
        if compiled is not None:
            logger.debug("compiled_cache_hit", template_id=template_id)
            return compiled

        logger.debug("compiled_cache_miss", template_id=template_id)
        return self.put(build())

    def invalidate(self, template_id: str) -> bool:
        with self._lock:
            return self._entries.pop(template_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def __contains__(self, template_id: str) -> bool:
        with self._lock:
            return template_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
