from __future__ import annotations

import threading
from collections import OrderedDict
from typing import Hashable, Tuple

from ..config import DEFAULT_FORMULA_CACHE_SIZE, DEFAULT_FORMULA_MAX_DEPTH, DEFAULT_FORMULA_MAX_LENGTH
from .ast_nodes import Node
from .parser import parse_formula


class FormulaCache:
    """LRU cache of parsed formulas keyed by ``(scope, formula)``.

    Cached ASTs are immutable, so a single cache can serve concurrent runs.
    Parse failures are not cached.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_FORMULA_CACHE_SIZE,
        *,
        max_depth: int = DEFAULT_FORMULA_MAX_DEPTH,
        max_length: int = DEFAULT_FORMULA_MAX_LENGTH,
    ) -> None:
        self.max_size = max(1, max_size)
        self.max_depth = max_depth
        self.max_length = max_length
        self._entries: "OrderedDict[Tuple[Hashable, str], Node]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get_or_parse(self, scope: Hashable, formula: str) -> Node:
        key = (scope, formula)
        with self._lock:
            node = self._entries.get(key)
            if node is not None:
                self._entries.move_to_end(key)
                self.hits += 1
                return node
            self.misses += 1
        node = parse_formula(formula, max_depth=self.max_depth, max_length=self.max_length)
        with self._lock:
            self._entries[key] = node
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_size:
                self._entries.popitem(last=False)
        return node

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
