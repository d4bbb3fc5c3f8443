# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Tiny helper for building parameterised WHERE clauses."""

from typing import Any

from ..models.base import PageRequest


class WhereBuilder:
    """Collects conditions and numbers their ``$n`` placeholders.

    Clauses use ``{}``/``{0}`` format fields for their values, e.g.
    ``add("(name ILIKE {0} OR email ILIKE {0})", pattern)``.
    """

    def __init__(self) -> None:
        self.conditions: list[str] = []
        self.params: list[Any] = []

    def add(self, clause: str, *values: Any) -> "WhereBuilder":
        placeholders = []
        for value in values:
            self.params.append(value)
            placeholders.append(f"${len(self.params)}")
        self.conditions.append(clause.format(*placeholders))
        return self

    def add_if(self, value: Any, clause: str) -> "WhereBuilder":
        """Add ``clause`` only when ``value`` is not None."""
        if value is not None:
            self.add(clause, value)
        return self

    @property
    def sql(self) -> str:
        return " AND ".join(self.conditions) if self.conditions else "TRUE"

    def paged(self, page: PageRequest) -> tuple[str, list[Any]]:
        """LIMIT/OFFSET clause and the full parameter list including them."""
        n = len(self.params)
        return f"LIMIT ${n + 1} OFFSET ${n + 2}", [*self.params, page.limit, page.offset]
