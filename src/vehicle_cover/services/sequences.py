# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.
"""Human-readable sequential identifiers (POL-00001, CLM-00042, ...)."""

import uuid
from enum import Enum
from typing import Any


class Sequence(str, Enum):
    """Counter name mapped to its code prefix."""

    POLICY = "POL"
    PREMIUM = "PREM"
    RENEWAL = "REN"
    CLAIM = "CLM"
    CUSTOMER = "CUST"


_NEXT_VALUE_SQL = """
    INSERT INTO sequence_counters (name, value)
    VALUES ($1, 1)
    ON CONFLICT (name) DO UPDATE SET value = sequence_counters.value + 1
    RETURNING value
"""


def format_code(sequence: Sequence, value: int) -> str:
    return f"{sequence.value}-{value:05d}"


async def next_code(conn: Any, sequence: Sequence) -> str:
    """Atomically take the next value of ``sequence``.

    ``conn`` is a Database or a connection inside an open transaction; in the
    latter case a rolled back insert also gives the number back.
    """
    value = await conn.fetchval(_NEXT_VALUE_SQL, sequence.name.lower())
    return format_code(sequence, int(value))


def generate_transaction_id() -> str:
    return f"TXN-{uuid.uuid4().hex[:12].upper()}"
