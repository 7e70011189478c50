"""
Pipeline policies (cross-cutting behavioral controls).

Policies are fixed when a pipeline is built and apply to every invocation of it.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ContractPolicy(Enum):
    """How the engine treats filters that break the call-once contract."""

    ENFORCE = "enforce"
    TRUST = "trust"


@dataclass(frozen=True, slots=True)
class Policies:
    """Policy bundle applied to all invocations of a pipeline."""

    contract: ContractPolicy = ContractPolicy.ENFORCE
