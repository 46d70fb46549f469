"""
process_flag.py — the "preprocessing happened" signal.

The preprocessor marks the process environment after a successful
conversion; the data provider reads it when building its singleton.
Worker processes only see the flag if whoever spawns them copies
ProcessFlag.as_env() into the child environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass

from fixtureflow_shared.constants import ENV_PREPROCESSED, ENV_PREPROCESSED_SOURCE


@dataclass(frozen=True)
class ProcessFlag:
    preprocessed: bool = False
    original_source: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProcessFlag":
        env = os.environ if environ is None else environ
        raw = env.get(ENV_PREPROCESSED, "")
        return cls(
            preprocessed=raw.strip().lower() == "true",
            original_source=env.get(ENV_PREPROCESSED_SOURCE) or None,
        )

    @classmethod
    def mark(
        cls,
        original_source: str,
        environ: MutableMapping[str, str] | None = None,
    ) -> "ProcessFlag":
        """Set both variables and return the resulting flag."""
        flag = cls(preprocessed=True, original_source=original_source)
        env = os.environ if environ is None else environ
        env.update(flag.as_env())
        return flag

    def as_env(self) -> dict[str, str]:
        if not self.preprocessed:
            return {}
        return {
            ENV_PREPROCESSED: "true",
            ENV_PREPROCESSED_SOURCE: self.original_source or "",
        }
