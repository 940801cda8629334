"""Fuzz testing suite for asteroid-ls."""

from .fuzz import Fuzzer, FuzzRunner, random_text, run_suite

__all__ = ["Fuzzer", "FuzzRunner", "random_text", "run_suite"]
