"""External coding-standard tools."""

from .coding_standard import CodingStandardLinter

__all__ = ["CodingStandardLinter"]
