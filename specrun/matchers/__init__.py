from .base import BaseMatcher
from .include import Include, include

__all__ = ["BaseMatcher", "Include", "include"]
