"""Test Lab invocation building."""

from .args import TestInvocation, build_test_args, parse_user_options

__all__ = [
    "TestInvocation",
    "build_test_args",
    "parse_user_options",
]
