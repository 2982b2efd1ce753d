#!/usr/bin/env python3
"""
Minimal setup.py for slotrouter extension modules.
All project metadata is defined in pyproject.toml (PEP-621).
This file only handles the optional mypyc compilation, enabled by
setting ``USE_MYPYC=true`` (requires ``mypy`` in the build environment).
"""

from __future__ import annotations

import os


def get_ext_modules():
    """Get extension modules for the build."""
    if os.environ.get("USE_MYPYC", "false").lower() != "true":
        return []

    from mypyc.build import mypycify

    # slot hashing runs for every routed key
    extensions = mypycify(
        ["slotrouter/_utils.py"],
        debug_level="0",
        strip_asserts=True,
    )

    # Remove -Werror from extra_compile_args to avoid build failures
    for ext in extensions:
        if hasattr(ext, "extra_compile_args") and "-Werror" in ext.extra_compile_args:
            ext.extra_compile_args.remove("-Werror")

        if not hasattr(ext, "_needs_stub"):
            ext._needs_stub = False

    return extensions


if __name__ == "__main__":
    from setuptools import setup

    setup(ext_modules=get_ext_modules())
