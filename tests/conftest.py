"""
Pytest configuration for local imports and shared fixtures.
"""

# Standard Library
import dataclasses
import os
import sys

# PIP3 modules
import pytest

#============================================


def _ensure_repo_on_path() -> None:
	"""
	Ensure the repository root is on sys.path.
	"""
	repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
	if repo_root not in sys.path:
		sys.path.insert(0, repo_root)


_ensure_repo_on_path()

import book_spine_designer.config  # noqa: E402
import book_spine_designer.layout  # noqa: E402


#============================================
@pytest.fixture
def default_books() -> list:
	"""
	The four-book sample stack.
	"""
	return list(book_spine_designer.layout.DEFAULT_BOOKS)


#============================================
@pytest.fixture
def fast_config() -> book_spine_designer.config.RenderConfig:
	"""
	Low-resolution render config to keep page rendering quick.
	"""
	config = book_spine_designer.config.build_render_config()
	return dataclasses.replace(config, scale=1.0)
