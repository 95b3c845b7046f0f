"""Pytest configuration and fixtures for depmap tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample TypeScript project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def make_project(temp_dir: Path) -> Callable[[Dict[str, str]], Path]:
    """Write ``{relative_path: contents}`` under a fresh project root."""

    def _make(files: Dict[str, str]) -> Path:
        root = temp_dir / "project"
        root.mkdir(parents=True, exist_ok=True)
        for rel, contents in files.items():
            target = root / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(contents, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def broken_ts_code() -> str:
    """TypeScript with unbalanced braces and a dangling ``from``."""
    return """import { Component from 'react'; // Missing closing brace
import * as utils from ;
import helpers from './helpers';

export const broken = (: string => {
  return {
    id: Date.now(
    name
  };
"""
