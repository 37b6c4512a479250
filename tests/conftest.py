"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path
from jsxdoctor.config import Config
from jsxdoctor.engine import Engine
from jsxdoctor.rules.base import RuleContext
from jsxdoctor.syntax.parser import SourceParser
from jsxdoctor.syntax.scope import Resolver


SAMPLE_COMPONENT = '''import React from 'react';

function TodoList({ todos, onToggle }) {
  return (
    <ul class="todos">
      {todos.map(todo => <li onClick={() => onToggle(todo.id)}>{todo.title}</li>)}
    </ul>
  );
}

export default TodoList;
'''


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary project with a few component files."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    (repo / "src").mkdir()
    (repo / "src" / "TodoList.jsx").write_text(SAMPLE_COMPONENT)
    (repo / "src" / "Clean.tsx").write_text(
        "export const Clean = ({ name }: { name: string }) => <p>{name}</p>;\n"
    )
    (repo / "README.md").write_text("# Test Project")

    return repo


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Provide a detection-only test configuration."""
    return Config(root=tmp_path)


@pytest.fixture
def fix_config(tmp_path: Path) -> Config:
    """Provide a detection-plus-fix test configuration."""
    return Config(root=tmp_path, fix=True)


@pytest.fixture
def engine(fix_config: Config) -> Engine:
    return Engine(fix_config)


@pytest.fixture
def make_context():
    """Parse and resolve source into a RuleContext."""
    parser = SourceParser()
    resolver = Resolver()

    def _make(source: str, path: str = "Component.jsx") -> RuleContext:
        tree = parser.parse(source, path)
        return RuleContext(tree, resolver.resolve(tree))

    return _make
