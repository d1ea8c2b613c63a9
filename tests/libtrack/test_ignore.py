from pathlib import Path

from libtrack.ignore import IgnoreRules, load_ignore_patterns

IGNORE_NAME = '.track-itignore'


def _rules(tmp_path: Path, content: str) -> IgnoreRules:
    (tmp_path / IGNORE_NAME).write_text(content)
    return IgnoreRules(tmp_path, IGNORE_NAME)


def test_load_ignore_patterns_skips_comments_and_blank_lines(tmp_path: Path) -> None:
    (tmp_path / IGNORE_NAME).write_text('# comment\n\n  *.log  \nnode_modules/\n')

    assert load_ignore_patterns(tmp_path / IGNORE_NAME) == ['*.log', 'node_modules/']


def test_load_ignore_patterns_missing_file(tmp_path: Path) -> None:
    assert load_ignore_patterns(tmp_path / IGNORE_NAME) == []


def test_is_ignored(tmp_path: Path) -> None:
    rules = _rules(tmp_path, '*.log\nnode_modules/\n')

    assert rules.is_ignored('error.log')
    assert rules.is_ignored('logs/debug.log')
    assert rules.is_ignored('node_modules/pkg/index.js')
    assert rules.is_ignored(tmp_path / 'error.log')
    assert not rules.is_ignored('main.py')


def test_paths_outside_root_are_not_ignored(tmp_path: Path) -> None:
    root = tmp_path / 'root'
    root.mkdir()
    rules = _rules(root, '*.log\n')

    assert rules.is_ignored(root / 'inside.log')
    assert not rules.is_ignored(tmp_path / 'outside.log')


def test_filter_keeps_order(tmp_path: Path) -> None:
    rules = _rules(tmp_path, '*.tmp\n')

    assert rules.filter(['b.txt', 'x.tmp', 'a.txt']) == ['b.txt', 'a.txt']


def test_no_ignore_file_ignores_nothing(tmp_path: Path) -> None:
    rules = IgnoreRules(tmp_path, IGNORE_NAME)

    assert rules.filter(['a.log', 'b.txt']) == ['a.log', 'b.txt']


def test_add_patterns(tmp_path: Path) -> None:
    rules = _rules(tmp_path, '*.log')

    added = rules.add_patterns(['*.tmp', '*.log', 'cache/', '*.tmp'])

    assert added == ['*.tmp', 'cache/']
    assert rules.is_ignored('x.tmp')
    assert load_ignore_patterns(tmp_path / IGNORE_NAME) == ['*.log', '*.tmp', 'cache/']


def test_add_patterns_creates_file(tmp_path: Path) -> None:
    rules = IgnoreRules(tmp_path, IGNORE_NAME)

    rules.add_patterns(['*.bak'])

    assert (tmp_path / IGNORE_NAME).read_text() == '*.bak\n'
