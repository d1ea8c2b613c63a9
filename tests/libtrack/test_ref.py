from pathlib import Path

from libtrack.exceptions import RefError
from libtrack.ref import HashRef, SymRef, branch_ref, read_ref, write_ref
from pytest import raises


def test_branch_ref() -> None:
    ref = branch_ref('feature')

    assert ref == 'refs/heads/feature'
    assert ref.branch_name() == 'feature'


def test_symref_outside_heads_has_no_branch_name() -> None:
    assert SymRef('refs/tags/v1').branch_name() is None


def test_write_and_read_symref(tmp_path: Path) -> None:
    ref_file = tmp_path / 'HEAD'

    write_ref(ref_file, branch_ref('main'))

    assert ref_file.read_text() == 'ref: refs/heads/main'
    assert read_ref(ref_file) == SymRef('refs/heads/main')
    assert isinstance(read_ref(ref_file), SymRef)


def test_write_and_read_hashref(tmp_path: Path) -> None:
    ref_file = tmp_path / 'main'
    commit_hash = HashRef('0123456789abcdef' * 4)

    write_ref(ref_file, commit_hash)

    assert ref_file.read_text() == commit_hash
    assert isinstance(read_ref(ref_file), HashRef)


def test_empty_ref_reads_as_none(tmp_path: Path) -> None:
    ref_file = tmp_path / 'empty'
    write_ref(ref_file, None)

    assert read_ref(ref_file) is None


def test_read_ref_ignores_surrounding_whitespace(tmp_path: Path) -> None:
    ref_file = tmp_path / 'main'
    ref_file.write_text('a' * 64 + '\n')

    assert read_ref(ref_file) == 'a' * 64


def test_read_invalid_ref_raises_error(tmp_path: Path) -> None:
    ref_file = tmp_path / 'main'
    ref_file.write_text('not-a-hash')

    with raises(RefError):
        read_ref(ref_file)


def test_read_missing_ref_raises_error(tmp_path: Path) -> None:
    with raises(RefError):
        read_ref(tmp_path / 'missing')


def test_write_invalid_ref_type_raises_error(tmp_path: Path) -> None:
    with raises(RefError):
        write_ref(tmp_path / 'main', 'plain string')  # type: ignore
