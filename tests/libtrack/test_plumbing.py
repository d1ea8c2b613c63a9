import hashlib
from pathlib import Path

from libtrack import Blob, Commit, StagedFile
from libtrack.exceptions import CorruptObjectError, ObjectNotFoundError
from libtrack.plumbing import (hash_object, load_commit, load_content, object_exists, save_commit, save_content,
                               save_file_content)
from pytest import raises


def test_save_content_uses_sha256_digest(tmp_path: Path) -> None:
    content_hash = save_content(tmp_path, b'hello')

    assert content_hash == hashlib.sha256(b'hello').hexdigest()
    assert (tmp_path / content_hash).read_bytes() == b'hello'


def test_save_content_is_idempotent(tmp_path: Path) -> None:
    first = save_content(tmp_path, b'same content')
    second = save_content(tmp_path, b'same content')

    assert first == second
    assert len(list(tmp_path.iterdir())) == 1


def test_save_content_creates_objects_dir(tmp_path: Path) -> None:
    objects_dir = tmp_path / 'objects'

    content_hash = save_content(objects_dir, b'data')

    assert object_exists(objects_dir, content_hash)


def test_load_content_missing_raises_error(tmp_path: Path) -> None:
    with raises(ObjectNotFoundError, match='File with hash deadbeef not found'):
        load_content(tmp_path, 'deadbeef')


def test_save_file_content(tmp_path: Path) -> None:
    file = tmp_path / 'file.txt'
    file.write_bytes(b'\x00binary\xff')
    objects_dir = tmp_path / 'objects'

    blob = save_file_content(objects_dir, file)

    assert isinstance(blob, Blob)
    assert hash_object(blob) == blob.hash
    assert load_content(objects_dir, blob.hash) == b'\x00binary\xff'


def test_save_file_content_missing_file_raises_error(tmp_path: Path) -> None:
    with raises(ValueError):
        save_file_content(tmp_path, tmp_path / 'missing.txt')


def test_commit_round_trip(tmp_path: Path) -> None:
    commit = Commit(1700000000000, 'message', (StagedFile('a.txt', 'a' * 64),), ('b' * 64,))

    commit_hash = save_commit(tmp_path, commit)

    assert commit_hash == hash_object(commit)
    assert load_commit(tmp_path, commit_hash) == commit


def test_commit_hash_is_deterministic() -> None:
    files = [StagedFile('a.txt', 'a' * 64), StagedFile('b.txt', 'b' * 64)]

    assert hash_object(Commit(1, 'm', files)) == hash_object(Commit(1, 'm', tuple(files)))
    assert hash_object(Commit(1, 'm', files)) != hash_object(Commit(2, 'm', files))


def test_commit_parent() -> None:
    assert Commit(1, 'root', ()).parent is None
    assert Commit(1, 'merge', (), ('x' * 64, 'y' * 64)).parent == 'x' * 64


def test_load_commit_with_single_parent_field(tmp_path: Path) -> None:
    content_hash = save_content(
        tmp_path, b'{"timestamp": 5, "message": "old", "files": [{"path": "a", "hash": "h"}], "parent": "p"}')

    commit = load_commit(tmp_path, content_hash)

    assert commit.parents == ('p',)
    assert commit.files == (StagedFile('a', 'h'),)


def test_load_commit_missing_raises_error(tmp_path: Path) -> None:
    with raises(ObjectNotFoundError):
        load_commit(tmp_path, 'c' * 64)


def test_load_commit_from_blob_raises_error(tmp_path: Path) -> None:
    content_hash = save_content(tmp_path, b'not a commit')

    with raises(CorruptObjectError):
        load_commit(tmp_path, content_hash)
