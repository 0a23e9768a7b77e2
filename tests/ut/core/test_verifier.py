"""摘要校验测试"""

import hashlib
from pathlib import Path

import pytest

from charmrepo.core.exceptions import HashMismatchError
from charmrepo.core.store.verifier import hash_bytes, hash_file, verify


class TestVerify:
    def test_match(self) -> None:
        data = b"charm archive bytes"
        verify(data, hashlib.sha384(data).hexdigest())

    def test_match_is_case_insensitive(self) -> None:
        data = b"charm archive bytes"
        verify(data, hashlib.sha384(data).hexdigest().upper())

    def test_mismatch(self) -> None:
        with pytest.raises(HashMismatchError, match=r"network corruption\?") as excinfo:
            verify(b"data", "invalid")
        assert excinfo.value.expected == "invalid"
        assert excinfo.value.actual == hashlib.sha384(b"data").hexdigest()

    def test_empty_declared_hash_fails(self) -> None:
        with pytest.raises(HashMismatchError):
            verify(b"data", "")

    def test_other_algorithm(self) -> None:
        verify(b"data", hashlib.sha256(b"data").hexdigest(), algorithm="sha256")


class TestHash:
    def test_hash_file_matches_bytes(self, tmp_path: Path) -> None:
        data = bytes(range(256)) * 1024
        path = tmp_path / "blob"
        path.write_bytes(data)
        assert hash_file(path) == hash_bytes(data)
        assert hash_file(path, "sha256") == hashlib.sha256(data).hexdigest()

    def test_hash_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            hash_file(tmp_path / "missing")
