#!filepath: tests/utils/test_filesystem.py
from specrun.utils.filesystem import FileSystem


def test_ensure_dir(tmp_path):
    """测试 ensure_dir 是否能正确创建目录"""
    new_dir = tmp_path / "new_folder" / "deeper"
    assert not new_dir.exists()

    FileSystem.ensure_dir(new_dir)
    assert new_dir.is_dir()


def test_safe_write(tmp_path):
    """原子写入，不残留 tmp 文件"""
    file_path = tmp_path / "sub" / "data.json"

    FileSystem.safe_write(file_path, b"{}")

    assert file_path.read_bytes() == b"{}"
    assert not file_path.with_name("data.json.tmp").exists()


def test_safe_write_overwrites(tmp_path):
    file_path = tmp_path / "data.json"
    FileSystem.safe_write(file_path, b"old")
    FileSystem.safe_write(file_path, b"new")

    assert file_path.read_bytes() == b"new"


def test_read_text(tmp_path):
    f = tmp_path / "a.txt"
    f.write_text("hi", encoding="utf-8")

    assert FileSystem.read_text(f) == "hi"
    assert FileSystem.read_text(tmp_path / "missing.txt") is None
