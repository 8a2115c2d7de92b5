import pytest

from uploads import UploadNotFound, UploadStore


def test_save_and_resolve(tmp_path) -> None:
    store = UploadStore(root=tmp_path, max_bytes=1024)
    url = store.save("Receipt.JPG", "image/jpeg", b"\xff\xd8\xff")
    assert url.startswith("/uploads/")
    assert url.endswith(".jpg")
    path = store.path_for_url(url)
    assert path.read_bytes() == b"\xff\xd8\xff"


def test_extension_alone_is_enough(tmp_path) -> None:
    store = UploadStore(root=tmp_path, max_bytes=1024)
    assert store.save("scan.heic", "binary/unknown", b"data").endswith(".heic")


def test_rejects_non_images_and_large_files(tmp_path) -> None:
    store = UploadStore(root=tmp_path, max_bytes=4)
    with pytest.raises(ValueError, match="Only images"):
        store.save("notes.txt", "text/plain", b"abc")
    with pytest.raises(ValueError, match="too large"):
        store.save("big.png", "image/png", b"12345")
    with pytest.raises(ValueError, match="No file"):
        store.save("empty.png", "image/png", b"")


def test_path_traversal_is_rejected(tmp_path) -> None:
    root = tmp_path / "uploads"
    root.mkdir()
    (tmp_path / "secret.txt").write_text("nope")
    store = UploadStore(root=root)
    with pytest.raises(UploadNotFound):
        store.path_for("../secret.txt")
    with pytest.raises(UploadNotFound):
        store.path_for_url("/etc/passwd")
    with pytest.raises(UploadNotFound):
        store.path_for("missing.png")
