from __future__ import annotations

from hypergrab.filenames import allocate_capture_path, candidate_names, sanitize_identifier


def test_sanitize_replaces_non_alphanumerics():
    assert sanitize_identifier("TC/01:A") == "TC_01_A"
    assert sanitize_identifier("TC-07") == "TC_07"
    assert sanitize_identifier("Ação1") == "Ação1"


def test_sanitize_empty_falls_back_to_placeholder():
    assert sanitize_identifier("") == "_"
    assert sanitize_identifier("//") == "__"


def test_candidate_sequence_starts_at_one():
    names = candidate_names("TC 01")
    assert [next(names) for _ in range(4)] == ["TC_01.png", "TC_01_1.png", "TC_01_2.png", "TC_01_3.png"]


def test_allocate_is_stable_until_file_exists(tmp_path):
    first = allocate_capture_path(tmp_path, "TC-01")
    assert first == tmp_path / "TC_01.png"
    assert allocate_capture_path(tmp_path, "TC-01") == first
    assert not first.exists()


def test_allocate_skips_existing_files(tmp_path):
    (tmp_path / "TC01.png").write_bytes(b"x")
    assert allocate_capture_path(tmp_path, "TC01") == tmp_path / "TC01_1.png"
    (tmp_path / "TC01_1.png").write_bytes(b"x")
    assert allocate_capture_path(tmp_path, "TC01") == tmp_path / "TC01_2.png"


def test_allocate_sanitizes_stem(tmp_path):
    assert allocate_capture_path(tmp_path, "TC/01:A").name == "TC_01_A.png"
