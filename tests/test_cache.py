from svcbuild.cache import STAMP_FILENAME, StampStore, copy_tree, ensure_clean_dir, remove_dir


def test_missing_directory_is_not_stamped(tmp_path):
    assert not StampStore().is_stamped(tmp_path / "nope", "url#1")


def test_unstamped_directory_is_not_stamped(tmp_path):
    assert not StampStore().is_stamped(tmp_path, "url#1")


def test_stamp_then_check(tmp_path):
    store = StampStore()
    store.stamp(tmp_path, "https://example.com/repo#abc")

    assert store.is_stamped(tmp_path, "https://example.com/repo#abc")
    assert (tmp_path / STAMP_FILENAME).read_text() == "https://example.com/repo#abc"


def test_stamp_comparison_is_exact(tmp_path):
    store = StampStore()
    store.stamp(tmp_path, "url#abc")

    assert not store.is_stamped(tmp_path, "url#abc ")
    assert not store.is_stamped(tmp_path, "URL#abc")
    assert not store.is_stamped(tmp_path, "url#abd")


def test_restamp_overwrites(tmp_path):
    store = StampStore()
    store.stamp(tmp_path, "url#1")
    store.stamp(tmp_path, "url#2")

    assert store.read(tmp_path) == "url#2"
    assert not store.is_stamped(tmp_path, "url#1")
    assert not list(tmp_path.glob("*.tmp"))


def test_remove_dir_tolerates_missing(tmp_path):
    remove_dir(tmp_path / "missing")
    d = tmp_path / "d"
    (d / "sub").mkdir(parents=True)
    (d / "sub" / "f").write_text("x")
    remove_dir(d)
    assert not d.exists()


def test_ensure_clean_dir_empties(tmp_path):
    d = tmp_path / "d"
    d.mkdir()
    (d / "old").write_text("x")
    ensure_clean_dir(d)
    assert d.is_dir() and not any(d.iterdir())


def test_copy_tree_excludes(tmp_path):
    src = tmp_path / "src"
    (src / ".git").mkdir(parents=True)
    (src / "Procfile").write_text("web: x")
    (src / STAMP_FILENAME).write_text("s")

    copy_tree(src, tmp_path / "dst", exclude=[".git", STAMP_FILENAME])

    assert sorted(p.name for p in (tmp_path / "dst").iterdir()) == ["Procfile"]
