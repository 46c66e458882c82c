from pathlib import Path

import pytest

from learning_bot.db.migrate import MIGRATIONS_DIR, migration_files, pending_migrations


def test_bundled_migrations_are_found() -> None:
    files = migration_files()

    assert files[0].name == "001_init.sql"
    assert all(path.parent == MIGRATIONS_DIR for path in files)


def test_down_scripts_are_skipped(tmp_path: Path) -> None:
    for name in ("002_words.sql", "001_init.sql", "002_words_down.sql", "notes.txt"):
        (tmp_path / name).write_text("SELECT 1;", encoding="utf-8")

    assert [path.name for path in migration_files(tmp_path)] == ["001_init.sql", "002_words.sql"]


def test_empty_directory_is_an_error(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        migration_files(tmp_path)


def test_pending_excludes_recorded_versions() -> None:
    files = [Path("001_init.sql"), Path("002_words.sql"), Path("003_usage.sql")]

    pending = pending_migrations(files, ["001_init", "003_usage"])

    assert pending == [Path("002_words.sql")]
