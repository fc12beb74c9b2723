import pytest


@pytest.fixture
def write_files(tmp_path):
    """Write ``{relative_path: content}`` under tmp_path and return tmp_path."""

    def _write(files):
        for name, content in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _write
