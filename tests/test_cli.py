import pytest

from blogsmith import cli
from tests.conftest import write_post


def write_config(tmp_path, posts_dir, assets_dir):
    path = tmp_path / "site.toml"
    path.write_text(
        'name = "CLI Blog"\n'
        f'posts = "{posts_dir.as_posix()}"\n'
        f'assets = "{assets_dir.as_posix()}"\n'
        'output = "dist"\n',
        encoding="utf-8",
    )
    return path


def test_build_command_generates_site(tmp_path, posts_dir, assets_dir):
    write_post(posts_dir, "2023-05-01-a.md", "From CLI", "2023-05-01")
    config_path = write_config(tmp_path, posts_dir, assets_dir)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "build", "--workers", "1"])

    assert excinfo.value.code == 0
    assert (tmp_path / "dist" / "2023-05-01" / "from-cli" / "index.html").is_file()


def test_output_flag_overrides_config(tmp_path, posts_dir, assets_dir):
    config_path = write_config(tmp_path, posts_dir, assets_dir)
    target = tmp_path / "elsewhere"

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "build", "--output", str(target), "--no-minify"])

    assert excinfo.value.code == 0
    assert "\n" in (target / "index.html").read_text(encoding="utf-8")


def test_build_errors_exit_with_status_one(tmp_path, assets_dir):
    config_path = write_config(tmp_path, tmp_path / "missing", assets_dir)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "build"])

    assert excinfo.value.code == 1


def test_serve_builds_app_and_runs_uvicorn(tmp_path, posts_dir, assets_dir, monkeypatch):
    config_path = write_config(tmp_path, posts_dir, assets_dir)
    seen = {}

    def fake_run(app, host, port, log_level):
        seen.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr("uvicorn.run", fake_run)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "serve", "--port", "9000"])

    assert excinfo.value.code == 0
    assert seen["port"] == 9000
    assert seen["app"].title == "CLI Blog"


def test_failed_posts_still_exit_zero(tmp_path, posts_dir, assets_dir, caplog):
    write_post(posts_dir, "2023-05-01-a.md", "Kept", "2023-05-01")
    write_post(posts_dir, "2023-05-02-b.md", "'../../../../escaped'", "2023-05-02")
    config_path = write_config(tmp_path, posts_dir, assets_dir)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["--config", str(config_path), "build", "--workers", "1"])

    assert excinfo.value.code == 0
    assert (tmp_path / "dist" / "2023-05-01" / "kept" / "index.html").is_file()
    assert "1 posts failed to render" in caplog.text
