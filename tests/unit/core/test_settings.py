from pathlib import Path

import pytest

from grove.core.settings import GroveSettings, load_settings, save_settings


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "settings.toml") == GroveSettings()


def test_load_all_keys(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text(
        'remote = "upstream"\n'
        "copy_editor_configs = false\n"
        "\n"
        "[post_plant]\n"
        'shell = "bash"\n'
        'commands = ["npm install", "npm run build"]\n',
        encoding="utf-8",
    )

    settings = load_settings(path)

    assert settings == GroveSettings(
        remote="upstream",
        copy_editor_configs=False,
        post_plant_commands=["npm install", "npm run build"],
        post_plant_shell="bash",
    )


@pytest.mark.parametrize(
    "content",
    ['remote = 3\n', 'remote = ""\n', 'copy_editor_configs = "yes"\n'],
)
def test_load_rejects_bad_types(tmp_path: Path, content: str) -> None:
    path = tmp_path / "settings.toml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(ValueError):
        load_settings(path)


def test_save_preserves_comments(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    path.write_text('# team defaults\nremote = "origin"\n', encoding="utf-8")

    save_settings(path, GroveSettings(remote="upstream", post_plant_commands=["make"]))

    text = path.read_text(encoding="utf-8")
    assert "# team defaults" in text
    assert load_settings(path) == GroveSettings(remote="upstream", post_plant_commands=["make"])


def test_save_drops_empty_post_plant_table(tmp_path: Path) -> None:
    path = tmp_path / "settings.toml"
    save_settings(path, GroveSettings(post_plant_commands=["make"]))

    save_settings(path, GroveSettings())

    assert "post_plant" not in path.read_text(encoding="utf-8")
