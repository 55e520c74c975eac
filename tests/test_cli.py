import json

from click.testing import CliRunner

from curlmux.cli import cli, format_size


def test_config_example():
    result = CliRunner().invoke(cli, ['config', '--example'])

    assert result.exit_code == 0
    assert 'loop_wait_time' in json.loads(result.output)


def test_config_shows_effective_values(tmp_path):
    path = tmp_path / 'config.json'
    path.write_text(json.dumps({'loop_timeout': 0.75}))

    result = CliRunner().invoke(cli, ['--config', str(path), 'config'])

    assert result.exit_code == 0
    assert '0.75' in result.output


def test_fetch_reports_all_transfers(http_server):
    result = CliRunner().invoke(cli, ['fetch', f"{http_server}/json", f"{http_server}/text"])

    assert result.exit_code == 0
    assert '2 transfer(s) completed' in result.output


def test_fetch_json_flags_wrong_content_type(http_server):
    result = CliRunner().invoke(
        cli, ['fetch', '--json', f"{http_server}/json", f"{http_server}/text"]
    )

    assert result.exit_code == 0
    assert '1 of 2 transfer(s) failed' in result.output


def test_format_size():
    assert format_size(512) == '512.0 B'
    assert format_size(2048) == '2.0 KB'
