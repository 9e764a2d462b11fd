"""Tests for CLI argument parsing."""

import pytest

from cli.models import CheckCommand, HelpCommand, UploadCommand
from cli.parser import ParseError, parse_command


class TestUploadParsing:
    """Test 'upload' arguments."""

    def test_path_only(self):
        assert parse_command(['upload', 'site']) == UploadCommand(path='site')

    def test_all_options(self):
        cmd = parse_command([
            'upload', '--parallelism', '16', 'site', '--retries', '2', '--no-deferred', '--cache'
        ])

        assert cmd == UploadCommand(path='site', parallelism=16, retries=2, deferred=False, cache=True)

    def test_missing_path(self):
        with pytest.raises(ParseError):
            parse_command(['upload', '--cache'])

    def test_two_paths(self):
        with pytest.raises(ParseError):
            parse_command(['upload', 'a', 'b'])

    @pytest.mark.parametrize('args', [
        ['upload', 'site', '--parallelism'],
        ['upload', 'site', '--parallelism', 'many'],
        ['upload', 'site', '--retries', '0'],
        ['upload', 'site', '--bogus'],
    ])
    def test_invalid_options(self, args):
        with pytest.raises(ParseError):
            parse_command(args)


class TestCheckParsing:
    """Test 'check' arguments."""

    def test_defaults(self):
        assert parse_command(['check']) == CheckCommand()

    def test_all_options(self):
        cmd = parse_command([
            'check', '--data-dir', 'cache', '--errors', 'e.json',
            '--report', 'r.csv', '--retry', '--parallelism', '4'
        ])

        assert cmd == CheckCommand(
            data_dir='cache', errors_path='e.json', report_path='r.csv', retry=True, parallelism=4
        )

    def test_option_without_value(self):
        with pytest.raises(ParseError):
            parse_command(['check', '--errors', '--retry'])

    def test_positional_rejected(self):
        with pytest.raises(ParseError):
            parse_command(['check', 'cache'])


def test_help_command():
    assert isinstance(parse_command(['help']), HelpCommand)
    assert isinstance(parse_command(['--help']), HelpCommand)


def test_empty_and_unknown_commands():
    with pytest.raises(ParseError):
        parse_command([])
    with pytest.raises(ParseError):
        parse_command(['download', 'x'])
