"""Tests for CLI argument parsing."""

import pytest

from args import parse_args


def test_parse_init_args():
    ns = parse_args(["-C", "/srv/pack", "init", "--loader", "Fabric", "--game-version", "1.20.1"])
    assert ns.COMMAND == "init"
    assert ns.DIRECTORY == "/srv/pack"
    assert ns.LOADER == "fabric"
    assert ns.GAME_VERSION == "1.20.1"
    assert ns.MODS_FOLDER == "mods"


def test_parse_global_flags():
    ns = parse_args(["-y", "--loglevel", "DEBUG", "--concurrency", "8", "add", "sodium", "lithium"])
    assert ns.ASSUME_YES
    assert ns.LOG_LEVEL == "DEBUG"
    assert ns.CONCURRENCY == 8
    assert ns.MODS == ["sodium", "lithium"]


def test_parse_change_and_check():
    assert parse_args(["change", "1.21"]).GAME_VERSION == "1.21"
    assert parse_args(["check", "--errors-only"]).ERRORS_ONLY


def test_command_required():
    with pytest.raises(SystemExit):
        parse_args([])


def test_unknown_loader_rejected():
    with pytest.raises(SystemExit):
        parse_args(["init", "--loader", "rift", "--game-version", "1.13"])
