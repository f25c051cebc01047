import pytest

from bdindexer.actions.config import ActionsConfig, default_config, parse_config


def test_default_config():
    assert default_config() == ActionsConfig(port=3000, node=None)


def test_parse_port():
    assert parse_config("actions:\n  port: 4000\n") == ActionsConfig(port=4000)


def test_parse_accepts_bytes():
    assert parse_config(b"actions:\n  port: 3000\n").port == 3000


def test_parse_node_details():
    config = parse_config(
        "actions:\n  port: 3000\n  node:\n    rpc:\n      address: http://localhost:26657\n"
    )
    assert config.node == {"rpc": {"address": "http://localhost:26657"}}


def test_parse_missing_port_uses_zero():
    assert parse_config("actions:\n  node: null\n") == ActionsConfig()


@pytest.mark.parametrize("text", ["", "database:\n  name: x\n", "actions: null\n"])
def test_parse_without_actions_section(text):
    assert parse_config(text) is None


@pytest.mark.parametrize(
    "text",
    [
        "actions:\n  port: -1\n",
        "actions:\n  port: abc\n",
        "actions:\n  port: true\n",
        "actions:\n  node: [1, 2]\n",
        "actions: [1]\n",
        "- a\n- b\n",
        "actions: {port: [\n",
    ],
)
def test_parse_invalid(text):
    with pytest.raises(ValueError):
        parse_config(text)