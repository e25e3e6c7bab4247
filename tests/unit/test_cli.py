"""Unit tests for the nostrcore command-line tools."""

import io
import json

import pytest

from nostrcore import __main__ as cli
from nostrcore.protocol.codec import EventCodec


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(cli, "setup_logging", lambda level: None)


@pytest.fixture
def write_json(tmp_path):
    def _write(data, name="input.json"):
        path = tmp_path / name
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")
        return str(path)

    return _write


def _run(*argv):
    out = io.StringIO()
    code = cli.main(list(argv), out=out)
    return code, out.getvalue()


class TestId:
    def test_prints_id(self, write_json, sample_event_dict):
        path = write_json({k: v for k, v in sample_event_dict.items() if k not in ("id", "sig")})
        code, output = _run("id", path)
        assert code == cli.EXIT_OK
        assert output == sample_event_dict["id"] + "\n"

    def test_canonical(self, write_json, alice):
        unsigned = {
            "pubkey": alice.public_key_hex,
            "created_at": 1,
            "kind": 1,
            "tags": [],
            "content": "é",
        }
        code, output = _run("id", "--canonical", write_json(unsigned))
        canonical, event_id = output.splitlines()
        assert code == cli.EXIT_OK
        assert canonical == f'[0,"{alice.public_key_hex}",1,1,[],"é"]'
        assert event_id == EventCodec().compute_id(unsigned)

    def test_malformed(self, write_json):
        code, output = _run("id", write_json({"kind": 1}))
        assert code == cli.EXIT_REJECTED
        assert output == ""

    def test_stdin(self, monkeypatch, sample_event_dict):
        monkeypatch.setattr("sys.stdin", io.StringIO(json.dumps(sample_event_dict)))
        code, output = _run("id", "-")
        assert code == cli.EXIT_OK
        assert output.strip() == sample_event_dict["id"]


class TestVerify:
    def test_valid(self, write_json, sample_event_dict):
        assert _run("verify", write_json(sample_event_dict)) == (cli.EXIT_OK, "valid\n")

    def test_tampered(self, write_json, sample_event_dict):
        sample_event_dict["content"] = "changed"
        assert _run("verify", write_json(sample_event_dict)) == (cli.EXIT_REJECTED, "invalid_id\n")

    def test_invalid_json(self, write_json):
        code, _ = _run("verify", write_json("{not json"))
        assert code == cli.EXIT_USAGE

    def test_missing_file(self, tmp_path):
        code, _ = _run("verify", str(tmp_path / "missing.json"))
        assert code == cli.EXIT_USAGE


class TestDecode:
    def test_to_relay(self, write_json):
        code, output = _run("decode", write_json('["CLOSE","feed"]\n'))
        assert code == cli.EXIT_OK
        assert output.startswith("CLOSE ")
        assert "feed" in output

    def test_to_client(self, write_json):
        code, output = _run("decode", "--direction", "to_client", write_json('["EOSE","feed"]'))
        assert code == cli.EXIT_OK
        assert output.startswith("EOSE ")

    def test_wrong_direction(self, write_json):
        code, _ = _run("decode", write_json('["EOSE","feed"]'))
        assert code == cli.EXIT_REJECTED

    def test_config_limits_frame_size(self, write_json, tmp_path):
        config = tmp_path / "engine.yaml"
        config.write_text("relay_info:\n  limitation:\n    max_message_length: 8\n", encoding="utf-8")
        code, _ = _run("--config", str(config), "decode", write_json('["CLOSE","feed"]'))
        assert code == cli.EXIT_REJECTED


class TestConfig:
    def test_missing_config(self, tmp_path, write_json):
        code, _ = _run("--config", str(tmp_path / "nope.yaml"), "decode", write_json("[]"))
        assert code == cli.EXIT_USAGE

    def test_invalid_config(self, tmp_path, write_json):
        config = tmp_path / "engine.yaml"
        config.write_text("verification:\n  max_workers: 0\n", encoding="utf-8")
        code, _ = _run("--config", str(config), "decode", write_json("[]"))
        assert code == cli.EXIT_USAGE

    def test_command_required(self):
        with pytest.raises(SystemExit) as exc_info:
            cli.parse_args([])
        assert exc_info.value.code == 2
