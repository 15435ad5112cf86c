# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging

import pytest

from blockrsa import __main__ as cli
from blockrsa import codec
import blockrsa.rsa as rsau


def run_cli(capsys, *argv: str) -> list[str]:
    cli.main(["-n", *argv])
    return capsys.readouterr().out.splitlines()


def test_keygen_prints_decimal_keys(capsys):
    pub_line, priv_line = run_cli(capsys, "keygen", "--prime-bits", "16")
    pub = rsau.RSAPubKey.from_decimal(pub_line)
    priv = rsau.RSAPrivKey.from_decimal(priv_line)
    assert pub.mod == priv.mod
    assert 2**30 <= pub.mod < 2**32
    assert priv.decrypt(pub.encrypt("cli")) == b"cli"


def test_keygen_defaults_non_interactive(capsys):
    pub_line, _ = run_cli(capsys, "keygen")
    assert rsau.RSAPubKey.from_decimal(pub_line).mod.bit_length() in (31, 32)


def test_keygen_exports_pem(capsys, tmp_path):
    pub_path, priv_path = tmp_path / "key.pub", tmp_path / "key"
    run_cli(capsys, "keygen", "--prime-bits", "24", "-p", str(pub_path), "-P", str(priv_path))
    pub = rsau.RSAPubKey.import_key(pub_path)
    priv = rsau.RSAPrivKey.import_key(priv_path)
    assert priv.pub.mod == pub.mod
    assert priv.decrypt(pub.encrypt("pem")) == b"pem"


def test_keygen_refuses_overwrite(capsys, tmp_path):
    existing = tmp_path / "key"
    existing.write_text("keep me", encoding="utf-8")
    out = run_cli(capsys, "keygen", "-P", str(existing))
    assert out == ["Destination private or public key already exists!"]
    assert existing.read_text(encoding="utf-8") == "keep me"


def test_keygen_overwrites_when_asked(capsys, tmp_path):
    existing = tmp_path / "key"
    existing.write_text("replace me", encoding="utf-8")
    run_cli(capsys, "keygen", "-P", str(existing), "--overwrite")
    assert rsau.RSAPrivKey.import_key(existing).p is not None


def test_keygen_reports_errors(capsys, mocker):
    mocker.patch("blockrsa.keygen.check_prime", return_value=False)
    with pytest.raises(SystemExit) as exc:
        cli.main(["-n", "keygen", "--prime-bits", "16"])
    assert exc.value.code == 2
    assert "Error:" in capsys.readouterr().err


def test_encrypt_decrypt_textbook(capsys):
    (cipher,) = run_cli(capsys, "encrypt", "-p", "3233,17", "--message", "Hi")
    assert cli.parse_ciphertext(cipher) == ([pow(ord("H"), 17, 3233), pow(ord("i"), 17, 3233)], 2)
    (clear,) = run_cli(capsys, "decrypt", "-P", "3233,2753", "--chunks", cipher)
    assert clear == "Hi"


def test_decrypt_with_length(capsys, wide_key):
    message = b"\x00\x00padded"
    chunks = wide_key.pub.encrypt(message)
    (clear,) = run_cli(capsys, "decrypt", "-P", wide_key.to_decimal(), "--chunks",
                       ",".join(codec.chunks_to_strings(chunks)), "--length", str(len(message)), "-e", "ascii")
    assert clear == "\x00\x00padded"


def test_encrypt_reads_message_file(capsys, tmp_path):
    source = tmp_path / "message.txt"
    source.write_text("AB", encoding="utf-8")
    (cipher,) = run_cli(capsys, "encrypt", "-p", "3233,17", "--message", f"P:{source}")
    assert cipher == f"2:{pow(65, 17, 3233)} {pow(66, 17, 3233)}"


@pytest.mark.parametrize("encoding", ["utf-16", "utf-8", "ascii"])
def test_encrypt_decrypt_keeps_leading_zeros(capsys, wide_key, encoding):
    # utf-16 puts a 0x00 byte at the start of the final 15-byte block.
    payload = "abcdefgh"
    (cipher,) = run_cli(capsys, "encrypt", "-p", wide_key.pub.to_decimal(), "--message", payload, "-e", encoding)
    assert cipher.startswith(f"{len(payload.encode(encoding))}:")
    (clear,) = run_cli(capsys, "decrypt", "-P", wide_key.to_decimal(), "--chunks", cipher, "-e", encoding)
    assert clear == payload


def test_decrypt_length_overrides_prefix(capsys, wide_key):
    cipher = cli.format_ciphertext(wide_key.pub.encrypt(b"\x00\x00padded"), 6)
    (clear,) = run_cli(capsys, "decrypt", "-P", wide_key.to_decimal(), "--chunks", cipher, "--length", "8", "-e",
                       "ascii")
    assert clear == "\x00\x00padded"


@pytest.mark.parametrize("text,expected", [
    ("2790", ([2790], None)),
    ("1:2790", ([2790], 1)),
    ("17: 1 2,3", ([1, 2, 3], 17)),
    ("0:", ([], 0)),
])
def test_parse_ciphertext(text, expected):
    assert cli.parse_ciphertext(text) == expected


@pytest.mark.parametrize("text", ["x:2790", "-1:2790", "1:2:3", "1:abc"])
def test_parse_ciphertext_invalid(text):
    with pytest.raises(ValueError):
        cli.parse_ciphertext(text)


@pytest.mark.parametrize("argv", [
    ["decrypt", "-P", "3233,2753", "--chunks", "12 abc"],
    ["decrypt", "-P", "3233,2753", "--chunks", "3233"],
    ["decrypt", "-P", "3233,", "--chunks", "2790"],
    ["verify", "-p", "3233,17", "--message", "A", "-S", "0x10"],
    ["encrypt", "-p", "3233,17", "--message", "P:missing-message-file.txt"],
])
def test_bad_input_reports_errors(capsys, argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(["-n", *argv])
    assert exc.value.code == 2
    assert "Error:" in capsys.readouterr().err


def test_bad_key_files_report_errors(capsys, tmp_path):
    garbage = tmp_path / "garbage.pem"
    garbage.write_text("not a key\n", encoding="ascii")
    for key_path in (garbage, tmp_path / "absent.pem"):
        with pytest.raises(SystemExit) as exc:
            cli.main(["-n", "encrypt", "-p", str(key_path), "--message", "A"])
        assert exc.value.code == 2
        assert "Error:" in capsys.readouterr().err


def test_key_path_with_comma(capsys, tmp_path, textbook_key):
    pub_path = tmp_path / "textbook,pub.pem"
    textbook_key.pub.export(pub_path)
    (cipher,) = run_cli(capsys, "encrypt", "-p", str(pub_path), "--message", "A")
    assert cipher == "1:2790"


def test_sign_verify(capsys, tmp_path, textbook_key):
    textbook_key.pub.export(tmp_path / "pub")
    (signature,) = run_cli(capsys, "sign", "-P", "3233,2753", "--message", "Signed")
    assert run_cli(capsys, "verify", "-p", str(tmp_path / "pub"), "--message", "Signed", "-S", signature) == []


def test_verify_failure_exits(capsys):
    (signature,) = run_cli(capsys, "sign", "-P", "3233,2753", "--message", "Signed")
    with pytest.raises(SystemExit) as exc:
        cli.main(["-n", "verify", "-p", "3233,17", "--message", "Signet", "-S", signature])
    assert exc.value.code == 1
    assert "Signature Verification Failed!" in capsys.readouterr().out


def test_non_interactive_missing_argument():
    with pytest.raises(IOError):
        cli.main(["-n", "encrypt", "--message", "Hi"])


def test_interactive_prompts(capsys, mocker):
    mocker.patch("builtins.input", side_effect=["encrypt", "3233,17", "A"])
    cli.main([])
    out = capsys.readouterr().out
    assert "Please specify the public_key!" in out
    assert "Ciphertext:" in out
    assert "1:2790" in out.splitlines()


def test_input_handler_retries(mocker):
    mocker.patch("builtins.input", side_effect=["", "abc", "12"])
    printed = []
    assert cli.input_handler("length", (False, False), printed.append) == 12
    assert "Please provide a value." in printed
    assert "We could not convert your value to int." in printed


def test_choice_handler_default(mocker):
    mocker.patch("builtins.input", side_effect=["maybe", ""])
    printed = []
    assert cli.choice_handler("overwrite", (False, False), printed.append) == "N"
    assert "Please select an option from the list." in printed


def test_checkmodes_uses_advanced_defaults():
    assert cli.checkmodes("encoding", (False, False)) == "utf-8"
    assert isinstance(cli.checkmodes("encoding", (False, True)), cli.HelpData)
    assert cli.checkmodes("prime_bits", (True, False)) == 16


def test_verbose_enables_debug_logging(capsys, mocker):
    basic = mocker.patch("logging.basicConfig")
    run_cli(capsys, "-V", "encrypt", "-p", "3233,17", "--message", "A")
    assert basic.call_args.kwargs["level"] == logging.DEBUG
