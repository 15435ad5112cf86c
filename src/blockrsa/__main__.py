"""The Command Line Interface for the utility, including Interactive elements.

A hybrid CLI/ICLI that asks interactively for every argument missing from the command line, unless
non-interactive mode is requested, in which case defaults are used or the run fails.

Keys are given either as a path to a PEM file or as a decimal `modulus,exponent` pair. Signatures are printed and
read as space separated decimal integers. Ciphertexts carry the message byte length in front, as `length:chunks`,
so that decryption restores leading zero bytes.

Typical usage example:

    blockrsa
    OR
    python -m blockrsa -n keygen --prime-bits 32
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import sys
import typing

import blockrsa
from blockrsa import codec
from blockrsa import keygen as kg


class HelpData(typing.NamedTuple):
    description: str
    format: typing.Type = str
    choices: list[str] | None = None
    default: typing.Any = None
    advanced: bool = False


help_dict: dict[str, HelpData] = {
    "subcommand":
        HelpData(
            description="The available subcommands in blockrsa.",
            choices=["keygen", "encrypt", "decrypt", "sign", "verify"],
        ),
    "keygen":
        HelpData("Key generation utility."),
    "encrypt":
        HelpData("Encryption utility."),
    "decrypt":
        HelpData("Decryption utility."),
    "sign":
        HelpData("Signing utility."),
    "verify":
        HelpData("Signature verification utility."),
    "public_key":
        HelpData(description="Public key as 'modulus,exponent' or path to a PKCS1 PEM file."),
    "private_key":
        HelpData(description="Private key as 'modulus,exponent' or path to a PKCS8 PEM file."),
    "message":
        HelpData(description="Message or path to file containing payload. If Path start with `P:`"),
    "chunks":
        HelpData(description="Ciphertext as printed by encrypt, `length:` then chunks. If Path start with `P:`"),
    "signature":
        HelpData(description="Space or comma separated decimal signature chunks."),
    "length":
        HelpData(description="Byte length of the original message, overrides the ciphertext prefix.", format=int),
    "encoding":
        HelpData(description="Payload encoding.", choices=["utf-8", "utf-16", "ascii"], advanced=True, default="utf-8"),
    "prime_bits":
        HelpData(description="Bit length of each prime.", format=int, default=kg.DEFAULT_PRIME_BITS),
    "rounds":
        HelpData(description="Miller-Rabin rounds per candidate.", format=int, advanced=True,
                 default=kg.DEFAULT_ROUNDS),
    "timeout":
        HelpData(description="Seconds key generation may take.", format=float),
    "overwrite":
        HelpData(
            description="Overwrite specified destination files if they exist?",
            choices=["Y", "N"],
            default="N",
        )
}

needs = {
    "keygen": ("prime_bits", "rounds"),
    "encrypt": ("public_key", "message", "encoding"),
    "decrypt": ("private_key", "chunks", "encoding"),
    "sign": ("private_key", "message", "encoding"),
    "verify": ("public_key", "message", "signature", "encoding")
}

pubkey = argparse.ArgumentParser(add_help=False)
pubkey.add_argument("--public_key", "-p", help=help_dict["public_key"].description)
privkey = argparse.ArgumentParser(add_help=False)
privkey.add_argument("--private_key", "-P", help=help_dict["private_key"].description)
payloads = argparse.ArgumentParser(add_help=False)
payloads.add_argument("--message", help=help_dict["message"].description)
encp = argparse.ArgumentParser(add_help=False)
encp.add_argument("--encoding", "-e", choices=help_dict["encoding"].choices, help=help_dict["encoding"].description)
corep = argparse.ArgumentParser(prog="blockrsa")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {blockrsa.__version__}")
corep.add_argument("--non-interactive", "-n", action="store_true", help="Enable non-interactive mode")
corep.add_argument("--advanced", "-a", action="store_true", help="Enable advanced mode, for interactive mode")
corep.add_argument("--verbose", "-V", action="store_true", help="Log key generation and codec details")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")

keygen = commands.add_parser("keygen", help=help_dict["keygen"].description)
keygen.add_argument("--prime-bits", type=int, help=help_dict["prime_bits"].description)
keygen.add_argument("--rounds", type=int, help=help_dict["rounds"].description)
keygen.add_argument("--timeout", type=float, help=help_dict["timeout"].description)
keygen.add_argument("--public_key", "-p", type=pathlib.Path, help="Optional PKCS1 PEM destination.")
keygen.add_argument("--private_key", "-P", type=pathlib.Path, help="Optional PKCS8 PEM destination.")
keygen.add_argument("--overwrite", "-o", action="store_const", const="Y", help=help_dict["overwrite"].description)

encrypt = commands.add_parser("encrypt", parents=[pubkey, payloads, encp], help=help_dict["encrypt"].description)
decrypt = commands.add_parser("decrypt", parents=[privkey, encp], help=help_dict["decrypt"].description)
decrypt.add_argument("--chunks", "-c", help=help_dict["chunks"].description)
decrypt.add_argument("--length", type=int, help=help_dict["length"].description)
sign = commands.add_parser("sign", parents=[privkey, payloads, encp], help=help_dict["sign"].description)
verify = commands.add_parser("verify", parents=[pubkey, payloads, encp], help=help_dict["verify"].description)
verify.add_argument("--signature", "-S", help=help_dict["signature"].description)


def checkmodes(arg: str, mode: tuple[bool, bool]):
    helper_data = help_dict[arg]
    if (mode[0] or (helper_data.advanced and not mode[1])) and helper_data.default:
        return helper_data.default
    if mode[0]:
        raise IOError(f"Argument {arg} is missing and non-interactive mode is active.")
    return helper_data


def choice_handler(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print):
    helper_data = checkmodes(arg, mode)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    for choice in helper_data.choices:
        defstring = " (Default)" if choice == helper_data.default else ""
        if help_dict.get(choice, None):
            prntr(f"{choice} - {help_dict[choice].description}" + defstring)
        else:
            prntr(f"{choice}" + defstring)
    if helper_data.default is not None:
        prntr("To accept default just click enter. Otherwise specify value.")
    while True:
        ch = input(f"{arg}: ")
        if ch in helper_data.choices:
            return ch
        if not ch and helper_data.default is not None:
            return helper_data.default
        prntr("Please select an option from the list.")


def input_handler(arg: str, mode: tuple[bool, bool], prntr: typing.Callable = print):
    helper_data = checkmodes(arg, mode)
    if not isinstance(helper_data, HelpData):
        return helper_data
    prntr(f"Please specify the {arg}!")
    prntr("Description: " + helper_data.description)
    if helper_data.default is not None:
        prntr(f"Default value: {helper_data.default}")
        prntr("To accept default just click enter. Otherwise specify value.")
    cls = helper_data.format
    while True:
        ch = input(f"{arg}: ")
        if not ch and helper_data.default is not None:
            return helper_data.default
        if ch == "":
            prntr("Please provide a value.")
            continue
        try:
            return cls(ch)
        except ValueError:
            prntr(f"We could not convert your value to {cls.__name__}.")


def check_message(mess: str, enc: str) -> str:
    """Parse message for path-notice."""
    if mess.startswith("P:"):
        with open(mess[2:], "r", encoding=enc) as f:
            mess = f.read()
    return mess


def load_public(text: str) -> blockrsa.RSAPubKey:
    """Reads a public key from a PEM path or a decimal pair."""
    if "," in text and not pathlib.Path(text).is_file():
        return blockrsa.RSAPubKey.from_decimal(text)
    return blockrsa.RSAPubKey.import_key(pathlib.Path(text))


def load_private(text: str) -> blockrsa.RSAPrivKey:
    """Reads a private key from a PEM path or a decimal pair."""
    if "," in text and not pathlib.Path(text).is_file():
        return blockrsa.RSAPrivKey.from_decimal(text)
    return blockrsa.RSAPrivKey.import_key(pathlib.Path(text))


def format_ciphertext(chunks: list[int], length: int) -> str:
    return f"{length}:" + " ".join(codec.chunks_to_strings(chunks))


def parse_ciphertext(text: str) -> tuple[list[int], int | None]:
    """Splits an optional `length:` prefix off the decimal chunks.

    Raises:
        ValueError: If the prefix is not a decimal integer.
    """
    prefix, sep, body = text.partition(":")
    if not sep:
        return codec.strings_to_chunks(text), None
    if not prefix.strip().isdecimal():
        raise ValueError(f"Ciphertext length prefix {prefix!r} is not a decimal integer.")
    return codec.strings_to_chunks(body), int(prefix)


def run(args: argparse.Namespace, pstatus: tuple[bool, bool], pspr: typing.Callable) -> None:
    """Executes the fully specified subcommand."""
    match args.subcommand:
        case "keygen":
            targets = [t for t in (args.private_key, args.public_key) if t is not None]
            if any(t.exists() for t in targets):
                rs = getattr(args, "overwrite", None)
                if rs is None:
                    rs = choice_handler("overwrite", pstatus, pspr)
                if rs == "N":
                    print("Destination private or public key already exists!")
                    return
            rpk = blockrsa.RSAPrivKey.generate(args.prime_bits, args.rounds, args.timeout)
            if args.private_key is not None:
                rpk.export(args.private_key)
            if args.public_key is not None:
                rpk.pub.export(args.public_key)
            pspr("Public key (N, e):")
            print(rpk.pub.to_decimal())
            pspr("Private key (N, d):")
            print(rpk.to_decimal())
        case "encrypt":
            message = check_message(args.message, args.encoding).encode(args.encoding)
            chunks = load_public(args.public_key).encrypt(message)
            pspr("Ciphertext:")
            print(format_ciphertext(chunks, len(message)))
        case "decrypt":
            chunks, length = parse_ciphertext(check_message(args.chunks, "ascii"))
            if args.length is not None:
                length = args.length
            clear = load_private(args.private_key).decrypt(chunks, length)
            pspr("Cleartext:")
            print(clear.decode(args.encoding))
        case "sign":
            message = check_message(args.message, args.encoding).encode(args.encoding)
            signature = load_private(args.private_key).sign(message)
            pspr("Signature:")
            print(" ".join(codec.chunks_to_strings(signature)))
        case "verify":
            message = check_message(args.message, args.encoding).encode(args.encoding)
            signature = codec.strings_to_chunks(args.signature)
            if load_public(args.public_key).verify(message, signature):
                pspr("Signature Verified!")
            else:
                print("Signature Verification Failed!")
                sys.exit(1)


def main(argv: list[str] | None = None):
    """Core Hybrid CLI/ICLI (Command Line Interface/Interactive Command Line Interface)"""
    args = corep.parse_args(argv)
    pstatus = (args.non_interactive, args.advanced)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    def pspr(text: str):
        """Print only if not in non-interactive mode."""
        if not pstatus[0]:
            print(text)

    pspr("Welcome to blockrsa!\n")
    if not args.subcommand:
        args.subcommand = choice_handler("subcommand", pstatus)
        for opt in ("private_key", "public_key", "overwrite", "timeout", "length"):
            setattr(args, opt, getattr(args, opt, None))
    for reqs in needs[args.subcommand]:
        if getattr(args, reqs, None) is None:
            if help_dict[reqs].choices is not None:
                res = choice_handler(reqs, pstatus)
            else:
                res = input_handler(reqs, pstatus)
            setattr(args, reqs, res)
        else:
            pspr(f"{reqs}: {getattr(args, reqs)}")
    pspr("\nInput Complete! Executing...")
    try:
        run(args, pstatus, pspr)
    except (blockrsa.BlockRSAError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    pspr("Thank you for using blockrsa!")
    pspr("Goodbye!")


if __name__ == "__main__":
    main()
