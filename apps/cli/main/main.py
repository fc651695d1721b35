from __future__ import annotations

import logging
import sys

from apps.cli.commands.secrets import DecryptSecretCli, EncryptSecretCli, MigrateSecretsCli
from apps.cli.commands.sign_query import SignQueryCli

_USAGE = (
    "Usage:\n"
    "  encrypt-secret [--value TEXT]\n"
    "  decrypt-secret [--blob BLOB]\n"
    "  migrate-secrets --input PATH (--output PATH | --in-place)\n"
    "  sign-query [--secret S] [--param k=v ...] [--timestamp MS] [--recv-window MS]\n"
)


def _configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def main(argv: list[str] | None = None) -> int:
    _configure_logging()
    args = argv if argv is not None else sys.argv[1:]
    if not args:
        print(_USAGE)
        return 2

    cmd = args[0]
    rest = args[1:]

    if cmd == "encrypt-secret":
        return EncryptSecretCli().run(rest)
    if cmd == "decrypt-secret":
        return DecryptSecretCli().run(rest)
    if cmd == "migrate-secrets":
        return MigrateSecretsCli().run(rest)
    if cmd == "sign-query":
        return SignQueryCli().run(rest)

    print(f"unknown command: {cmd}\n\n{_USAGE}", file=sys.stderr)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
