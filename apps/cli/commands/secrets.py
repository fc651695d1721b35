from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any, Mapping, Sequence, TextIO

from credbroker.contexts.credentials.adapters.outbound import (
    AesGcmCredentialCipher,
    InMemoryStoredSecretsRepository,
    resolve_master_key_settings,
)
from credbroker.contexts.credentials.application import (
    ConfigurationError,
    DecryptionError,
    EncryptPlaintextSecretsUseCase,
)
from credbroker.contexts.credentials.domain import StoredSecret
from credbroker.shared_kernel.primitives import UserId

log = logging.getLogger(__name__)


class EncryptSecretCli:
    """
    `encrypt-secret` — print the envelope blob for one plaintext value.
    """

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._stdin = stdin if stdin is not None else sys.stdin

    def run(self, argv: Sequence[str]) -> int:
        parser = argparse.ArgumentParser(prog="encrypt-secret")
        parser.add_argument("--value", default=None, help="Plaintext (default: read stdin)")
        ns = parser.parse_args(list(argv))

        plaintext = ns.value if ns.value is not None else _read_stdin_value(self._stdin)
        try:
            cipher = AesGcmCredentialCipher(
                settings=resolve_master_key_settings(environ=self._environ)
            )
        except ConfigurationError as error:
            print(f"error: {error.message}", file=sys.stderr)
            return 2
        print(cipher.encrypt(plaintext=plaintext))
        return 0


class DecryptSecretCli:
    """
    `decrypt-secret` — print the plaintext for one envelope blob.
    """

    def __init__(
        self,
        *,
        environ: Mapping[str, str] | None = None,
        stdin: TextIO | None = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._stdin = stdin if stdin is not None else sys.stdin

    def run(self, argv: Sequence[str]) -> int:
        parser = argparse.ArgumentParser(prog="decrypt-secret")
        parser.add_argument("--blob", default=None, help="Envelope blob (default: read stdin)")
        ns = parser.parse_args(list(argv))

        blob = ns.blob if ns.blob is not None else _read_stdin_value(self._stdin)
        try:
            cipher = AesGcmCredentialCipher(
                settings=resolve_master_key_settings(environ=self._environ)
            )
            plaintext = cipher.decrypt(blob=blob.strip())
        except ConfigurationError as error:
            print(f"error: {error.message}", file=sys.stderr)
            return 2
        except DecryptionError as error:
            print(f"error: {error.code} ({error.reason})", file=sys.stderr)
            return 1
        print(plaintext)
        return 0


class MigrateSecretsCli:
    """
    `migrate-secrets` — encrypt legacy plaintext values in a JSON export of stored secrets.

    Input is a JSON list of `{record_id, user_id, field_name, value}` objects; the migrated
    list is written to `--output` (or back to `--input` with `--in-place`).
    """

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def run(self, argv: Sequence[str]) -> int:
        parser = _build_migrate_parser()
        ns = parser.parse_args(list(argv))
        input_path = Path(ns.input)
        if ns.output is None and not ns.in_place:
            parser.error("either --output or --in-place is required")
        output_path = input_path if ns.in_place else Path(ns.output)

        try:
            cipher = AesGcmCredentialCipher(
                settings=resolve_master_key_settings(environ=self._environ)
            )
        except ConfigurationError as error:
            print(f"error: {error.message}", file=sys.stderr)
            return 2

        try:
            rows = _load_rows(path=input_path)
        except (KeyError, TypeError, ValueError) as error:
            print(f"error: malformed stored secrets export: {error}", file=sys.stderr)
            return 2
        repository = InMemoryStoredSecretsRepository(rows=rows)
        report = EncryptPlaintextSecretsUseCase(repository=repository, cipher=cipher).run()
        _write_rows(path=output_path, rows=repository.list_all())

        summary: dict[str, Any] = {
            "total": report.total,
            "migrated": report.migrated,
            "already_encrypted": report.already_encrypted,
            "errors": report.errors,
            "by_field": {name: asdict(counts) for name, counts in report.by_field.items()},
        }
        print(json.dumps(summary, ensure_ascii=False, sort_keys=True))
        return 0 if report.errors == 0 else 1


def _build_migrate_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="migrate-secrets")
    p.add_argument("--input", required=True, help="Path to JSON export of stored secrets")
    p.add_argument("--output", default=None, help="Path for migrated JSON export")
    p.add_argument("--in-place", action="store_true", help="Overwrite input file")
    return p


def _load_rows(*, path: Path) -> tuple[StoredSecret, ...]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise ValueError(f"stored secrets export must be a JSON list: {path}")
    return tuple(
        StoredSecret(
            record_id=str(item["record_id"]),
            user_id=UserId.from_string(str(item["user_id"])),
            field_name=str(item["field_name"]),
            value=str(item["value"]),
        )
        for item in payload
    )


def _write_rows(*, path: Path, rows: tuple[StoredSecret, ...]) -> None:
    # Staged beside the target so `--in-place` never truncates the only copy.
    payload = [
        {
            "record_id": row.record_id,
            "user_id": str(row.user_id),
            "field_name": row.field_name,
            "value": row.value,
        }
        for row in rows
    ]
    staging = NamedTemporaryFile(
        mode="w",
        prefix=f".{path.name}.",
        dir=path.parent,
        delete=False,
        encoding="utf-8",
    )
    try:
        with staging:
            staging.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
            staging.flush()
            os.fsync(staging.fileno())
        os.replace(staging.name, path)
    except OSError:
        Path(staging.name).unlink(missing_ok=True)
        raise
    log.info("stored secrets export written path=%s rows=%s", path, len(payload))


def _read_stdin_value(stdin: TextIO) -> str:
    return stdin.read().rstrip("\r\n")
